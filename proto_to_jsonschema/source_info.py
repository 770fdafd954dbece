"""
This module indexes the SourceCodeInfo of a set of FileDescriptorProtos so that
the comments attached to a message, field, enum or enum value can be found from
the descriptor itself.

Each SourceCodeInfo.Location carries a path of (field number, index) pairs that
walks from the file down to the element it describes, e.g. [4, 0, 2, 1] is the
second field of the first message in the file.
"""

# Standard
from typing import Any, Dict, Iterable, Optional, Tuple

# Third Party
from google.protobuf import descriptor_pb2

# First Party
import alog

log = alog.use_channel("P2JSI")

## Globals #####################################################################

_FileProto = descriptor_pb2.FileDescriptorProto
_MessageProto = descriptor_pb2.DescriptorProto
_EnumProto = descriptor_pb2.EnumDescriptorProto

# Map from the full name of a container descriptor type to the repeated
# attributes that hold its child elements, keyed by field number
_CHILD_ATTRIBUTES = {
    _FileProto.DESCRIPTOR.full_name: {
        _FileProto.MESSAGE_TYPE_FIELD_NUMBER: "message_type",
        _FileProto.ENUM_TYPE_FIELD_NUMBER: "enum_type",
    },
    _MessageProto.DESCRIPTOR.full_name: {
        _MessageProto.FIELD_FIELD_NUMBER: "field",
        _MessageProto.NESTED_TYPE_FIELD_NUMBER: "nested_type",
        _MessageProto.ENUM_TYPE_FIELD_NUMBER: "enum_type",
    },
    _EnumProto.DESCRIPTOR.full_name: {
        _EnumProto.VALUE_FIELD_NUMBER: "value",
    },
}


## Interface ###################################################################


class SourceInfo:
    """Lookup from descriptor protos to their source locations.

    Entries are keyed by object identity. The indexed descriptor is held along
    with its location so the identity stays valid for the life of the index.
    """

    def __init__(self, files: Iterable[descriptor_pb2.FileDescriptorProto] = ()):
        self._locations: Dict[
            int, Tuple[Any, descriptor_pb2.SourceCodeInfo.Location]
        ] = {}
        for file_proto in files:
            self.add_file(file_proto)

    def add_file(self, file_proto: descriptor_pb2.FileDescriptorProto):
        """Index all element locations of the given file"""
        if not file_proto.HasField("source_code_info"):
            log.debug2("No source info for %s", file_proto.name)
            return
        num_indexed = 0
        for location in file_proto.source_code_info.location:
            element = _resolve_path(file_proto, location.path)
            if element is not None:
                self._locations[id(element)] = (element, location)
                num_indexed += 1
        log.debug2("Indexed %d locations for %s", num_indexed, file_proto.name)

    def get_location(
        self, descriptor: Any
    ) -> Optional[descriptor_pb2.SourceCodeInfo.Location]:
        """Get the source location for a message, field, enum or enum value
        descriptor proto, if there is one
        """
        entry = self._locations.get(id(descriptor))
        if entry is None or entry[0] is not descriptor:
            return None
        return entry[1]

    def __len__(self) -> int:
        return len(self._locations)


## Implementation Details ######################################################


def _resolve_path(
    file_proto: descriptor_pb2.FileDescriptorProto, path: Iterable[int]
) -> Optional[Any]:
    """Walk a location path down to the element it names. Paths that end on a
    scalar attribute (a name, a number, ...) or that go through anything other
    than messages, fields, enums and enum values resolve to None.
    """
    path = list(path)
    if not path or len(path) % 2:
        return None
    element = file_proto
    for field_number, index in zip(path[::2], path[1::2]):
        children = _CHILD_ATTRIBUTES.get(element.DESCRIPTOR.full_name, {})
        attr_name = children.get(field_number)
        if attr_name is None:
            return None
        container = getattr(element, attr_name)
        if index >= len(container):
            return None
        element = container[index]
    return element
