"""
Builders for the descriptor protos used across the tests
"""

# Standard
from typing import Iterable, Optional, Sequence, Tuple

# Third Party
from google.protobuf import descriptor_pb2

# Local
from proto_to_jsonschema.converter import Converter
from proto_to_jsonschema.registry import PackageRegistry
from proto_to_jsonschema.source_info import SourceInfo

_Field = descriptor_pb2.FieldDescriptorProto

## Paths #######################################################################

FILE_MESSAGE = descriptor_pb2.FileDescriptorProto.MESSAGE_TYPE_FIELD_NUMBER
FILE_ENUM = descriptor_pb2.FileDescriptorProto.ENUM_TYPE_FIELD_NUMBER
MESSAGE_FIELD = descriptor_pb2.DescriptorProto.FIELD_FIELD_NUMBER
MESSAGE_NESTED = descriptor_pb2.DescriptorProto.NESTED_TYPE_FIELD_NUMBER
MESSAGE_ENUM = descriptor_pb2.DescriptorProto.ENUM_TYPE_FIELD_NUMBER
ENUM_VALUE = descriptor_pb2.EnumDescriptorProto.VALUE_FIELD_NUMBER


def message_path(message_idx: int) -> Tuple[int, ...]:
    return (FILE_MESSAGE, message_idx)


def field_path(message_idx: int, field_idx: int) -> Tuple[int, ...]:
    return message_path(message_idx) + (MESSAGE_FIELD, field_idx)


def enum_value_path(enum_idx: int, value_idx: int) -> Tuple[int, ...]:
    return (FILE_ENUM, enum_idx, ENUM_VALUE, value_idx)


## Builders ####################################################################


def make_field(
    name: str,
    number: int,
    field_type: int,
    *,
    label: int = _Field.LABEL_OPTIONAL,
    type_name: Optional[str] = None,
    json_name: Optional[str] = None,
) -> descriptor_pb2.FieldDescriptorProto:
    field = _Field(name=name, number=number, type=field_type, label=label)
    if type_name is not None:
        field.type_name = type_name
    if json_name is not None:
        field.json_name = json_name
    return field


def make_enum(
    name: str, values: Sequence[Tuple[str, int]]
) -> descriptor_pb2.EnumDescriptorProto:
    return descriptor_pb2.EnumDescriptorProto(
        name=name,
        value=[
            descriptor_pb2.EnumValueDescriptorProto(name=value_name, number=number)
            for value_name, number in values
        ],
    )


def make_message(
    name: str,
    fields: Iterable[descriptor_pb2.FieldDescriptorProto] = (),
    *,
    nested: Iterable[descriptor_pb2.DescriptorProto] = (),
    enums: Iterable[descriptor_pb2.EnumDescriptorProto] = (),
    map_entry: bool = False,
) -> descriptor_pb2.DescriptorProto:
    message = descriptor_pb2.DescriptorProto(
        name=name,
        field=list(fields),
        nested_type=list(nested),
        enum_type=list(enums),
    )
    if map_entry:
        message.options.map_entry = True
    return message


def make_file(
    name: str,
    package: str,
    messages: Iterable[descriptor_pb2.DescriptorProto] = (),
    enums: Iterable[descriptor_pb2.EnumDescriptorProto] = (),
) -> descriptor_pb2.FileDescriptorProto:
    return descriptor_pb2.FileDescriptorProto(
        name=name,
        package=package,
        syntax="proto3",
        message_type=list(messages),
        enum_type=list(enums),
    )


def add_comment(
    file_proto: descriptor_pb2.FileDescriptorProto,
    path: Sequence[int],
    leading: str = "",
    trailing: str = "",
    detached: Iterable[str] = (),
):
    """Attach comments to the element at the given path. Comment text is given
    the way protoc reports it: without the // and keeping the leading space.
    """
    file_proto.source_code_info.location.add(
        path=list(path),
        span=[0, 0, 0],
        leading_comments=leading,
        trailing_comments=trailing,
        leading_detached_comments=list(detached),
    )


def make_converter(
    *files: descriptor_pb2.FileDescriptorProto, **kwargs
) -> Converter:
    """Register the files in a fresh, frozen registry and make a converter with
    their source info
    """
    registry = PackageRegistry()
    for file_proto in files:
        registry.register_file(file_proto)
    registry.freeze()
    return Converter(registry, SourceInfo(files), **kwargs)
