"""
This module holds the in-memory JSON Schema node that the converter produces
for every message and field. The node is a plain mutable dataclass so that the
converter can fill it in place as it walks the descriptors, then hand the
finished tree to whatever serializes it.
"""

# Standard
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union
import dataclasses

## Globals #####################################################################

JSON_SCHEMA_VERSION = "http://json-schema.org/draft-04/schema#"


class SchemaKind(str, Enum):
    """The primitive JSON Schema types"""

    STRING = "string"
    NUMBER = "number"
    INTEGER = "integer"
    BOOLEAN = "boolean"
    OBJECT = "object"
    ARRAY = "array"
    NULL = "null"


## Interface ###################################################################


@dataclasses.dataclass
class SchemaType:
    """A single JSON Schema node.

    A node is one of: an object with properties, an array with an item type,
    a scalar, or a union (one_of) of other nodes. Enum nodes carry their
    allowed values in `enum` and a label per value, in the same order, in
    `option_labels`.
    """

    type: Optional[SchemaKind] = None
    properties: Dict[str, "SchemaType"] = dataclasses.field(default_factory=dict)
    items: Optional["SchemaType"] = None
    one_of: List["SchemaType"] = dataclasses.field(default_factory=list)
    enum: List[Any] = dataclasses.field(default_factory=list)
    option_labels: List[Any] = dataclasses.field(default_factory=list)
    additional_properties: Optional[Union[bool, "SchemaType"]] = None

    # Constraints
    minimum: Optional[int] = None
    maximum: Optional[int] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[str] = None
    format: Optional[str] = None

    # Descriptive
    title: Optional[str] = None
    description: Optional[str] = None
    schema_version: Optional[str] = None

    # Flags
    required: bool = False
    pk: bool = False
    auto_increment: bool = False
    index: bool = False
    query: bool = False

    # Protobuf field number, used to order properties
    order: int = 0

    def ordered_properties(self) -> List[Tuple[str, "SchemaType"]]:
        """Get the properties sorted by field number, breaking ties by name so
        that dual-named properties land next to each other
        """
        return sorted(
            self.properties.items(), key=lambda item: (item[1].order, item[0])
        )

    def to_dict(self) -> Dict[str, Any]:
        """Render this node as a JSON Schema dict"""
        schema = {}
        if self.schema_version:
            schema["$schema"] = self.schema_version
        if self.title:
            schema["title"] = self.title
        if self.description:
            schema["description"] = self.description
        if self.type is not None:
            schema["type"] = self.type.value
        if self.one_of:
            schema["oneOf"] = _render_all(self.one_of)
        if self.properties:
            schema["properties"] = {
                name: node.to_dict() for name, node in self.ordered_properties()
            }
        if isinstance(self.additional_properties, SchemaType):
            schema["additionalProperties"] = self.additional_properties.to_dict()
        elif self.additional_properties is not None:
            schema["additionalProperties"] = self.additional_properties
        if self.items is not None:
            schema["items"] = self.items.to_dict()
        if self.enum:
            schema["enum"] = list(self.enum)
            if self.option_labels:
                schema["options"] = {"enum_titles": list(self.option_labels)}

        for key, value in (
            ("minimum", self.minimum),
            ("maximum", self.maximum),
            ("minLength", self.min_length),
            ("maxLength", self.max_length),
            ("pattern", self.pattern),
            ("format", self.format),
        ):
            if value is not None:
                schema[key] = value

        for key, flag in (
            ("required", self.required),
            ("pk", self.pk),
            ("autoIncrement", self.auto_increment),
            ("index", self.index),
            ("query", self.query),
        ):
            if flag:
                schema[key] = True
        return schema


## Implementation Details ######################################################


def _render_all(nodes: Iterable[SchemaType]) -> List[Dict[str, Any]]:
    return [node.to_dict() for node in nodes]
