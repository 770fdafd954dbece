"""
Error types raised when a descriptor cannot be converted. All of them derive
from ValueError so that callers treating bad input generically keep working.
"""

# Standard
from typing import Optional


class ConversionError(ValueError):
    """Base class for failures that abort the conversion of a message"""

    def __init__(
        self,
        message: str,
        *,
        field_name: Optional[str] = None,
        message_name: Optional[str] = None,
        type_name: Optional[str] = None,
    ):
        super().__init__(message)
        self.field_name = field_name
        self.message_name = message_name
        self.type_name = type_name


class UnrecognizedFieldKindError(ConversionError):
    """A field's protobuf type has no JSON Schema mapping"""

    def __init__(self, field_type: int, field_name: str, message_name: str):
        super().__init__(
            f"unrecognized field type: {field_type}",
            field_name=field_name,
            message_name=message_name,
        )
        self.field_type = field_type


class UnresolvedTypeReferenceError(ConversionError):
    """A message or group field references a type that is not registered"""

    def __init__(self, type_name: str, field_name: str, message_name: str):
        super().__init__(
            f"no such message type named {type_name}",
            field_name=field_name,
            message_name=message_name,
            type_name=type_name,
        )


class CyclicTypeReferenceError(ConversionError):
    """A message contains itself, either directly or through a cycle of
    message-typed fields
    """

    def __init__(self, type_name: str, field_name: str, message_name: str):
        super().__init__(
            f"cyclic reference to message type {type_name}",
            field_name=field_name,
            message_name=message_name,
            type_name=type_name,
        )
