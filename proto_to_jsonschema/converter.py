"""
This module implements the conversion of protobuf message descriptors into JSON
Schema nodes. Conversion is a recursive walk: each message is converted field by
field and message-typed fields recurse into the referenced message, which is
found through the PackageRegistry.
"""

# Standard
from typing import Dict, Iterable, List, Optional, Sequence, Union

# Third Party
from google.protobuf import descriptor as _descriptor
from google.protobuf import descriptor_pb2

# First Party
import alog

# Local
from .comments import (
    apply_directives,
    extract_directives,
    format_description,
    get_enum_comment,
)
from .errors import (
    ConversionError,
    CyclicTypeReferenceError,
    UnrecognizedFieldKindError,
    UnresolvedTypeReferenceError,
)
from .registry import PACKAGE_SEPARATOR, PackageRegistry, ProtoPackage
from .schema_type import JSON_SCHEMA_VERSION, SchemaKind, SchemaType
from .source_info import SourceInfo

log = alog.use_channel("P2JCV")

## Globals #####################################################################

_FieldProto = descriptor_pb2.FieldDescriptorProto

PROTO_TO_JSON_SCHEMA_KINDS = {
    _FieldProto.TYPE_DOUBLE: SchemaKind.NUMBER,
    _FieldProto.TYPE_FLOAT: SchemaKind.NUMBER,
    _FieldProto.TYPE_INT32: SchemaKind.INTEGER,
    _FieldProto.TYPE_UINT32: SchemaKind.INTEGER,
    _FieldProto.TYPE_FIXED32: SchemaKind.INTEGER,
    _FieldProto.TYPE_SFIXED32: SchemaKind.INTEGER,
    _FieldProto.TYPE_SINT32: SchemaKind.INTEGER,
    _FieldProto.TYPE_INT64: SchemaKind.INTEGER,
    _FieldProto.TYPE_UINT64: SchemaKind.INTEGER,
    _FieldProto.TYPE_FIXED64: SchemaKind.INTEGER,
    _FieldProto.TYPE_SFIXED64: SchemaKind.INTEGER,
    _FieldProto.TYPE_SINT64: SchemaKind.INTEGER,
    _FieldProto.TYPE_STRING: SchemaKind.STRING,
    _FieldProto.TYPE_BYTES: SchemaKind.STRING,
    _FieldProto.TYPE_BOOL: SchemaKind.BOOLEAN,
    # Enums are integers constrained to the enum's values
    _FieldProto.TYPE_ENUM: SchemaKind.INTEGER,
    _FieldProto.TYPE_GROUP: SchemaKind.OBJECT,
    _FieldProto.TYPE_MESSAGE: SchemaKind.OBJECT,
}

# Inputs accepted by proto_to_jsonschema
_FileInputTypes = Union[
    descriptor_pb2.FileDescriptorProto,
    _descriptor.FileDescriptor,
    _descriptor.Descriptor,
]


## Interface ###################################################################


def proto_to_jsonschema(
    files: Iterable[_FileInputTypes],
    *,
    file_names: Optional[Iterable[str]] = None,
    allow_null_values: bool = False,
    disallow_additional_properties: bool = False,
    use_proto_and_json_fieldnames: bool = False,
    include_comment_descriptions: bool = False,
) -> Dict[str, SchemaType]:
    """Convert every top-level message of a set of proto files to JSON Schema.

    All files are registered before any conversion starts, so fields may refer
    to messages declared in any of them.

    Args:
        files:  Iterable[Union[FileDescriptorProto, FileDescriptor, Descriptor]]
            The parsed proto files. Compiled descriptors are copied to protos;
            a message Descriptor stands for the file that declares it.

    Kwargs:
        file_names:  Optional[Iterable[str]]
            If given, only messages from files with these names are converted.
            The other files are still used to resolve references.
        allow_null_values:  bool
            Repeated scalar and enum fields become a oneOf of null and the
            array. Repeated message and map fields stay plain arrays.
        disallow_additional_properties:  bool
            Messages reject properties that are not declared
        use_proto_and_json_fieldnames:  bool
            Fields whose JSON name differs from their proto name are exposed
            under both names
        include_comment_descriptions:  bool
            Use the element's comments as its description when no description
            directive is given

    Returns:
        schemas:  Dict[str, SchemaType]
            Mapping from the message's full name (package.Message) to its schema
    """
    files = list(files)
    file_protos = [_to_file_proto(file_input) for file_input in files]

    # Compiled descriptors bring their imports along so that references into
    # them resolve. Files given by the caller take precedence.
    given_names = {file_proto.name for file_proto in file_protos}
    import_protos = [
        import_proto
        for import_proto in _compiled_imports(files)
        if import_proto.name not in given_names
    ]
    all_protos = file_protos + import_protos

    log.debug(
        "Registering %d files (%d imports)", len(all_protos), len(import_protos)
    )
    registry = PackageRegistry()
    for file_proto in all_protos:
        registry.register_file(file_proto)
    registry.freeze()

    converter = Converter(
        registry,
        SourceInfo(all_protos),
        allow_null_values=allow_null_values,
        disallow_additional_properties=disallow_additional_properties,
        use_proto_and_json_fieldnames=use_proto_and_json_fieldnames,
        include_comment_descriptions=include_comment_descriptions,
    )
    selected = set(file_names) if file_names is not None else None
    schemas = {}
    for file_proto in file_protos:
        if selected is not None and file_proto.name not in selected:
            log.debug2("Skipping file %s", file_proto.name)
            continue
        schemas.update(converter.convert_file(file_proto))
    return schemas


class Converter:
    """Converts messages and fields using a populated PackageRegistry"""

    def __init__(
        self,
        registry: PackageRegistry,
        source_info: Optional[SourceInfo] = None,
        *,
        allow_null_values: bool = False,
        disallow_additional_properties: bool = False,
        use_proto_and_json_fieldnames: bool = False,
        include_comment_descriptions: bool = False,
    ):
        """
        Args:
            registry (PackageRegistry)
                The registry holding every message that may be referenced
            source_info (Optional[SourceInfo])
                Source locations used for comment directives and enum labels

        Kwargs:
            See proto_to_jsonschema
        """
        if not registry.frozen:
            log.debug("Converting with a registry that has not been frozen")
        self.registry = registry
        self.source_info = source_info if source_info is not None else SourceInfo()
        self.allow_null_values = allow_null_values
        self.disallow_additional_properties = disallow_additional_properties
        self.use_proto_and_json_fieldnames = use_proto_and_json_fieldnames
        self.include_comment_descriptions = include_comment_descriptions

        # Full names of the messages on the current conversion path
        self._active_messages: List[str] = []

    def convert_file(
        self, file_proto: descriptor_pb2.FileDescriptorProto
    ) -> Dict[str, SchemaType]:
        """Convert each top-level message of a registered file. The file's own
        enums are visible to every message in it.
        """
        messages = [
            message
            for message in file_proto.message_type
            if not message.options.map_entry
        ]
        if not messages:
            log.debug2("No messages to convert in %s", file_proto.name)
            return {}

        package = self.registry.get_package(file_proto.package)
        if package is None:
            raise ValueError(
                f"Package [{file_proto.package}] of {file_proto.name} is not registered"
            )

        log.debug("Converting file %s", file_proto.name)
        outer_enums = list(file_proto.enum_type)
        schemas = {}
        for message in messages:
            full_name = package.name + PACKAGE_SEPARATOR + message.name
            schemas[full_name.lstrip(PACKAGE_SEPARATOR)] = self.convert_message(
                package, message, outer_enums, full_name=full_name
            )
        return schemas

    def convert_message(
        self,
        current_package: ProtoPackage,
        message: descriptor_pb2.DescriptorProto,
        outer_enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
        *,
        full_name: Optional[str] = None,
    ) -> SchemaType:
        """Convert a message into an object node with one property per field.

        Args:
            current_package (ProtoPackage)
                The package that relative type names are resolved from
            message (descriptor_pb2.DescriptorProto)
                The message to convert
            outer_enums (Sequence[descriptor_pb2.EnumDescriptorProto])
                Enums from enclosing scopes that enum fields may refer to
            full_name (Optional[str])
                The message's fully qualified name. Defaults to the message
                name within current_package.

        Returns:
            schema (SchemaType)
                The object node for the message

        Raises:
            ConversionError if any field cannot be converted
        """
        full_name = full_name or (
            current_package.name + PACKAGE_SEPARATOR + message.name
        )
        log.debug2("Converting message %s", full_name)
        log.debug4("Full message descriptor:\n%s", message)

        schema = SchemaType(
            type=SchemaKind.OBJECT,
            schema_version=JSON_SCHEMA_VERSION,
            additional_properties=not self.disallow_additional_properties,
        )
        self._active_messages.append(full_name)
        try:
            for field in message.field:
                try:
                    field_schema = self.convert_field(
                        current_package, field, message, outer_enums
                    )
                except ConversionError as err:
                    log.error(
                        "Failed to convert field [%s.%s]: %s",
                        message.name,
                        field.name,
                        err,
                    )
                    raise
                log.debug3(
                    "Converted field [%s.%s] to %s",
                    message.name,
                    field.name,
                    field_schema.type,
                )
                self._fill_comment_attributes(field, field.name, field_schema)
                field_schema.order = field.number
                schema.properties[field.name] = field_schema
                if (
                    self.use_proto_and_json_fieldnames
                    and field.json_name
                    and field.json_name != field.name
                ):
                    schema.properties[field.json_name] = field_schema
        finally:
            self._active_messages.pop()

        self._fill_comment_attributes(message, message.name, schema)
        return schema

    def convert_field(
        self,
        current_package: ProtoPackage,
        field: descriptor_pb2.FieldDescriptorProto,
        message: descriptor_pb2.DescriptorProto,
        outer_enums: Sequence[descriptor_pb2.EnumDescriptorProto] = (),
    ) -> SchemaType:
        """Convert a single field.

        Args:
            current_package (ProtoPackage)
                The package that relative type names are resolved from
            field (descriptor_pb2.FieldDescriptorProto)
                The field to convert
            message (descriptor_pb2.DescriptorProto)
                The message declaring the field. Its enums are searched for enum
                fields.
            outer_enums (Sequence[descriptor_pb2.EnumDescriptorProto])
                Enums from enclosing scopes

        Returns:
            schema (SchemaType)
                The node for the field

        Raises:
            UnrecognizedFieldKindError if the field type has no mapping
            UnresolvedTypeReferenceError if a referenced message is unknown
            CyclicTypeReferenceError if a referenced message is already being
                converted
        """
        kind = PROTO_TO_JSON_SCHEMA_KINDS.get(field.type)
        if kind is None:
            raise UnrecognizedFieldKindError(field.type, field.name, message.name)
        schema = SchemaType(type=kind)
        is_repeated = field.label == _FieldProto.LABEL_REPEATED

        if field.type == _FieldProto.TYPE_ENUM:
            self._fill_enum_values(schema, field, message, outer_enums)

        if kind != SchemaKind.OBJECT:
            if is_repeated:
                item_schema = SchemaType(type=kind)
                if schema.enum:
                    item_schema.enum, schema.enum = schema.enum, []
                    item_schema.option_labels, schema.option_labels = (
                        schema.option_labels,
                        [],
                    )
                self._make_array(schema, item_schema)
            return schema

        if field.label == _FieldProto.LABEL_OPTIONAL:
            schema.additional_properties = True
        elif field.label == _FieldProto.LABEL_REQUIRED:
            schema.additional_properties = False

        lookup = self.registry.lookup_type(current_package, field.type_name)
        if lookup is None:
            raise UnresolvedTypeReferenceError(
                field.type_name, field.name, message.name
            )
        if lookup.full_name in self._active_messages:
            raise CyclicTypeReferenceError(lookup.full_name, field.name, message.name)

        nested_schema = self.convert_message(
            lookup.package, lookup.message, outer_enums, full_name=lookup.full_name
        )
        if lookup.message.options.map_entry or is_repeated:
            log.debug3(
                "Field [%s.%s] is an array of %s",
                message.name,
                field.name,
                lookup.full_name,
            )
            # Object arrays are never wrapped in a null union
            schema.type = SchemaKind.ARRAY
            schema.items = nested_schema
        else:
            schema.properties = nested_schema.properties
        return schema

    ## Implementation Details ##################################################

    def _make_array(self, schema: SchemaType, item_schema: SchemaType):
        """Turn a scalar or enum node into an array of the item node, or into a
        union of null and that array when null values are allowed
        """
        if self.allow_null_values:
            schema.type = None
            schema.one_of = [
                SchemaType(type=SchemaKind.NULL),
                SchemaType(type=SchemaKind.ARRAY, items=item_schema),
            ]
        else:
            schema.type = SchemaKind.ARRAY
            schema.items = item_schema

    def _fill_enum_values(
        self,
        schema: SchemaType,
        field: descriptor_pb2.FieldDescriptorProto,
        message: descriptor_pb2.DescriptorProto,
        outer_enums: Sequence[descriptor_pb2.EnumDescriptorProto],
    ):
        """Collect the allowed values of every enum whose name the field's type
        name ends with. A shared suffix (Status / FooStatus) matches both enums
        and their values are concatenated.
        """
        candidates = list(message.enum_type) + list(outer_enums)
        matches = [
            enum for enum in candidates if field.type_name.endswith(enum.name)
        ]
        if not matches:
            log.warning(
                "No enum values found for field [%s.%s] of type %s",
                message.name,
                field.name,
                field.type_name,
            )
        elif len(matches) > 1:
            log.warning(
                "Field [%s.%s] of type %s matches multiple enums: %s",
                message.name,
                field.name,
                field.type_name,
                [enum.name for enum in matches],
            )
        for enum in matches:
            for value in enum.value:
                schema.enum.append(value.number)
                label = value.number
                location = self.source_info.get_location(value)
                if location is not None:
                    label = get_enum_comment(location) or label
                schema.option_labels.append(label)

    def _fill_comment_attributes(
        self,
        descriptor: Union[
            descriptor_pb2.FieldDescriptorProto, descriptor_pb2.DescriptorProto
        ],
        name: str,
        schema: SchemaType,
    ):
        """Apply the comment directives of a field or message to its node"""
        location = self.source_info.get_location(descriptor)
        directives = extract_directives(location) if location is not None else {}
        if directives:
            log.debug3("Applying directives to %s: %s", name, directives)
        apply_directives(directives, schema, name)
        if (
            self.include_comment_descriptions
            and location is not None
            and not schema.description
        ):
            schema.description = format_description(location) or None


def _to_file_proto(file_input: _FileInputTypes) -> descriptor_pb2.FileDescriptorProto:
    """Get a FileDescriptorProto from any of the accepted inputs"""
    if isinstance(file_input, descriptor_pb2.FileDescriptorProto):
        return file_input
    if isinstance(file_input, _descriptor.Descriptor):
        file_input = file_input.file
    if not isinstance(file_input, _descriptor.FileDescriptor):
        raise ValueError(f"Invalid file descriptor of type {type(file_input)}")
    return _copy_file_descriptor(file_input)


def _compiled_imports(
    files: Iterable[_FileInputTypes],
) -> List[descriptor_pb2.FileDescriptorProto]:
    """Collect the transitive imports of all compiled inputs, each file once"""
    seen = set()
    import_protos = []
    pending = []
    for file_input in files:
        if isinstance(file_input, _descriptor.Descriptor):
            file_input = file_input.file
        if isinstance(file_input, _descriptor.FileDescriptor):
            seen.add(file_input.name)
            pending.extend(file_input.dependencies)
    while pending:
        dependency = pending.pop()
        if dependency.name in seen:
            continue
        seen.add(dependency.name)
        log.debug3("Adding import file %s", dependency.name)
        import_protos.append(_copy_file_descriptor(dependency))
        pending.extend(dependency.dependencies)
    return import_protos


def _copy_file_descriptor(
    file_descriptor: _descriptor.FileDescriptor,
) -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto()
    file_descriptor.CopyToProto(file_proto)
    return file_proto
