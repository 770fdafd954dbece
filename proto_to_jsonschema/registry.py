"""
This module implements the namespace tree used to resolve the type names that
message and group fields refer to. The tree mirrors the dotted proto package
names, and each node holds the top-level messages declared in that package.
Messages nested inside other messages are reached through their parent's
nested types rather than being registered on their own.
"""

# Standard
from typing import Dict, NamedTuple, Optional
import weakref

# Third Party
from google.protobuf import descriptor_pb2

# First Party
import alog

log = alog.use_channel("P2JRG")

PACKAGE_SEPARATOR = "."


## Interface ###################################################################


class TypeLookup(NamedTuple):
    """The result of a successful type lookup"""

    # The matched message
    message: descriptor_pb2.DescriptorProto
    # The package the message (or its outermost parent) is registered in
    package: "ProtoPackage"
    # The fully qualified name with a leading separator, e.g. .foo.bar.Baz
    full_name: str


class ProtoPackage:
    """A single namespace node. The root node has an empty name and no parent;
    every other node is named by the dotted path from the root, with a leading
    separator (.foo.bar).
    """

    def __init__(self, name: str = "", parent: Optional["ProtoPackage"] = None):
        self.name = name
        self._parent = weakref.ref(parent) if parent is not None else None
        self.children: Dict[str, ProtoPackage] = {}
        self.types: Dict[str, descriptor_pb2.DescriptorProto] = {}

    @property
    def parent(self) -> Optional["ProtoPackage"]:
        return self._parent() if self._parent is not None else None

    def child(self, segment: str) -> "ProtoPackage":
        """Get the child node for the segment, creating it if needed"""
        child = self.children.get(segment)
        if child is None:
            child = ProtoPackage(self.name + PACKAGE_SEPARATOR + segment, self)
            log.debug3("Creating package %s", child.name)
            self.children[segment] = child
        return child

    def relative_lookup(self, name: str) -> Optional[TypeLookup]:
        """Look up a dotted type name starting from this node only"""
        head, _, rest = name.partition(PACKAGE_SEPARATOR)
        if not rest:
            message = self.types.get(head)
            if message is None:
                return None
            return TypeLookup(message, self, self._qualify(head))

        # A child package shadows a message of the same name
        child = self.children.get(head)
        if child is not None:
            return child.relative_lookup(rest)

        message = self.types.get(head)
        if message is None:
            return None
        nested = lookup_nested_type(message, rest)
        if nested is None:
            return None
        return TypeLookup(nested, self, self._qualify(name))

    def _qualify(self, name: str) -> str:
        return self.name + PACKAGE_SEPARATOR + name

    def __repr__(self) -> str:
        return f"ProtoPackage({self.name!r})"


class PackageRegistry:
    """The root of the namespace tree for one conversion run. It is populated
    once with every message of the input files, frozen, then only read.
    """

    def __init__(self):
        self.root = ProtoPackage()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self):
        """End the registration phase"""
        self._frozen = True

    def register(self, package_name: str, message: descriptor_pb2.DescriptorProto):
        """Register a top-level message under the given dotted package name. An
        existing message of the same name is replaced.
        """
        if self._frozen:
            raise RuntimeError(
                f"Cannot register {message.name} in a frozen package registry"
            )
        package = self.root
        for segment in (package_name or "").split(PACKAGE_SEPARATOR):
            # A leading separator is not a package of its own
            if package is self.root and not segment:
                continue
            package = package.child(segment)
        log.debug3("Registering %s in package [%s]", message.name, package.name)
        package.types[message.name] = message

    def register_file(self, file_proto: descriptor_pb2.FileDescriptorProto):
        """Register every top-level message of a file"""
        log.debug2("Registering file %s", file_proto.name)
        for message in file_proto.message_type:
            self.register(file_proto.package, message)

    def get_package(self, package_name: str) -> Optional[ProtoPackage]:
        """Get the node for a dotted package name if it has been created"""
        package = self.root
        for segment in (package_name or "").split(PACKAGE_SEPARATOR):
            if package is self.root and not segment:
                continue
            package = package.children.get(segment)
            if package is None:
                return None
        return package

    def lookup_type(
        self, current_package: Optional[ProtoPackage], type_name: str
    ) -> Optional[TypeLookup]:
        """Resolve a type name the way protoc scopes them.

        Absolute names (.foo.Bar) are resolved from the root. Relative names
        are tried from the current package first, then from each of its
        ancestors in turn, so the innermost scope wins.

        Args:
            current_package:  Optional[ProtoPackage]
                The package being converted. None means the root.
            type_name:  str
                The type name as written in the field descriptor

        Returns:
            lookup:  Optional[TypeLookup]
                The matched message, the package it was found in and its full
                name, or None if there is no such message
        """
        if type_name.startswith(PACKAGE_SEPARATOR):
            return self.root.relative_lookup(type_name[1:])
        package = current_package or self.root
        while package is not None:
            found = package.relative_lookup(type_name)
            if found is not None:
                return found
            package = package.parent
        return None


def lookup_nested_type(
    message: descriptor_pb2.DescriptorProto, name: str
) -> Optional[descriptor_pb2.DescriptorProto]:
    """Walk a dotted path through the nested types of a message. This never
    leaves the message, so package names are not considered.

    Args:
        message:  descriptor_pb2.DescriptorProto
            The containing message
        name:  str
            Dotted path of nested message names, e.g. Outer.Inner

    Returns:
        nested:  Optional[descriptor_pb2.DescriptorProto]
            The innermost nested message or None if any component is missing
    """
    current = message
    for component in name.split(PACKAGE_SEPARATOR):
        for nested in current.nested_type:
            if nested.name == component:
                current = nested
                break
        else:
            log.warning(
                "no such nested message [%s] in message [%s]",
                component,
                current.name,
            )
            return None
    return current
