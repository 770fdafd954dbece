"""
This module implements the comment directive mini-language. Directives are
`@key=value` or bare `@key` tags written in the comments of a proto element:

    // The user's login
    // @required @min=3 @max=32
    string login = 1;

Parsing the directives out of the comment text is kept separate from applying
them to a schema node so that each half can be worked on independently.
"""

# Standard
from typing import Dict, Iterable, List
import re

# Third Party
from google.protobuf import descriptor_pb2

# First Party
import alog

# Local
from .schema_type import SchemaKind, SchemaType
from .utils import to_split_case

log = alog.use_channel("P2JCM")

## Globals #####################################################################

DIRECTIVE_MARKER = "@"
DIRECTIVE_SEPARATOR = "="

# Fragments that still hold a comment opener were not written as directives
COMMENT_MARKER = "//"

# Bound values are plain decimal integers with an optional sign
_INTEGER = re.compile(r"[+-]?[0-9]+")

_Location = descriptor_pb2.SourceCodeInfo.Location


## Interface ###################################################################


def extract_directives(location: _Location) -> Dict[str, str]:
    """Get the directives from all comments attached to a source location

    Args:
        location:  descriptor_pb2.SourceCodeInfo.Location
            The location of the element whose comments should be parsed

    Returns:
        directives:  Dict[str, str]
            Mapping from lower cased directive name to its raw value. Bare
            directives have the value "true".
    """
    return parse_directives(comment_lines(location))


def parse_directives(lines: Iterable[str]) -> Dict[str, str]:
    """Parse directives out of comment lines. When the same directive appears
    more than once, the last one wins.
    """
    directives = {}
    for line in lines:
        for fragment in line.split(DIRECTIVE_MARKER):
            if COMMENT_MARKER in fragment:
                continue
            fragment = fragment.strip()
            if not fragment:
                continue
            parts = fragment.split(DIRECTIVE_SEPARATOR)
            if len(parts) == 1:
                directives[parts[0].lower()] = "true"
            elif len(parts) == 2:
                directives[parts[0].strip().lower()] = parts[1].strip()
            else:
                log.debug2("Ignoring ambiguous directive fragment [%s]", fragment)
    return directives


def apply_directives(directives: Dict[str, str], node: SchemaType, name: str):
    """Set the schema attributes named by the directives on the node. If no
    title was given, one is derived from the element name.

    Args:
        directives:  Dict[str, str]
            The directives to apply, as returned by extract_directives
        node:  SchemaType
            The node to update in place
        name:  str
            The name of the element the node was made from
    """
    for key, value in directives.items():
        if key in ("title", "name"):
            node.title = value
        elif key in ("description", "desc"):
            node.description = value
        elif key in ("format", "fmt"):
            node.format = value
        elif key == "pattern":
            node.pattern = value
        elif key == "required":
            node.required = True
        elif key == "id":
            node.pk = True
        elif key == "autoincrement":
            node.auto_increment = True
            node.pk = True
        elif key == "index":
            node.index = True
            node.required = True
        elif key == "query":
            node.query = True
        elif key in ("min", "max"):
            _apply_bound(key, value, node)
    if not node.title:
        node.title = to_split_case(name)


def comment_lines(location: _Location) -> List[str]:
    """Gather the non-blank comment lines of a location: each detached block,
    then the leading comment line by line, then the trailing comment
    """
    lines = []
    for block in location.leading_detached_comments:
        block = block.strip()
        if block:
            lines.append(block)
    for line in location.leading_comments.split("\n"):
        line = line.strip()
        if line:
            lines.append(line)
    trailing = location.trailing_comments.strip()
    if trailing:
        lines.append(trailing)
    return lines


def format_description(location: _Location) -> str:
    """Join the detached, leading and trailing comments into one description
    with the directives stripped out
    """
    blocks = []
    for block in list(location.leading_detached_comments) + [
        location.leading_comments,
        location.trailing_comments,
    ]:
        text = _strip_directives(block)
        if text:
            blocks.append(text)
    return "\n\n".join(blocks)


def get_enum_comment(location: _Location) -> str:
    """The label for an enum value is its trimmed leading comment"""
    return location.leading_comments.strip()


## Implementation Details ######################################################


def _apply_bound(key: str, value: str, node: SchemaType):
    """Integers get a numeric bound, everything else a length bound"""
    if not _INTEGER.fullmatch(value):
        log.debug("Ignoring non-integer @%s value [%s]", key, value)
        return
    bound = int(value)
    is_integer = node.type == SchemaKind.INTEGER
    if key == "min":
        if is_integer:
            node.minimum = bound
        else:
            node.min_length = bound
    else:
        if is_integer:
            node.maximum = bound
        else:
            node.max_length = bound


def _strip_directives(text: str) -> str:
    lines = []
    for line in text.split("\n"):
        line = line.split(DIRECTIVE_MARKER, 1)[0].strip()
        if line:
            lines.append(line)
    return "\n".join(lines)
