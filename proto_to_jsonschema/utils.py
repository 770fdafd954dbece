"""
Common naming utilities shared across the converter
"""

# Standard
import re

## Globals #####################################################################

# A capital letter starting a lowercase run, preceded by anything
_FIRST_CAP = re.compile("(.)([A-Z][a-z]+)")

# A capital letter directly after a lowercase letter or digit
_ALL_CAP = re.compile("([a-z0-9])([A-Z])")


## Interface ###################################################################


def to_upper_camel(snake_str: str) -> str:
    """Convert a snake_case string to UpperCamelCase. This is how protoc names
    the message generated for a map field (counts -> CountsEntry), so it is
    kept for callers matching map entries to their fields.
    """
    if not snake_str:
        return snake_str
    return (
        snake_str[0].upper()
        + re.sub("_([a-zA-Z])", lambda pat: pat.group(1).upper(), snake_str)[1:]
    )


def to_snake_case(name: str) -> str:
    """Convert a PascalCase or camelCase string to snake_case. Provided for
    callers that derive proto style field names from message or JSON names.
    """
    return _split_words(name, "_").lower()


def to_split_case(name: str) -> str:
    """Convert an identifier to "Split Case" for use as a human readable title.

    A single space is inserted before each capital-letter run and before any
    capital that follows a lowercase letter or digit. Underscores are treated
    as word breaks and the first letter of every word is upper cased; the rest
    of each word keeps its casing.

        fooBar      -> Foo Bar
        HTTPServer  -> HTTP Server
        first_name  -> First Name
        x           -> X
    """
    words = _split_words(name, " ").replace("_", " ").split()
    return " ".join(word[0].upper() + word[1:] for word in words)


## Implementation Details ######################################################


def _split_words(name: str, separator: str) -> str:
    split = _FIRST_CAP.sub(r"\1{}\2".format(separator), name)
    return _ALL_CAP.sub(r"\1{}\2".format(separator), split)
