"""
This library holds utilities for converting Protobuf descriptors to JSON Schema.

References:
* https://developers.google.com/protocol-buffers
* https://json-schema.org/

Field comments may carry directives that become schema constraints:

```
message User {
  // @required @min=3 @max=32
  string login = 1;
  // @title=Age in years @min=0
  int32 age = 2;
}
```

Example:

```
import json
import proto_to_jsonschema

def write_schemas(file_protos):
    \"\"\"Write one .jsonschema file per top-level message\"\"\"
    schemas = proto_to_jsonschema.proto_to_jsonschema(
        file_protos,
        disallow_additional_properties=True,
    )
    for full_name, schema in schemas.items():
        with open(f"{full_name}.jsonschema", "w") as handle:
            json.dump(schema.to_dict(), handle, indent=2)
```
"""

# Local
from .comments import apply_directives, extract_directives
from .converter import Converter, proto_to_jsonschema
from .errors import (
    ConversionError,
    CyclicTypeReferenceError,
    UnrecognizedFieldKindError,
    UnresolvedTypeReferenceError,
)
from .registry import PackageRegistry, ProtoPackage
from .schema_type import SchemaKind, SchemaType
from .source_info import SourceInfo
