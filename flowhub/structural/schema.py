#flowhub/structural/schema.py
# JSON Schema fragments for the per-element shape checks of the validator.
# Fragments are checked one field at a time so that the first failing field
# (in a fixed order) decides the diagnostic.

NON_EMPTY_STRING = {
    "type": "string",
    "minLength": 1
}

OBJECT = {
    "type": "object"
}

# Optional fields: JSON null is treated the same as an absent field
OPTIONAL_OBJECT = {
    "type": ["object", "null"]
}

NODE_FIELD_SCHEMAS = {
    "id": NON_EMPTY_STRING,
    # layout information from the editor; ignored for semantics
    "position": OPTIONAL_OBJECT,
    # step settings; `config` is the legacy spelling
    "data": OPTIONAL_OBJECT,
    "config": OPTIONAL_OBJECT,
}

EDGE_FIELD_SCHEMAS = {
    "source": NON_EMPTY_STRING,
    "target": NON_EMPTY_STRING,
}

VARIABLES_SCHEMA = {
    "type": "array",
    "items": {
        "type": "object",
        "required": ["name"],
        "properties": {
            "name": NON_EMPTY_STRING
        },
        "additionalProperties": True
    }
}
