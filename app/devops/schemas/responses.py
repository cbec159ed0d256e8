_SCHEMA_DRAFT = "https://json-schema.org/draft/2020-12/schema"


def _value_list_schema(description: str, item: dict) -> dict:
    return {
        "$schema": _SCHEMA_DRAFT,
        "description": description,
        "type": "object",
        "properties": {
            "value": {
                "type": "array",
                "items": item,
            },
        },
        "required": ["value"],
    }


RECORD_LIST_SCHEMA = _value_list_schema(
    "Collection of opaque records (statuses, policy evaluations)",
    {"type": "object"},
)

ITERATIONS_SCHEMA = _value_list_schema(
    "Iterations of a pull request, oldest first",
    {
        "type": "object",
        "properties": {
            "id": {
                "description": "Iteration number within the pull request",
                "type": "integer",
            },
        },
        "required": ["id"],
    },
)

REFS_SCHEMA = _value_list_schema(
    "Git refs matching a filter",
    {
        "type": "object",
        "properties": {
            "name": {"type": "string"},
            "objectId": {"type": "string"},
        },
        "required": ["name", "objectId"],
    },
)

ITERATION_CHANGES_SCHEMA = {
    "$schema": _SCHEMA_DRAFT,
    "description": "Changes of one pull request iteration",
    "type": "object",
    "properties": {
        "changeEntries": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "item": {
                        "type": "object",
                        "properties": {
                            "path": {"type": "string"},
                            "objectId": {"type": "string"},
                            "originalObjectId": {"type": "string"},
                        },
                    },
                    "originalPath": {"type": "string"},
                    "changeType": {"type": "string"},
                },
            },
        },
    },
}

PUSH_SCHEMA = {
    "$schema": _SCHEMA_DRAFT,
    "description": "Result of a push",
    "type": "object",
    "properties": {
        "pushId": {"type": "integer"},
        "commits": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {"commitId": {"type": "string"}},
            },
        },
    },
}

RECORD_SCHEMA = {
    "$schema": _SCHEMA_DRAFT,
    "description": "Single record identified by an id (build, pipeline run)",
    "type": "object",
    "properties": {
        "id": {"type": ["integer", "string"]},
    },
    "required": ["id"],
}
