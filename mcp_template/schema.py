"""
Parameter schemas and validation.

A schema is an ordered ``dict`` mapping parameter name to :class:`Param`.
Validation never coerces: ``"2"`` is not a number, ``True`` is not an
integer. Every violation is collected before failing.
"""

from dataclasses import dataclass
from typing import Any, Dict, List

from mcp_template.errors import ValidationError, Violation

_MISSING = object()

# JSON-schema type name -> accepted Python types
TYPE_MAP = {
    "string": (str,),
    "number": (int, float),
    "integer": (int,),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
}


@dataclass(frozen=True)
class Param:
    type: str
    description: str = ""
    required: bool = True
    default: Any = _MISSING

    def __post_init__(self):
        if self.type not in TYPE_MAP:
            raise ValueError(f"Unsupported parameter type: {self.type}")

    @property
    def has_default(self) -> bool:
        return self.default is not _MISSING


Schema = Dict[str, Param]


def json_type_name(value: Any) -> str:
    """Name of the JSON type ``value`` would serialize as."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, int):
        return "integer"
    if isinstance(value, float):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, dict):
        return "object"
    return type(value).__name__


def matches_type(value: Any, type_name: str) -> bool:
    # bool subclasses int, so it has to be excluded explicitly
    if isinstance(value, bool) and type_name != "boolean":
        return False
    return isinstance(value, TYPE_MAP[type_name])


def validate(schema: Schema, params: Any) -> Dict[str, Any]:
    """Check ``params`` against ``schema``.

    Returns a new dict holding the declared fields that were supplied,
    values untouched. Undeclared fields are ignored. Raises
    :class:`ValidationError` listing every violation.
    """
    if params is None:
        params = {}
    if not isinstance(params, dict):
        raise ValidationError([
            Violation("arguments", "object", f"expected object, got {json_type_name(params)}")
        ])

    violations: List[Violation] = []
    validated: Dict[str, Any] = {}

    for name, param in schema.items():
        value = params.get(name, _MISSING)
        if value is _MISSING:
            if param.required:
                violations.append(Violation(name, param.type, "required"))
            continue
        if not matches_type(value, param.type):
            violations.append(Violation(
                name, param.type, f"expected {param.type}, got {json_type_name(value)}"
            ))
            continue
        validated[name] = value

    if violations:
        raise ValidationError(violations)
    return validated


def to_json_schema(schema: Schema) -> Dict[str, Any]:
    """Render ``schema`` as the ``inputSchema`` object used by tools/list."""
    properties = {}
    for name, param in schema.items():
        prop = {"type": param.type}
        if param.description:
            prop["description"] = param.description
        if param.has_default:
            prop["default"] = param.default
        properties[name] = prop
    return {
        "type": "object",
        "properties": properties,
        "required": [name for name, param in schema.items() if param.required],
    }


def to_prompt_arguments(schema: Schema) -> List[Dict[str, Any]]:
    """Render ``schema`` as the ``arguments`` list used by prompts/list."""
    return [
        {"name": name, "description": param.description, "required": param.required}
        for name, param in schema.items()
    ]
