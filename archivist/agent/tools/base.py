"""Base class for agent tools."""

from abc import ABC, abstractmethod
from typing import Any

_JSON_TYPES: dict[str, tuple[type, ...]] = {
    "string": (str,),
    "integer": (int,),
    "number": (int, float),
    "boolean": (bool,),
    "array": (list,),
    "object": (dict,),
}


class Tool(ABC):
    """
    A capability the agent can call.

    Subclasses describe their arguments as a JSON schema object and
    implement ``execute``, which always returns a string for the model.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @property
    @abstractmethod
    def description(self) -> str:
        ...

    @property
    @abstractmethod
    def parameters(self) -> dict[str, Any]:
        ...

    @abstractmethod
    async def execute(self, **kwargs: Any) -> str:
        ...

    def to_schema(self) -> dict[str, Any]:
        """Tool definition in OpenAI function-calling format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.parameters,
            },
        }

    def validate_params(self, params: dict[str, Any]) -> list[str]:
        """Check params against the schema. Returns a list of errors (empty if valid)."""
        schema = self.parameters
        properties = schema.get("properties", {})
        errors = [
            f"missing required parameter '{key}'"
            for key in schema.get("required", [])
            if key not in params
        ]

        for key, value in params.items():
            prop = properties.get(key)
            if prop is None:
                errors.append(f"unknown parameter '{key}'")
                continue
            expected = _JSON_TYPES.get(prop.get("type", ""))
            # bool is an int subclass; don't accept it for numeric fields
            if expected and (not isinstance(value, expected) or (
                isinstance(value, bool) and prop.get("type") != "boolean"
            )):
                errors.append(f"parameter '{key}' must be of type {prop['type']}")
                continue
            if "minimum" in prop and value < prop["minimum"]:
                errors.append(f"parameter '{key}' must be >= {prop['minimum']}")
            if "maximum" in prop and value > prop["maximum"]:
                errors.append(f"parameter '{key}' must be <= {prop['maximum']}")
        return errors
