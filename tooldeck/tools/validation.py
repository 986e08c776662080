"""Schema validation for tool inputs and outputs.

Schemas are pydantic models validated in strict mode: unknown fields are
dropped, and values are never coerced across types ("5" is not an int,
"true" is not a bool).
"""

from typing import Any, Generic, Type, TypeVar

import pydantic
from pydantic import BaseModel

from tooldeck.core.errors import ValidationError

M = TypeVar("M", bound=BaseModel)


def _location(loc: tuple) -> str:
    return ".".join(str(part) for part in loc) or "<root>"


def _to_validation_error(
    exc: pydantic.ValidationError, stage: str, schema_name: str
) -> ValidationError:
    # include_input=False keeps raw (possibly secret) values out of the error
    errors = exc.errors(include_input=False, include_url=False, include_context=False)
    fields = [_location(err["loc"]) for err in errors]
    issues = [f"{_location(err['loc'])}: {err['msg']}" for err in errors]
    return ValidationError(
        f"Invalid {stage} for {schema_name}: {'; '.join(issues)}",
        fields=fields,
        issues=issues,
        stage=stage,
    )


class Schema(Generic[M]):
    """Wraps a pydantic model as a closed, strict validation contract."""

    def __init__(self, model: Type[M]):
        if not (isinstance(model, type) and issubclass(model, BaseModel)):
            raise TypeError(f"Schema expects a pydantic BaseModel subclass, got {model!r}")
        self.model = model

    @property
    def name(self) -> str:
        return self.model.__name__

    def validate(self, raw: Any, stage: str = "input") -> M:
        try:
            return self.model.model_validate(raw, strict=True)
        except pydantic.ValidationError as exc:
            raise _to_validation_error(exc, stage, self.name) from None

    def json_schema(self) -> dict[str, Any]:
        return self.model.model_json_schema()

    def __repr__(self) -> str:
        return f"Schema({self.name})"


def validate_input(schema: Schema, raw: Any) -> BaseModel:
    """Validate a raw tool input."""
    return schema.validate(raw, stage="input")


def validate_output(schema: Schema | None, candidate: Any) -> Any:
    """Validate a final tool output; passes through when no schema is set."""
    if schema is None:
        return candidate
    return schema.validate(candidate, stage="output")
