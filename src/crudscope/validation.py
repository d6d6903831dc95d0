"""Form validation through a Pydantic model."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError as PydanticValidationError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from pydantic import BaseModel


class PydanticFormValidator:
    """Validates submitted form data against a Pydantic model.

    Errors are returned as ``{field: [messages]}``.  On update (an
    ``entity_id`` is given) only errors for submitted fields count, so a
    partial payload is not rejected for omitting required fields.
    """

    def __init__(self, schema: type[BaseModel]) -> None:
        self.schema = schema

    def validate(
        self, data: Mapping[str, Any], entity_id: Any | None = None
    ) -> dict[str, list[str]]:
        try:
            self.schema.model_validate(dict(data))
            return {}
        except PydanticValidationError as exc:
            errors: dict[str, list[str]] = {}
            for error in exc.errors():
                loc = error.get("loc", ("__root__",))
                if entity_id is not None and loc and loc[0] not in data:
                    continue
                key = ".".join(str(p) for p in loc) or "__root__"
                errors.setdefault(key, []).append(error.get("msg", "validation error"))
            return errors
