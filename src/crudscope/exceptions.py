"""
Exception hierarchy for crudscope.

All exceptions inherit from ``CrudScopeError`` and provide ``to_dict()``
for API-friendly error responses.  Repository failures carry a
status-like ``code`` so an outer layer can map them without knowing the
concrete class.
"""

from __future__ import annotations

from difflib import get_close_matches
from typing import Any

NOT_FOUND_CODE = 404
WRITE_FAILED_CODE = 422
DEFAULT_CODE = 500


class CrudScopeError(Exception):
    """Root exception for the entire crudscope package."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": str(self),
        }


# ── Repository failures ─────────────────────────────────────────────


class RepositoryError(CrudScopeError):
    """A lookup or write did not find or affect a row."""

    default_code = DEFAULT_CODE

    def __init__(self, message: str, code: int | None = None) -> None:
        self.message = message
        self.code = code if code is not None else self.default_code
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
        }


class NotFoundError(RepositoryError):
    """Lookup by key or by condition returned nothing."""

    default_code = NOT_FOUND_CODE


class WriteFailedError(RepositoryError):
    """Create, update, delete or batch insert reported no effect."""

    default_code = WRITE_FAILED_CODE


def create_exception(message: str, code: int = DEFAULT_CODE) -> RepositoryError:
    """
    Build the typed failure matching *code*.

    ``404`` maps to :class:`NotFoundError`, ``422`` to
    :class:`WriteFailedError`; anything else becomes a plain
    :class:`RepositoryError` carrying the code.
    """
    if code == NOT_FOUND_CODE:
        return NotFoundError(message, code)
    if code == WRITE_FAILED_CODE:
        return WriteFailedError(message, code)
    return RepositoryError(message, code)


# ── Condition / payload errors ──────────────────────────────────────


class ConditionError(CrudScopeError):
    """Base class for filter payload problems."""

    def __init__(self, message: str, path: str | None = None) -> None:
        self.message = message
        self.path = path
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "CONDITION_ERROR",
            "message": self.message,
            "path": self.path,
        }


class MalformedConditionError(ConditionError):
    """A condition sub-map or value has the wrong shape."""

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "MALFORMED_CONDITION",
            "message": self.message,
            "path": self.path,
        }


class FieldNotAllowedError(ConditionError):
    """
    Field is not in the allow-list of the resource.

    Uses fuzzy matching to suggest similar valid field names.
    """

    def __init__(
        self,
        field: str,
        model_name: str,
        available_fields: list[str],
        purpose: str = "filterable",
    ) -> None:
        self.field = field
        self.model_name = model_name
        self.available_fields = sorted(available_fields)
        self.purpose = purpose
        self.suggestions = get_close_matches(
            field, self.available_fields, n=3, cutoff=0.6
        )

        message = f"Field {field!r} is not {purpose} on {model_name!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message, path=field)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FIELD_NOT_ALLOWED",
            "field": self.field,
            "model": self.model_name,
            "purpose": self.purpose,
            "suggestions": self.suggestions,
            "available_fields": self.available_fields,
        }


# ── Registry / validation ───────────────────────────────────────────


class ModelNotRegisteredError(CrudScopeError):
    """No model was registered under the requested logical name."""

    def __init__(self, name: str, known: list[str]) -> None:
        self.name = name
        self.known = sorted(known)
        self.suggestions = get_close_matches(name, self.known, n=3, cutoff=0.6)

        message = f"No model registered as {name!r}."
        if self.suggestions:
            message += f" Did you mean: {', '.join(self.suggestions)}?"
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "MODEL_NOT_REGISTERED",
            "name": self.name,
            "suggestions": self.suggestions,
        }


class FormValidationError(CrudScopeError):
    """Raised by ``validate_form`` when submitted data is invalid.

    Carries structured errors: ``{field: [messages]}``.
    """

    code = WRITE_FAILED_CODE

    def __init__(self, errors: dict[str, list[str]] | str | None = None) -> None:
        if isinstance(errors, str):
            self.errors: dict[str, list[str]] = {"__root__": [errors]}
        elif errors is None:
            self.errors = {}
        else:
            self.errors = errors
        super().__init__(str(self.errors))

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": "FORM_VALIDATION_ERROR",
            "code": self.code,
            "errors": self.errors,
        }


__all__ = [
    "ConditionError",
    "CrudScopeError",
    "FieldNotAllowedError",
    "FormValidationError",
    "MalformedConditionError",
    "ModelNotRegisteredError",
    "NotFoundError",
    "RepositoryError",
    "WriteFailedError",
    "create_exception",
]
