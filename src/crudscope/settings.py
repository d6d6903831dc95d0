"""
Settings shared by the composer, paginator, batch loader and repository.

``ScopeSettings`` is immutable and passed by constructor injection; use
:meth:`ScopeSettings.with_overrides` to derive a variant.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from .exceptions import NOT_FOUND_CODE, WRITE_FAILED_CODE


@dataclass(frozen=True)
class ScopeSettings:
    """
    Immutable configuration.

    Attributes:
        default_page_size: Page size when the payload carries none.
        max_page_size: Upper bound for requested page sizes (``None`` = no cap).
        default_chunk_size: Rows per INSERT in batch loads.
        default_order: Ordering used when the caller passes ``None``.
        strict_conditions: Raise on malformed condition sub-maps instead of
            skipping them.
        page_key: Payload key holding the page number.
        page_size_key: Payload key holding the page size.
    """

    default_page_size: int = 15
    max_page_size: int | None = None
    default_chunk_size: int = 100
    default_order: tuple[tuple[str, str], ...] = (("id", "desc"),)
    strict_conditions: bool = False
    page_key: str = "page"
    page_size_key: str = "page_size"
    not_found_message: str = "Record not found"
    create_failed_message: str = "Create failed"
    update_failed_message: str = "Update failed"
    delete_failed_message: str = "Delete failed"
    not_found_code: int = NOT_FOUND_CODE
    write_failed_code: int = WRITE_FAILED_CODE

    def __post_init__(self) -> None:
        if self.default_page_size < 1:
            raise ValueError("default_page_size must be >= 1")
        if self.default_chunk_size < 1:
            raise ValueError("default_chunk_size must be >= 1")
        if self.max_page_size is not None and self.max_page_size < 1:
            raise ValueError("max_page_size must be >= 1 when set")

    @property
    def pagination_keys(self) -> frozenset[str]:
        """Keys that are never treated as field filters."""
        return frozenset({self.page_key, self.page_size_key})

    def with_overrides(self, **changes: Any) -> ScopeSettings:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)


DEFAULT_SETTINGS = ScopeSettings()
