"""
Chunked bulk insert.

Each chunk is one ``INSERT`` executed with the chunk's rows as
executemany parameters.  The loader never commits or rolls back: when
chunk *k* fails, chunks ``1..k-1`` have already been sent inside the
caller's transaction and stay there until the caller decides.
"""

from __future__ import annotations

import logging
import math
from typing import TYPE_CHECKING, Any

from sqlalchemy import insert
from sqlalchemy.exc import SQLAlchemyError

from .exceptions import WRITE_FAILED_CODE, WriteFailedError
from .settings import DEFAULT_SETTINGS

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping, Sequence

    from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def chunked(
    items: Sequence[Mapping[str, Any]], size: int
) -> Iterator[list[Mapping[str, Any]]]:
    """Yield consecutive slices of at most *size* items."""
    if size < 1:
        raise ValueError(f"chunk size must be >= 1, got {size}")
    for start in range(0, len(items), size):
        yield list(items[start : start + size])


class BatchLoader:
    """Insert many rows in order, one statement per chunk."""

    def __init__(self, chunk_size: int = DEFAULT_SETTINGS.default_chunk_size) -> None:
        if chunk_size < 1:
            raise ValueError(f"chunk size must be >= 1, got {chunk_size}")
        self.chunk_size = chunk_size

    def insert(
        self,
        session: Session,
        model: type[Any],
        items: Sequence[Mapping[str, Any]],
        chunk_size: int | None = None,
    ) -> bool:
        """
        Insert *items* into *model*'s table.

        Args:
            session: Session the statements run on.
            model: Mapped class whose table receives the rows.
            items: Row mappings.
            chunk_size: Overrides the loader's chunk size for this call.

        Returns:
            ``False`` for an empty *items* (nothing is sent), ``True`` once
            every chunk has been executed.

        Raises:
            WriteFailedError: A chunk failed; earlier chunks are not undone.
        """
        if not items:
            logger.debug("Empty batch for %s; nothing to insert", model.__name__)
            return False

        size = self.chunk_size if chunk_size is None else chunk_size
        if size < 1:
            raise ValueError(f"chunk size must be >= 1, got {size}")
        rows = list(items)
        total_chunks = math.ceil(len(rows) / size)
        stmt = insert(model)

        for index, chunk in enumerate(chunked(rows, size), start=1):
            try:
                session.execute(stmt, chunk)
            except SQLAlchemyError as exc:
                logger.error(
                    "Batch insert into %s failed on chunk %d/%d (%d rows)",
                    model.__name__,
                    index,
                    total_chunks,
                    len(chunk),
                )
                raise WriteFailedError(
                    f"Batch insert failed on chunk {index} of {total_chunks}",
                    WRITE_FAILED_CODE,
                ) from exc
            logger.debug(
                "Inserted chunk %d/%d (%d rows) into %s",
                index,
                total_chunks,
                len(chunk),
                model.__name__,
            )

        logger.info(
            "Batch inserted %d rows into %s in %d chunks",
            len(rows),
            model.__name__,
            total_chunks,
        )
        return True
