"""Row decoding at the repository boundary."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Any, Protocol, TypeVar

from crewboard.errors import TransportError

logger = logging.getLogger(__name__)

R = TypeVar("R", covariant=True)


class RowRecord(Protocol[R]):
    def from_row(self, row: dict[str, Any]) -> R: ...


def decode(model: RowRecord[R], row: Any) -> R:
    """Translate one remote row, or raise TransportError when it is malformed."""
    try:
        return model.from_row(row)
    except (KeyError, TypeError, ValueError, AttributeError) as exc:
        name = getattr(model, "__name__", "record")
        logger.warning(f"Malformed {name} row from remote store: {exc!r}")
        raise TransportError("Invalid response from remote store") from exc


def decode_all(model: RowRecord[R], rows: Iterable[Any]) -> list[R]:
    return [decode(model, row) for row in rows]
