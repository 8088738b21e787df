"""Position guard run before every document mutation."""

from __future__ import annotations

import logging

from ...documents.ranges import DocRange, validate_positions
from .errors import RangeCollapsedError

LOGGER = logging.getLogger(__name__)


def guard_range(target: DocRange, doc_size: int) -> DocRange:
    """Return ``target`` clamped into ``[0, doc_size]``.

    Valid ranges come back unchanged. Out-of-bounds ends are clamped
    independently and ``end`` is kept ``>= start``. If clamping collapses a
    non-empty range, :class:`RangeCollapsedError` carries the validator's
    message instead of letting the caller silently edit nothing.
    """

    check = validate_positions(target.start, target.end, doc_size)
    if check.valid:
        return target
    clamped = target.clamp(lower=0, upper=doc_size)
    if clamped.is_empty and not target.is_empty:
        raise RangeCollapsedError(
            message=check.error or "Edit range falls outside the document",
            requested=target.to_tuple(),
            doc_size=doc_size,
        )
    LOGGER.warning("Clamped range %s to %s (document size %d): %s", target.to_tuple(), clamped.to_tuple(), doc_size, check.error)
    return clamped


def guard_position(pos: int, doc_size: int) -> int:
    return guard_range(DocRange(pos, pos), doc_size).start


__all__ = ["guard_position", "guard_range"]
