"""Document position ranges and bounds validation."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any, Iterator


@dataclass(slots=True, frozen=True)
class DocRange(Sequence[int]):
    """A ``[start, end)`` span of document positions.

    Values are stored as given (after integer coercion) so that a range
    reported by a stale locator can still be inspected and clamped.
    """

    start: int
    end: int

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", self._coerce_index(self.start, "start"))
        object.__setattr__(self, "end", self._coerce_index(self.end, "end"))

    @staticmethod
    def _coerce_index(value: Any, label: str) -> int:
        if isinstance(value, bool):
            raise ValueError(f"DocRange {label} must be an integer")
        try:
            return int(value)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"DocRange {label} must be an integer") from exc

    def __len__(self) -> int:
        return 2

    def __getitem__(self, index: int | slice) -> int | tuple[int, ...]:
        if isinstance(index, slice):
            return self.to_tuple()[index]
        if index == 0:
            return self.start
        if index == 1:
            return self.end
        raise IndexError("DocRange index out of range")

    def __iter__(self) -> Iterator[int]:
        yield self.start
        yield self.end

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_empty(self) -> bool:
        return self.start == self.end

    def to_tuple(self) -> tuple[int, int]:
        return (self.start, self.end)

    def to_dict(self) -> dict[str, int]:
        """Return the range in the ``{"from", "to"}`` shape used by tool results."""

        return {"from": self.start, "to": self.end}

    def clamp(self, *, lower: int = 0, upper: int) -> DocRange:
        """Clamp both ends independently into ``[lower, upper]`` and keep ``end >= start``."""

        start = min(max(lower, self.start), upper)
        end = min(max(lower, self.end), upper)
        return DocRange(start, max(start, end))

    def overlaps(self, other: DocRange) -> bool:
        return self.start < other.end and other.start < self.end

    @classmethod
    def from_value(cls, value: Any) -> DocRange:
        """Coerce tuples, mappings (``from``/``to`` or ``start``/``end``) and ranges."""

        if isinstance(value, DocRange):
            return value
        if isinstance(value, Mapping):
            start = value.get("from", value.get("start"))
            end = value.get("to", value.get("end"))
            if start is None or end is None:
                raise ValueError("Range mappings require from/to keys")
            return cls(start, end)
        if isinstance(value, Sequence) and not isinstance(value, (str, bytes)) and len(value) == 2:
            return cls(value[0], value[1])
        raise ValueError(f"Cannot interpret {value!r} as a document range")


@dataclass(slots=True, frozen=True)
class PositionCheck:
    """Outcome of validating a range against the document bounds."""

    valid: bool
    error: str | None = None


def validate_positions(start: int, end: int, doc_size: int) -> PositionCheck:
    """Check ``0 <= start <= end <= doc_size`` without raising."""

    if start < 0:
        return PositionCheck(False, f"Start position {start} is negative")
    if end > doc_size:
        return PositionCheck(False, f"End position {end} exceeds document size {doc_size}")
    if start > end:
        return PositionCheck(False, f"Start position {start} is after end position {end}")
    return PositionCheck(True)


__all__ = ["DocRange", "PositionCheck", "validate_positions"]
