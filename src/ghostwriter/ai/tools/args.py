"""Typed argument variants for the eight edit operations.

The assistant sends loosely typed key/value bags. Each operation has a frozen
dataclass that validates its bag against a JSON schema (value types only)
and then checks its required fields, so a malformed call fails before any
target resolution starts.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, ClassVar, Literal, Mapping

from jsonschema import Draft7Validator, ValidationError

from .errors import InvalidParameterError, MissingParameterError

_OPTIONAL_STRING: Mapping[str, Any] = {"type": ["string", "null"]}
_AFTER_RE = re.compile(r"^after:(.+)$", re.IGNORECASE)
_START_RE = re.compile(r"^start:(.+)$", re.IGNORECASE)


def _schema(*names: str) -> dict[str, Any]:
    return {
        "type": "object",
        "properties": {name: dict(_OPTIONAL_STRING) for name in names},
        "additionalProperties": True,
    }


def _format_validation_error(error: ValidationError) -> str:
    path = ".".join(str(part) for part in error.path)
    if path:
        return f"{path}: {error.message}"
    return error.message


def _text(payload: Mapping[str, Any], *keys: str) -> str | None:
    """Return the first non-empty string value among ``keys``."""

    for key in keys:
        value = payload.get(key)
        if isinstance(value, str) and value:
            return value
    return None


class ToolArgs(ABC):
    """Base for argument variants; subclasses define ``SCHEMA`` and ``build``."""

    SCHEMA: ClassVar[Mapping[str, Any]] = {"type": "object"}
    _validators: ClassVar[dict[type, Draft7Validator]] = {}

    @classmethod
    def from_mapping(cls, payload: Mapping[str, Any]) -> "ToolArgs":
        if not isinstance(payload, Mapping):
            raise InvalidParameterError(
                message="Tool arguments must be an object",
                parameter="args",
                value=payload,
                expected="object",
            )
        validator = cls._validators.get(cls)
        if validator is None:
            validator = cls._validators[cls] = Draft7Validator(cls.SCHEMA)
        error = next(iter(sorted(validator.iter_errors(payload), key=lambda err: list(err.path))), None)
        if error is not None:
            parameter = ".".join(str(part) for part in error.path) or None
            raise InvalidParameterError(
                message=_format_validation_error(error),
                parameter=parameter,
                expected="string",
            )
        return cls.build(payload)

    @classmethod
    @abstractmethod
    def build(cls, payload: Mapping[str, Any]) -> "ToolArgs":
        """Construct the variant from an already schema-checked payload."""
        ...


# ---------------------------------------------------------------------------
# Insert location
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class InsertLocation:
    """Parsed ``location`` token of ``insertContent``."""

    kind: Literal["cursor", "end", "after", "start", "unknown"]
    section: str | None = None
    raw: str | None = None

    @classmethod
    def parse(cls, value: str | None) -> "InsertLocation":
        if not value or value == "cursor":
            return cls("cursor", raw=value)
        if value == "end":
            return cls("end", raw=value)
        after = _AFTER_RE.match(value)
        if after:
            return cls("after", section=after.group(1), raw=value)
        start = _START_RE.match(value)
        if start:
            return cls("start", section=start.group(1), raw=value)
        return cls("unknown", raw=value)


# ---------------------------------------------------------------------------
# Variants
# ---------------------------------------------------------------------------
@dataclass(slots=True, frozen=True)
class InsertContentArgs(ToolArgs):
    content: str
    after_block_id: str | None = None
    after_phrase: str | None = None
    location: InsertLocation = InsertLocation("cursor")

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("content", "afterBlockId", "blockId", "afterPhrase", "location")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "InsertContentArgs":
        content = _text(payload, "content")
        if content is None:
            raise MissingParameterError(message="No content provided", parameter="content")
        return cls(
            content=content,
            after_block_id=_text(payload, "afterBlockId", "blockId"),
            after_phrase=_text(payload, "afterPhrase"),
            location=InsertLocation.parse(_text(payload, "location")),
        )


@dataclass(slots=True, frozen=True)
class ReplaceBlockArgs(ToolArgs):
    new_content: str
    block_id: str | None = None
    section: str | None = None
    search_phrase: str | None = None

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("newContent", "blockId", "section", "searchPhrase")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "ReplaceBlockArgs":
        new_content = _text(payload, "newContent")
        if new_content is None:
            raise MissingParameterError(message="No new content provided", parameter="newContent")
        return cls(
            new_content=new_content,
            block_id=_text(payload, "blockId"),
            section=_text(payload, "section"),
            search_phrase=_text(payload, "searchPhrase"),
        )


@dataclass(slots=True, frozen=True)
class ReplaceInSectionArgs(ToolArgs):
    search_phrase: str
    new_content: str
    section: str | None = None

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("section", "searchPhrase", "newContent")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "ReplaceInSectionArgs":
        search_phrase = _text(payload, "searchPhrase")
        new_content = _text(payload, "newContent")
        if search_phrase is None or new_content is None:
            raise MissingParameterError(
                message="Missing search phrase or new content",
                parameter="searchPhrase" if search_phrase is None else "newContent",
            )
        return cls(search_phrase=search_phrase, new_content=new_content, section=_text(payload, "section"))


@dataclass(slots=True, frozen=True)
class RewriteSectionArgs(ToolArgs):
    section: str
    new_content: str

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("section", "newContent")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "RewriteSectionArgs":
        section = _text(payload, "section")
        new_content = _text(payload, "newContent")
        if section is None or new_content is None:
            raise MissingParameterError(
                message="Missing section name or new content",
                parameter="section" if section is None else "newContent",
            )
        return cls(section=section, new_content=new_content)


@dataclass(slots=True, frozen=True)
class DeleteContentArgs(ToolArgs):
    block_id: str | None = None
    section: str | None = None
    search_phrase: str | None = None

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("blockId", "section", "searchPhrase")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "DeleteContentArgs":
        return cls(
            block_id=_text(payload, "blockId"),
            section=_text(payload, "section"),
            search_phrase=_text(payload, "searchPhrase"),
        )


@dataclass(slots=True, frozen=True)
class AddCitationArgs(ToolArgs):
    paper_id: str
    block_id: str | None = None
    after_phrase: str | None = None
    section: str | None = None

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("paperId", "blockId", "afterPhrase", "section")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "AddCitationArgs":
        paper_id = _text(payload, "paperId")
        if paper_id is None:
            raise MissingParameterError(message="Missing paper ID", parameter="paperId")
        return cls(
            paper_id=paper_id,
            block_id=_text(payload, "blockId"),
            after_phrase=_text(payload, "afterPhrase"),
            section=_text(payload, "section"),
        )


@dataclass(slots=True, frozen=True)
class HighlightTextArgs(ToolArgs):
    block_id: str | None = None
    section: str | None = None
    search_phrase: str | None = None
    comment: str | None = None
    highlight_type: str = "suggestion"

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("blockId", "section", "searchPhrase", "comment", "highlightType")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "HighlightTextArgs":
        return cls(
            block_id=_text(payload, "blockId"),
            section=_text(payload, "section"),
            search_phrase=_text(payload, "searchPhrase"),
            comment=_text(payload, "comment"),
            highlight_type=_text(payload, "highlightType") or "suggestion",
        )


@dataclass(slots=True, frozen=True)
class AddCommentArgs(ToolArgs):
    comment: str
    block_id: str | None = None
    section: str | None = None
    near_phrase: str | None = None

    SCHEMA: ClassVar[Mapping[str, Any]] = _schema("comment", "blockId", "section", "nearPhrase")

    @classmethod
    def build(cls, payload: Mapping[str, Any]) -> "AddCommentArgs":
        comment = _text(payload, "comment")
        if comment is None:
            raise MissingParameterError(message="Missing comment text", parameter="comment")
        return cls(
            comment=comment,
            block_id=_text(payload, "blockId"),
            section=_text(payload, "section"),
            near_phrase=_text(payload, "nearPhrase"),
        )


__all__ = [
    "AddCitationArgs",
    "AddCommentArgs",
    "DeleteContentArgs",
    "HighlightTextArgs",
    "InsertContentArgs",
    "InsertLocation",
    "ReplaceBlockArgs",
    "ReplaceInSectionArgs",
    "RewriteSectionArgs",
    "ToolArgs",
]
