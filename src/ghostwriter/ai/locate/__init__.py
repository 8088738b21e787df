"""Text locators consumed by the target resolver."""

from .fuzzy import FuzzyTextLocator, PhraseMatch, SectionMatch, TextLocator

__all__ = ["FuzzyTextLocator", "PhraseMatch", "SectionMatch", "TextLocator"]
