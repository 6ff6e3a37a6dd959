"""Language utilities for movie-catalog.

This module centralizes the locales the metadata API is queried with.
Keeping it in the domain layer allows both CLI and adapters to share a
single source of truth without creating circular imports.
"""

from __future__ import annotations

from enum import Enum


class Language(str, Enum):
    """Supported locales for catalogue titles and synopses."""

    KOREAN = "ko-KR"
    ENGLISH = "en-US"
    SPANISH = "es-ES"

    @classmethod
    def default(cls) -> "Language":
        """Return the default locale used across the application."""

        return cls.KOREAN

    @classmethod
    def from_code(cls, code: str) -> "Language":
        """Resolve a locale from either a full tag (`en-US`) or a bare code (`en`)."""

        value = code.strip()
        for member in cls:
            if member.value.lower() == value.lower():
                return member
        prefix = value.split("-", 1)[0].lower()
        for member in cls:
            if member.value.split("-", 1)[0] == prefix:
                return member
        raise ValueError(f"Unsupported language: {code!r}")

    def label(self) -> str:
        """Human readable label for prompts and logging."""

        return {
            Language.KOREAN: "Korean",
            Language.ENGLISH: "English",
            Language.SPANISH: "Spanish",
        }[self]
