"""Text parsing utilities for consistent text processing across the application."""

import math
import re
import unicodedata
from typing import Any, List


class TextParser:
    """
    Centralized text parsing utilities.

    Single source of truth for how spreadsheet cells become words,
    synonym lists and comparable answers.
    """

    # Leading enumeration marker ("1. ", "12.3 ")
    ENUMERATION_PATTERN = re.compile(r'^[\d.]+\s+')

    # Parenthesized annotation, e.g. part of speech "(adj.)"
    PARENTHESIS_PATTERN = re.compile(r'\s*\(.*?\)')

    # Synonym separators: semicolons, commas, line breaks
    SYNONYM_SPLIT_PATTERN = re.compile(r'[;,\r\n]+')

    @classmethod
    def normalize_unicode(cls, text: str) -> str:
        """
        Normalize text to NFC form for consistent Unicode handling.

        Prevents issues with characters like é being represented as
        either a single codepoint (NFC) or base + combining accent (NFD).

        Args:
            text: Input text

        Returns:
            NFC-normalized text
        """
        if not text:
            return ""
        return unicodedata.normalize('NFC', str(text))

    @classmethod
    def cell_to_text(cls, value: Any) -> str:
        """
        Convert a raw spreadsheet cell to text.

        Empty cells (None, NaN) become "", integral floats lose their
        trailing ".0" so numbered rows read as "3" instead of "3.0".

        Args:
            value: Cell value (str, int, float, None, ...)

        Returns:
            NFC-normalized text (not stripped)
        """
        if value is None:
            return ""
        if isinstance(value, bool):
            return str(value)
        if isinstance(value, float):
            if math.isnan(value):
                return ""
            if value.is_integer():
                return str(int(value))
        return cls.normalize_unicode(str(value))

    @classmethod
    def fold(cls, text: str) -> str:
        """Comparable form of a cell or answer: trimmed and case-folded."""
        return cls.normalize_unicode(text).strip().casefold()

    @classmethod
    def clean_word(cls, text: str) -> str:
        """
        Clean a raw headword cell.

        Removes a leading enumeration prefix and every parenthesized
        annotation, then trims.

        Example:
            "3. Ameliorate (v.)" -> "Ameliorate"
        """
        if not text:
            return ""
        cleaned = cls.normalize_unicode(str(text)).strip()
        cleaned = cls.ENUMERATION_PATTERN.sub('', cleaned)
        cleaned = cls.PARENTHESIS_PATTERN.sub('', cleaned)
        return cleaned.strip()

    @classmethod
    def split_synonyms(cls, text: str) -> List[str]:
        """
        Split a synonyms cell into individual answers.

        Args:
            text: Raw cell text, e.g. "improve; better,  enhance\\nuplift"

        Returns:
            Trimmed, non-empty synonyms in left-to-right order
        """
        if not text:
            return []
        text = cls.normalize_unicode(str(text))
        return [s.strip() for s in cls.SYNONYM_SPLIT_PATTERN.split(text) if s.strip()]
