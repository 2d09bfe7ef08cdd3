"""
Tabular Extractor - turn a spreadsheet grid into flashcards.

Locates the header row by its column titles, falls back to a positional
guess for the common "word, definition, synonyms" layout, and produces one
VocabItem per usable data row.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import pandas as pd

from ..exceptions import ExtractionError
from ..models import VocabItem
from ..utils.parsing import TextParser

logger = logging.getLogger(__name__)


Grid = Sequence[Sequence[Any]]


@dataclass(frozen=True)
class HeaderLayout:
    """Where the header row is and which columns hold what."""
    row: int
    word_col: int
    synonyms_col: int
    definition_col: Optional[int] = None
    fallback: bool = False


class TabularExtractor:
    """
    Extract vocabulary items from a grid of cell values.

    Usage:
        extractor = TabularExtractor()
        items = extractor.extract([["Word", "Synonyms"], ["Happy", "glad"]])
    """

    WORD_HEADERS = ("word", "vocabulary", "kata")
    SYNONYM_HEADERS = ("synonyms", "synonym", "sinonim")
    DEFINITION_HEADERS = ("definition", "meaning", "deskripsi", "arti")

    # Only an exact "word" cell triggers the positional fallback
    FALLBACK_WORD_HEADER = "word"
    # Layout convention: word, [definition], synonyms
    FALLBACK_SYNONYMS_OFFSET = 2
    FALLBACK_DEFINITION_OFFSET = 1

    MIN_WORD_LENGTH = 2
    SECTION_MARKER = "topic:"

    def __init__(self, include_definitions: bool = False):
        """
        Args:
            include_definitions: Copy the definition column into
                VocabItem.definition when the sheet has one
        """
        self.include_definitions = include_definitions

    @staticmethod
    def _rows(grid: Any) -> List[List[str]]:
        """
        Coerce any supported grid into rows of text cells.

        Raises:
            ExtractionError: If the grid is not a sequence of rows
        """
        if grid is None:
            return []
        if isinstance(grid, pd.DataFrame):
            grid = grid.values.tolist()
        if isinstance(grid, (str, bytes)) or not isinstance(grid, Iterable):
            raise ExtractionError(f"Expected rows of cells, got {type(grid).__name__}")
        rows = []
        for row in grid:
            # Stray scalars (a note, a number) are empty rows, not cells
            if row is None or isinstance(row, (str, bytes)) or not isinstance(row, Iterable):
                rows.append([])
                continue
            rows.append([TextParser.cell_to_text(cell) for cell in row])
        return rows

    @staticmethod
    def _find_first(cells: List[str], candidates: Sequence[str]) -> int:
        for idx, cell in enumerate(cells):
            if cell in candidates:
                return idx
        return -1

    def detect_header(self, rows: List[List[str]]) -> Optional[HeaderLayout]:
        """
        Locate the header row.

        Primary pass: first row holding both a word-title and a
        synonyms-title cell (exact, case-insensitive). Fallback: first row
        with an exact "word" cell, synonyms assumed two columns right.

        Returns:
            HeaderLayout or None if neither pass matches
        """
        for idx, row in enumerate(rows):
            cells = [c.strip().lower() for c in row]
            word_col = self._find_first(cells, self.WORD_HEADERS)
            syn_col = self._find_first(cells, self.SYNONYM_HEADERS)
            if word_col != -1 and syn_col != -1:
                def_col = self._find_first(cells, self.DEFINITION_HEADERS)
                return HeaderLayout(
                    row=idx,
                    word_col=word_col,
                    synonyms_col=syn_col,
                    definition_col=def_col if def_col != -1 else None,
                )

        for idx, row in enumerate(rows):
            cells = [c.strip().lower() for c in row]
            word_col = self._find_first(cells, (self.FALLBACK_WORD_HEADER,))
            if word_col != -1:
                return HeaderLayout(
                    row=idx,
                    word_col=word_col,
                    synonyms_col=word_col + self.FALLBACK_SYNONYMS_OFFSET,
                    definition_col=word_col + self.FALLBACK_DEFINITION_OFFSET,
                    fallback=True,
                )

        return None

    @staticmethod
    def _cell(row: List[str], col: Optional[int]) -> str:
        if col is None or col < 0 or col >= len(row):
            return ""
        return row[col].strip()

    def _parse_row(self, row: List[str], layout: HeaderLayout, row_idx: int) -> Optional[VocabItem]:
        raw_word = self._cell(row, layout.word_col)
        raw_synonyms = self._cell(row, layout.synonyms_col)
        if not raw_word or not raw_synonyms:
            logger.debug("Row %d: skipped (missing word or synonyms)", row_idx)
            return None

        word = TextParser.clean_word(raw_word)
        lower = word.lower()
        if len(word) < self.MIN_WORD_LENGTH:
            logger.debug("Row %d: skipped (word %r too short)", row_idx, word)
            return None
        if lower == self.FALLBACK_WORD_HEADER or self.SECTION_MARKER in lower:
            logger.debug("Row %d: skipped (looks like header or topic)", row_idx)
            return None

        synonyms = TextParser.split_synonyms(raw_synonyms)
        if not synonyms:
            logger.debug("Row %d: skipped (no synonyms)", row_idx)
            return None

        item = VocabItem(word=word, synonyms=synonyms)
        if self.include_definitions:
            definition = self._cell(row, layout.definition_col)
            if definition:
                item.definition = definition
        return item

    def extract(self, grid: Any) -> List[VocabItem]:
        """
        Extract vocabulary items from a grid.

        Args:
            grid: Rows of cell values, or a pandas DataFrame

        Returns:
            Items in row order; empty when no header or no usable rows

        Raises:
            ExtractionError: If the grid is not a sequence of rows
        """
        rows = self._rows(grid)
        layout = self.detect_header(rows)
        if layout is None:
            logger.warning("No header row found in %d rows", len(rows))
            return []

        logger.info(
            "Header at row %d (word col %d, synonyms col %d%s)",
            layout.row, layout.word_col, layout.synonyms_col,
            ", fallback" if layout.fallback else "",
        )

        items = []
        for row_idx in range(layout.row + 1, len(rows)):
            item = self._parse_row(rows[row_idx], layout, row_idx)
            if item is not None:
                items.append(item)

        logger.info("Extracted %d items", len(items))
        return items


def extract_vocabulary(grid: Any, include_definitions: bool = False) -> List[VocabItem]:
    """Convenience wrapper around TabularExtractor.extract()."""
    return TabularExtractor(include_definitions=include_definitions).extract(grid)
