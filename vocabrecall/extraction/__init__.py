"""Extraction module - spreadsheets to vocabulary items."""

from .extractor import HeaderLayout, TabularExtractor, extract_vocabulary
from .loader import import_spreadsheet, load_grid

__all__ = [
    'HeaderLayout',
    'TabularExtractor',
    'extract_vocabulary',
    'import_spreadsheet',
    'load_grid',
]
