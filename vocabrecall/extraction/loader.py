"""Spreadsheet loading - read an uploaded file into a grid of cells."""

import csv
import logging
from pathlib import Path
from typing import Any, List, Optional

import pandas as pd

from ..exceptions import ExtractionError
from ..models import VocabItem
from ..utils.parsing import TextParser
from .extractor import TabularExtractor

logger = logging.getLogger(__name__)


EXCEL_SUFFIXES = {".xlsx", ".xlsm", ".xls", ".ods"}
CSV_DELIMITERS = {".csv": ",", ".tsv": "\t"}


def _trim_row(row: List[Any]) -> List[Any]:
    """Drop trailing empty cells so rows come out ragged, like the sheet."""
    end = len(row)
    while end > 0 and not TextParser.cell_to_text(row[end - 1]).strip():
        end -= 1
    return row[:end]


def _read_excel(file_path: Path) -> List[List[Any]]:
    df = pd.read_excel(file_path, sheet_name=0, header=None, dtype=object)
    return [list(row) for row in df.itertuples(index=False, name=None)]


def _read_delimited(file_path: Path, delimiter: str) -> List[List[Any]]:
    # csv.reader keeps ragged rows (title lines, notes) that a DataFrame would reject
    with open(file_path, newline='', encoding='utf-8-sig') as f:
        return [row for row in csv.reader(f, delimiter=delimiter)]


def load_grid(path: str) -> List[List[Any]]:
    """
    Read the first sheet of a spreadsheet file into rows of cells.

    Args:
        path: Path to a .xlsx/.xls/.ods/.csv/.tsv file

    Returns:
        List of rows (ragged, trailing blanks removed)

    Raises:
        ExtractionError: If the file is missing, unsupported or unreadable
    """
    file_path = Path(path)
    suffix = file_path.suffix.lower()

    if not file_path.exists():
        raise ExtractionError(f"File not found: {file_path}")
    if suffix not in EXCEL_SUFFIXES and suffix not in CSV_DELIMITERS:
        raise ExtractionError(f"Unsupported file type: {suffix or '(none)'}")

    try:
        if suffix in EXCEL_SUFFIXES:
            raw_rows = _read_excel(file_path)
        else:
            raw_rows = _read_delimited(file_path, CSV_DELIMITERS[suffix])
    except Exception as e:
        logger.error("Could not read spreadsheet %s: %s", file_path, e)
        raise ExtractionError(f"Could not read {file_path.name}: {e}") from e

    rows = [_trim_row(row) for row in raw_rows]
    logger.debug("Loaded %d rows from %s", len(rows), file_path)
    return rows


def import_spreadsheet(path: str, extractor: Optional[TabularExtractor] = None) -> List[VocabItem]:
    """
    Load a spreadsheet and extract its vocabulary.

    Raises:
        ExtractionError: If the file cannot be read
    """
    extractor = extractor or TabularExtractor()
    return extractor.extract(load_grid(path))
