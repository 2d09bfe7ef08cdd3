"""Utility functions."""

import time
import uuid
from pathlib import Path
from typing import Union


def ensure_dir(path: Union[str, Path]) -> None:
    """Ensure directory exists."""
    Path(path).mkdir(parents=True, exist_ok=True)


def new_id() -> str:
    """Opaque unique identifier for items and topics."""
    return uuid.uuid4().hex


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)
