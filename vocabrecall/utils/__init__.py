"""Utils module."""

from .helpers import ensure_dir, new_id, now_ms
from .parsing import TextParser
from .logger import setup_logger

__all__ = [
    'ensure_dir',
    'new_id',
    'now_ms',
    'TextParser',
    'setup_logger'
]
