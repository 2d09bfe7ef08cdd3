"""VocabRecall - Active-recall vocabulary flashcards"""

__version__ = "1.0.0"
__author__ = "VocabRecall Team"

from .config import Config
from .extraction import TabularExtractor, extract_vocabulary, import_spreadsheet, load_grid
from .models import GamePhase, ItemStatus, Topic, VocabItem
from .services import VocabStore, create_enrichment_provider, create_repository

__all__ = [
    'Config',
    'TabularExtractor',
    'extract_vocabulary',
    'import_spreadsheet',
    'load_grid',
    'GamePhase',
    'ItemStatus',
    'Topic',
    'VocabItem',
    'VocabStore',
    'create_enrichment_provider',
    'create_repository',
]
