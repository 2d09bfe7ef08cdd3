"""Configuration module for VocabRecall."""

from .settings import Config

__all__ = ['Config']
