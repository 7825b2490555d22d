"""
Context assembly for agent steps.
"""

from .builder import ContextBuilder
from .files import FileCollector, DEFAULT_IGNORE

__all__ = ['ContextBuilder', 'FileCollector', 'DEFAULT_IGNORE']
