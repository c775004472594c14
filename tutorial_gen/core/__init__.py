"""
Codebase Tutorial Generator - Pipeline Stages

Each stage is a plain function that takes the previous stage's output and
an LLM provider, and returns validated data.
"""

from .identify_abstractions import identify_abstractions
from .analyze_relationships import analyze_relationships
from .order_chapters import order_chapters
from .write_chapters import sanitize_filename, write_chapter, write_chapters
from .combine_tutorial import combine_tutorial

__all__ = [
    'identify_abstractions',
    'analyze_relationships',
    'order_chapters',
    'sanitize_filename',
    'write_chapter',
    'write_chapters',
    'combine_tutorial',
]
