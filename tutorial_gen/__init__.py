"""
Codebase Tutorial Generator

Turns a GitHub repository or local directory into a beginner-friendly,
multi-chapter Markdown tutorial using an LLM.
"""

__version__ = "0.1.0"
