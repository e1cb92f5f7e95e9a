"""
Formatting Layer

Renders review results for the output file.
"""

from .output import ResultFormatter

__all__ = ['ResultFormatter']
