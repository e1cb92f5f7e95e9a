"""
AI Review Adapter

Command-line adapter that acquires a pull request diff, hands it to an AI
review engine and persists the result
"""

__version__ = "1.0.0"

from .api import AIReviewAdapter

__all__ = ["AIReviewAdapter", "__version__"]
