"""
Review Layer

Boundary to the external review engine and publishing of its results.
"""

from .engine import HTTPReviewEngine, ReviewEngine, ReviewOptions, create_engine, load_engine
from .orchestrator import ATTRIBUTION_FOOTER, PublishReport, ReviewOrchestrator

__all__ = [
    'ATTRIBUTION_FOOTER',
    'HTTPReviewEngine',
    'PublishReport',
    'ReviewEngine',
    'ReviewOptions',
    'ReviewOrchestrator',
    'create_engine',
    'load_engine',
]
