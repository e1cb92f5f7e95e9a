"""
Review Engine Boundary

The code review itself is done by an external engine. This module defines
the contract (diff text and options in, ReviewResult out), an HTTP client
for engines exposed as a service, and loading of in-process engines by
``module:attribute`` name.
"""

import importlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests

from ..config import EngineConfig
from ..errors import EngineError, ValidationError
from ..models.review import ReviewResult


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReviewOptions:
    """Options passed to the engine with each diff."""
    generate_summary: bool = True
    context: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {'generateSummary': self.generate_summary, 'context': dict(self.context)}


class ReviewEngine(ABC):
    """External code review engine"""

    @abstractmethod
    def review(self, diff: str, options: ReviewOptions) -> ReviewResult:
        """Review a unified diff."""


class HTTPReviewEngine(ReviewEngine):
    """
    Engine reached over HTTP.

    Sends ``{"diff": ..., "options": ...}`` as JSON with a bearer API key and
    expects a ReviewResult document back, either bare or under a ``review`` key.
    """

    def __init__(self, endpoint: str, api_key: str, timeout: float = 300, session: Optional[requests.Session] = None):
        self.endpoint = endpoint
        self.api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()

    def review(self, diff: str, options: ReviewOptions) -> ReviewResult:
        logger.info(f"Sending diff to review engine ({len(diff)} characters)")

        try:
            response = self.session.post(
                self.endpoint,
                json={'diff': diff, 'options': options.to_dict()},
                headers={
                    'Authorization': f'Bearer {self.api_key}',
                    'Content-Type': 'application/json',
                    'User-Agent': 'AI-Review-Adapter/1.0',
                },
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise EngineError(f"Review engine request failed: {e}") from e

        if not response.ok:
            raise EngineError(f"Review engine returned HTTP {response.status_code}")

        try:
            data = response.json()
            if isinstance(data, dict) and isinstance(data.get('review'), dict):
                data = data['review']
            return ReviewResult.model_validate(data)
        except ValueError as e:
            raise EngineError(f"Review engine returned an invalid result: {e}") from e


def load_engine(path: str, config: EngineConfig) -> ReviewEngine:
    """
    Import a ReviewEngine factory named ``module:attribute`` and call it with the config.

    Raises:
        ValidationError: The name is malformed or does not produce a ReviewEngine
    """
    module_name, _, attribute = path.partition(':')
    if not module_name or not attribute:
        raise ValidationError("review engine", "must be given as 'module:attribute'")

    try:
        factory = getattr(importlib.import_module(module_name), attribute)
    except (ImportError, AttributeError) as e:
        raise ValidationError("review engine", f"cannot import {path}: {e}") from e

    engine = factory(config)
    if not isinstance(engine, ReviewEngine):
        raise ValidationError("review engine", f"{path} did not produce a ReviewEngine")
    return engine


def create_engine(config: EngineConfig) -> ReviewEngine:
    """Engine for the configuration: a named in-process engine, else the HTTP one."""
    if config.engine:
        return load_engine(config.engine, config)

    if not config.api_key:
        raise ValidationError("engine API key", "LLM_API_KEY or --api-key is required")
    if not config.endpoint:
        raise ValidationError("engine endpoint", "LLM_ENDPOINT or --endpoint is required")

    return HTTPReviewEngine(config.endpoint, config.api_key, timeout=config.timeout_seconds)
