"""
Unit tests for the review engine boundary.
"""

import sys
import types
from unittest.mock import Mock

import pytest
import requests

from ai_review_adapter.config import EngineConfig
from ai_review_adapter.errors import EngineError, ValidationError
from ai_review_adapter.review.engine import (
    HTTPReviewEngine,
    ReviewEngine,
    ReviewOptions,
    create_engine,
    load_engine,
)


class StaticEngine(ReviewEngine):
    def __init__(self, config):
        self.config = config

    def review(self, diff, options):
        raise NotImplementedError


def make_session(status_code=200, payload=None, error=None):
    session = Mock()
    if error is not None:
        session.post.side_effect = error
        return session
    response = Mock()
    response.status_code = status_code
    response.ok = status_code < 400
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    session.post.return_value = response
    return session


class TestHTTPReviewEngine:
    """Unit tests for HTTPReviewEngine"""

    def test_posts_diff_and_options(self):
        """Test the request body and bearer key"""
        session = make_session(payload={'summary': 'ok', 'comments': []})
        engine = HTTPReviewEngine("https://engine.example.com/review", "sk-key", timeout=12, session=session)

        result = engine.review("diff text", ReviewOptions(generate_summary=True, context={'notes': 'n'}))

        assert result.summary == 'ok'
        args, kwargs = session.post.call_args
        assert args[0] == "https://engine.example.com/review"
        assert kwargs['json'] == {'diff': "diff text", 'options': {'generateSummary': True, 'context': {'notes': 'n'}}}
        assert kwargs['headers']['Authorization'] == 'Bearer sk-key'
        assert kwargs['timeout'] == 12

    def test_unwraps_review_key(self):
        """Test results nested under 'review' are accepted"""
        session = make_session(payload={'success': True, 'review': {'summary': 'nested', 'comments': [
            {'file': 'test.js', 'line': 5, 'message': 'Consider adding error handling'},
        ]}})

        result = HTTPReviewEngine("https://e", "k", session=session).review("d", ReviewOptions())

        assert result.summary == 'nested'
        assert result.comments[0].file == 'test.js'

    @pytest.mark.parametrize("session", [
        make_session(error=requests.Timeout("read timed out")),
        make_session(status_code=500, payload={}),
        make_session(payload=ValueError("not json")),
        make_session(payload={'comments': [{'line': 1, 'body': ''}]}),
    ])
    def test_failures_become_engine_errors(self, session):
        """Test transport, HTTP and payload failures raise EngineError"""
        with pytest.raises(EngineError):
            HTTPReviewEngine("https://e", "k", session=session).review("d", ReviewOptions())


class TestEngineFactory:
    """Unit tests for create_engine and load_engine"""

    def test_http_engine_requires_key_and_endpoint(self):
        """Test missing credentials are reported as validation errors"""
        with pytest.raises(ValidationError) as exc_info:
            create_engine(EngineConfig(endpoint="https://e"))
        assert "LLM_API_KEY" in str(exc_info.value)

        with pytest.raises(ValidationError):
            create_engine(EngineConfig(api_key="k"))

    def test_http_engine(self):
        engine = create_engine(EngineConfig(api_key="k", endpoint="https://e", timeout_seconds=5))

        assert isinstance(engine, HTTPReviewEngine)
        assert engine.timeout == 5

    def test_load_named_engine(self, monkeypatch):
        """Test module:attribute factories are imported and called with the config"""
        module = types.ModuleType("review_plugins")
        module.build = StaticEngine
        monkeypatch.setitem(sys.modules, "review_plugins", module)
        config = EngineConfig(engine="review_plugins:build")

        engine = create_engine(config)

        assert isinstance(engine, StaticEngine)
        assert engine.config is config

    @pytest.mark.parametrize("path", ["no_colon", "json:loads_missing", "module_that_does_not_exist_x:f", "builtins:repr"])
    def test_bad_engine_names(self, path):
        """Test malformed, unimportable and non-engine factories are rejected"""
        with pytest.raises(ValidationError):
            load_engine(path, EngineConfig())
