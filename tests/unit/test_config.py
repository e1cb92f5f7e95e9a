"""
Unit tests for configuration resolution.
"""

from dataclasses import FrozenInstanceError

import pytest

from ai_review_adapter.config import AppConfig, OutputConfig
from ai_review_adapter.errors import ValidationError


class TestAppConfig:
    """Unit tests for AppConfig."""

    def test_defaults(self):
        """Test default values match the documented behavior."""
        config = AppConfig()

        assert config.github.api_base_url == "https://api.github.com"
        assert config.output.format == "json"
        assert config.output.path == "review-results.json"
        assert config.review.base_branch == "main"
        assert config.review.stdin_timeout_seconds == 30.0
        assert config.retry.max_attempts == 3

    def test_from_env(self):
        """Test environment variables are mapped onto sections."""
        config = AppConfig.from_env({
            'GITHUB_TOKEN': 'ghp_token',
            'GITHUB_BASE_URL': 'https://git.example.com/api/v3',
            'ORG_NAME': 'acme',
            'REPO_NAME': 'widgets',
            'PR_NUMBER': '7',
            'USE_STDIN': 'true',
            'POST_COMMENTS': 'yes',
            'OUTPUT_FORMAT': 'markdown',
            'GITHUB_TIMEOUT': '15',
        })

        assert config.github.token == 'ghp_token'
        assert config.github.api_base_url == 'https://git.example.com/api/v3'
        assert config.github.timeout_seconds == 15
        assert config.review.organization == 'acme'
        assert config.review.pr_number == '7'
        assert config.review.use_stdin is True
        assert config.review.post_comments is True
        assert config.output.format == 'markdown'

    def test_env_values_are_validated(self):
        """Test environment values carrying shell syntax are rejected."""
        with pytest.raises(ValidationError) as exc_info:
            AppConfig.from_env({'ORG_NAME': 'acme$(whoami)'})
        assert 'ORG_NAME' in exc_info.value.field

    def test_env_integer_conversion_error(self):
        """Test a non-numeric integer setting is reported by variable name."""
        with pytest.raises(ValidationError) as exc_info:
            AppConfig.from_env({'GITHUB_TIMEOUT': 'soon'})
        assert 'GITHUB_TIMEOUT' in exc_info.value.field

    def test_cli_overrides_env(self):
        """Test command-line values win over environment values."""
        config = AppConfig.resolve(
            cli_overrides={'review.organization': 'from-cli', 'output.format': None},
            environ={'ORG_NAME': 'from-env', 'OUTPUT_FORMAT': 'text'},
        )

        assert config.review.organization == 'from-cli'
        assert config.output.format == 'text'

    def test_yaml_is_lowest_precedence(self, tmp_path):
        """Test YAML values apply unless the environment overrides them."""
        config_file = tmp_path / "review.yaml"
        config_file.write_text(
            "review:\n  organization: yaml-org\n  repository: yaml-repo\noutput:\n  format: markdown\n",
            encoding='utf-8',
        )

        config = AppConfig.resolve(environ={'REPO_NAME': 'env-repo'}, config_path=str(config_file))

        assert config.review.organization == 'yaml-org'
        assert config.review.repository == 'env-repo'
        assert config.output.format == 'markdown'

    def test_yaml_missing_file(self, tmp_path):
        """Test a missing config file is reported as a config file error."""
        with pytest.raises(ValidationError) as exc_info:
            AppConfig.from_yaml(str(tmp_path / "absent.yaml"))
        assert exc_info.value.field == "config file"
        assert "not found" in str(exc_info.value)

    def test_yaml_unknown_setting(self, tmp_path):
        """Test unknown keys in a section are reported."""
        config_file = tmp_path / "review.yaml"
        config_file.write_text("output:\n  colour: blue\n", encoding='utf-8')

        with pytest.raises(ValidationError):
            AppConfig.from_yaml(str(config_file))

    def test_yaml_syntax_error(self, tmp_path):
        """Test unparsable YAML is reported as a config file error."""
        config_file = tmp_path / "review.yaml"
        config_file.write_text("review: [unclosed\n", encoding='utf-8')

        with pytest.raises(ValidationError) as exc_info:
            AppConfig.from_yaml(str(config_file))
        assert exc_info.value.field == "config file"
        assert "invalid YAML" in str(exc_info.value)

    @pytest.mark.parametrize("text,setting", [
        ("github:\n  timeout_seconds: fast\n", "github.timeout_seconds"),
        ("review:\n  use_stdin: maybe\n", "review.use_stdin"),
        ("retry:\n  max_attempts: true\n", "retry.max_attempts"),
        ("output:\n  format: [json]\n", "output.format"),
    ])
    def test_yaml_wrong_type(self, tmp_path, text, setting):
        """Test values of the wrong type are rejected before validation compares them."""
        config_file = tmp_path / "review.yaml"
        config_file.write_text(text, encoding='utf-8')

        with pytest.raises(ValidationError) as exc_info:
            AppConfig.resolve(environ={}, config_path=str(config_file))
        assert setting in str(exc_info.value)

    def test_yaml_numbers_for_text_settings(self, tmp_path):
        """Test an unquoted PR number and an int delay are accepted."""
        config_file = tmp_path / "review.yaml"
        config_file.write_text("review:\n  pr_number: 7\nretry:\n  base_delay_seconds: 2\n", encoding='utf-8')

        config = AppConfig.from_yaml(str(config_file))

        assert config.review.pr_number == '7'
        assert config.retry.base_delay_seconds == 2

    def test_validate_rejects_unknown_format(self):
        """Test output formats outside json|markdown|text are rejected."""
        config = AppConfig(output=OutputConfig(format='xml'))
        with pytest.raises(ValidationError) as exc_info:
            config.validate()
        assert 'output format' in exc_info.value.field

    def test_validate_rejects_bad_log_level(self):
        """Test unknown log levels are rejected."""
        config = AppConfig().with_overrides({'logging.level': 'CHATTY'})
        with pytest.raises(ValidationError):
            config.validate()

    def test_with_overrides_unknown_section(self):
        """Test overriding an unknown section fails."""
        with pytest.raises(ValidationError):
            AppConfig().with_overrides({'nope.value': 1})

    def test_config_is_frozen(self):
        """Test the resolved configuration cannot be mutated."""
        config = AppConfig()
        with pytest.raises(FrozenInstanceError):
            config.output.format = 'text'

    def test_to_dict_excludes_secrets(self):
        """Test tokens and API keys never appear in the dictionary form."""
        config = AppConfig.from_env({'GITHUB_TOKEN': 'ghp_secret', 'LLM_API_KEY': 'sk-secret'})
        flattened = repr(config.to_dict())

        assert 'ghp_secret' not in flattened
        assert 'sk-secret' not in flattened
        assert config.to_dict()['github']['api_base_url'] == 'https://api.github.com'
