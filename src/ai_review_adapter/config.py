"""
Configuration Management

Typed settings resolved once at startup. Precedence, lowest first:
dataclass defaults, YAML file, environment variables, command-line flags.
"""

import logging
import os
from dataclasses import dataclass, field, fields, replace
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union, get_args, get_origin

import yaml

from .errors import ValidationError
from .security.validators import validate_env_var


OUTPUT_FORMATS = ('json', 'markdown', 'text')
LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass(frozen=True)
class GitHubConfig:
    """GitHub API 설정"""
    token: Optional[str] = None
    api_base_url: str = "https://api.github.com"
    timeout_seconds: int = 30
    rate_limit_low_water: int = 10
    rate_limit_buffer_seconds: float = 1.0


@dataclass(frozen=True)
class EngineConfig:
    """Review engine settings"""
    api_key: Optional[str] = None
    endpoint: Optional[str] = None
    engine: Optional[str] = None  # "module:attribute" of a ReviewEngine factory
    timeout_seconds: int = 300
    generate_summary: bool = True


@dataclass(frozen=True)
class ReviewConfig:
    """What to review and where the diff comes from"""
    organization: Optional[str] = None
    repository: Optional[str] = None
    pr_number: Optional[str] = None
    git_url: Optional[str] = None
    base_branch: str = "main"
    head_branch: Optional[str] = None
    diff_file: Optional[str] = None
    diff_base_dir: str = "."
    use_stdin: bool = False
    stdin_timeout_seconds: float = 30.0
    post_comments: bool = False
    context: Optional[str] = None


@dataclass(frozen=True)
class OutputConfig:
    """Result file settings"""
    format: str = "json"
    path: str = "review-results.json"


@dataclass(frozen=True)
class RetryConfig:
    """GitHub API retry settings"""
    max_attempts: int = 3
    base_delay_seconds: float = 1.0


@dataclass(frozen=True)
class LoggingConfig:
    """로깅 설정"""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file_path: Optional[str] = None
    max_file_size: int = 10 * 1024 * 1024  # 10MB
    backup_count: int = 5


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# (section, field) -> (environment variable, converter)
ENV_VARS: Dict[Tuple[str, str], Tuple[str, Callable[[str], Any]]] = {
    ('github', 'token'): ('GITHUB_TOKEN', str),
    ('github', 'api_base_url'): ('GITHUB_BASE_URL', str),
    ('github', 'timeout_seconds'): ('GITHUB_TIMEOUT', int),
    ('engine', 'api_key'): ('LLM_API_KEY', str),
    ('engine', 'endpoint'): ('LLM_ENDPOINT', str),
    ('engine', 'engine'): ('AI_REVIEW_ENGINE', str),
    ('engine', 'timeout_seconds'): ('LLM_TIMEOUT', int),
    ('review', 'organization'): ('ORG_NAME', str),
    ('review', 'repository'): ('REPO_NAME', str),
    ('review', 'pr_number'): ('PR_NUMBER', str),
    ('review', 'git_url'): ('GIT_URL', str),
    ('review', 'base_branch'): ('BASE_BRANCH', str),
    ('review', 'head_branch'): ('HEAD_BRANCH', str),
    ('review', 'diff_file'): ('DIFF_FILE', str),
    ('review', 'use_stdin'): ('USE_STDIN', _parse_bool),
    ('review', 'post_comments'): ('POST_COMMENTS', _parse_bool),
    ('review', 'context'): ('REVIEW_CONTEXT', str),
    ('output', 'format'): ('OUTPUT_FORMAT', str),
    ('output', 'path'): ('OUTPUT_FILE', str),
    ('retry', 'max_attempts'): ('GITHUB_RETRY_ATTEMPTS', int),
    ('logging', 'level'): ('LOG_LEVEL', str),
    ('logging', 'file_path'): ('LOG_FILE', str),
}

SECRET_FIELDS = {('github', 'token'), ('engine', 'api_key')}


def _allowed_types(annotation) -> Tuple[type, ...]:
    allowed = get_args(annotation) if get_origin(annotation) is Union else (annotation,)
    if float in allowed:
        allowed += (int,)
    return allowed


def _load_section(name: str, section_cls: Callable[..., Any], data: Any) -> Any:
    """Build one config section from YAML, checking each value against the field type"""
    if data is None:
        return section_cls()
    if not isinstance(data, dict):
        raise ValidationError("config file", f"section {name!r} must be a mapping")

    types = {f.name: f.type for f in fields(section_cls)}
    values: Dict[str, Any] = {}
    for key, value in data.items():
        if key not in types:
            raise ValidationError("config file", f"unknown setting {name}.{key}")
        allowed = _allowed_types(types[key])
        # YAML reads `pr_number: 7` as an int
        if str in allowed and isinstance(value, int) and not isinstance(value, bool):
            value = str(value)
        if (isinstance(value, bool) and bool not in allowed) or not isinstance(value, allowed):
            expected = ' or '.join(t.__name__ for t in allowed if t is not type(None))
            raise ValidationError("config file", f"{name}.{key} must be of type {expected}")
        values[key] = value
    return section_cls(**values)


@dataclass(frozen=True)
class AppConfig:
    """전체 애플리케이션 설정"""
    github: GitHubConfig = field(default_factory=GitHubConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    review: ReviewConfig = field(default_factory=ReviewConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    debug: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, base: Optional["AppConfig"] = None) -> "AppConfig":
        """환경 변수에서 설정 로드"""
        environ = os.environ if environ is None else environ
        config = base or cls()

        overrides: Dict[str, Any] = {}
        for (section, name), (env_name, convert) in ENV_VARS.items():
            raw = environ.get(env_name)
            if raw is None or raw == '':
                continue
            validate_env_var(env_name, raw)
            try:
                overrides[f"{section}.{name}"] = convert(raw)
            except ValueError:
                raise ValidationError(f"environment variable {env_name}", f"must be of type {convert.__name__}")

        if 'DEBUG' in environ:
            overrides['debug'] = _parse_bool(environ['DEBUG'])

        return config.with_overrides(overrides)

    @classmethod
    def from_yaml(cls, config_path: str) -> "AppConfig":
        """YAML 파일에서 설정 로드"""
        config_file = Path(config_path)
        if not config_file.is_file():
            raise ValidationError("config file", f"not found: {config_path}")

        try:
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ValidationError("config file", f"invalid YAML in {config_path}: {e}") from e
        except (OSError, UnicodeDecodeError) as e:
            raise ValidationError("config file", f"unreadable {config_path}: {e}") from e

        if not isinstance(config_data, dict):
            raise ValidationError("config file", "top level must be a mapping")

        unknown = set(config_data) - cls._section_names() - {'debug'}
        if unknown:
            raise ValidationError("config file", f"unknown section {sorted(map(str, unknown))[0]!r}")

        debug = config_data.get('debug', False)
        if not isinstance(debug, bool):
            raise ValidationError("config file", "debug must be of type bool")

        sections = {
            f.name: _load_section(f.name, f.default_factory, config_data.get(f.name))
            for f in fields(cls)
            if f.name != 'debug'
        }
        return cls(debug=debug, **sections)

    @classmethod
    def resolve(
        cls,
        cli_overrides: Optional[Dict[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
        config_path: Optional[str] = None,
    ) -> "AppConfig":
        """
        Build the single configuration used for a run.

        Args:
            cli_overrides: ``"section.field"`` keys from command-line flags;
                ``None`` values are ignored
            environ: Environment mapping (default: ``os.environ``)
            config_path: Optional YAML file

        Returns:
            Validated AppConfig
        """
        config = cls.from_yaml(config_path) if config_path else cls()
        config = cls.from_env(environ, base=config)
        if cli_overrides:
            config = config.with_overrides({k: v for k, v in cli_overrides.items() if v is not None})
        config.validate()
        return config

    def with_overrides(self, overrides: Dict[str, Any]) -> "AppConfig":
        """Return a copy with ``"section.field"`` keys replaced"""
        sections: Dict[str, Dict[str, Any]] = {}
        top_level: Dict[str, Any] = {}

        for key, value in overrides.items():
            if '.' in key:
                section, name = key.split('.', 1)
                if section not in self._section_names():
                    raise ValidationError("setting", f"unknown section {section!r}")
                sections.setdefault(section, {})[name] = value
            else:
                top_level[key] = value

        changes = {name: replace(getattr(self, name), **values) for name, values in sections.items()}
        changes.update(top_level)
        return replace(self, **changes)

    @classmethod
    def _section_names(cls):
        return {f.name for f in fields(cls) if f.name != 'debug'}

    def validate(self) -> None:
        """설정 유효성 검사"""
        errors = []

        if self.output.format not in OUTPUT_FORMATS:
            errors.append(("output format", f"must be one of {', '.join(OUTPUT_FORMATS)}"))

        if self.logging.level.upper() not in LOG_LEVELS:
            errors.append(("log level", f"must be one of {', '.join(LOG_LEVELS)}"))

        if self.github.timeout_seconds <= 0:
            errors.append(("GitHub timeout", "must be positive"))

        if self.engine.timeout_seconds <= 0:
            errors.append(("engine timeout", "must be positive"))

        if self.review.stdin_timeout_seconds <= 0:
            errors.append(("stdin timeout", "must be positive"))

        if self.retry.max_attempts < 1:
            errors.append(("retry attempts", "must be at least 1"))

        if self.retry.base_delay_seconds < 0:
            errors.append(("retry delay", "must be non-negative"))

        if errors:
            field_names = ', '.join(name for name, _ in errors)
            rules = '; '.join(f"{name} {rule}" for name, rule in errors)
            raise ValidationError(field_names, rules)

    def to_dict(self) -> Dict[str, Any]:
        """설정을 딕셔너리로 변환 (secrets excluded)"""
        result: Dict[str, Any] = {}
        for section in sorted(self._section_names()):
            values = getattr(self, section)
            result[section] = {
                f.name: getattr(values, f.name)
                for f in fields(values)
                if (section, f.name) not in SECRET_FIELDS
            }
        result['debug'] = self.debug
        return result


def setup_logging(config: LoggingConfig) -> None:
    """로깅 설정"""
    logging.basicConfig(
        level=getattr(logging, config.level.upper()),
        format=config.format,
    )

    # 파일 로깅이 설정된 경우 로테이션 설정
    if config.file_path:
        handler = RotatingFileHandler(
            config.file_path,
            maxBytes=config.max_file_size,
            backupCount=config.backup_count,
        )
        handler.setFormatter(logging.Formatter(config.format))
        logging.getLogger().addHandler(handler)
