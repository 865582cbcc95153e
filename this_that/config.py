"""
Centralized configuration management with validation and type conversion.

Everything the request handler needs (credentials, allowed origins,
news filtering lists, timeouts) is read once from the environment into a
Config object that is handed to the app at construction time.
"""

import os
import re
import logging
from typing import Optional, Dict, Any, List, Pattern
from dataclasses import dataclass, field
from enum import Enum

from this_that import __version__


class Environment(Enum):
    """Application environment types."""
    DEVELOPMENT = "development"
    TESTING = "testing"
    STAGING = "staging"
    PRODUCTION = "production"


DEFAULT_NEGATIVE_KEYWORDS = [
    # crime
    'shooting', 'shot', 'murder', 'killed', 'stabbing', 'stabbed', 'robbery',
    'assault', 'arrest', 'arrested', 'police', 'crime', 'homicide', 'gunman',
    # disaster
    'fire', 'flood', 'earthquake', 'explosion', 'crash', 'collapse', 'evacuation',
    # legal
    'lawsuit', 'sued', 'court', 'trial', 'indicted', 'charged',
    # financial distress
    'bankruptcy', 'foreclosure', 'layoffs', 'closure',
]

DEFAULT_TRAVEL_DOMAIN_PATTERN = (
    r"(cntraveler|travelandleisure|lonelyplanet|timeout|afar|fodors|frommers"
    r"|nationalgeographic|roughguides|theguardian\.com/travel|nytimes\.com/.*travel"
    r"|thepointsguy|tripadvisor|travel|hotel|hospitality|skift|eater|theinfatuation)"
)


@dataclass
class TimeoutConfig:
    """Timeout configuration for different operations."""
    ai: float = 30.0
    news: float = 6.0
    image: float = 8.0
    geo: float = 8.0
    wikidata: float = 8.0
    api: float = 30.0

    def get(self, operation: str) -> float:
        """Get timeout for a specific operation, falling back to the api timeout."""
        return getattr(self, operation, self.api)


@dataclass
class OpenAIConfig:
    """Completion provider configuration."""
    api_key: Optional[str] = None
    model: str = "gpt-4o-mini"
    base_url: str = "https://api.openai.com/v1"
    max_tokens: int = 900
    temperature: float = 0.7

    @property
    def chat_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/chat/completions"


@dataclass
class MatchConfig:
    """Request-scoped policy: who may call us and which articles we refuse."""
    allowed_origins: List[str] = field(default_factory=lambda: ['*'])
    negative_keywords: List[str] = field(default_factory=lambda: list(DEFAULT_NEGATIVE_KEYWORDS))
    travel_domain_pattern: Pattern = field(
        default_factory=lambda: re.compile(DEFAULT_TRAVEL_DOMAIN_PATTERN, re.IGNORECASE)
    )
    enable_tourism_guess: bool = False

    def allows_any_origin(self) -> bool:
        return '*' in self.allowed_origins


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    format: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    file: Optional[str] = None
    max_bytes: int = 10485760  # 10MB
    backup_count: int = 5


class Config:
    """Centralized configuration with validation and type conversion."""

    SERVICE_NAME = "this-that"

    def __init__(self, **overrides):
        """Initialize configuration from environment variables.

        Keyword overrides replace the matching attribute after the environment
        has been read, which keeps tests independent of the process env.
        """
        self.environment = self._get_environment()
        self.debug = self._get_bool("DEBUG", False)
        self.service_version = self._get_str("SERVICE_VERSION", __version__)

        self.openai = OpenAIConfig(
            api_key=self._get_optional("OPENAI_API_KEY"),
            model=self._get_str("OPENAI_MODEL", "gpt-4o-mini"),
            base_url=self._get_str("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            max_tokens=self._get_int("OPENAI_MAX_TOKENS", 900),
            temperature=self._get_float("OPENAI_TEMPERATURE", 0.7),
        )

        self.timeout_config = TimeoutConfig(
            ai=self._get_float("TIMEOUT_AI", 30.0),
            news=self._get_float("TIMEOUT_NEWS", 6.0),
            image=self._get_float("TIMEOUT_IMAGE", 8.0),
            geo=self._get_float("TIMEOUT_GEO", 8.0),
            wikidata=self._get_float("TIMEOUT_WIKIDATA", 8.0),
            api=self._get_float("TIMEOUT_API", 30.0),
        )

        pattern = self._get_str("TRAVEL_DOMAIN_PATTERN", DEFAULT_TRAVEL_DOMAIN_PATTERN)
        try:
            compiled = re.compile(pattern, re.IGNORECASE)
        except re.error:
            raise ValueError(f"Invalid regex for TRAVEL_DOMAIN_PATTERN: {pattern}")

        self.match_config = MatchConfig(
            allowed_origins=self._get_list("ALLOWED_ORIGINS", ['*']),
            negative_keywords=[k.lower() for k in self._get_list("NEGATIVE_KEYWORDS", DEFAULT_NEGATIVE_KEYWORDS)],
            travel_domain_pattern=compiled,
            enable_tourism_guess=self._get_bool("ENABLE_TOURISM_GUESS", False),
        )

        self.logging_config = LoggingConfig(
            level=self._get_str("LOG_LEVEL", "INFO"),
            format=self._get_str("LOG_FORMAT", "%(asctime)s - %(name)s - %(levelname)s - %(message)s"),
            file=self._get_optional("LOG_FILE"),
            max_bytes=self._get_int("LOG_MAX_BYTES", 10485760),
            backup_count=self._get_int("LOG_BACKUP_COUNT", 5),
        )

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise ValueError(f"Unknown config override: {key}")
            setattr(self, key, value)

        self._validate()

    def _get_environment(self) -> Environment:
        """Get application environment."""
        env_str = self._get_str("ENVIRONMENT", "development").lower()
        try:
            return Environment(env_str)
        except ValueError:
            raise ValueError(f"Invalid environment: {env_str}")

    def _get_optional(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return os.getenv(key, default) or default

    def _get_str(self, key: str, default: str) -> str:
        return os.getenv(key) or default

    def _get_int(self, key: str, default: int) -> int:
        """Get integer environment variable with default.

        Raises:
            ValueError: If value cannot be converted to int
        """
        value = os.getenv(key)
        if value is None or value == "":
            return default
        try:
            return int(value)
        except ValueError:
            raise ValueError(f"Invalid integer for {key}: {value}")

    def _get_float(self, key: str, default: float) -> float:
        """Get float environment variable with default.

        Raises:
            ValueError: If value cannot be converted to float
        """
        value = os.getenv(key)
        if value is None or value == "":
            return default
        try:
            return float(value)
        except ValueError:
            raise ValueError(f"Invalid float for {key}: {value}")

    def _get_bool(self, key: str, default: bool) -> bool:
        value = os.getenv(key)
        if value is None or value == "":
            return default
        return value.lower() in ('1', 'true', 'yes', 'on')

    def _get_list(self, key: str, default: list) -> list:
        value = os.getenv(key)
        if value is None or not value.strip():
            return list(default)
        return [item.strip() for item in value.split(',') if item.strip()]

    def _validate(self):
        """Validate configuration values."""
        for attr_name in ['ai', 'news', 'image', 'geo', 'wikidata', 'api']:
            timeout = getattr(self.timeout_config, attr_name)
            if timeout <= 0:
                raise ValueError(f"Invalid timeout for {attr_name}: {timeout}")

        if self.openai.max_tokens <= 0:
            raise ValueError(f"Invalid OPENAI_MAX_TOKENS: {self.openai.max_tokens}")

        if not self.match_config.allowed_origins:
            raise ValueError("ALLOWED_ORIGINS must list at least one origin or '*'")

        # Missing credential is reported per request, not at startup
        if not self.openai.api_key:
            logging.getLogger(__name__).warning("OPENAI_API_KEY not set - matching requests will fail with 500")

    @property
    def has_llm_credential(self) -> bool:
        return bool(self.openai.api_key)

    @property
    def mode(self) -> str:
        return "openai" if self.has_llm_credential else "unconfigured"

    def get_timeout(self, operation: str) -> float:
        return self.timeout_config.get(operation)

    def is_production(self) -> bool:
        return self.environment == Environment.PRODUCTION

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary for debugging. Secrets are reported as present/absent."""
        return {
            'environment': self.environment.value,
            'debug': self.debug,
            'service_version': self.service_version,
            'openai': {
                'api_key': bool(self.openai.api_key),
                'model': self.openai.model,
                'base_url': self.openai.base_url,
            },
            'timeout_config': {
                'ai': self.timeout_config.ai,
                'news': self.timeout_config.news,
                'image': self.timeout_config.image,
                'geo': self.timeout_config.geo,
                'wikidata': self.timeout_config.wikidata,
            },
            'allowed_origins': self.match_config.allowed_origins,
            'enable_tourism_guess': self.match_config.enable_tourism_guess,
        }


def setup_logging(config: Optional[Config] = None):
    """Set up logging based on configuration."""
    from logging.handlers import RotatingFileHandler

    config = config or Config()

    logging.basicConfig(
        level=getattr(logging, config.logging_config.level.upper(), logging.INFO),
        format=config.logging_config.format,
    )

    if config.logging_config.file:
        file_handler = RotatingFileHandler(
            config.logging_config.file,
            maxBytes=config.logging_config.max_bytes,
            backupCount=config.logging_config.backup_count,
        )
        file_handler.setFormatter(logging.Formatter(config.logging_config.format))
        logging.getLogger().addHandler(file_handler)

    logging.getLogger('aiohttp').setLevel(logging.WARNING)
    logging.getLogger('asyncio').setLevel(logging.WARNING)

    if config.is_production():
        logging.getLogger().setLevel(logging.INFO)
