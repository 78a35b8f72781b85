from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv
from repo_spider.infrastructure.github_client import DEFAULT_USER_AGENT, GITHUB_SEARCH_URL


class ConfigError(ValueError):
    """Raised when an environment variable holds an unusable value."""
    pass


@dataclass(frozen=True)
class Settings:
    keyword:                str = "unreal"
    min_stars:              int = 100
    max_results:            int = 10_000
    timeout_secs:           float = 300.0
    output_dir:             str = "."
    api_url:                str = GITHUB_SEARCH_URL
    user_agent:             str = DEFAULT_USER_AGENT
    rate_limit_sleep:       float = 60.0
    courtesy_delay:         float = 2.0
    max_rate_limit_retries: int | None = 10
    log_level:              str = "INFO"


def _int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from None


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from None


def load_settings(dotenv: bool = True) -> Settings:
    """
    Read settings from the environment, after loading an optional .env file.
    A retry limit of 0 or less means "retry until the timeout".
    """
    if dotenv:
        load_dotenv(".env")

    defaults = Settings()
    retries = _int("SPIDER_MAX_RATE_LIMIT_RETRIES", defaults.max_rate_limit_retries)

    return Settings(
        keyword                = os.getenv("SPIDER_KEYWORD", defaults.keyword),
        min_stars              = _int("SPIDER_MIN_STARS", defaults.min_stars),
        max_results            = _int("SPIDER_MAX_RESULTS", defaults.max_results),
        timeout_secs           = _float("SPIDER_TIMEOUT_SECS", defaults.timeout_secs),
        output_dir             = os.getenv("SPIDER_OUTPUT_DIR", defaults.output_dir),
        api_url                = os.getenv("SPIDER_API_URL", defaults.api_url),
        user_agent             = os.getenv("SPIDER_USER_AGENT", defaults.user_agent),
        rate_limit_sleep       = _float("SPIDER_RATE_LIMIT_SLEEP", defaults.rate_limit_sleep),
        courtesy_delay         = _float("SPIDER_COURTESY_DELAY", defaults.courtesy_delay),
        max_rate_limit_retries = retries if retries > 0 else None,
        log_level              = os.getenv("SPIDER_LOG_LEVEL", defaults.log_level).upper(),
    )
