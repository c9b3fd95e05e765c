"""Configuration handling for the Blog Indexer."""

import os
from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

import yaml
from dotenv import load_dotenv

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0 Safari/537.36"
)

INDEXING_SCOPE = "https://www.googleapis.com/auth/indexing"


@dataclass
class HttpConfig:
    """Settings for feed and page fetches."""

    fetch_timeout_sec: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT


@dataclass
class RetryConfig:
    """Bounded retry policy for transient submission failures."""

    max_attempts: int = 3
    initial_backoff_sec: float = 1.0
    backoff_factor: float = 2.0
    max_backoff_sec: float = 8.0


@dataclass
class PrioritizerConfig:
    """Scoring inputs for the prioritizer."""

    important_keywords: List[str] = field(
        default_factory=lambda: ["guide", "tutorial", "how to", "review", "update", "news"]
    )


@dataclass
class ScheduleConfig:
    """Recurring schedule configuration."""

    cron: str = "0 */3 * * *"  # every 3 hours
    run_once: bool = False
    run_on_startup: bool = True
    startup_delay_sec: float = 5.0


@dataclass
class MonitoringConfig:
    """Monitoring configuration."""

    enable_prometheus: bool = False
    prometheus_port: int = 8000


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int, errors: List[str]) -> int:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        errors.append(f"{name} must be an integer, got {value!r}")
        return default


def _update_dataclass(instance: Any, values: Dict[str, Any]) -> None:
    """Copy known keys from a YAML mapping onto a dataclass instance."""
    names = {f.name for f in fields(instance)}
    for key, value in values.items():
        if key in names:
            setattr(instance, key, value)


@dataclass
class Config:
    """Application configuration combining environment variables and YAML config."""

    # Indexing service credentials from environment
    service_account_email: str = ""
    private_key: str = ""
    service_account_file: Optional[str] = None

    blog_url: str = ""
    feed_url: Optional[str] = None
    max_urls_per_run: int = 25
    request_delay_ms: int = 2000
    scrape_limit: int = 20
    session_dedup: bool = True

    http: HttpConfig = field(default_factory=HttpConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    prioritizer: PrioritizerConfig = field(default_factory=PrioritizerConfig)
    schedule: ScheduleConfig = field(default_factory=ScheduleConfig)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)

    # Environment values that could not be parsed, reported by validate()
    env_errors: List[str] = field(default_factory=list, repr=False, compare=False)

    @classmethod
    def from_files(cls, config_path: Optional[str] = None, env_path: Optional[str] = None) -> "Config":
        """
        Load configuration from a YAML file and environment variables.

        Environment variables take precedence over YAML values for the options
        they cover, so deployments can keep secrets out of the YAML file.

        Args:
            config_path: Optional path to YAML configuration file
            env_path: Optional path to .env file (defaults to .env in current directory)

        Returns:
            Config instance with merged configuration
        """
        if env_path:
            load_dotenv(env_path)
        else:
            load_dotenv()

        config = cls()

        if config_path and os.path.exists(config_path):
            with open(config_path, "r", encoding="utf-8") as file:
                yaml_config = yaml.safe_load(file) or {}

            nested = {
                "http": config.http,
                "retry": config.retry,
                "prioritizer": config.prioritizer,
                "schedule": config.schedule,
                "monitoring": config.monitoring,
            }
            for key, value in yaml_config.items():
                if key in nested:
                    if isinstance(value, dict):
                        _update_dataclass(nested[key], value)
                elif hasattr(config, key) and key != "env_errors":
                    setattr(config, key, value)

        config.service_account_email = os.getenv(
            "GOOGLE_SERVICE_ACCOUNT_EMAIL", config.service_account_email
        )
        config.private_key = os.getenv("GOOGLE_PRIVATE_KEY", config.private_key)
        config.service_account_file = os.getenv(
            "GOOGLE_SERVICE_ACCOUNT_FILE", config.service_account_file or ""
        ) or None
        config.blog_url = os.getenv("BLOG_URL", config.blog_url)
        config.feed_url = os.getenv("RSS_FEED_URL", config.feed_url or "") or None
        config.schedule.cron = os.getenv("CHECK_INTERVAL", config.schedule.cron)
        config.schedule.run_once = _env_bool("RUN_ONCE", config.schedule.run_once)

        config.max_urls_per_run = _env_int("MAX_URLS_PER_RUN", config.max_urls_per_run, config.env_errors)
        config.request_delay_ms = _env_int("REQUEST_DELAY_MS", config.request_delay_ms, config.env_errors)

        # Keys stored in env vars usually carry escaped newlines
        config.private_key = config.private_key.replace("\\n", "\n")

        return config

    @property
    def resolved_feed_url(self) -> str:
        """Explicit feed URL, or the Blogger default feed derived from the blog URL."""
        if self.feed_url:
            return self.feed_url
        return f"{self.blog_url.rstrip('/')}/feeds/posts/default"

    @property
    def request_delay_sec(self) -> float:
        return max(self.request_delay_ms, 0) / 1000.0

    def credentials_info(self) -> Dict[str, str]:
        """Service-account info mapping accepted by google-auth."""
        return {
            "type": "service_account",
            "client_email": self.service_account_email,
            "private_key": self.private_key,
            "token_uri": "https://oauth2.googleapis.com/token",
        }

    def validate(self) -> List[str]:
        """
        Validate configuration and return a list of validation errors.

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = list(self.env_errors)

        if not self.service_account_file:
            if not self.service_account_email:
                errors.append("Missing GOOGLE_SERVICE_ACCOUNT_EMAIL in environment")
            if not self.private_key:
                errors.append("Missing GOOGLE_PRIVATE_KEY in environment")
        elif not os.path.exists(self.service_account_file):
            errors.append(f"Service account file not found: {self.service_account_file}")

        if not self.blog_url:
            errors.append("Missing BLOG_URL in environment")
        elif urlparse(self.blog_url).scheme not in ("http", "https"):
            errors.append("BLOG_URL must be an absolute http(s) URL")

        if self.feed_url and urlparse(self.feed_url).scheme not in ("http", "https"):
            errors.append("RSS_FEED_URL must be an absolute http(s) URL")

        if self.max_urls_per_run <= 0:
            errors.append("max_urls_per_run must be greater than 0")
        if self.request_delay_ms < 0:
            errors.append("request_delay_ms must not be negative")
        if self.scrape_limit <= 0:
            errors.append("scrape_limit must be greater than 0")
        if self.retry.max_attempts <= 0:
            errors.append("retry.max_attempts must be greater than 0")
        if self.http.fetch_timeout_sec <= 0:
            errors.append("http.fetch_timeout_sec must be greater than 0")

        if not self.schedule.run_once and len(self.schedule.cron.split()) != 5:
            errors.append(f"CHECK_INTERVAL is not a 5-field cron expression: {self.schedule.cron!r}")

        return errors
