import logging
import logging.handlers
from pathlib import Path

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Service configuration.

    Precedence: constructor arguments > NOTIFYHUB_* environment variables > .env file > defaults.
    List and dict values are read from the environment as JSON.
    """

    database_url: str = "postgresql://notifyhub:notifyhub@db:5432/notifyhub"
    redis_url: str = ""

    # Dispatch
    default_channel: str = "push"
    enabled_channels: list[str] = ["email", "sms", "push"]

    # Channel rate limiting (fixed window)
    rate_limit_default: int = Field(50, gt=0)
    rate_limits: dict[str, int] = {}
    rate_limit_window_seconds: float = Field(60.0, gt=0)
    rate_limit_backend: str = "memory"  # memory / redis
    rate_limit_fail_open: bool = True  # redis backend: admit dispatches while Redis is down

    # Send retries
    retry_max_attempts: int = Field(3, ge=1)
    retry_initial_delay: float = Field(0.5, ge=0)
    retry_max_delay: float = Field(5.0, ge=0)
    retry_backoff_multiplier: float = Field(2.0, ge=1)
    dispatch_timeout_seconds: float = Field(30.0, gt=0)

    # HTTP
    rate_limit_notify: str = "120/minute"
    cors_origins: str = "*"
    run_migrations: bool = True

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    log_max_bytes: int = 10_485_760  # 10 MB
    log_backup_count: int = 5

    model_config = {"env_file": ".env", "env_prefix": "NOTIFYHUB_"}

    @field_validator("default_channel", "rate_limit_backend")
    @classmethod
    def _normalize_name(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("enabled_channels")
    @classmethod
    def _normalize_channels(cls, value: list[str]) -> list[str]:
        channels = [c.strip().lower() for c in value if c and c.strip()]
        if not channels:
            raise ValueError("at least one channel must be enabled")
        return channels

    @field_validator("rate_limits")
    @classmethod
    def _normalize_limits(cls, value: dict[str, int]) -> dict[str, int]:
        limits = {k.strip().lower(): v for k, v in value.items()}
        bad = [k for k, v in limits.items() if v <= 0]
        if bad:
            raise ValueError(f"rate limits must be positive: {', '.join(sorted(bad))}")
        return limits

    @model_validator(mode="after")
    def _check_default_channel(self) -> "Settings":
        if self.default_channel not in self.enabled_channels:
            raise ValueError(
                f"default_channel {self.default_channel!r} is not one of the enabled channels "
                f"({', '.join(self.enabled_channels)})"
            )
        if self.rate_limit_backend not in ("memory", "redis"):
            raise ValueError("rate_limit_backend must be 'memory' or 'redis'")
        return self

    @property
    def effective_database_url(self) -> str:
        if self.database_url.startswith("postgres://"):
            return "postgresql://" + self.database_url[len("postgres://"):]
        return self.database_url

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    def rate_limit_for(self, channel: str) -> int:
        return self.rate_limits.get(channel.strip().lower(), self.rate_limit_default)


settings = Settings()


_CONSOLE_FORMAT = logging.Formatter("%(asctime)s %(levelname)-8s %(name)s: %(message)s", datefmt="%H:%M:%S")
_FILE_FORMAT = logging.Formatter(
    "%(asctime)s %(levelname)-8s [%(name)s:%(funcName)s:%(lineno)d] %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

# Per-request noise from libraries we drive on every dispatch.
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore")


def _rotating_handler(path: Path, level: int, cfg: Settings) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=cfg.log_max_bytes,
        backupCount=cfg.log_backup_count,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(_FILE_FORMAT)
    return handler


def setup_logging(cfg: Settings | None = None) -> None:
    """Configure root logging from settings.

    Console gets INFO+. Unless ``log_dir`` is empty, ``notifyhub.log`` gets every
    level and ``notifyhub-error.log`` gets ERROR+, both size-rotated.
    Safe to call again: existing root handlers are replaced.
    """
    cfg = cfg or settings
    level = getattr(logging, cfg.log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    console = logging.StreamHandler()
    console.setLevel(logging.INFO)
    console.setFormatter(_CONSOLE_FORMAT)
    root.addHandler(console)

    if cfg.log_dir:
        log_dir = Path(cfg.log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        root.addHandler(_rotating_handler(log_dir / "notifyhub.log", logging.DEBUG, cfg))
        root.addHandler(_rotating_handler(log_dir / "notifyhub-error.log", logging.ERROR, cfg))

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).info(
        "Logging configured: level=%s, dir=%s", cfg.log_level.upper(), cfg.log_dir or "<console only>"
    )
