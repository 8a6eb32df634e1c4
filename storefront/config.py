import os
from dataclasses import dataclass, field

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return int(value)


@dataclass(frozen=True)
class Settings:
    """Runtime configuration for the storefront service.

    Built once at start-up and handed to ``create_app``. Nothing else in
    the package reads the environment.
    """

    database_url: str = "sqlite:///./storefront.db"

    # Event publishing: "log" writes events to the logger, "rabbitmq" sends
    # them to a topic exchange.
    events_backend: str = "log"
    rabbitmq_host: str = "rabbitmq"
    rabbitmq_exchange: str = "events"
    rabbitmq_connect_retries: int = 5
    rabbitmq_retry_seconds: float = 5.0

    default_page_limit: int = 10
    max_page_limit: int = 100

    # Whether cancelling an order puts its quantities back on the shelf.
    restock_on_cancel: bool = False

    log_level: str = "INFO"
    cors_origins: list[str] = field(default_factory=lambda: ["http://localhost:5173"])

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "http://localhost:5173")
        return cls(
            database_url=os.getenv("DATABASE_URL", cls.database_url),
            events_backend=os.getenv("EVENTS_BACKEND", cls.events_backend).strip().lower(),
            rabbitmq_host=os.getenv("RABBITMQ_HOST", cls.rabbitmq_host),
            rabbitmq_exchange=os.getenv("RABBITMQ_EXCHANGE", cls.rabbitmq_exchange),
            rabbitmq_connect_retries=_env_int("RABBITMQ_CONNECT_RETRIES", cls.rabbitmq_connect_retries),
            rabbitmq_retry_seconds=float(os.getenv("RABBITMQ_RETRY_SECONDS", cls.rabbitmq_retry_seconds)),
            default_page_limit=_env_int("DEFAULT_PAGE_LIMIT", cls.default_page_limit),
            max_page_limit=_env_int("MAX_PAGE_LIMIT", cls.max_page_limit),
            restock_on_cancel=_env_bool("RESTOCK_ON_CANCEL", cls.restock_on_cancel),
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
        )
