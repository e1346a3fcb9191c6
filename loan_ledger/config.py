"""Configuration management for loan-ledger."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from loan_ledger.exceptions import ConfigurationError

STORAGE_BACKENDS = ("memory", "json", "postgres")
SUPPORTED_LEAD_TIMES = {7, 3, 1}


@dataclass
class KafkaConfig:
    """Kafka producer configuration for domain events and reminders."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    linger_ms: int = 5
    retries: int = 3
    topic_prefix: str = "loanledger"

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "retries": self.retries,
        }

    def topic(self, name: str) -> str:
        """Get a fully qualified topic name."""
        return f"{self.topic_prefix}.{name}"


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration."""

    host: str = "localhost"
    port: int = 5432
    database: str = "loanledger"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class StorageConfig:
    """Which persistence backend holds loans and user profiles."""

    backend: str = "memory"
    json_path: Path = field(default_factory=lambda: Path("loanledger.json"))

    def __post_init__(self) -> None:
        if self.backend not in STORAGE_BACKENDS:
            raise ConfigurationError(
                f"Unknown storage backend {self.backend!r}, expected one of {STORAGE_BACKENDS}"
            )


@dataclass
class ReminderConfig:
    """Reminder classification settings."""

    thresholds: tuple[int, ...] = (7, 3, 1)
    topic: str = "reminders"
    currency_symbol: str = "₹"

    def __post_init__(self) -> None:
        unsupported = set(self.thresholds) - SUPPORTED_LEAD_TIMES
        if unsupported:
            raise ConfigurationError(
                f"Unsupported reminder thresholds {sorted(unsupported)}, "
                f"expected a subset of {sorted(SUPPORTED_LEAD_TIMES)}"
            )


@dataclass
class LedgerConfig:
    """Main configuration for loan-ledger."""

    storage: StorageConfig = field(default_factory=StorageConfig)
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig | None = None
    reminders: ReminderConfig = field(default_factory=ReminderConfig)
    log_level: str = "INFO"
    log_format: str = "standard"

    @classmethod
    def from_env(cls) -> "LedgerConfig":
        """Create config from environment variables."""
        import os

        storage = StorageConfig(
            backend=os.getenv("LEDGER_STORAGE", "memory"),
            json_path=Path(os.getenv("LEDGER_JSON_PATH", "loanledger.json")),
        )

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "loanledger"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        kafka = None
        if os.getenv("KAFKA_BOOTSTRAP_SERVERS"):
            kafka = KafkaConfig(
                bootstrap_servers=os.environ["KAFKA_BOOTSTRAP_SERVERS"],
                acks=os.getenv("KAFKA_ACKS", "all"),
                topic_prefix=os.getenv("KAFKA_TOPIC_PREFIX", "loanledger"),
            )

        thresholds_str = os.getenv("REMINDER_THRESHOLDS")
        try:
            thresholds = (
                tuple(int(part) for part in thresholds_str.split(","))
                if thresholds_str
                else (7, 3, 1)
            )
        except ValueError as e:
            raise ConfigurationError(f"Invalid REMINDER_THRESHOLDS: {thresholds_str!r}") from e

        reminders = ReminderConfig(
            thresholds=thresholds,
            currency_symbol=os.getenv("CURRENCY_SYMBOL", "₹"),
        )

        return cls(
            storage=storage,
            postgres=postgres,
            kafka=kafka,
            reminders=reminders,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard"),
        )
