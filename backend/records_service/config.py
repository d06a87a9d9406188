"""
Records Service: Application Configuration
============================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or .env file),
       validates types/ranges, and provides a singleton `settings` object.
       The MongoDB part is handed to the connection provider as an explicit,
       immutable StoreConfig.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated during app startup.
"""

from typing import List
from urllib.parse import quote_plus

from pydantic import BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings

# Address format understood by the MongoDB driver
CONNECTION_STRING_TEMPLATE = "mongodb://{username}:{password}@{endpoint}"


class StoreConfig(BaseModel):
    """
    Everything the connection provider needs to reach the document store.

    Built from Settings at startup. Construction fails with a pydantic
    ValidationError when a required field is empty.
    """

    username: str = Field(min_length=1)
    password: SecretStr
    endpoint: str = Field(min_length=1)
    database: str = Field(default="records", min_length=1)
    collection: str = Field(default="records", min_length=1)
    # Seconds from the moment a connection is requested
    timeout: float = Field(default=5.0, gt=0)

    model_config = {"frozen": True}

    @field_validator("password")
    @classmethod
    def password_not_empty(cls, v: SecretStr) -> SecretStr:
        if not v.get_secret_value():
            raise ValueError("password must not be empty")
        return v

    @property
    def uri(self) -> str:
        """Connection address with credentials percent-escaped."""
        return CONNECTION_STRING_TEMPLATE.format(
            username=quote_plus(self.username),
            password=quote_plus(self.password.get_secret_value()),
            endpoint=self.endpoint,
        )

    @property
    def redacted_uri(self) -> str:
        """Connection address safe for log output."""
        return CONNECTION_STRING_TEMPLATE.format(
            username=quote_plus(self.username),
            password="****",
            endpoint=self.endpoint,
        )


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    MONGODB_USERNAME, MONGODB_PASSWORD and MONGODB_ENDPOINT have no usable
    default and must be provided; everything else is optional.
    """

    # ── MongoDB ───────────────────────────────────────────────────────────
    mongodb_username: str = Field(default="")
    mongodb_password: SecretStr = Field(default=SecretStr(""))
    # host[:port][,host2[:port]...][/?options]
    mongodb_endpoint: str = Field(default="")
    mongodb_database: str = Field(default="records")
    mongodb_collection: str = Field(default="records")
    mongodb_timeout: float = Field(default=5.0, gt=0, le=120)

    # ── CORS ──────────────────────────────────────────────────────────────
    # Comma-separated origins
    cors_origins: str = Field(default="*")

    @property
    def cors_origins_list(self) -> List[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8080, ge=1, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # Routes that exist only to exercise error reporting
    debug_routes: bool = Field(default=False)

    # ── Error Reporting (Sentry) ──────────────────────────────────────────
    # Empty DSN disables reporting entirely
    sentry_dsn: str = Field(default="")
    sentry_environment: str = Field(default="development")
    sentry_traces_sample_rate: float = Field(default=0.0, ge=0.0, le=1.0)

    # ── Metrics (Prometheus) ──────────────────────────────────────────────
    metrics_path: str = Field(default="/metrics")
    # Non-zero starts a second listener serving only metrics
    metrics_port: int = Field(default=0, ge=0, le=65535)
    # Requests slower than this (seconds) are counted as slow
    metrics_slow_time: float = Field(default=10.0, gt=0)
    # Comma-separated histogram bucket bounds in seconds
    metrics_buckets: str = Field(default="0.1,0.3,1.2,5,10")

    @field_validator("metrics_buckets")
    @classmethod
    def validate_metrics_buckets(cls, v: str) -> str:
        try:
            bounds = [float(b) for b in v.split(",") if b.strip()]
        except ValueError:
            raise ValueError(f"Invalid metrics_buckets '{v}'. Expected comma-separated numbers.")
        if not bounds or bounds != sorted(bounds):
            raise ValueError(f"Invalid metrics_buckets '{v}'. Bounds must be non-empty and ascending.")
        return v

    @property
    def metrics_buckets_list(self) -> List[float]:
        return [float(b) for b in self.metrics_buckets.split(",") if b.strip()]

    # ── Pydantic Settings Config ──────────────────────────────────────────
    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,  # MONGODB_ENDPOINT and mongodb_endpoint both work
        "extra": "ignore",
    }

    def validate_required(self) -> None:
        """
        What:  Validates that the store credentials are configured.
        When:  Called during app startup (lifespan).
        How:   Collects every missing variable and raises one ValueError.
        """
        errors = []
        if not self.mongodb_username:
            errors.append("MONGODB_USERNAME is not set.")
        if not self.mongodb_password.get_secret_value():
            errors.append("MONGODB_PASSWORD is not set.")
        if not self.mongodb_endpoint:
            errors.append("MONGODB_ENDPOINT is not set (e.g. 'localhost:27017').")
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )

    def store_config(self) -> StoreConfig:
        """Build the connection provider's configuration (validates first)."""
        self.validate_required()
        return StoreConfig(
            username=self.mongodb_username,
            password=self.mongodb_password,
            endpoint=self.mongodb_endpoint,
            database=self.mongodb_database,
            collection=self.mongodb_collection,
            timeout=self.mongodb_timeout,
        )


# Singleton instance: imported throughout the application
settings = Settings()
