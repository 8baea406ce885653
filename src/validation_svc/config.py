"""Configuration for the validation service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class ServerConfig:
    """HTTP server configuration."""
    host: str = "0.0.0.0"
    port: int = 8060
    reload: bool = False


@dataclass
class TelemetryConfig:
    """Notification delivery configuration."""
    enabled: bool = True
    sink_type: str = "console"  # console | file
    sink_config: dict[str, Any] = field(default_factory=dict)

    # Batching
    batch_size: int = 100
    flush_interval_seconds: float = 1.0
    # Send buffered events as soon as a request is confirmed
    flush_on_confirm: bool = True

    # Queue
    max_queue_size: int = 10000


@dataclass
class ValidationConfig:
    """Validator authority and request persistence."""
    # Addresses allowed to confirm pending requests
    validators: list[str] = field(default_factory=list)

    # Let any caller confirm (development only)
    allow_any_validator: bool = False

    # YAML snapshot of the request logs (None = in-memory only)
    requests_file: str | None = None

    # Save the snapshot after every mutation made through the API
    auto_save: bool = True


@dataclass
class LedgerConfig:
    """Seed data for the in-memory ledger."""
    # asset id -> owner address
    assets: dict[int, str] = field(default_factory=dict)

    def __post_init__(self):
        self.assets = {int(k): v for k, v in self.assets.items()}


@dataclass
class Config:
    """Main configuration container."""
    server: ServerConfig = field(default_factory=ServerConfig)
    telemetry: TelemetryConfig = field(default_factory=TelemetryConfig)
    validation: ValidationConfig = field(default_factory=ValidationConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            server=ServerConfig(**data.get("server", {})),
            telemetry=TelemetryConfig(**data.get("telemetry", {})),
            validation=ValidationConfig(**data.get("validation", {})),
            ledger=LedgerConfig(**data.get("ledger", {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)
