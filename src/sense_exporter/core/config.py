# src/sense_exporter/core/config.py
"""Configuration parsing and validation."""

from __future__ import annotations

import yaml
from pathlib import Path
from typing import Dict, Any, Optional, List
from dataclasses import dataclass, field
import logging
import os

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass
class ServerConfig:
    """HTTP listener configuration."""
    host: str = "0.0.0.0"
    port: int = 9553

    def validate(self) -> None:
        """Validate server configuration."""
        if not self.host:
            raise ValueError("Listen host cannot be empty")

        if not 1 <= self.port <= 65535:
            raise ValueError(f"Invalid port number: {self.port}")


@dataclass
class CollectionConfig:
    """Per-scrape collection settings."""
    timeout: float = 10.0  # per monitor, 0 disables the deadline
    request_timeout: float = 30.0  # upper bound for a single REST call

    def validate(self) -> None:
        """Validate collection configuration."""
        if self.timeout < 0:
            raise ValueError(f"timeout must be non-negative: {self.timeout}")

        if self.request_timeout <= 0:
            raise ValueError(f"request_timeout must be positive: {self.request_timeout}")


@dataclass
class AccountConfig:
    """Credentials for one Sense account."""
    email: str = ""
    password: Optional[str] = None
    password_file: Optional[Path] = None
    mfa_code: Optional[str] = None
    mfa_file: Optional[Path] = None
    mfa_command: Optional[str] = None

    def validate(self) -> None:
        """Validate account configuration."""
        if not self.email:
            raise ValueError("Account email cannot be empty")

        if not self.password and not self.password_file:
            raise ValueError(f"Account {self.email} needs a password or password_file")

        mfa_sources = [s for s in (self.mfa_code, self.mfa_file, self.mfa_command) if s]
        if len(mfa_sources) > 1:
            raise ValueError(f"Account {self.email} may set only one of mfa_code, mfa_file, mfa_command")

    def resolve_password(self) -> str:
        """Return the password, reading password_file if needed."""
        if self.password:
            return self.password
        if self.password_file is None:
            raise ConfigurationError(f"No password configured for {self.email}")
        try:
            return Path(self.password_file).read_text().strip()
        except OSError as e:
            raise ConfigurationError(f"Cannot read password file {self.password_file}: {e}") from e

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> AccountConfig:
        password_file = data.get("password_file")
        mfa_file = data.get("mfa_file")
        return cls(
            email=data.get("email", ""),
            password=data.get("password"),
            password_file=Path(password_file) if password_file else None,
            mfa_code=data.get("mfa_code"),
            mfa_file=Path(mfa_file) if mfa_file else None,
            mfa_command=data.get("mfa_command"),
        )


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"

    def validate(self) -> None:
        """Validate logging configuration."""
        if self.level not in ["DEBUG", "INFO", "WARNING", "ERROR"]:
            raise ValueError(f"Invalid log level: {self.level}")


class Config:
    """Main configuration container."""

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize configuration."""
        self.config_path = config_path
        self.data: Dict[str, Any] = {}

        # Initialize with defaults
        self.server = ServerConfig()
        self.collection = CollectionConfig()
        self.logging = LoggingConfig()
        self.accounts: List[AccountConfig] = []

        if config_path:
            self.load()
        else:
            self._merge_env_vars()
            self._update_from_dict()
            self.validate()

    def load(self) -> None:
        """Load configuration from file."""
        if not self.config_path:
            raise ValueError("No configuration path specified")

        if not self.config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")

        logger.info(f"Loading configuration from {self.config_path}")

        try:
            with open(self.config_path, 'r') as f:
                self.data = yaml.safe_load(f) or {}

            if not isinstance(self.data, dict):
                raise ConfigurationError(f"Configuration root must be a mapping: {self.config_path}")

            self._merge_env_vars()
            self._update_from_dict()
            self.validate()

            logger.info("Configuration loaded successfully")

        except yaml.YAMLError as e:
            logger.error(f"Failed to parse YAML configuration: {e}")
            raise
        except Exception as e:
            logger.error(f"Failed to load configuration: {e}")
            raise

    def _merge_env_vars(self) -> None:
        """Merge environment variables into configuration."""
        if "SENSE_EXPORTER_HOST" in os.environ:
            self.data.setdefault("server", {})["host"] = os.environ["SENSE_EXPORTER_HOST"]
        if "SENSE_EXPORTER_PORT" in os.environ:
            self.data.setdefault("server", {})["port"] = int(os.environ["SENSE_EXPORTER_PORT"])
        if "SENSE_EXPORTER_TIMEOUT" in os.environ:
            self.data.setdefault("collection", {})["timeout"] = float(os.environ["SENSE_EXPORTER_TIMEOUT"])
        if "SENSE_EXPORTER_LOG_LEVEL" in os.environ:
            self.data.setdefault("logging", {})["level"] = os.environ["SENSE_EXPORTER_LOG_LEVEL"]

        # A single account from the environment when the file lists none
        if "SENSE_EMAIL" in os.environ and not self.data.get("accounts"):
            account: Dict[str, Any] = {"email": os.environ["SENSE_EMAIL"]}
            if "SENSE_PASSWORD" in os.environ:
                account["password"] = os.environ["SENSE_PASSWORD"]
            if "SENSE_PASSWORD_FILE" in os.environ:
                account["password_file"] = os.environ["SENSE_PASSWORD_FILE"]
            if "SENSE_MFA_COMMAND" in os.environ:
                account["mfa_command"] = os.environ["SENSE_MFA_COMMAND"]
            self.data["accounts"] = [account]

    def _update_from_dict(self) -> None:
        """Update configuration objects from loaded data."""
        if "server" in self.data:
            server_data = self.data["server"] or {}
            self.server = ServerConfig(
                host=server_data.get("host", self.server.host),
                port=int(server_data.get("port", self.server.port)),
            )

        if "collection" in self.data:
            collection_data = self.data["collection"] or {}
            self.collection = CollectionConfig(
                timeout=float(collection_data.get("timeout", self.collection.timeout)),
                request_timeout=float(collection_data.get("request_timeout", self.collection.request_timeout)),
            )

        if "logging" in self.data:
            logging_data = self.data["logging"] or {}
            self.logging = LoggingConfig(
                level=str(logging_data.get("level", self.logging.level)).upper(),
            )

        if "accounts" in self.data:
            accounts_data = self.data["accounts"] or []
            if not isinstance(accounts_data, list):
                raise ConfigurationError("accounts must be a list")
            self.accounts = [AccountConfig.from_dict(a or {}) for a in accounts_data]

    def validate(self) -> None:
        """Validate all configuration sections."""
        try:
            self.server.validate()
            self.collection.validate()
            self.logging.validate()
            for account in self.accounts:
                account.validate()

            emails = [a.email for a in self.accounts]
            duplicates = {e for e in emails if emails.count(e) > 1}
            if duplicates:
                raise ValueError(f"Duplicate accounts: {', '.join(sorted(duplicates))}")
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary, masking secrets."""
        return {
            "server": {
                "host": self.server.host,
                "port": self.server.port,
            },
            "collection": {
                "timeout": self.collection.timeout,
                "request_timeout": self.collection.request_timeout,
            },
            "logging": {
                "level": self.logging.level,
            },
            "accounts": [
                {
                    "email": a.email,
                    "password": "********" if a.password else None,
                    "password_file": str(a.password_file) if a.password_file else None,
                    "mfa": "code" if a.mfa_code else "file" if a.mfa_file else "command" if a.mfa_command else None,
                }
                for a in self.accounts
            ],
        }


class ConfigValidator:
    """Validates configuration values."""

    @staticmethod
    def validate(config: Dict[str, Any]) -> bool:
        """Validate configuration dictionary."""
        try:
            temp_config = Config()
            temp_config.data = config
            temp_config._update_from_dict()
            temp_config.validate()
            return True
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            return False
