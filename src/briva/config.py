"""
Configuration dataclasses for the BRIVA client.

This module defines the partner credentials, the client settings that
select the environment and tune HTTP behaviour, and logging configuration.
Values can be supplied directly or loaded from environment variables (and
a .env file).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

from .enums import LogLevel
from .exceptions import AuthenticationError, ConfigurationError
from .signing import load_rsa_private_key

PRODUCTION_BASE_URL = "https://partner.api.bri.co.id"
SANDBOX_BASE_URL = "https://sandbox.partner.api.bri.co.id"

DEFAULT_TIMEOUT_SECONDS = 30.0

_TRUE_VALUES = ("1", "true", "yes", "on")

OUTPUT_FORMATS = ("json", "text", "both")


@dataclass(frozen=True)
class Credentials:
    """Partner credentials issued by BRI. Secrets are kept out of repr."""

    partner_id: str
    client_id: str
    client_secret: str = field(repr=False)
    private_key: str = field(repr=False)  # PEM, PKCS#1 or PKCS#8
    channel_id: str


@dataclass
class LoggingConfig:
    """Logging configuration."""

    level: str = "info"
    output_format: str = "text"  # 'json', 'text', 'both'

    @property
    def log_level(self) -> LogLevel:
        return LogLevel(self.level.lower())


@dataclass
class ClientConfig:
    """Main client configuration."""

    credentials: Credentials
    is_sandbox: bool = False
    timeout: float = DEFAULT_TIMEOUT_SECONDS
    debug: bool = False  # Log full HTTP requests/responses
    base_url_override: Optional[str] = None
    verify_tls: bool = True
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @property
    def base_url(self) -> str:
        """Resolved API base URL, without a trailing slash."""
        if self.base_url_override:
            return self.base_url_override.rstrip("/")
        return SANDBOX_BASE_URL if self.is_sandbox else PRODUCTION_BASE_URL

    def validate(self) -> list[str]:
        """
        Check the configuration without raising.

        Returns:
            List of human-readable problems; empty when the config is usable
        """
        errors = []
        creds = self.credentials
        for name in ("partner_id", "client_id", "client_secret", "channel_id"):
            if not getattr(creds, name).strip():
                errors.append(f"{name} is required")

        if not creds.private_key.strip():
            errors.append("private_key is required")
        else:
            try:
                load_rsa_private_key(creds.private_key)
            except AuthenticationError as e:
                errors.append(f"private_key is invalid: {e.message}")

        if self.timeout <= 0:
            errors.append("timeout must be positive")

        if self.base_url_override and not self.base_url_override.startswith("https://"):
            errors.append("base_url must use HTTPS")

        if self.logging.level.lower() not in {level.value for level in LogLevel}:
            errors.append(f"unknown log level: {self.logging.level}")
        if self.logging.output_format not in OUTPUT_FORMATS:
            errors.append(f"unknown log format: {self.logging.output_format}")

        return errors

    @classmethod
    def from_env(
        cls,
        prefix: str = "BRIVA_",
        env_file: Optional[Path] = None,
    ) -> "ClientConfig":
        """
        Build config from environment variables.

        A .env file is loaded first (without overriding variables that are
        already set). The private key is read from {prefix}PRIVATE_KEY, or
        from the file named by {prefix}PRIVATE_KEY_FILE.

        Raises:
            ConfigurationError: If a required variable is missing
        """
        load_dotenv(dotenv_path=env_file or find_dotenv(usecwd=True))

        def req(name: str) -> str:
            value = os.getenv(prefix + name, "").strip()
            if not value:
                raise ConfigurationError(
                    code="missing_env",
                    message=f"Missing env var: {prefix}{name}",
                    details={"variable": prefix + name},
                )
            return value

        private_key = os.getenv(prefix + "PRIVATE_KEY", "")
        key_file = os.getenv(prefix + "PRIVATE_KEY_FILE", "")
        if not private_key and key_file:
            try:
                private_key = Path(key_file).read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(
                    code="io_error",
                    message=f"Failed to read private key file: {e}",
                    details={"file_path": key_file},
                ) from e
        if not private_key.strip():
            raise ConfigurationError(
                code="missing_env",
                message=f"Missing env var: {prefix}PRIVATE_KEY or {prefix}PRIVATE_KEY_FILE",
                details={"variable": prefix + "PRIVATE_KEY"},
            )

        try:
            timeout = float(os.getenv(prefix + "TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS)))
        except ValueError as e:
            raise ConfigurationError(
                code="invalid_env",
                message=f"{prefix}TIMEOUT must be a number",
                details={"variable": prefix + "TIMEOUT"},
            ) from e

        # Literal "\n" sequences are common when a PEM is stored on one line
        private_key = private_key.replace("\\n", "\n")

        return cls(
            credentials=Credentials(
                partner_id=req("PARTNER_ID"),
                client_id=req("CLIENT_ID"),
                client_secret=req("CLIENT_SECRET"),
                private_key=private_key,
                channel_id=req("CHANNEL_ID"),
            ),
            is_sandbox=os.getenv(prefix + "SANDBOX", "0").lower() in _TRUE_VALUES,
            timeout=timeout,
            debug=os.getenv(prefix + "DEBUG", "0").lower() in _TRUE_VALUES,
            base_url_override=os.getenv(prefix + "BASE_URL") or None,
            logging=LoggingConfig(
                level=os.getenv(prefix + "LOG_LEVEL", "info"),
                output_format=os.getenv(prefix + "LOG_FORMAT", "text"),
            ),
        )
