"""
Configuration validation at application startup.

Validates that broker, subscription and logging settings are usable before
the worker connects, providing clear error messages for invalid values.
"""

import re
from typing import Any, List
from dataclasses import dataclass

from core.logging import get_logger
from core.utils.exceptions import ConfigurationError
from .settings import Environment, Settings

logger = get_logger(__name__, component="config")

# Legal Kafka topic names
_TOPIC_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
_TOPIC_MAX_LENGTH = 249
_VALID_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


@dataclass
class ValidationResult:
    """Result of a configuration validation check"""
    is_valid: bool
    component: str
    message: str
    severity: str = "error"  # "error", "warning", "info"


class ConfigurationValidator:
    """
    Startup configuration validator.

    Runs every check, collects the results, and reports whether any error
    level result was recorded.
    """

    def __init__(self, settings: Settings):
        self.settings = settings
        self.validation_results: List[ValidationResult] = []

    def validate_all(self) -> bool:
        """
        Run all validation checks.

        Returns:
            bool: True if no error level check failed
        """
        self.validation_results = []

        self._validate_bootstrap_servers()
        self._validate_consumer_settings()
        self._validate_timeouts()
        self._validate_processing_settings()
        self._validate_logging_settings()

        errors = [r for r in self.validation_results if r.severity == "error" and not r.is_valid]
        warnings = [r for r in self.validation_results if r.severity == "warning" and not r.is_valid]

        for result in errors:
            logger.error("Configuration check failed", check=result.component, reason=result.message)
        for result in warnings:
            logger.warning("Configuration warning", check=result.component, reason=result.message)

        return not errors

    @property
    def errors(self) -> List[ValidationResult]:
        return [r for r in self.validation_results if r.severity == "error" and not r.is_valid]

    def _add_result(self, is_valid: bool, component: str, message: str, severity: str = "error"):
        self.validation_results.append(ValidationResult(is_valid, component, message, severity))

    def _validate_bootstrap_servers(self):
        addresses = self.settings.redpanda.broker_addresses
        if not addresses:
            self._add_result(False, "redpanda.bootstrap_servers", "At least one broker address is required")
            return

        for address in addresses:
            host, sep, port = address.rpartition(":")
            if not sep or not host:
                self._add_result(False, "redpanda.bootstrap_servers",
                                 f"Broker address '{address}' must be host:port")
            elif not port.isdigit() or not 0 < int(port) < 65536:
                self._add_result(False, "redpanda.bootstrap_servers",
                                 f"Broker address '{address}' has an invalid port")
            else:
                self._add_result(True, "redpanda.bootstrap_servers", f"Broker address '{address}' OK", "info")

        if not self.settings.redpanda.client_id:
            self._add_result(False, "redpanda.client_id", "Client id is empty", "warning")

    def _validate_consumer_settings(self):
        topic = self.settings.consumer.topic
        if not topic:
            self._add_result(False, "consumer.topic", "Topic name is required")
        elif topic in (".", ".."):
            self._add_result(False, "consumer.topic", f"Topic name '{topic}' is not allowed")
        elif len(topic) > _TOPIC_MAX_LENGTH:
            self._add_result(False, "consumer.topic",
                             f"Topic name exceeds {_TOPIC_MAX_LENGTH} characters")
        elif not _TOPIC_PATTERN.match(topic):
            self._add_result(False, "consumer.topic",
                             f"Topic name '{topic}' may only contain letters, digits, '.', '_' and '-'")
        else:
            self._add_result(True, "consumer.topic", f"Topic '{topic}' OK", "info")

        if not self.settings.consumer.group_id:
            self._add_result(False, "consumer.group_id", "Consumer group id is required")

        if self.settings.consumer.from_beginning and self.settings.environment == Environment.PRODUCTION:
            self._add_result(
                False, "consumer.from_beginning",
                "New consumer groups will replay the whole retained topic", "warning"
            )

    def _validate_timeouts(self):
        redpanda = self.settings.redpanda
        if redpanda.heartbeat_interval_ms >= redpanda.session_timeout_ms:
            self._add_result(
                False, "redpanda.heartbeat_interval_ms",
                "Heartbeat interval must be lower than session timeout"
            )

    def _validate_processing_settings(self):
        delay = self.settings.processing.delay_seconds
        if delay * 1000 >= self.settings.redpanda.max_poll_interval_ms:
            self._add_result(
                False, "processing.delay_seconds",
                "Processing delay exceeds max poll interval; expect rebalances",
                "warning"
            )

    def _validate_logging_settings(self):
        level = self.settings.logging.level.upper()
        if level not in _VALID_LOG_LEVELS:
            self._add_result(False, "logging.level", f"Unknown log level '{self.settings.logging.level}'")


def validate_startup_configuration(settings: Settings) -> bool:
    """Validate configuration before the worker connects to the broker."""
    return ConfigurationValidator(settings).validate_all()


def require_valid_configuration(settings: Settings) -> None:
    """Raise ``ConfigurationError`` for the first failed check, listing every failure."""
    validator = ConfigurationValidator(settings)
    if validator.validate_all():
        return

    failures = validator.errors
    first = failures[0]
    raise ConfigurationError(
        f"Invalid configuration: {first.message}",
        config_field=first.component,
        config_value=_lookup(settings, first.component),
        details={"errors": [{"field": r.component, "reason": r.message} for r in failures]},
    )


def _lookup(settings: Settings, dotted: str) -> Any:
    value: Any = settings
    for part in dotted.split("."):
        value = getattr(value, part)
    return value
