"""Configuration validation utilities."""

from dataclasses import dataclass
from typing import Any
from urllib.parse import urlparse

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")
VALID_SYNC_METHODS = ("http", "log")


@dataclass(frozen=True)
class ValidationError:
    """Represents a configuration validation error."""
    field: str
    message: str
    value: Any


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


class ConfigValidator:
    """Validates configuration parameters."""

    @staticmethod
    def validate_engine_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate engine parameters."""
        errors = []

        for flag in ("strict_ids", "last_stop_ends_day"):
            if flag in params and not isinstance(params[flag], bool):
                errors.append(ValidationError(
                    field=flag,
                    message="Must be a boolean",
                    value=params[flag]
                ))

        return errors

    @staticmethod
    def validate_template_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate template parameters."""
        errors = []

        if "fallback_total_days" in params:
            value = params["fallback_total_days"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(ValidationError(
                    field="fallback_total_days",
                    message="Must be a positive integer",
                    value=value
                ))

        if "fallback_theme" in params:
            value = params["fallback_theme"]
            if not isinstance(value, str) or not value.strip():
                errors.append(ValidationError(
                    field="fallback_theme",
                    message="Must be a non-empty string",
                    value=value
                ))

        if params.get("catalog_path") is not None and not isinstance(params["catalog_path"], str):
            errors.append(ValidationError(
                field="catalog_path",
                message="Must be a file path string",
                value=params["catalog_path"]
            ))

        return errors

    @staticmethod
    def validate_persistence_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate persistence parameters."""
        errors = []

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ValidationError(
                field="enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        for name in ("db_path", "storage_key"):
            if name in params:
                value = params[name]
                if not isinstance(value, str) or not value:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a non-empty string",
                        value=value
                    ))

        if "version" in params:
            value = params["version"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="version",
                    message="Must be a non-negative integer",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_sync_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate sync parameters."""
        errors = []

        if "enabled" in params and not isinstance(params["enabled"], bool):
            errors.append(ValidationError(
                field="enabled",
                message="Must be a boolean",
                value=params["enabled"]
            ))

        method = params.get("method", "http")
        if method not in VALID_SYNC_METHODS:
            errors.append(ValidationError(
                field="method",
                message=f"Must be one of {', '.join(VALID_SYNC_METHODS)}",
                value=method
            ))

        base_url = params.get("base_url")
        if base_url is not None:
            parsed = urlparse(base_url) if isinstance(base_url, str) else None
            if not parsed or parsed.scheme not in ("http", "https") or not parsed.netloc:
                errors.append(ValidationError(
                    field="base_url",
                    message="Must be an absolute http(s) URL",
                    value=base_url
                ))
        elif params.get("enabled") and method == "http":
            errors.append(ValidationError(
                field="base_url",
                message="Required when http sync is enabled",
                value=base_url
            ))

        if params.get("headers") is not None and not isinstance(params["headers"], dict):
            errors.append(ValidationError(
                field="headers",
                message="Must be a mapping of header names to values",
                value=params["headers"]
            ))

        for name in ("timeout_seconds", "max_attempts", "batch_size"):
            if name in params:
                value = params[name]
                if not isinstance(value, int) or isinstance(value, bool) or value <= 0:
                    errors.append(ValidationError(
                        field=name,
                        message="Must be a positive integer",
                        value=value
                    ))

        if "max_retries" in params:
            value = params["max_retries"]
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                errors.append(ValidationError(
                    field="max_retries",
                    message="Must be a non-negative integer",
                    value=value
                ))

        if "retry_delay_seconds" in params:
            value = params["retry_delay_seconds"]
            if not _is_number(value) or value < 0:
                errors.append(ValidationError(
                    field="retry_delay_seconds",
                    message="Must be a non-negative number",
                    value=value
                ))

        return errors

    @staticmethod
    def validate_logging_params(params: dict[str, Any]) -> list[ValidationError]:
        """Validate logging parameters."""
        errors = []

        if "level" in params:
            value = params["level"]
            if not isinstance(value, str) or value.upper() not in VALID_LOG_LEVELS:
                errors.append(ValidationError(
                    field="level",
                    message=f"Must be one of {', '.join(VALID_LOG_LEVELS)}",
                    value=value
                ))

        if "format_json" in params and not isinstance(params["format_json"], bool):
            errors.append(ValidationError(
                field="format_json",
                message="Must be a boolean",
                value=params["format_json"]
            ))

        return errors

    @staticmethod
    def validate_config(config: dict[str, Any]) -> list[ValidationError]:
        """Validate complete configuration; fields are prefixed with their section."""
        validators = {
            "engine": ConfigValidator.validate_engine_params,
            "templates": ConfigValidator.validate_template_params,
            "persistence": ConfigValidator.validate_persistence_params,
            "sync": ConfigValidator.validate_sync_params,
            "logging": ConfigValidator.validate_logging_params,
        }

        errors = []
        for section, validator in validators.items():
            params = config.get(section) or {}
            if not isinstance(params, dict):
                errors.append(ValidationError(
                    field=section,
                    message="Section must be a mapping",
                    value=params
                ))
                continue

            for error in validator(params):
                errors.append(ValidationError(
                    field=f"{section}.{error.field}",
                    message=error.message,
                    value=error.value
                ))

        return errors
