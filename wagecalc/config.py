from __future__ import annotations

import logging
import os
from decimal import Decimal, InvalidOperation
from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, field_validator

LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


def _env_optional(name: str) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return None
    return value


def _env_decimal(name: str, default: str) -> Decimal:
    raw = os.getenv(name, default)
    try:
        return Decimal(raw)
    except InvalidOperation as exc:
        raise ValueError(f"{name} must be a decimal number, got {raw!r}") from exc


class Settings(BaseModel):
    tax_brackets_path: str | None = Field(default_factory=lambda: _env_optional("WAGECALC_TAX_BRACKETS"))
    health_insurance_schema_path: str | None = Field(
        default_factory=lambda: _env_optional("WAGECALC_HEALTH_INSURANCE_SCHEMA")
    )
    default_contribution_percentage: Decimal = Field(
        default_factory=lambda: _env_decimal("WAGECALC_CONTRIBUTION_PERCENTAGE", "5.0")
    )
    health_insurance_threshold: Decimal = Field(
        default_factory=lambda: _env_decimal("WAGECALC_HEALTH_INSURANCE_THRESHOLD", "450.00")
    )
    log_level: str = Field(default_factory=lambda: os.getenv("WAGECALC_LOG_LEVEL", "INFO"))
    log_file: str | None = Field(default_factory=lambda: _env_optional("WAGECALC_LOG_FILE"))
    build_version: str = Field(default_factory=lambda: os.getenv("BUILD_VERSION", "dev"))
    build_sha: str = Field(default_factory=lambda: os.getenv("BUILD_SHA", "local"))

    model_config = ConfigDict(frozen=True, validate_default=True)

    @field_validator("default_contribution_percentage")
    @classmethod
    def _validate_contribution(cls, value: Decimal) -> Decimal:
        if value < 0 or value >= 100:
            raise ValueError(f"WAGECALC_CONTRIBUTION_PERCENTAGE must be in [0, 100), got {value}")
        return value

    @field_validator("health_insurance_threshold")
    @classmethod
    def _validate_threshold(cls, value: Decimal) -> Decimal:
        if value <= 0:
            raise ValueError("WAGECALC_HEALTH_INSURANCE_THRESHOLD must be positive")
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        upper = (value or "INFO").upper()
        if upper not in LOG_LEVELS:
            raise ValueError(f"WAGECALC_LOG_LEVEL must be one of {sorted(LOG_LEVELS)}, got {upper}")
        return upper

    def logging_level(self) -> int:
        return getattr(logging, self.log_level)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
