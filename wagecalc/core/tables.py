from __future__ import annotations

import json
import logging
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import TypeAdapter, ValidationError

from wagecalc.core.brackets import validate_brackets
from wagecalc.core.errors import InvalidConfigurationError
from wagecalc.core.models import HealthInsuranceSchema, TaxBracket

logger = logging.getLogger("wagecalc").getChild("tables")

_BRACKETS_ADAPTER = TypeAdapter(tuple[TaxBracket, ...])


def _read_json(path: Path) -> Any:
    if not path.exists():
        raise InvalidConfigurationError(f"Table file not found at {path}")
    try:
        return json.loads(path.read_text(encoding="utf-8"), parse_float=Decimal)
    except json.JSONDecodeError as exc:
        raise InvalidConfigurationError(f"Invalid JSON in {path}: {exc}") from exc


def load_tax_brackets(path: str | Path) -> tuple[TaxBracket, ...]:
    """Read a bracket schedule: a JSON array of ``{"threshold", "rates"}`` objects."""
    path = Path(path)
    data = _read_json(path)
    if not isinstance(data, list):
        raise InvalidConfigurationError(f"Expected JSON array of tax brackets in {path}")
    try:
        brackets = _BRACKETS_ADAPTER.validate_python(data)
    except ValidationError as exc:
        raise InvalidConfigurationError(f"Invalid tax bracket table {path}: {exc}") from exc
    validate_brackets(brackets)
    logger.info("Loaded %s tax brackets from %s", len(brackets), path)
    return brackets


def load_health_insurance_schema(path: str | Path) -> HealthInsuranceSchema:
    """Read ``{"premium": .., "members": [{"id": .., "premium": ..}]}``."""
    path = Path(path)
    data = _read_json(path)
    if not isinstance(data, dict):
        raise InvalidConfigurationError(f"Expected JSON object for health insurance schema in {path}")
    try:
        schema = HealthInsuranceSchema.model_validate(data)
    except ValidationError as exc:
        raise InvalidConfigurationError(f"Invalid health insurance schema {path}: {exc}") from exc
    logger.info(
        "Loaded health insurance schema from %s with %s member categories",
        path,
        len(schema.member_premiums),
    )
    return schema


__all__ = ["load_tax_brackets", "load_health_insurance_schema"]
