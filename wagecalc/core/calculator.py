from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from wagecalc.core.brackets import EngineResult, TaxEngine
from wagecalc.core.errors import InvalidConfigurationError
from wagecalc.core.health_insurance import HEALTH_INSURANCE_GROSS_THRESHOLD, HealthInsuranceAdjuster
from wagecalc.core.models import (
    CalculatedWage,
    HealthInsuranceSchema,
    TaxBracket,
    WageCalculationParameters,
)


class WageCalculator:
    """Gross/net wage conversion over an injected bracket schedule and premium schema.

    Instances hold only read-only configuration; both entry points are pure and
    may be called concurrently.
    """

    def __init__(
        self,
        tax_brackets: Iterable[TaxBracket],
        health_insurance_schema: HealthInsuranceSchema | None = None,
        *,
        health_insurance_threshold: Decimal = HEALTH_INSURANCE_GROSS_THRESHOLD,
    ):
        self._engine = TaxEngine(tax_brackets)
        self._adjuster = (
            HealthInsuranceAdjuster(self._engine, health_insurance_schema, health_insurance_threshold)
            if health_insurance_schema is not None
            else None
        )

    @property
    def engine(self) -> TaxEngine:
        return self._engine

    @property
    def adjuster(self) -> HealthInsuranceAdjuster | None:
        return self._adjuster

    def calculate_from_gross(self, params: WageCalculationParameters) -> CalculatedWage:
        return self._with_health_insurance(params, self._engine.from_gross(params))

    def calculate_from_net(self, params: WageCalculationParameters) -> CalculatedWage:
        return self._with_health_insurance(params, self._engine.from_net(params))

    def _with_health_insurance(
        self, params: WageCalculationParameters, base: EngineResult
    ) -> CalculatedWage:
        if not params.has_health_insurance:
            return base.wage
        if self._adjuster is None:
            raise InvalidConfigurationError(
                "Health insurance requested but no health insurance schema is configured"
            )
        return self._adjuster.adjust(params, base)


__all__ = ["WageCalculator"]
