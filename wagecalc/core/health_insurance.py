from __future__ import annotations

import logging
from decimal import Decimal

from wagecalc.core.brackets import ZERO, EngineResult, TaxEngine, round_money, truncate_money
from wagecalc.core.models import (
    CalculatedWage,
    HealthInsuranceSchema,
    HealthInsuranceSetup,
    TaxRateType,
    WageCalculationParameters,
)

D = Decimal

HEALTH_INSURANCE_GROSS_THRESHOLD = D("450.00")
_HUNDRED = D("100")

logger = logging.getLogger("wagecalc").getChild("health_insurance")


class HealthInsuranceAdjuster:
    """Folds a co-paid health-insurance premium into an already computed wage.

    Gross wages at or above the threshold gross the employer's share up through
    the secondary rate and recompute from the enlarged gross. Lower wages gross up
    the net instead and settle the final net toward zero.
    """

    def __init__(
        self,
        engine: TaxEngine,
        schema: HealthInsuranceSchema,
        threshold: D = HEALTH_INSURANCE_GROSS_THRESHOLD,
    ):
        self._engine = engine
        self._schema = schema
        self._threshold = threshold

    @property
    def threshold(self) -> D:
        return self._threshold

    def adjust(self, params: WageCalculationParameters, base: EngineResult) -> CalculatedWage:
        setup = params.health_insurance
        if setup is None or not setup.has_health_insurance:
            return base.wage
        if base.wage.gross >= self._threshold:
            logger.debug("Folding premium above threshold: gross=%s", base.wage.gross)
            return self._adjust_above_threshold(params, setup, base)
        logger.debug("Folding premium below threshold: gross=%s", base.wage.gross)
        return self._adjust_below_threshold(params, setup, base)

    def _premium(self) -> D:
        return round_money(self._schema.premium)

    def _secondary_gross_up(self, salary: D, has_taxes: bool) -> CalculatedWage:
        params = WageCalculationParameters(
            salary=salary,
            has_taxes=has_taxes,
            tax_rate_type=TaxRateType.SECONDARY,
        )
        return self._engine.from_net(params).wage

    def _member_premiums(self, setup: HealthInsuranceSetup) -> D:
        total = ZERO
        for member in setup.members:
            premium = self._schema.member_premium(member.id)
            if premium is None:
                logger.debug("Skipping health insurance member without schema: %r", member.id)
                continue
            total += premium * member.count
        return total

    def _adjust_above_threshold(
        self,
        params: WageCalculationParameters,
        setup: HealthInsuranceSetup,
        base: EngineResult,
    ) -> CalculatedWage:
        premium = self._premium()
        coverage = setup.coverage_percentage
        gross_base = base.wage.gross

        covered = self._secondary_gross_up(premium * (coverage / _HUNDRED), params.has_taxes)
        adjusted = self._engine.from_gross(
            params.model_copy(
                update={"salary": covered.gross + gross_base, "health_insurance": None}
            )
        ).wage

        net_value = gross_base - base.precise_contribution - base.precise_tax
        if coverage == 0:
            net_value -= premium
        elif coverage != 100:
            uncovered = self._secondary_gross_up(
                premium * ((_HUNDRED - coverage) / _HUNDRED), params.has_taxes
            )
            net_value -= uncovered.net

        member_premiums = self._member_premiums(setup)
        net_value -= member_premiums
        total_premium = premium + member_premiums

        net = round_money(net_value)
        gross = round_money(adjusted.gross)
        tax = gross - total_premium - adjusted.contribution - net
        if tax != adjusted.tax:
            logger.debug("Reconciled tax after premium folding: %s -> %s", adjusted.tax, tax)
        return adjusted.model_copy(
            update={
                "gross": gross,
                "net": net,
                "tax": tax,
                "health_insurance_percentage": coverage,
                "health_insurance_premium": premium,
                "health_insurance_value": round_money(covered.gross),
            }
        )

    def _adjust_below_threshold(
        self,
        params: WageCalculationParameters,
        setup: HealthInsuranceSetup,
        base: EngineResult,
    ) -> CalculatedWage:
        premium = self._premium()
        coverage = setup.coverage_percentage
        covered_net = premium * (coverage / _HUNDRED)

        adjusted = self._engine.from_net(
            params.model_copy(
                update={"salary": covered_net + base.wage.net, "health_insurance": None}
            )
        ).wage

        total_premium = premium + self._member_premiums(setup)
        return adjusted.model_copy(
            update={
                "gross": round_money(adjusted.gross),
                # Settled toward zero, unlike the above-threshold path.
                "net": truncate_money(adjusted.net - total_premium),
                "health_insurance_percentage": coverage,
                "health_insurance_premium": premium,
                "health_insurance_value": round_money(adjusted.gross - base.wage.gross),
            }
        )


__all__ = ["HEALTH_INSURANCE_GROSS_THRESHOLD", "HealthInsuranceAdjuster"]
