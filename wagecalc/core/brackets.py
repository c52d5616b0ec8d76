from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import ROUND_DOWN, ROUND_HALF_UP, Decimal
from typing import Iterable, Sequence

from wagecalc.core.errors import InvalidArgumentError, InvalidConfigurationError
from wagecalc.core.models import (
    CalculatedWage,
    TaxBracket,
    TaxBracketBreakdown,
    TaxRateType,
    WageCalculationParameters,
)

D = Decimal

_CENT = D("0.01")
_HUNDRED = D("100")
ZERO = D("0")

logger = logging.getLogger("wagecalc").getChild("engine")


def round_money(value: D) -> D:
    """Round to cents, halves away from zero."""
    return value.quantize(_CENT, rounding=ROUND_HALF_UP)


def truncate_money(value: D) -> D:
    """Round to cents toward zero."""
    return value.quantize(_CENT, rounding=ROUND_DOWN)


@dataclass(frozen=True)
class BracketTax:
    total: D
    precise_total: D
    breakdown: tuple[TaxBracketBreakdown, ...]


@dataclass(frozen=True)
class EngineResult:
    """Unadjusted wage plus the unrounded figures the premium folding starts from."""

    wage: CalculatedWage
    precise_contribution: D
    precise_tax: D


def validate_brackets(brackets: Sequence[TaxBracket]) -> None:
    if not brackets:
        raise InvalidConfigurationError("Tax bracket schedule is empty")
    previous = ZERO
    for index, bracket in enumerate(brackets):
        last = index == len(brackets) - 1
        if bracket.threshold is None:
            if not last:
                raise InvalidConfigurationError(
                    f"Unbounded tax bracket at position {index} must be the last bracket"
                )
            continue
        if last:
            raise InvalidConfigurationError("Last tax bracket must have no threshold")
        if bracket.threshold <= previous:
            raise InvalidConfigurationError(
                f"Tax bracket thresholds must strictly increase; got {bracket.threshold} after {previous}"
            )
        previous = bracket.threshold


def _breakdown_entry(
    brackets: Sequence[TaxBracket], index: int, previous_threshold: D, tax: D
) -> TaxBracketBreakdown:
    bracket = brackets[index]
    if bracket.threshold is None:
        threshold_from = brackets[index - 1].threshold if index else None
        return TaxBracketBreakdown(threshold_from=threshold_from, tax=tax)
    return TaxBracketBreakdown(
        threshold_from=previous_threshold,
        threshold_to=bracket.threshold,
        tax=tax,
    )


def apply_brackets(
    brackets: Sequence[TaxBracket],
    taxed_salary: D,
    rate_type: TaxRateType,
    *,
    breakdown: bool = False,
) -> BracketTax:
    remaining = taxed_salary
    previous_threshold = ZERO
    total = ZERO
    precise_total = ZERO
    entries: list[TaxBracketBreakdown] = []
    for index, bracket in enumerate(brackets):
        if remaining <= 0:
            break
        span = bracket.threshold - previous_threshold if bracket.threshold is not None else remaining
        taxable = min(remaining, span)
        precise_tax = taxable * bracket.rate_for(rate_type)
        bracket_tax = round_money(precise_tax)
        total += bracket_tax
        precise_total += precise_tax
        if breakdown:
            entries.append(_breakdown_entry(brackets, index, previous_threshold, bracket_tax))
        remaining = round_money(remaining - taxable)
        if bracket.threshold is None:
            break
        previous_threshold = bracket.threshold
    return BracketTax(total=total, precise_total=precise_total, breakdown=tuple(entries))


def invert_brackets(
    brackets: Sequence[TaxBracket],
    net_salary: D,
    rate_type: TaxRateType,
    *,
    breakdown: bool = False,
) -> BracketTax:
    """Solve each bracket's linear tax for the net salary, lowest bracket first.

    The portion taxed in a bracket is ``(net + tax so far - lower bound) / (1 - rate)``
    clamped to the bracket's span. Tax is kept unrounded until the end.
    """
    previous_threshold = ZERO
    precise_total = ZERO
    entries: list[TaxBracketBreakdown] = []
    for index, bracket in enumerate(brackets):
        rate = bracket.rate_for(rate_type)
        tax = ZERO
        if rate > 0:
            portion = (net_salary + precise_total - previous_threshold) / (1 - rate)
            if bracket.threshold is not None:
                portion = min(portion, bracket.threshold - previous_threshold)
            portion = max(portion, ZERO)
            tax = portion * rate
        precise_total += tax
        if breakdown:
            entries.append(_breakdown_entry(brackets, index, previous_threshold, tax))
        if bracket.threshold is None:
            break
        previous_threshold = bracket.threshold
    return BracketTax(
        total=round_money(precise_total),
        precise_total=precise_total,
        breakdown=tuple(entries),
    )


class TaxEngine:
    """Applies a validated bracket schedule and flat contribution in either direction."""

    def __init__(self, brackets: Iterable[TaxBracket]):
        self._brackets = tuple(brackets)
        validate_brackets(self._brackets)
        logger.debug("Loaded tax bracket schedule with %s brackets", len(self._brackets))

    @property
    def brackets(self) -> tuple[TaxBracket, ...]:
        return self._brackets

    def from_gross(self, params: WageCalculationParameters) -> EngineResult:
        precise_contribution = params.salary * params.contribution_percentage / _HUNDRED
        contribution = round_money(precise_contribution)
        taxed_salary = round_money(params.salary - contribution)
        bracket_tax = apply_brackets(
            self._brackets, taxed_salary, params.tax_rate_type, breakdown=params.tax_breakdown
        )
        net = round_money(taxed_salary - bracket_tax.total) if params.has_taxes else taxed_salary
        wage = CalculatedWage(
            gross=params.salary,
            net=net,
            contribution=contribution,
            tax=bracket_tax.total if params.has_taxes else ZERO,
            breakdown=bracket_tax.breakdown,
        )
        logger.debug(
            "gross->net salary=%s rate_type=%s net=%s tax=%s",
            params.salary,
            params.tax_rate_type.value,
            wage.net,
            wage.tax,
        )
        return EngineResult(
            wage=wage,
            precise_contribution=precise_contribution,
            precise_tax=bracket_tax.precise_total if params.has_taxes else ZERO,
        )

    def from_net(self, params: WageCalculationParameters) -> EngineResult:
        share = params.contribution_percentage / _HUNDRED
        if share >= 1:
            raise InvalidArgumentError(
                f"Contribution percentage must be below 100 to derive gross from net; got {params.contribution_percentage}"
            )
        bracket_tax = invert_brackets(
            self._brackets, params.salary, params.tax_rate_type, breakdown=params.tax_breakdown
        )
        taxed_salary = params.salary + bracket_tax.total
        precise_contribution = taxed_salary / (1 - share) * share
        contribution = round_money(precise_contribution)
        gross = round_money(taxed_salary + contribution) if params.has_taxes else taxed_salary
        wage = CalculatedWage(
            gross=gross,
            net=params.salary,
            contribution=contribution,
            tax=bracket_tax.total if params.has_taxes else ZERO,
            breakdown=bracket_tax.breakdown,
        )
        logger.debug(
            "net->gross salary=%s rate_type=%s gross=%s tax=%s",
            params.salary,
            params.tax_rate_type.value,
            wage.gross,
            wage.tax,
        )
        return EngineResult(
            wage=wage,
            precise_contribution=precise_contribution,
            precise_tax=bracket_tax.precise_total if params.has_taxes else ZERO,
        )


__all__ = [
    "ZERO",
    "round_money",
    "truncate_money",
    "BracketTax",
    "EngineResult",
    "validate_brackets",
    "apply_brackets",
    "invert_brackets",
    "TaxEngine",
]
