from __future__ import annotations

from decimal import Decimal

from wagecalc.core.models import (
    HealthInsuranceSchema,
    TaxBracket,
    TaxBracketRate,
    TaxRateType,
)

D = Decimal

# (threshold, primary rate, secondary rate); None threshold is the open top bracket.
SAMPLE_BRACKETS = [
    (D("80"),  D("0"),    D("0.1")),
    (D("250"), D("0.04"), D("0.1")),
    (D("450"), D("0.08"), D("0.1")),
    (None,     D("0.1"),  D("0.1")),
]

MEMBER_PARENTS = "Parents"
MEMBER_PARTNERS = "Partners"
MEMBER_CHILDREN = "Children"
MEMBER_ADULT_CHILDREN = "AdultsChildren"

SAMPLE_PREMIUM = D("28.00")
SAMPLE_MEMBER_PREMIUMS = {
    MEMBER_PARENTS: D("28.00"),
    MEMBER_PARTNERS: D("28.00"),
    MEMBER_CHILDREN: D("28.00"),
    MEMBER_ADULT_CHILDREN: D("28.00"),
}


def sample_tax_brackets() -> tuple[TaxBracket, ...]:
    return tuple(
        TaxBracket(
            threshold=threshold,
            rates=(
                TaxBracketRate(rate=primary, rate_type=TaxRateType.PRIMARY),
                TaxBracketRate(rate=secondary, rate_type=TaxRateType.SECONDARY),
            ),
        )
        for threshold, primary, secondary in SAMPLE_BRACKETS
    )


def sample_health_insurance_schema(premium: D = SAMPLE_PREMIUM) -> HealthInsuranceSchema:
    return HealthInsuranceSchema(premium=premium, member_premiums=dict(SAMPLE_MEMBER_PREMIUMS))


__all__ = [
    "SAMPLE_BRACKETS",
    "SAMPLE_PREMIUM",
    "SAMPLE_MEMBER_PREMIUMS",
    "MEMBER_PARENTS",
    "MEMBER_PARTNERS",
    "MEMBER_CHILDREN",
    "MEMBER_ADULT_CHILDREN",
    "sample_tax_brackets",
    "sample_health_insurance_schema",
]
