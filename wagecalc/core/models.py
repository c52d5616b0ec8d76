from __future__ import annotations

from collections.abc import Hashable
from decimal import Decimal
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

from wagecalc.core.errors import InvalidConfigurationError

D = Decimal
MemberId = Hashable

_ZERO = D("0")


class TaxRateType(str, Enum):
    PRIMARY = "primary"
    SECONDARY = "secondary"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class TaxBracketRate(_FrozenModel):
    rate: Decimal = Field(default=_ZERO, ge=0, lt=1)
    rate_type: TaxRateType = TaxRateType.PRIMARY


class TaxBracket(_FrozenModel):
    """One slice of a progressive schedule.

    ``threshold`` is the cumulative upper bound of the slice; ``None`` marks
    the terminal bracket that absorbs all remaining income.
    """

    rates: tuple[TaxBracketRate, ...] = ()
    threshold: Decimal | None = None

    _rate_by_type: dict[TaxRateType, Decimal] = PrivateAttr(default_factory=dict)

    @field_validator("rates")
    @classmethod
    def _unique_rate_types(cls, value: tuple[TaxBracketRate, ...]) -> tuple[TaxBracketRate, ...]:
        seen: set[TaxRateType] = set()
        for entry in value:
            if entry.rate_type in seen:
                raise InvalidConfigurationError(
                    f"Duplicate {entry.rate_type.value} rate in tax bracket"
                )
            seen.add(entry.rate_type)
        return value

    def model_post_init(self, __context: Any) -> None:
        self._rate_by_type = {entry.rate_type: entry.rate for entry in self.rates}

    def rate_for(self, rate_type: TaxRateType) -> Decimal:
        # A bracket without a rate for the variant passes income through untaxed.
        return self._rate_by_type.get(rate_type, _ZERO)


class TaxBracketBreakdown(_FrozenModel):
    threshold_from: Decimal | None = None
    threshold_to: Decimal | None = None
    tax: Decimal = _ZERO


class HealthInsuranceMemberSchema(_FrozenModel):
    id: MemberId
    premium: Decimal = Field(ge=0)


class HealthInsuranceSchema(_FrozenModel):
    """Base premium plus add-on premiums per dependant category."""

    premium: Decimal = Field(ge=0)
    member_premiums: dict[MemberId, Decimal] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _fold_member_list(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "members" not in data:
            return data
        folded = {key: value for key, value in data.items() if key != "members"}
        premiums = dict(folded.get("member_premiums") or {})
        for raw in data["members"] or ():
            member = (
                raw
                if isinstance(raw, HealthInsuranceMemberSchema)
                else HealthInsuranceMemberSchema.model_validate(raw)
            )
            if member.id in premiums:
                raise InvalidConfigurationError(
                    f"Duplicate health insurance member schema {member.id!r}"
                )
            premiums[member.id] = member.premium
        folded["member_premiums"] = premiums
        return folded

    @field_validator("member_premiums")
    @classmethod
    def _non_negative_member_premiums(cls, value: dict[MemberId, Decimal]) -> dict[MemberId, Decimal]:
        for member_id, premium in value.items():
            if premium < 0:
                raise InvalidConfigurationError(
                    f"Member premium for {member_id!r} must be non-negative"
                )
        return value

    def member_premium(self, member_id: MemberId) -> Decimal | None:
        return self.member_premiums.get(member_id)


class HealthInsuranceMember(_FrozenModel):
    id: MemberId
    count: int = Field(default=1, ge=0)


class HealthInsuranceSetup(_FrozenModel):
    coverage_percentage: Decimal = Field(default=_ZERO, ge=0, le=100)
    members: tuple[HealthInsuranceMember, ...] = ()

    @property
    def has_health_insurance(self) -> bool:
        return self.coverage_percentage > 0


class WageCalculationParameters(_FrozenModel):
    salary: Decimal
    tax_rate_type: TaxRateType = TaxRateType.PRIMARY
    contribution_percentage: Decimal = Field(default=D("5.0"), ge=0, le=100)
    health_insurance: HealthInsuranceSetup | None = None
    has_taxes: bool = True
    tax_breakdown: bool = False

    @property
    def has_health_insurance(self) -> bool:
        return self.health_insurance is not None and self.health_insurance.has_health_insurance


class CalculatedWage(_FrozenModel):
    gross: Decimal
    net: Decimal
    contribution: Decimal
    tax: Decimal
    health_insurance_percentage: Decimal = _ZERO
    health_insurance_premium: Decimal = _ZERO
    health_insurance_value: Decimal = _ZERO
    breakdown: tuple[TaxBracketBreakdown, ...] = ()


__all__ = [
    "MemberId",
    "TaxRateType",
    "TaxBracketRate",
    "TaxBracket",
    "TaxBracketBreakdown",
    "HealthInsuranceMemberSchema",
    "HealthInsuranceSchema",
    "HealthInsuranceMember",
    "HealthInsuranceSetup",
    "WageCalculationParameters",
    "CalculatedWage",
]
