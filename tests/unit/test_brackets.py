from decimal import Decimal as D

import pytest
from pydantic import ValidationError

from wagecalc.core.brackets import (
    TaxEngine,
    apply_brackets,
    invert_brackets,
    round_money,
    truncate_money,
    validate_brackets,
)
from wagecalc.core.errors import InvalidConfigurationError
from wagecalc.core.models import TaxBracket, TaxBracketRate, TaxRateType
from wagecalc.core.schedules import sample_tax_brackets

PRIMARY = TaxRateType.PRIMARY
SECONDARY = TaxRateType.SECONDARY


def _bracket(threshold, primary=None, secondary=None):
    rates = []
    if primary is not None:
        rates.append(TaxBracketRate(rate=D(primary), rate_type=PRIMARY))
    if secondary is not None:
        rates.append(TaxBracketRate(rate=D(secondary), rate_type=SECONDARY))
    return TaxBracket(threshold=None if threshold is None else D(threshold), rates=tuple(rates))


def _rows(breakdown):
    return [(entry.threshold_from, entry.threshold_to, entry.tax) for entry in breakdown]


def test_rounding_helpers_use_expected_modes():
    assert round_money(D("7.695")) == D("7.70")
    assert round_money(D("-7.695")) == D("-7.70")
    assert round_money(D("51.6375")) == D("51.64")
    assert truncate_money(D("348.795")) == D("348.79")
    assert truncate_money(D("-1.239")) == D("-1.23")


def test_forward_walks_every_bracket_with_breakdown():
    result = apply_brackets(sample_tax_brackets(), D("950"), PRIMARY, breakdown=True)
    assert result.total == D("72.80")
    assert _rows(result.breakdown) == [
        (D("0"), D("80"), D("0.00")),
        (D("80"), D("250"), D("6.80")),
        (D("250"), D("450"), D("16.00")),
        (D("450"), None, D("50.00")),
    ]


def test_forward_stops_once_income_is_exhausted():
    result = apply_brackets(sample_tax_brackets(), D("76"), PRIMARY, breakdown=True)
    assert result.total == D("0")
    assert _rows(result.breakdown) == [(D("0"), D("80"), D("0.00"))]


def test_forward_rounds_each_bracket_separately():
    result = apply_brackets(sample_tax_brackets(), D("428.45"), PRIMARY)
    # 178.45 * 0.08 = 14.276
    assert result.total == D("21.08")
    assert result.precise_total == D("21.076")
    assert result.breakdown == ()


def test_zero_rate_bracket_contributes_nothing_regardless_of_span():
    brackets = [_bracket("1000", "0", "0"), _bracket(None, "0.5", "0.5")]
    result = apply_brackets(brackets, D("999.99"), PRIMARY, breakdown=True)
    assert result.total == D("0")
    assert result.breakdown[0].tax == D("0")


def test_missing_variant_rate_is_treated_as_zero():
    brackets = [_bracket("100", primary="0.2"), _bracket(None, primary="0.3")]
    assert apply_brackets(brackets, D("500"), SECONDARY).total == D("0")
    assert invert_brackets(brackets, D("500"), SECONDARY).total == D("0")
    assert apply_brackets(brackets, D("500"), PRIMARY).total == D("140.00")


def test_single_unbounded_bracket_breakdown_starts_at_zero_income():
    result = apply_brackets([_bracket(None, "0.1")], D("100"), PRIMARY, breakdown=True)
    assert _rows(result.breakdown) == [(None, None, D("10.00"))]


def test_inverse_recovers_forward_tax_per_bracket():
    result = invert_brackets(sample_tax_brackets(), D("877.20"), PRIMARY, breakdown=True)
    assert result.total == D("72.80")
    assert _rows(result.breakdown) == [
        (D("0"), D("80"), D("0")),
        (D("80"), D("250"), D("6.8")),
        (D("250"), D("450"), D("16")),
        (D("450"), None, D("50")),
    ]


def test_inverse_rounds_only_the_accumulated_tax():
    result = invert_brackets(sample_tax_brackets(), D("69.25"), SECONDARY)
    # 69.25 / 0.9 = 76.944..., taxed at 10%
    assert result.total == D("7.69")
    assert round_money(result.precise_total) == D("7.69")
    assert result.precise_total > D("7.694")


def test_inverse_carries_bound_through_zero_rate_middle_bracket():
    brackets = [_bracket("100", "0.1"), _bracket("200", "0"), _bracket(None, "0.2")]
    forward = apply_brackets(brackets, D("300"), PRIMARY)
    assert forward.total == D("30.00")
    inverse = invert_brackets(brackets, D("270"), PRIMARY)
    assert inverse.total == D("30.00")


def test_inverse_of_zero_salary_has_no_tax():
    assert invert_brackets(sample_tax_brackets(), D("0"), SECONDARY).total == D("0")


@pytest.mark.parametrize(
    "brackets",
    [
        [],
        [_bracket(None, "0.1"), _bracket("100", "0.2")],
        [_bracket("100", "0.1"), _bracket("200", "0.2")],
        [_bracket("200", "0.1"), _bracket("100", "0.2"), _bracket(None, "0.3")],
        [_bracket("100", "0.1"), _bracket("100", "0.2"), _bracket(None, "0.3")],
        [_bracket("0", "0.1"), _bracket(None, "0.2")],
    ],
)
def test_malformed_schedules_fail_fast(brackets):
    with pytest.raises(InvalidConfigurationError):
        validate_brackets(brackets)
    with pytest.raises(InvalidConfigurationError):
        TaxEngine(brackets)


def test_sample_schedule_is_valid():
    engine = TaxEngine(sample_tax_brackets())
    assert len(engine.brackets) == 4
    assert engine.brackets[-1].threshold is None


def test_bracket_rejects_duplicate_variant_rates():
    with pytest.raises(ValidationError):
        TaxBracket(
            threshold=D("100"),
            rates=(
                TaxBracketRate(rate=D("0.1"), rate_type=PRIMARY),
                TaxBracketRate(rate=D("0.2"), rate_type=PRIMARY),
            ),
        )


@pytest.mark.parametrize("rate", ["1", "1.5", "-0.1"])
def test_rate_must_be_a_fraction_below_one(rate):
    with pytest.raises(ValidationError):
        TaxBracketRate(rate=D(rate))


def test_rate_lookup_by_variant():
    bracket = _bracket("80", "0", "0.1")
    assert bracket.rate_for(PRIMARY) == D("0")
    assert bracket.rate_for(SECONDARY) == D("0.1")
