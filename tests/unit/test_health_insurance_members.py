from decimal import Decimal as D

from wagecalc.core.calculator import WageCalculator
from wagecalc.core.models import HealthInsuranceSchema
from wagecalc.core.schedules import (
    MEMBER_ADULT_CHILDREN,
    MEMBER_CHILDREN,
    MEMBER_PARENTS,
    sample_tax_brackets,
)
from tests.fixtures.calculators import make_calculator, make_params


def test_two_adult_children_reduce_net_only():
    wage = make_calculator().calculate_from_gross(
        make_params("1000", coverage="100", members={MEMBER_ADULT_CHILDREN: 2})
    )
    assert wage.gross == D("1032.75")
    assert wage.net == D("821.20")
    assert wage.contribution == D("51.64")
    assert wage.tax == D("75.91")


def test_adult_children_and_parent():
    wage = make_calculator().calculate_from_gross(
        make_params("1000", coverage="100", members={MEMBER_ADULT_CHILDREN: 2, MEMBER_PARENTS: 1})
    )
    assert wage.gross == D("1032.75")
    assert wage.net == D("793.20")
    assert wage.tax == D("75.91")


def test_unknown_member_categories_are_skipped():
    wage = make_calculator().calculate_from_gross(
        make_params("1000", coverage="100", members={"Grandparents": 3})
    )
    assert wage.net == D("877.20")
    assert wage.tax == D("75.91")


def test_zero_count_member_adds_nothing():
    wage = make_calculator().calculate_from_gross(
        make_params("1000", coverage="100", members={MEMBER_CHILDREN: 0})
    )
    assert wage.net == D("877.20")


def test_members_below_threshold():
    wage = make_calculator().calculate_from_gross(
        make_params("400", coverage="50", members={MEMBER_CHILDREN: 1})
    )
    assert wage.gross == D("416.02")
    assert wage.net == D("320.80")
    assert wage.tax == D("18.42")


def test_member_ids_are_opaque_keys():
    schema = HealthInsuranceSchema(
        premium=D("28.00"),
        members=[{"id": 7, "premium": D("10.00")}, {"id": "7", "premium": D("99.00")}],
    )
    calculator = WageCalculator(sample_tax_brackets(), schema)
    wage = calculator.calculate_from_gross(make_params("1000", coverage="100", members={7: 2}))
    assert schema.member_premium(7) == D("10.00")
    assert wage.net == D("857.20")
