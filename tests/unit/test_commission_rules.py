"""Unit tests for commission rule resolution"""

import pytest
from decimal import Decimal
from reseller_engine.domain.commission_rules import CommissionRuleResolver
from reseller_engine.domain.exceptions import NoApplicableRuleError
from reseller_engine.domain.models import (
    CatalogLine,
    CommissionRule,
    FixedCommission,
    PercentageCommission,
    commission_from_fields,
)

BRAND_A, BRAND_Z = 1, 26
CATEGORY_B, CATEGORY_C, CATEGORY_Z = 2, 3, 26


@pytest.fixture
def rules() -> CommissionRuleResolver:
    return CommissionRuleResolver(
        [
            CommissionRule(id=1, brand_id=BRAND_A, commission=PercentageCommission(Decimal("3")), priority=1),
            CommissionRule(
                id=2, brand_id=BRAND_A, category_id=CATEGORY_B, commission=PercentageCommission(Decimal("7")), priority=1
            ),
            CommissionRule(id=3, commission=PercentageCommission(Decimal("1")), priority=1),
        ]
    )


def test_brand_and_category_wins(rules: CommissionRuleResolver):
    assert rules.resolve(BRAND_A, CATEGORY_B) == PercentageCommission(Decimal("7"))


def test_brand_only_when_category_differs(rules: CommissionRuleResolver):
    assert rules.resolve(BRAND_A, CATEGORY_C) == PercentageCommission(Decimal("3"))


def test_global_default_when_nothing_else_matches(rules: CommissionRuleResolver):
    assert rules.resolve(BRAND_Z, CATEGORY_Z) == PercentageCommission(Decimal("1"))


def test_brand_beats_category_regardless_of_priority():
    """Specificity is compared before priority"""
    resolver = CommissionRuleResolver(
        [
            CommissionRule(id=1, category_id=CATEGORY_B, commission=PercentageCommission(Decimal("9")), priority=0),
            CommissionRule(id=2, brand_id=BRAND_A, commission=PercentageCommission(Decimal("4")), priority=10),
        ]
    )

    described = resolver.describe(BRAND_A, CATEGORY_B)
    assert described.commission == PercentageCommission(Decimal("4"))
    assert described.source == "brand"
    assert described.rule_id == 2


def test_category_only_match():
    resolver = CommissionRuleResolver(
        [CommissionRule(id=5, category_id=CATEGORY_B, commission=FixedCommission(Decimal("15")), priority=3)]
    )

    described = resolver.describe(BRAND_Z, CATEGORY_B)
    assert described.commission == FixedCommission(Decimal("15"))
    assert described.source == "category"
    assert described.priority == 3


def test_lowest_priority_breaks_ties():
    resolver = CommissionRuleResolver(
        [
            CommissionRule(id=1, brand_id=BRAND_A, commission=PercentageCommission(Decimal("2")), priority=5),
            CommissionRule(id=2, brand_id=BRAND_A, commission=PercentageCommission(Decimal("6")), priority=1),
            CommissionRule(id=3, brand_id=BRAND_A, commission=PercentageCommission(Decimal("8")), priority=1),
        ]
    )

    # Equal priority falls back to the lowest rule id
    assert resolver.describe(BRAND_A, None).rule_id == 2


def test_own_commission_wins_unconditionally(rules: CommissionRuleResolver):
    own = FixedCommission(Decimal("25"))
    line = CatalogLine(variant_id=1, usd_price=Decimal("500"), brand_id=BRAND_A, category_id=CATEGORY_B, own_commission=own)

    assert rules.resolve_line(line) == own
    assert rules.describe(BRAND_A, CATEGORY_B, own).source == "own"


def test_own_commission_without_any_rules():
    resolver = CommissionRuleResolver([])
    assert resolver.resolve(None, None, PercentageCommission(Decimal("2"))) == PercentageCommission(Decimal("2"))


def test_no_applicable_rule_raises():
    """Without a global default an unmatched line is blocked, not given zero commission"""
    resolver = CommissionRuleResolver(
        [CommissionRule(id=1, brand_id=BRAND_A, commission=PercentageCommission(Decimal("3")))]
    )

    with pytest.raises(NoApplicableRuleError) as exc_info:
        resolver.resolve(BRAND_Z, CATEGORY_Z)
    assert exc_info.value.brand_id == BRAND_Z
    assert exc_info.value.category_id == CATEGORY_Z


def test_commission_from_fields_is_exclusive():
    assert commission_from_fields(pct=Decimal("5")) == PercentageCommission(Decimal("5"))
    assert commission_from_fields(fixed=Decimal("20")) == FixedCommission(Decimal("20"))
    assert commission_from_fields() is None
    with pytest.raises(ValueError):
        commission_from_fields(pct=Decimal("5"), fixed=Decimal("20"))
