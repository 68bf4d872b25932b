"""Commission rule resolution for catalog lines"""

from dataclasses import dataclass
from typing import Iterable, List, Optional

from reseller_engine.domain.exceptions import NoApplicableRuleError
from reseller_engine.domain.models import CatalogLine, Commission, CommissionRule

# Specificity rank, higher wins
BRAND_AND_CATEGORY = 3
BRAND_ONLY = 2
CATEGORY_ONLY = 1
GLOBAL_DEFAULT = 0

SOURCE_NAMES = {
    BRAND_AND_CATEGORY: "brand_category",
    BRAND_ONLY: "brand",
    CATEGORY_ONLY: "category",
    GLOBAL_DEFAULT: "global",
}


@dataclass(frozen=True)
class ResolvedCommission:
    """Commission chosen for a line, with where it came from"""

    commission: Commission
    source: str  # own | brand_category | brand | category | global
    rule_id: Optional[int] = None
    priority: Optional[int] = None


def rule_specificity(rule: CommissionRule) -> int:
    if rule.brand_id is not None and rule.category_id is not None:
        return BRAND_AND_CATEGORY
    if rule.brand_id is not None:
        return BRAND_ONLY
    if rule.category_id is not None:
        return CATEGORY_ONLY
    return GLOBAL_DEFAULT


def rule_matches(rule: CommissionRule, brand_id: Optional[int], category_id: Optional[int]) -> bool:
    """Every non-null key on the rule must equal the line's value"""
    if rule.brand_id is not None and rule.brand_id != brand_id:
        return False
    if rule.category_id is not None and rule.category_id != category_id:
        return False
    return True


class CommissionRuleResolver:
    """
    Resolves which commission applies to a catalog line.

    Precedence:
    - Own commission on the line wins unconditionally
    - brand+category > brand only > category only > global default
    - Same specificity: lowest priority value, then lowest rule id
    """

    def __init__(self, rules: Iterable[CommissionRule]):
        self._rules: List[CommissionRule] = list(rules)

    def describe(
        self,
        brand_id: Optional[int],
        category_id: Optional[int],
        own_commission: Optional[Commission] = None,
    ) -> ResolvedCommission:
        """
        Resolve and report the winning rule.

        Raises:
            NoApplicableRuleError: Nothing matches and there is no global default
        """
        if own_commission is not None:
            return ResolvedCommission(commission=own_commission, source="own")

        applicable = [r for r in self._rules if rule_matches(r, brand_id, category_id)]
        if not applicable:
            raise NoApplicableRuleError(brand_id, category_id)

        best = min(applicable, key=lambda r: (-rule_specificity(r), r.priority, r.id))
        return ResolvedCommission(
            commission=best.commission,
            source=SOURCE_NAMES[rule_specificity(best)],
            rule_id=best.id,
            priority=best.priority,
        )

    def resolve(
        self,
        brand_id: Optional[int],
        category_id: Optional[int],
        own_commission: Optional[Commission] = None,
    ) -> Commission:
        return self.describe(brand_id, category_id, own_commission).commission

    def resolve_line(self, line: CatalogLine) -> Commission:
        return self.resolve(line.brand_id, line.category_id, line.own_commission)
