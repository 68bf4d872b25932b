"""Payment instruments and their installment interest tables"""

from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Tuple

from reseller_engine.domain.models import InstallmentTier, PaymentInstrument


class PaymentPlanCatalog:
    """Lookup of instruments and (instrument, installment count) -> multiplier"""

    def __init__(self, instruments: Iterable[PaymentInstrument], tiers: Iterable[InstallmentTier] = ()):
        self._instruments: Dict[int, PaymentInstrument] = {i.id: i for i in instruments}
        self._tiers: Dict[Tuple[int, int], InstallmentTier] = {}

        for tier in tiers:
            key = (tier.instrument_id, tier.installment_count)
            if key in self._tiers:
                raise ValueError(
                    f"Duplicate installment tier for instrument {tier.instrument_id} "
                    f"with {tier.installment_count} installments"
                )
            self._tiers[key] = tier

    def multiplier_for(self, instrument_id: int, installment_count: Optional[int] = None) -> Decimal:
        """
        Resolve the surcharge factor for paying with an instrument.

        A matching installment tier wins; otherwise the instrument's base
        multiplier applies (1 for unknown instruments, i.e. no interest).
        """
        if installment_count is not None:
            tier = self._tiers.get((instrument_id, installment_count))
            if tier is not None:
                return tier.multiplier

        instrument = self._instruments.get(instrument_id)
        if instrument is None:
            return Decimal("1")
        return instrument.base_multiplier

    def tiers_for(self, instrument_id: int) -> List[InstallmentTier]:
        """Installment options for an instrument, fewest installments first"""
        return sorted(
            (t for t in self._tiers.values() if t.instrument_id == instrument_id),
            key=lambda t: t.installment_count,
        )

    def instrument(self, instrument_id: int) -> Optional[PaymentInstrument]:
        return self._instruments.get(instrument_id)

    def instruments(self) -> List[PaymentInstrument]:
        return sorted(self._instruments.values(), key=lambda i: i.id)
