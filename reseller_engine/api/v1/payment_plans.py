"""GET /v1/payment-plans - Payment instruments with their installment options"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reseller_engine.api.v1.schemas import InstallmentTierSchema, PaymentInstrumentSchema, PaymentPlansResponse
from reseller_engine.infrastructure.database.repositories import ReferenceDataRepository
from reseller_engine.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/payment-plans", response_model=PaymentPlansResponse)
def list_payment_plans(db: Session = Depends(get_db)):
    """Instruments ordered by id, tiers ordered by installment count"""
    catalog = ReferenceDataRepository(db).get_payment_catalog()

    instruments = [
        PaymentInstrumentSchema(
            id=instrument.id,
            name=instrument.name,
            multiplier=instrument.base_multiplier,
            tiers=[
                InstallmentTierSchema(
                    installments=tier.installment_count,
                    multiplier=tier.multiplier,
                    description=tier.description,
                )
                for tier in catalog.tiers_for(instrument.id)
            ],
        )
        for instrument in catalog.instruments()
    ]

    return PaymentPlansResponse(instruments=instruments)
