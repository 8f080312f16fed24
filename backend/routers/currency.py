import logging

from fastapi import APIRouter, Depends, HTTPException, status

from core.config import settings
from core.currency import CurrencyConverter
from routers.deps import get_currency_converter, get_rate_provider
from schemas.currency import ConvertRequest, ConvertResponse, ExchangeRateCreate, ExchangeRateRead

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/convert", response_model=ConvertResponse)
async def convert_amounts(
    payload: ConvertRequest,
    converter: CurrencyConverter = Depends(get_currency_converter),
):
    base = payload.base_currency or settings.base_currency
    result = await converter.convert_all(payload.amounts, base)
    return ConvertResponse.model_validate(result, from_attributes=True)


@router.post("/rates", response_model=ExchangeRateRead, status_code=status.HTTP_201_CREATED)
async def set_exchange_rate(payload: ExchangeRateCreate, rate_provider=Depends(get_rate_provider)):
    if payload.from_currency == payload.to_currency:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="from_currency and to_currency must differ")
    try:
        row = await rate_provider.set_rate(
            payload.from_currency,
            payload.to_currency,
            payload.rate,
            effective_date=payload.effective_date,
            source=payload.source,
        )
    except Exception as e:
        logger.error("Failed to store exchange rate", exc_info=True)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=f"Failed to store rate: {e}")

    return ExchangeRateRead(
        id=row.id,
        from_currency=row.from_currency,
        to_currency=row.to_currency,
        rate=float(row.rate),
        effective_date=row.effective_date,
        source=row.source,
    )
