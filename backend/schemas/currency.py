from datetime import date
from typing import List, Optional

from pydantic import BaseModel, field_validator

from schemas.inventory import normalize_currency


class MoneyIn(BaseModel):
    amount: float
    currency: str

    @field_validator("currency")
    @classmethod
    def _currency(cls, v: str) -> str:
        v = normalize_currency(v)
        if v is None:
            raise ValueError("currency is required")
        return v


class ConvertRequest(BaseModel):
    amounts: List[MoneyIn]
    base_currency: Optional[str] = None

    @field_validator("base_currency")
    @classmethod
    def _base_currency(cls, v: Optional[str]) -> Optional[str]:
        return normalize_currency(v)


class ConvertedAmountRead(BaseModel):
    original_amount: float
    original_currency: str
    converted_amount: float
    base_currency: str
    exchange_rate: Optional[float] = None


class ConvertResponse(BaseModel):
    total: float
    base_currency: str
    conversions: List[ConvertedAmountRead]
    missing_rates: List[str]


class ExchangeRateCreate(BaseModel):
    from_currency: str
    to_currency: str
    rate: float
    effective_date: Optional[date] = None
    source: Optional[str] = "manual"

    @field_validator("from_currency", "to_currency")
    @classmethod
    def _currency(cls, v: str) -> str:
        v = normalize_currency(v)
        if v is None:
            raise ValueError("currency is required")
        return v

    @field_validator("rate")
    @classmethod
    def _rate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("rate must be > 0")
        return v


class ExchangeRateRead(BaseModel):
    id: int
    from_currency: str
    to_currency: str
    rate: float
    effective_date: date
    source: Optional[str] = None
