"""
Currency conversion against a pluggable rate provider.

Conversion never raises: a missing rate or a provider failure returns the amount
unchanged with `rate=None` and an error message, so a costing run can finish.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Protocol, Sequence

logger = logging.getLogger(__name__)


class Rate(Protocol):
    rate: float


class RateProvider(Protocol):
    async def lookup(self, from_currency: str, to_currency: str) -> Optional[Rate]:
        ...


@dataclass
class ConversionResult:
    converted: float
    rate: Optional[float]
    error: Optional[str] = None


@dataclass
class ConvertedAmount:
    original_amount: float
    original_currency: str
    converted_amount: float
    base_currency: str
    exchange_rate: Optional[float]

    @property
    def has_rate(self) -> bool:
        return self.exchange_rate is not None


@dataclass
class TotalConversion:
    total: float
    base_currency: str
    conversions: List[ConvertedAmount] = field(default_factory=list)
    missing_rates: List[str] = field(default_factory=list)


class CurrencyConverter:
    def __init__(self, rate_provider: RateProvider):
        self.rate_provider = rate_provider

    async def convert(self, amount: float, from_currency: str, to_currency: str) -> ConversionResult:
        if from_currency == to_currency:
            return ConversionResult(converted=amount, rate=1.0)

        try:
            direct = await self.rate_provider.lookup(from_currency, to_currency)
            if direct is not None:
                rate = float(direct.rate)
                return ConversionResult(converted=amount * rate, rate=rate)

            inverse = await self.rate_provider.lookup(to_currency, from_currency)
            if inverse is not None and float(inverse.rate) != 0:
                rate = 1 / float(inverse.rate)
                return ConversionResult(converted=amount * rate, rate=rate)
        except Exception as e:
            logger.warning("Currency conversion %s -> %s failed: %s", from_currency, to_currency, e)
            return ConversionResult(
                converted=amount,
                rate=None,
                error=f"Conversion failed: {e}",
            )

        logger.warning("No exchange rate found for %s -> %s", from_currency, to_currency)
        return ConversionResult(
            converted=amount,
            rate=None,
            error=f"No exchange rate found for {from_currency} → {to_currency}",
        )

    async def convert_all(self, amounts: Sequence, base_currency: str) -> TotalConversion:
        """Convert a list of Money-like values (`amount`, `currency`) into one currency."""
        results = await asyncio.gather(
            *(self.convert(m.amount, m.currency, base_currency) for m in amounts)
        )

        conversions = [
            ConvertedAmount(
                original_amount=m.amount,
                original_currency=m.currency,
                converted_amount=r.converted,
                base_currency=base_currency,
                exchange_rate=r.rate,
            )
            for m, r in zip(amounts, results)
        ]
        missing = [
            f"{c.original_currency} → {base_currency}"
            for c in conversions
            if not c.has_rate and c.original_currency != base_currency
        ]
        return TotalConversion(
            total=sum(c.converted_amount for c in conversions),
            base_currency=base_currency,
            conversions=conversions,
            missing_rates=missing,
        )
