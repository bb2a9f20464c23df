from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def round2(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class PriceBreakdown:
    base_fee: Decimal
    service_fee: Decimal
    total: Decimal


def quote_hour(hourly_price: Decimal, *, fee_rate: Decimal) -> PriceBreakdown:
    """
    Charge for one hour: service fee = round2(B * r), total = round2(B + fee).
    Each quantity is rounded once, half-up, from the unrounded inputs.
    """
    if hourly_price < 0:
        raise ValueError("hourly_price must be non-negative")
    if fee_rate < 0:
        raise ValueError("fee_rate must be non-negative")
    service_fee = round2(hourly_price * fee_rate)
    return PriceBreakdown(
        base_fee=round2(hourly_price),
        service_fee=service_fee,
        total=round2(hourly_price + service_fee),
    )


def project_receipt(total: Decimal, *, fee_rate: Decimal) -> PriceBreakdown:
    """
    Recover the base/service split from a stored total by inverting quote_hour.
    Lossy by up to a cent per component; never re-derived from the venue's live rate.
    """
    base_fee = round2(total / (1 + fee_rate))
    return PriceBreakdown(base_fee=base_fee, service_fee=total - base_fee, total=total)
