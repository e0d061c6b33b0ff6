"""Linear price interpolation between two bracketing persisted points."""

from decimal import Decimal

from chainprice.domain.models import InterpolationResult, PricePoint
from chainprice.exceptions import InvalidRequestError

MAX_GAP_SECONDS = 7 * 24 * 60 * 60  # 604800
MAX_PRICE_SWING = Decimal("0.5")  # Relative change between the two points


def can_interpolate(before: PricePoint, after: PricePoint, target: int) -> bool:
    """True when target lies strictly inside a gap of at most 7 days with at most a 50% price swing."""
    if not before.timestamp < target < after.timestamp:
        return False

    if after.timestamp - before.timestamp > MAX_GAP_SECONDS:
        return False

    if before.price == 0:
        return False
    swing = abs(after.price - before.price) / before.price
    return swing <= MAX_PRICE_SWING


def interpolate(target: int, before: PricePoint, after: PricePoint) -> InterpolationResult:
    """price = before + (after - before) * (target - t_before) / (t_after - t_before)."""
    if not before.timestamp < target < after.timestamp:
        raise InvalidRequestError(
            f"Target {target} is not strictly between {before.timestamp} and {after.timestamp}"
        )

    ratio = Decimal(target - before.timestamp) / Decimal(after.timestamp - before.timestamp)
    price = before.price + (after.price - before.price) * ratio
    return InterpolationResult(
        price=price,
        ratio=ratio,
        before_price=before.price,
        after_price=after.price,
        before_timestamp=before.timestamp,
        after_timestamp=after.timestamp,
    )
