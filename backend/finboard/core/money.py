from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any

from finboard.core.errors import InvalidAmountError

CENTS = Decimal("0.01")


def parse_amount(raw: Any) -> Decimal:
    """Parse a user-entered amount into a positive Decimal with cent precision.

    Accepts Decimal, int, float or str. Rejects booleans, NaN/Infinity,
    zero, negatives and sub-cent precision.
    """

    if raw is None or isinstance(raw, bool):
        raise InvalidAmountError()

    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            raise InvalidAmountError()

    try:
        # float goes through str() so 0.1 stays 0.1 and not its binary expansion
        value = Decimal(str(raw)) if isinstance(raw, float) else Decimal(raw)
        if not value.is_finite() or value <= 0:
            raise InvalidAmountError()
        quantized = value.quantize(CENTS)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError() from None

    if quantized != value:
        raise InvalidAmountError()
    return quantized
