from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_decimal(value):
    """Coerce ints, strings and floats to Decimal without binary float noise.

    NaN and infinities are rejected with ValueError like any other
    unparsable amount.
    """
    if value is None or value == "":
        return Decimal("0")
    if not isinstance(value, Decimal):
        try:
            value = Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Not a valid amount: {value!r}")
    if not value.is_finite():
        raise ValueError(f"Not a valid amount: {value!r}")
    return value


def to_money(value):
    # round to 2 decimal places before storing
    return to_decimal(value).quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
