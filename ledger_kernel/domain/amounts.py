"""
Monetary amount helpers.

Responsibility:
    Normalise incoming monetary values to ``Decimal`` and present signed
    nets as single-sided debit/credit pairs.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are Decimal, never float.  Floats are converted through
      ``str()`` so that ``0.1`` becomes ``Decimal("0.1")`` and not the
      binary expansion.
    - ``split_sides`` never returns two non-zero values.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation

from ledger_kernel.exceptions import InvalidRecordError

ZERO = Decimal("0")

# Balances smaller than this are treated as zero on statements.
NEGLIGIBLE = Decimal("0.0001")


def to_decimal(value: object, field_name: str = "amount") -> Decimal:
    """Convert an int, str, float or Decimal to a finite Decimal.

    Raises:
        InvalidRecordError: value is None, a bool, non-numeric or not finite.
    """
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool) or value is None:
        raise InvalidRecordError(field_name, f"not a monetary value: {value!r}")
    elif isinstance(value, (int, str)):
        try:
            result = Decimal(value)
        except InvalidOperation:
            raise InvalidRecordError(
                field_name, f"not a monetary value: {value!r}"
            ) from None
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise InvalidRecordError(field_name, f"not a monetary value: {value!r}")

    if not result.is_finite():
        raise InvalidRecordError(field_name, f"not a finite amount: {value!r}")
    return result


def split_sides(net: Decimal) -> tuple[Decimal, Decimal]:
    """Present a signed net as ``(debit, credit)`` with one side zero."""
    if net > ZERO:
        return net, ZERO
    if net < ZERO:
        return ZERO, -net
    return ZERO, ZERO


def is_negligible(value: Decimal, threshold: Decimal = NEGLIGIBLE) -> bool:
    return abs(value) < threshold
