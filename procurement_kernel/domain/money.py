"""
Money rules for requisition line items.

Responsibility
--------------
Coerce user-entered quantities and prices to finite ``Decimal`` values and
keep a line's ``amount`` consistent with ``quantity * unit_price`` unless the
line is in manual-override mode.

Architecture position
---------------------
**Kernel domain layer** -- pure functions, ZERO I/O.  Works on any frozen
dataclass exposing ``quantity``, ``unit_price``, ``amount`` and
``is_manual``.

Invariants enforced
-------------------
* All amounts are ``Decimal`` -- NEVER float.
* Unparsable, missing and non-finite inputs coerce to ``Decimal("0")``.
  A value too large for a float counts as non-finite.
* Products and sums never raise: an overflowing result is zero.
* ``is_manual`` False  => ``amount == quantity * unit_price`` after any edit.
* ``is_manual`` True   => quantity/price edits leave ``amount`` untouched.
* Turning ``is_manual`` off recomputes ``amount`` immediately.
* Writing ``amount`` directly only takes effect while ``is_manual`` is True.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import fields, replace
from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, TypeVar

from procurement_kernel.exceptions import UnknownItemFieldError

ZERO = Decimal("0")

NUMERIC_FIELDS: frozenset[str] = frozenset({"quantity", "unit_price", "amount"})
FLAG_FIELDS: frozenset[str] = frozenset({"is_manual", "is_priority"})
TEXT_FIELDS: frozenset[str] = frozenset({"category", "name"})
EDITABLE_FIELDS: frozenset[str] = NUMERIC_FIELDS | FLAG_FIELDS | TEXT_FIELDS

# Fields whose change triggers an automatic amount recomputation
_PRICING_FIELDS: frozenset[str] = frozenset({"quantity", "unit_price"})

T = TypeVar("T")


def to_number(value: Any) -> Decimal:
    """Coerce ``value`` to a finite Decimal, falling back to zero."""
    if value is None:
        return ZERO
    if isinstance(value, bool):
        return Decimal(int(value))
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        # str() keeps the short repr: 0.1 -> Decimal("0.1")
        result = Decimal(str(value))
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return ZERO
        try:
            result = Decimal(text)
        except InvalidOperation:
            return ZERO
    else:
        return ZERO
    return result if _is_finite(result) else ZERO


def _is_finite(value: Decimal) -> bool:
    return value.is_finite() and math.isfinite(float(value))


def compute_amount(quantity: Any, unit_price: Any) -> Decimal:
    """Line amount from quantity and unit price."""
    with localcontext() as ctx:
        ctx.clear_traps()
        product = to_number(quantity) * to_number(unit_price)
    return product if _is_finite(product) else ZERO


def sum_amounts(values: Iterable[Any]) -> Decimal:
    """Sum of coerced amounts.  Zero if the total overflows."""
    with localcontext() as ctx:
        ctx.clear_traps()
        total = sum((to_number(value) for value in values), ZERO)
    return total if _is_finite(total) else ZERO


def _coerce(field_name: str, value: Any) -> Any:
    if field_name in NUMERIC_FIELDS:
        return to_number(value)
    if field_name in FLAG_FIELDS:
        return bool(value)
    return "" if value is None else str(value)


def apply_field_edit(item: T, field_name: str, value: Any) -> T:
    """
    Return a copy of ``item`` with ``field_name`` set to ``value``.

    Preconditions:
        ``item`` is a dataclass with the line-item money fields.
    Postconditions:
        Amount invariants above hold on the returned item.

    Raises:
        UnknownItemFieldError: if ``field_name`` is not an editable field
            of ``item`` (``id`` is never editable).
    """
    if field_name not in EDITABLE_FIELDS or field_name not in {
        f.name for f in fields(item)  # type: ignore[arg-type]
    }:
        raise UnknownItemFieldError(field_name)

    updated = replace(item, **{field_name: _coerce(field_name, value)})

    # A direct amount edit only sticks in manual mode
    recompute = not updated.is_manual and (
        field_name in _PRICING_FIELDS
        or field_name in ("is_manual", "amount")
    )
    if recompute:
        updated = replace(
            updated,
            amount=compute_amount(updated.quantity, updated.unit_price),
        )
    return updated
