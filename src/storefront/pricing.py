#   Copyright 2026 UCP Authors
#
#   Licensed under the Apache License, Version 2.0 (the "License");
#   you may not use this file except in compliance with the License.
#   You may obtain a copy of the License at
#
#       http://www.apache.org/licenses/LICENSE-2.0
#
#   Unless required by applicable law or agreed to in writing, software
#   distributed under the License is distributed on an "AS IS" BASIS,
#   WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#   See the License for the specific language governing permissions and
#   limitations under the License.

"""Order total computation in integer minor currency units.

Every amount handled by the storefront is an integer number of cents. Prices
given in decimal currency (CSV imports, display) are converted at the edges
with `to_minor_units` and `format_amount`. Both payment entry points and the
confirmation view share the same formula:

  tax = round(TAX_RATE * (subtotal + shipping))
  total = subtotal + shipping + tax

Rounding is half-up on the integer cent amount.
"""

import dataclasses
import decimal
from typing import Iterable, Tuple, Union

SHIPPING_FEE = 1000  # In cents
TAX_RATE_BASIS_POINTS = 1000  # 10%
MINIMUM_CHARGE = 50  # In cents, the smallest amount the gateway accepts

_BASIS_POINTS = 10_000


@dataclasses.dataclass(frozen=True)
class OrderTotals:
  """Breakdown of an order total. All fields are in cents."""

  subtotal: int
  shipping: int
  tax: int
  total: int


def compute_tax(taxable: int) -> int:
  """Returns the tax for a taxable amount, rounded half-up to the cent."""
  return (taxable * TAX_RATE_BASIS_POINTS + _BASIS_POINTS // 2) // _BASIS_POINTS


def compute_totals(lines: Iterable[Tuple[int, int]]) -> OrderTotals:
  """Computes order totals from (unit price, quantity) pairs.

  Args:
    lines: Pairs of unit price in cents and quantity.

  Returns:
    The order totals including the fixed shipping fee and tax.
  """
  subtotal = sum(price * quantity for price, quantity in lines)
  shipping = SHIPPING_FEE
  tax = compute_tax(subtotal + shipping)
  return OrderTotals(
      subtotal=subtotal,
      shipping=shipping,
      tax=tax,
      total=subtotal + shipping + tax,
  )


def split_total(total: int) -> OrderTotals:
  """Recovers the subtotal and tax from a stored order total.

  The confirmation page only knows the amount that was charged until the
  webhook materializes line items, so the breakdown is derived by inverting
  `compute_totals` for the fixed shipping fee.

  Args:
    total: The charged total in cents.

  Returns:
    Totals whose fields satisfy the same identity as `compute_totals`.
  """
  estimate = total * _BASIS_POINTS // (_BASIS_POINTS + TAX_RATE_BASIS_POINTS)
  taxable = estimate
  for candidate in (estimate, estimate + 1, estimate - 1):
    if candidate + compute_tax(candidate) == total:
      taxable = candidate
      break
  return OrderTotals(
      subtotal=taxable - SHIPPING_FEE,
      shipping=SHIPPING_FEE,
      tax=total - taxable,
      total=total,
  )


def to_minor_units(amount: Union[str, int, float, decimal.Decimal]) -> int:
  """Converts a decimal currency amount (e.g. "24.99") to cents."""
  value = decimal.Decimal(str(amount)) * 100
  return int(value.quantize(decimal.Decimal("1"), rounding=decimal.ROUND_HALF_UP))


def format_amount(cents: int) -> str:
  """Formats cents as a decimal currency string (e.g. 6598 -> "65.98")."""
  sign = "-" if cents < 0 else ""
  whole, frac = divmod(abs(cents), 100)
  return f"{sign}{whole}.{frac:02d}"
