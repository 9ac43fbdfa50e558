"""Fundamental odds mathematics.

Every function here is **pure**: no I/O, no logging, no side effects.
Import from this module; never reimplement locally in services.

The two pillars exposed are:

1. **Odds conversion** — American ↔ decimal ↔ implied probability.
2. **Expected value** — unit-stake EV of an offered price, judged against a
   reference price whose implied probability is taken as the true one.

Design decisions
----------------
* All functions accept ``int`` American odds because SportsGameOdds and most
  US sportsbook feeds quote integers.  Decimal odds must be converted by the
  caller before passing in.
* A price of ``0`` has no meaning in the American convention.  Rather than
  letting it turn into a ``ZeroDivisionError`` (or worse, ``inf``), every
  entry point raises :class:`OddsMathError` so callers can skip the single
  offending quote and keep going.

Run tests with::

    pytest tests/test_odds_math.py -v
"""

from __future__ import annotations

import math
from typing import Final

#: Stake basis of the American convention (risk 100 / win 100).
_AMERICAN_BASIS: Final[float] = 100.0


class OddsMathError(ValueError):
    """Raised when a price cannot be converted without a degenerate result."""


def _check_price(american: int | float) -> None:
    if isinstance(american, bool) or not isinstance(american, (int, float)):
        raise OddsMathError(f"American odds must be numeric, got {american!r}.")
    try:
        finite = math.isfinite(american)
    except OverflowError:
        # int too large for a float
        finite = False
    if not finite or american == 0:
        raise OddsMathError(
            f"Invalid American odds {american!r}: zero and non-finite prices "
            "are undefined."
        )


# ---------------------------------------------------------------------------
# Odds conversion
# ---------------------------------------------------------------------------


def american_to_decimal(american: int | float) -> float:
    """Convert American odds to decimal (European) format.

    Decimal odds represent the total payout per unit staked, **including**
    the return of the stake itself.  Examples::

        american_to_decimal(-110) → 1.9091   (risk 110 to win 100)
        american_to_decimal(+150) → 2.5000   (risk 100 to win 150)

    Args:
        american: American odds.  Negative = favourite, positive = underdog.

    Returns:
        Decimal odds > 1.0.

    Raises:
        OddsMathError: If ``american`` is zero or not a finite number.
    """
    _check_price(american)
    if american > 0:
        return american / _AMERICAN_BASIS + 1.0
    # Negative: risk |american| to win 100
    return _AMERICAN_BASIS / abs(american) + 1.0


def implied_probability(american: int | float) -> float:
    """Raw implied probability from American odds (vig-inclusive).

    For a single price this is the break-even win rate.  The two sides of a
    quoted market (e.g. -110 / -110) generally sum to **more** than 1.0;
    only vig-free prices sum to exactly one.

    Examples::

        implied_probability(-110) → 0.5238
        implied_probability(+150) → 0.4000

    Raises:
        OddsMathError: If ``american`` is zero or not a finite number.
    """
    _check_price(american)
    if american < 0:
        return abs(american) / (abs(american) + _AMERICAN_BASIS)
    return _AMERICAN_BASIS / (american + _AMERICAN_BASIS)


def decimal_to_american(decimal_odds: float) -> int:
    """Convert decimal odds to the nearest American integer.

    Inverse of :func:`american_to_decimal`.  Rounds to the nearest integer;
    use the result for display and logging, not for further arithmetic.

    Raises:
        OddsMathError: If ``decimal_odds <= 1.0`` (no profit is possible and
            the American price would be infinite).
    """
    if not math.isfinite(decimal_odds) or decimal_odds <= 1.0:
        raise OddsMathError(
            f"Decimal odds {decimal_odds!r} must be > 1.0 to have an American price."
        )
    if decimal_odds >= 2.0:
        return round((decimal_odds - 1.0) * _AMERICAN_BASIS)
    # Favourite: decimal < 2.0 → negative American
    return round(-_AMERICAN_BASIS / (decimal_odds - 1.0))


# ---------------------------------------------------------------------------
# Expected value
# ---------------------------------------------------------------------------


def expected_value(reference_price: int | float, offered_price: int | float) -> float:
    """Expected profit of a one-unit stake at ``offered_price``.

    The reference price's implied probability is treated as the true win
    probability::

        EV = p_ref · decimal(offered) − 1

    ``0.0`` is break-even; positive means the offered price beats the
    reference.  Examples::

        expected_value(-110, +150) → 0.3095
        expected_value(-110, -110) → 0.0

    Raises:
        OddsMathError: If either price is zero or not a finite number.
    """
    return implied_probability(reference_price) * american_to_decimal(offered_price) - 1.0
