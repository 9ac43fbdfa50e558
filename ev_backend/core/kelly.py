"""Kelly criterion sizing — the single source of truth for stake math.

All functions here are **pure**: no I/O, no logging.
Import from this module; never reimplement Kelly locally in services.

Design decisions
----------------
* **Fractional Kelly** (a fraction of full Kelly) is the standard practice in
  sports betting.  Full Kelly maximises long-run log-wealth only when the
  edge estimate is exact; here the "true" probability is just the reference
  price's implied probability, so the default fraction is a quarter.
* Unlike a bet-placement sizer, these functions do **not** clamp negative
  results to zero.  A negative full Kelly means the reference model sees no
  edge; the evaluator screens such quotes out upstream through its EV
  threshold, and reporting the raw figure keeps the formula honest.

Run tests with::

    pytest tests/test_kelly.py -v
"""

from __future__ import annotations

import math
from typing import Final

from ev_backend.core.odds_math import OddsMathError, american_to_decimal, implied_probability

#: Default share of full Kelly recommended as a stake.
DEFAULT_KELLY_FRACTION: Final[float] = 0.25


def full_kelly_fraction(offered_price: int | float, reference_price: int | float) -> float:
    """Full Kelly fraction of bankroll for a bet at ``offered_price``.

    The closed form (Kelly 1956) for a win/loss bet is::

        f*  =  (p · b − q) / b

    where ``p`` is the reference implied probability, ``q = 1 − p`` and
    ``b`` is the profit per unit staked (decimal odds minus one).

    Examples::

        full_kelly_fraction(+150, -110) → 0.2063
        full_kelly_fraction(-110, -110) → 0.0

    Raises:
        OddsMathError: If either price is degenerate, or ``b == 0``.
    """
    win_prob = implied_probability(reference_price)
    loss_prob = 1.0 - win_prob
    profit_per_unit = american_to_decimal(offered_price) - 1.0

    if profit_per_unit == 0.0:
        raise OddsMathError(
            f"Offered price {offered_price!r} pays nothing per unit; Kelly is undefined."
        )

    return (win_prob * profit_per_unit - loss_prob) / profit_per_unit


def kelly_stake(
    bankroll: float,
    offered_price: int | float,
    reference_price: int | float,
    kelly_fraction: float = DEFAULT_KELLY_FRACTION,
) -> float:
    """Recommended stake in bankroll currency.

    ``stake = full_kelly · kelly_fraction · bankroll``

    Args:
        bankroll: Amount available for staking.
        offered_price: American price being bet.
        reference_price: American price whose implied probability is taken
            as the true win probability.
        kelly_fraction: Share of full Kelly to recommend, in ``(0, 1]``.

    Returns:
        The stake.  Negative when the reference sees no edge.

    Raises:
        OddsMathError: On degenerate prices or ``kelly_fraction`` outside
            ``(0, 1]``, or a non-finite ``bankroll``.
    """
    if not (0.0 < kelly_fraction <= 1.0):
        raise OddsMathError(
            f"kelly_fraction must be in (0, 1], got {kelly_fraction!r}."
        )
    if not math.isfinite(bankroll):
        raise OddsMathError(f"bankroll must be finite, got {bankroll!r}.")
    return full_kelly_fraction(offered_price, reference_price) * kelly_fraction * bankroll
