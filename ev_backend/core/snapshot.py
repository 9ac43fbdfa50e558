"""Data-transfer objects flowing through the evaluation pipeline.

Inputs (:class:`Event`, :class:`Market`, :class:`Quote`) are what the odds
client produces after normalising provider JSON.  Outputs
(:class:`EvaluationResult`, :class:`MarketOpportunity`,
:class:`PositiveEvBet`) are what the evaluator returns.

Design choices
--------------
* Every DTO is frozen and slotted.  Nothing here persists between requests
  and the evaluator must never mutate its input.
* Absence is explicit.  The provider feed is loosely typed and deeply
  nested; instead of optional chaining at each use site, each field that
  can be missing is ``Optional`` and the evaluator short-circuits on it.
* ``markets`` on :class:`Event` and ``by_source`` on :class:`Market` are
  ``None`` (not empty) when the provider omitted them, because the two
  cases are handled differently by the evaluator.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping, Optional

from ev_backend.core.kelly import DEFAULT_KELLY_FRACTION


# ---------------------------------------------------------------------------
# Snapshot inputs
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class Quote:
    """A single sportsbook's price for one market.

    Attributes:
        price: American odds, or ``None`` when the feed value was unusable.
        line: Over/under or spread threshold; ``None`` for markets without
            one (moneylines).  Two quotes are only comparable when their
            lines are equal.
    """

    price: Optional[int]
    line: Optional[float] = None


@dataclass(slots=True, frozen=True)
class Market:
    """One specific bet, e.g. "home team to cover -2.5"."""

    market_name: Optional[str] = None
    side_id: Optional[str] = None
    fair_price: Optional[int] = None
    fair_line: Optional[float] = None
    book_average_price: Optional[int] = None
    book_average_line: Optional[float] = None
    by_source: Optional[Mapping[str, Quote]] = None


@dataclass(slots=True, frozen=True)
class Participant:
    name: Optional[str] = None
    color: Optional[str] = None


@dataclass(slots=True, frozen=True)
class Event:
    """A normalised event snapshot."""

    event_id: Optional[str] = None
    sport_id: Optional[str] = None
    league_id: Optional[str] = None
    event_type: Optional[str] = None
    home: Participant = field(default_factory=Participant)
    away: Participant = field(default_factory=Participant)
    markets: Optional[Mapping[str, Market]] = None


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


@dataclass(slots=True, frozen=True)
class EvaluationParams:
    """Caller-supplied filter and sizing parameters.

    Attributes:
        min_price: Inclusive lower bound on a qualifying American price.
        max_price: Inclusive upper bound on a qualifying American price.
        min_ev: Exclusive lower bound on EV.  ``0.0`` accepts any edge.
        bankroll: Amount used for stake sizing.
        kelly_fraction: Share of full Kelly recommended, in ``(0, 1]``.
        compare_to_source: When set, that sportsbook's quote replaces the
            market's fair price as the reference.
    """

    min_price: int
    max_price: int
    min_ev: float
    bankroll: float
    kelly_fraction: float = DEFAULT_KELLY_FRACTION
    compare_to_source: Optional[str] = None


# ---------------------------------------------------------------------------
# Evaluation outputs
# ---------------------------------------------------------------------------


class ReferenceMode(str, enum.Enum):
    """Which price a market was judged against."""

    FAIR = "fair"
    SOURCE = "source"


@dataclass(slots=True, frozen=True)
class ReferencePrice:
    price: int
    line: Optional[float]
    mode: ReferenceMode
    source: Optional[str] = None


@dataclass(slots=True, frozen=True)
class PositiveEvBet:
    name: str
    price: int
    line: Optional[float]
    ev: float
    stake: float


@dataclass(slots=True, frozen=True)
class MarketOpportunity:
    market_name: Optional[str]
    side_id: Optional[str]
    fair_price: Optional[int]
    fair_line: Optional[float]
    book_average_price: Optional[int]
    book_average_line: Optional[float]
    reference: ReferencePrice
    bets: Mapping[str, PositiveEvBet]


@dataclass(slots=True, frozen=True)
class EvaluationResult:
    """Positive-EV opportunities found in one event.

    ``opportunities`` only ever holds markets with at least one bet; an
    empty mapping means the event had nothing worth surfacing.  The
    evaluator hands out read-only mappings.
    """

    event_id: Optional[str]
    sport_id: Optional[str]
    league_id: Optional[str]
    event_type: Optional[str]
    home: Participant
    away: Participant
    opportunities: Mapping[str, MarketOpportunity]

    @property
    def bet_count(self) -> int:
        return sum(len(opp.bets) for opp in self.opportunities.values())
