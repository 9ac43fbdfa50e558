"""
Positive-EV market evaluator.

Given one normalised event snapshot, finds every sportsbook quote whose
price beats a reference price and sizes a fractional-Kelly stake for it.

The reference is either:

    1. the market's fair (no-vig) price and line, or
    2. a named sportsbook's quote for the same market (``compare_to_source``),
       e.g. Pinnacle as the sharp benchmark.

A quote is only compared when it is on the same line as the reference;
a different over/under or spread is a different bet.
"""

import logging
from types import MappingProxyType
from typing import Dict, Iterable, List, Optional, Tuple

from ev_backend.core.kelly import kelly_stake
from ev_backend.core.odds_math import OddsMathError, expected_value
from ev_backend.core.snapshot import (
    EvaluationParams,
    EvaluationResult,
    Event,
    Market,
    MarketOpportunity,
    PositiveEvBet,
    Quote,
    ReferenceMode,
    ReferencePrice,
)
from ev_backend.core.sportsbooks import SportsbookRegistry

logger = logging.getLogger(__name__)


class MarketEvaluator:
    """
    Stateless evaluator bound to a sportsbook registry.

    Usage::

        evaluator = MarketEvaluator(SportsbookRegistry.default())
        result = evaluator.evaluate(event, params)

    ``strict_price_comparison`` selects whether a candidate must be strictly
    better than the reference (``>``, default) or merely as good (``>=``).
    """

    def __init__(
        self,
        registry: SportsbookRegistry,
        strict_price_comparison: bool = True,
    ):
        self.registry = registry
        self.strict_price_comparison = strict_price_comparison

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def evaluate(
        self,
        event: Optional[Event],
        params: EvaluationParams,
    ) -> Optional[EvaluationResult]:
        """
        Evaluate every market of ``event``.

        Returns None when there is nothing to evaluate (no event, or the
        event carried no odds).  Otherwise returns a result whose
        ``opportunities`` holds only markets with at least one bet.
        """
        if event is None or event.markets is None:
            return None

        opportunities: Dict[str, MarketOpportunity] = {}
        for market_key, market in event.markets.items():
            opportunity = self._evaluate_market(market_key, market, params)
            if opportunity is not None:
                opportunities[market_key] = opportunity

        result = EvaluationResult(
            event_id=event.event_id,
            sport_id=event.sport_id,
            league_id=event.league_id,
            event_type=event.event_type,
            home=event.home,
            away=event.away,
            opportunities=MappingProxyType(opportunities),
        )
        logger.debug(
            "Event %s: %d/%d markets with +EV (%d bets)",
            event.event_id, len(opportunities), len(event.markets), result.bet_count,
        )
        return result

    def evaluate_all(
        self,
        events: Iterable[Optional[Event]],
        params: EvaluationParams,
    ) -> List[EvaluationResult]:
        """Evaluate a batch and drop events with no qualifying opportunities."""
        results = []
        for event in events:
            result = self.evaluate(event, params)
            if result is not None and result.opportunities:
                results.append(result)
        return results

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_reference(
        self,
        market: Market,
        params: EvaluationParams,
    ) -> Optional[ReferencePrice]:
        if params.compare_to_source is None:
            if market.fair_price is None:
                return None
            return ReferencePrice(
                price=market.fair_price,
                line=market.fair_line,
                mode=ReferenceMode.FAIR,
            )

        quote = (market.by_source or {}).get(params.compare_to_source)
        if quote is None or quote.price is None:
            return None
        return ReferencePrice(
            price=quote.price,
            line=quote.line,
            mode=ReferenceMode.SOURCE,
            source=params.compare_to_source,
        )

    def _beats(self, price: int, reference_price: int) -> bool:
        if self.strict_price_comparison:
            return price > reference_price
        return price >= reference_price

    def _candidates(
        self,
        market: Market,
        reference: ReferencePrice,
        params: EvaluationParams,
    ) -> List[Tuple[str, Quote]]:
        return [
            (book, quote)
            for book, quote in market.by_source.items()
            if book in self.registry
            and quote.price is not None
            and self._beats(quote.price, reference.price)
            and params.min_price <= quote.price <= params.max_price
            and quote.line == reference.line
        ]

    def _evaluate_market(
        self,
        market_key: str,
        market: Market,
        params: EvaluationParams,
    ) -> Optional[MarketOpportunity]:
        if not market.by_source:
            return None

        reference = self._resolve_reference(market, params)
        if reference is None:
            return None

        bets: Dict[str, PositiveEvBet] = {}
        for book, quote in self._candidates(market, reference, params):
            try:
                ev = expected_value(reference.price, quote.price)
                if ev <= params.min_ev:
                    continue
                stake = kelly_stake(
                    params.bankroll, quote.price, reference.price, params.kelly_fraction,
                )
            except OddsMathError as e:
                logger.warning(
                    "Skipping %s quote for market %s (ref %s, price %s): %s",
                    book, market_key, reference.price, quote.price, e,
                )
                continue

            bets[book] = PositiveEvBet(
                name=self.registry.display_name(book),
                price=quote.price,
                line=quote.line,
                ev=ev,
                stake=stake,
            )

        if not bets:
            return None

        return MarketOpportunity(
            market_name=market.market_name,
            side_id=market.side_id,
            fair_price=market.fair_price,
            fair_line=market.fair_line,
            book_average_price=market.book_average_price,
            book_average_line=market.book_average_line,
            reference=reference,
            bets=MappingProxyType(bets),
        )
