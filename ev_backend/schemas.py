"""
Pydantic response schemas for the positive-EV API.

The evaluator works on frozen snake_case dataclasses; these models turn its
results into the camelCase JSON shape the frontend consumes (``eventID``,
``positiveEvBets``, ``overUnder`` ...).  Field names stay Pythonic and the
wire names are declared as aliases.
"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from ev_backend.core.snapshot import (
    EvaluationResult,
    MarketOpportunity,
    PositiveEvBet,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


# ---------------------------------------------------------------------------
# Positive-EV results
# ---------------------------------------------------------------------------

class PositiveEvBetResponse(_WireModel):
    """A single sportsbook quote that beats the reference price."""

    name: str = Field(..., description="Sportsbook display name")
    odds: int = Field(..., description="American odds offered")
    over_under: Optional[float] = Field(None, alias="overUnder")
    ev: float = Field(..., description="Expected profit per unit staked")
    stake: float = Field(..., description="Recommended fractional-Kelly stake")

    @classmethod
    def from_bet(cls, bet: PositiveEvBet) -> "PositiveEvBetResponse":
        return cls(
            name=bet.name,
            odds=bet.price,
            over_under=bet.line,
            ev=bet.ev,
            stake=bet.stake,
        )


class MarketOpportunityResponse(_WireModel):
    market_name: Optional[str] = Field(None, alias="marketName")
    side_id: Optional[str] = Field(None, alias="sideID")
    fair_odds: Optional[int] = Field(None, alias="fairOdds")
    fair_over_under: Optional[float] = Field(None, alias="fairOverUnder")
    book_odds: Optional[int] = Field(None, alias="bookOdds")
    book_over_under: Optional[float] = Field(None, alias="bookOverUnder")
    reference_odds: int = Field(..., alias="referenceOdds")
    reference_over_under: Optional[float] = Field(None, alias="referenceOverUnder")
    reference_type: Literal["fair", "source"] = Field(..., alias="referenceType")
    reference_source: Optional[str] = Field(None, alias="referenceSource")
    positive_ev_bets: Dict[str, PositiveEvBetResponse] = Field(..., alias="positiveEvBets")

    @classmethod
    def from_opportunity(cls, opp: MarketOpportunity) -> "MarketOpportunityResponse":
        return cls(
            market_name=opp.market_name,
            side_id=opp.side_id,
            fair_odds=opp.fair_price,
            fair_over_under=opp.fair_line,
            book_odds=opp.book_average_price,
            book_over_under=opp.book_average_line,
            reference_odds=opp.reference.price,
            reference_over_under=opp.reference.line,
            reference_type=opp.reference.mode.value,
            reference_source=opp.reference.source,
            positive_ev_bets={
                book: PositiveEvBetResponse.from_bet(bet) for book, bet in opp.bets.items()
            },
        )


class EventBetsResponse(_WireModel):
    """One event and its positive-EV markets."""

    event_id: Optional[str] = Field(None, alias="eventID")
    sport_id: Optional[str] = Field(None, alias="sportID")
    league_id: Optional[str] = Field(None, alias="leagueID")
    type: Optional[str] = None
    home_team: Optional[str] = Field(None, alias="homeTeam")
    away_team: Optional[str] = Field(None, alias="awayTeam")
    home_color: Optional[str] = Field(None, alias="homeColor")
    away_color: Optional[str] = Field(None, alias="awayColor")
    odds: Dict[str, MarketOpportunityResponse]

    @classmethod
    def from_result(cls, result: EvaluationResult) -> "EventBetsResponse":
        return cls(
            event_id=result.event_id,
            sport_id=result.sport_id,
            league_id=result.league_id,
            type=result.event_type,
            home_team=result.home.name,
            away_team=result.away.name,
            home_color=result.home.color,
            away_color=result.away.color,
            odds={
                key: MarketOpportunityResponse.from_opportunity(opp)
                for key, opp in result.opportunities.items()
            },
        )

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "eventID": "abc123",
                "sportID": "BASKETBALL",
                "leagueID": "NBA",
                "type": "match",
                "homeTeam": "Celtics",
                "awayTeam": "Knicks",
                "homeColor": "#007A33",
                "awayColor": "#006BB6",
                "odds": {
                    "points-all-game-ou-over": {
                        "marketName": "Over/Under",
                        "sideID": "over",
                        "fairOdds": -110,
                        "fairOverUnder": 221.5,
                        "bookOdds": -112,
                        "bookOverUnder": 221.5,
                        "referenceOdds": -110,
                        "referenceOverUnder": 221.5,
                        "referenceType": "fair",
                        "referenceSource": None,
                        "positiveEvBets": {
                            "fanduel": {
                                "name": "FanDuel",
                                "odds": 105,
                                "overUnder": 221.5,
                                "ev": 0.0738,
                                "stake": 17.57,
                            }
                        },
                    }
                },
            }
        },
    )


# ---------------------------------------------------------------------------
# Service status
# ---------------------------------------------------------------------------

class ServiceStatusResponse(BaseModel):
    app: str
    version: str
    status: str
    timestamp: datetime


class HealthResponse(BaseModel):
    status: str
    odds_api_key: Literal["configured", "missing"]
    sportsbooks: int
