"""
FastAPI application for the positive-EV finder.
Fetches odds from SportsGameOdds and surfaces +EV bets with Kelly stakes.
"""

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from datetime import datetime
from typing import List, Optional
from dotenv import load_dotenv
import logging
import math
import os

from ev_backend.core.kelly import DEFAULT_KELLY_FRACTION
from ev_backend.core.snapshot import EvaluationParams
from ev_backend.core.sportsbooks import PINNACLE, SportsbookRegistry
from ev_backend.schemas import EventBetsResponse, HealthResponse, ServiceStatusResponse
from ev_backend.services.evaluator import MarketEvaluator
from ev_backend.services.odds import SportsGameOddsClient

# Load .env file
load_dotenv()

APP_NAME = "Positive EV Finder"
APP_VERSION = "1.0"

# Logging setup
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

# Built once at startup, read-only afterwards.
SPORTSBOOKS = SportsbookRegistry.default()
_evaluator = MarketEvaluator(SPORTSBOOKS)
_odds_client: Optional[SportsGameOddsClient] = None


app = FastAPI(
    title=APP_NAME,
    description="Positive expected-value bet finder with fractional Kelly sizing",
    version=APP_VERSION,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[os.getenv("FRONTEND_URL", "http://localhost:3000")],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# DEPENDENCIES
# ============================================================================

def get_odds_client() -> SportsGameOddsClient:
    global _odds_client
    if _odds_client is None:
        try:
            _odds_client = SportsGameOddsClient()
        except ValueError as exc:
            logger.error("Odds client unavailable: %s", exc)
            raise HTTPException(status_code=503, detail=str(exc))
    return _odds_client


def get_evaluator() -> MarketEvaluator:
    return _evaluator


def _default_bankroll() -> float:
    return float(os.getenv("BANKROLL", "1000"))


def _default_kelly_fraction() -> float:
    return float(os.getenv("KELLY_FRACTION", str(DEFAULT_KELLY_FRACTION)))


def _find_bets(
    client: SportsGameOddsClient,
    evaluator: MarketEvaluator,
    *,
    limit: int,
    league_id: str,
    live: Optional[bool],
    min_odds: int,
    max_odds: int,
    min_ev: float,
    bankroll: Optional[float],
    kelly_fraction: Optional[float],
    compare_to: Optional[str],
) -> List[EventBetsResponse]:
    if min_odds > max_odds:
        raise HTTPException(
            status_code=422,
            detail=f"minOdds ({min_odds}) must not exceed maxOdds ({max_odds})",
        )

    kelly_fraction = kelly_fraction if kelly_fraction is not None else _default_kelly_fraction()
    if not (0.0 < kelly_fraction <= 1.0):
        raise HTTPException(status_code=422, detail="kellyFraction must be in (0, 1]")
    bankroll = bankroll if bankroll is not None else _default_bankroll()
    if not math.isfinite(bankroll) or bankroll <= 0:
        raise HTTPException(status_code=422, detail="bankroll must be a positive finite number")

    events = client.fetch_snapshot(
        limit=limit,
        league_id=league_id,
        bookmaker_ids=SPORTSBOOKS.bookmaker_ids(),
        live=live,
    )
    if events is None:
        raise HTTPException(status_code=404, detail="No events found for search criteria.")

    params = EvaluationParams(
        min_price=min_odds,
        max_price=max_odds,
        min_ev=min_ev,
        bankroll=bankroll,
        kelly_fraction=kelly_fraction,
        compare_to_source=compare_to,
    )
    results = evaluator.evaluate_all(events, params)
    logger.info(
        "%d/%d %s events with +EV bets (reference=%s)",
        len(results), len(events), league_id, compare_to or "fair",
    )
    return [EventBetsResponse.from_result(r) for r in results]


# ============================================================================
# PUBLIC ENDPOINTS
# ============================================================================

@app.get("/", response_model=ServiceStatusResponse)
def root():
    """Service banner"""
    return ServiceStatusResponse(
        app=APP_NAME,
        version=APP_VERSION,
        status="operational",
        timestamp=datetime.utcnow(),
    )


@app.get("/health", response_model=HealthResponse)
def health_check():
    """Health check endpoint"""
    key_configured = bool(os.getenv("ODDS_API_KEY"))
    return HealthResponse(
        status="healthy" if key_configured else "degraded",
        odds_api_key="configured" if key_configured else "missing",
        sportsbooks=len(SPORTSBOOKS),
    )


# ============================================================================
# PASS-THROUGH ENDPOINTS
# ============================================================================

@app.get("/odds")
def get_raw_odds(
    request: Request,
    client: SportsGameOddsClient = Depends(get_odds_client),
):
    """Raw SportsGameOdds /events response; query parameters are forwarded as-is."""
    events = client.get_events(dict(request.query_params))
    if events is None:
        raise HTTPException(status_code=502, detail="Odds provider request failed.")
    return events


@app.get("/usage")
def get_usage(client: SportsGameOddsClient = Depends(get_odds_client)):
    """Account usage and rate limits from SportsGameOdds."""
    usage = client.get_usage()
    if usage is None:
        raise HTTPException(status_code=502, detail="Odds provider request failed.")
    return usage


# ============================================================================
# POSITIVE EV ENDPOINTS
# ============================================================================

@app.get("/positive-ev-bets", response_model=List[EventBetsResponse])
def get_positive_ev_bets(
    limit: int = Query(default=10, ge=1, le=100),
    league_id: str = Query(default="NBA", alias="leagueID"),
    live: Optional[bool] = Query(default=None),
    min_odds: int = Query(default=-400, alias="minOdds"),
    max_odds: int = Query(default=300, alias="maxOdds"),
    min_ev: float = Query(default=0.0, alias="minEV", allow_inf_nan=False),
    bankroll: Optional[float] = Query(default=None, gt=0, allow_inf_nan=False),
    kelly_fraction: Optional[float] = Query(default=None, gt=0, le=1, alias="kellyFraction"),
    compare_to: Optional[str] = Query(default=None, alias="compareTo"),
    client: SportsGameOddsClient = Depends(get_odds_client),
    evaluator: MarketEvaluator = Depends(get_evaluator),
):
    """
    Bets priced better than the market's fair odds.

    Pass ``compareTo=<sportsbook>`` to judge against that book's quote instead.
    """
    return _find_bets(
        client, evaluator,
        limit=limit, league_id=league_id, live=live,
        min_odds=min_odds, max_odds=max_odds, min_ev=min_ev,
        bankroll=bankroll, kelly_fraction=kelly_fraction,
        compare_to=compare_to,
    )


@app.get("/pinny-bets", response_model=List[EventBetsResponse])
def get_pinny_bets(
    limit: int = Query(default=5, ge=1, le=100),
    league_id: str = Query(default="NBA", alias="leagueID"),
    live: Optional[bool] = Query(default=None),
    min_odds: int = Query(default=-400, alias="minOdds"),
    max_odds: int = Query(default=300, alias="maxOdds"),
    min_ev: float = Query(default=0.0, alias="minEV", allow_inf_nan=False),
    bankroll: Optional[float] = Query(default=None, gt=0, allow_inf_nan=False),
    kelly_fraction: Optional[float] = Query(default=None, gt=0, le=1, alias="kellyFraction"),
    client: SportsGameOddsClient = Depends(get_odds_client),
    evaluator: MarketEvaluator = Depends(get_evaluator),
):
    """Bets priced better than Pinnacle's quote on the same line."""
    return _find_bets(
        client, evaluator,
        limit=limit, league_id=league_id, live=live,
        min_odds=min_odds, max_odds=max_odds, min_ev=min_ev,
        bankroll=bankroll, kelly_fraction=kelly_fraction,
        compare_to=PINNACLE,
    )


# ============================================================================
# ERROR HANDLERS
# ============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Catch-all exception handler"""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error", "type": type(exc).__name__}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=int(os.getenv("PORT", "4000")))
