"""
SportsGameOdds API integration.
https://sportsgameodds.com/docs/

Two concerns live here:

  Fetching:
      get_events() / get_usage() are thin wrappers around the v2 REST API.
      Any transport or decoding failure is logged and reported as None so the
      caller can short-circuit; nothing here retries.

  Normalising:
      parse_event() turns one raw event dict into the frozen snapshot types
      in ev_backend.core.snapshot.  Provider prices arrive as strings such as
      "+150" / "-110" and lines as "2.5"; unusable values become None and are
      skipped by the evaluator rather than failing the whole event.
"""

import logging
import math
import os
from typing import Any, Dict, List, Mapping, Optional

import requests

from ev_backend.core.snapshot import Event, Market, Participant, Quote

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.sportsgameodds.com/v2"
DEFAULT_TIMEOUT_SECONDS = 10.0


class SportsGameOddsClient:
    """Client for the SportsGameOdds v2 API"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self.api_key = api_key or os.getenv("ODDS_API_KEY")
        if not self.api_key:
            raise ValueError("ODDS_API_KEY not set in environment")
        base_url = base_url or os.getenv("ODDS_API_BASE_URL", DEFAULT_BASE_URL)
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout or float(
            os.getenv("ODDS_API_TIMEOUT", str(DEFAULT_TIMEOUT_SECONDS))
        )

    def _get(self, path: str, params: Optional[Mapping[str, Any]] = None) -> Optional[Any]:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = requests.get(
                url,
                params=params,
                headers={"x-api-key": self.api_key},
                timeout=self.timeout,
            )
            response.raise_for_status()
            body = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("SportsGameOdds error on %s: %s", path, e)
            return None
        except ValueError as e:
            logger.error("SportsGameOdds returned invalid JSON on %s: %s", path, e)
            return None

        if not isinstance(body, dict) or "data" not in body:
            logger.error("SportsGameOdds response on %s has no 'data' field", path)
            return None
        return body["data"]

    def get_events(self, params: Optional[Mapping[str, Any]] = None) -> Optional[List[Dict]]:
        """
        Fetch raw events.

        Returns the provider's event list, or None on failure.  An empty
        list is a successful fetch that matched nothing.
        """
        data = self._get("events", params)
        if data is None:
            return None
        if not isinstance(data, list):
            logger.error("SportsGameOdds events payload is %s, expected list", type(data).__name__)
            return None

        logger.info("SportsGameOdds: %d events fetched (params=%s)", len(data), dict(params or {}))
        return data

    def get_usage(self) -> Optional[Dict]:
        """Fetch account usage and rate-limit information (pass-through)."""
        return self._get("account/usage")

    def fetch_snapshot(
        self,
        limit: int,
        league_id: str,
        bookmaker_ids: str,
        live: Optional[bool] = None,
    ) -> Optional[List[Event]]:
        """
        Fetch upcoming events with odds and normalise them.

        Args:
            limit:          Maximum number of events.
            league_id:      Provider league id, e.g. "NBA".
            bookmaker_ids:  Comma-joined sportsbook ids (see
                            SportsbookRegistry.bookmaker_ids).
            live:           Restrict to live (True) or pre-game (False)
                            events; None leaves it to the provider.
        """
        params: Dict[str, Any] = {
            "limit": limit,
            "bookmakerID": bookmaker_ids,
            "leagueID": league_id,
            "finalized": "false",
            "oddsAvailable": "true",
        }
        if live is not None:
            params["live"] = "true" if live else "false"

        raw_events = self.get_events(params)
        if raw_events is None:
            return None
        return [parse_event(raw) for raw in raw_events if isinstance(raw, dict)]


# ---------------------------------------------------------------------------
# Normalisation
# ---------------------------------------------------------------------------

def parse_price(value: Any) -> Optional[int]:
    """Parse a provider price ("+150", "-110", -110, -110.0) to an int."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def parse_line(value: Any) -> Optional[float]:
    """Parse a provider over/under or spread ("2.5", "-3", 2.5) to a float."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number):
        return None
    return number


def _first_present(raw: Mapping, *keys: str) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def _parse_participant(team: Any) -> Participant:
    if not isinstance(team, dict):
        return Participant()
    names = team.get("names") or {}
    colors = team.get("colors") or {}
    return Participant(
        name=names.get("medium") if isinstance(names, dict) else None,
        color=colors.get("primary") if isinstance(colors, dict) else None,
    )


def _parse_quote(raw: Any) -> Quote:
    if not isinstance(raw, dict):
        return Quote(price=None)
    return Quote(
        price=parse_price(raw.get("odds")),
        line=parse_line(_first_present(raw, "overUnder", "spread")),
    )


def _parse_market(raw: Mapping) -> Market:
    by_bookmaker = raw.get("byBookmaker")
    by_source = None
    if isinstance(by_bookmaker, dict):
        by_source = {book: _parse_quote(entry) for book, entry in by_bookmaker.items()}

    return Market(
        market_name=raw.get("marketName"),
        side_id=raw.get("sideID"),
        fair_price=parse_price(raw.get("fairOdds")),
        fair_line=parse_line(_first_present(raw, "fairOverUnder", "fairSpread")),
        book_average_price=parse_price(raw.get("bookOdds")),
        book_average_line=parse_line(_first_present(raw, "bookOverUnder", "bookSpread")),
        by_source=by_source,
    )


def parse_event(raw: Mapping) -> Event:
    """Normalise one raw SportsGameOdds event."""
    teams = raw.get("teams") or {}
    if not isinstance(teams, dict):
        teams = {}

    odds = raw.get("odds")
    markets = None
    if isinstance(odds, dict):
        markets = {
            key: _parse_market(entry)
            for key, entry in odds.items()
            if isinstance(entry, dict)
        }

    return Event(
        event_id=raw.get("eventID"),
        sport_id=raw.get("sportID"),
        league_id=raw.get("leagueID"),
        event_type=raw.get("type"),
        home=_parse_participant(teams.get("home")),
        away=_parse_participant(teams.get("away")),
        markets=markets,
    )
