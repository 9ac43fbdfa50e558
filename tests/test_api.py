"""
Tests for the FastAPI routes.
Run with: pytest tests/test_api.py -v
"""

from unittest.mock import MagicMock

import pytest
from fastapi.testclient import TestClient

from ev_backend.core.snapshot import Event, Market, Participant, Quote
from ev_backend.main import app, get_odds_client, SPORTSBOOKS


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _event(event_id="EVT1", **market_overrides):
    market = dict(
        market_name="Over/Under",
        side_id="over",
        fair_price=-110,
        fair_line=221.5,
        book_average_price=-112,
        book_average_line=221.5,
        by_source={
            "fanduel": Quote(150, 221.5),
            "betmgm": Quote(120, 222.0),
            "caesars": Quote(-120, 221.5),
            "pinnacle": Quote(-105, 221.5),
            "draftkings": Quote(250, 221.5),
        },
    )
    market.update(market_overrides)
    return Event(
        event_id=event_id,
        sport_id="BASKETBALL",
        league_id="NBA",
        event_type="match",
        home=Participant("Celtics", "#007A33"),
        away=Participant("Knicks", None),
        markets={"points-all-game-ou-over": Market(**market)},
    )


@pytest.fixture
def odds_client():
    fake = MagicMock()
    fake.fetch_snapshot.return_value = [_event()]
    app.dependency_overrides[get_odds_client] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def api():
    return TestClient(app)


# ---------------------------------------------------------------------------
# Status routes
# ---------------------------------------------------------------------------

class TestStatus:

    def test_root(self, api):
        body = api.get("/").json()
        assert body["status"] == "operational"
        assert body["app"] == "Positive EV Finder"

    def test_health_reports_missing_key(self, api, monkeypatch):
        monkeypatch.delenv("ODDS_API_KEY", raising=False)
        body = api.get("/health").json()
        assert body["odds_api_key"] == "missing"
        assert body["status"] == "degraded"
        assert body["sportsbooks"] == len(SPORTSBOOKS)

    def test_health_reports_configured_key(self, api, monkeypatch):
        monkeypatch.setenv("ODDS_API_KEY", "abc")
        body = api.get("/health").json()
        assert body == {"status": "healthy", "odds_api_key": "configured", "sportsbooks": 7}


# ---------------------------------------------------------------------------
# /positive-ev-bets
# ---------------------------------------------------------------------------

class TestPositiveEvBets:

    def test_default_fetch_params(self, api, odds_client):
        api.get("/positive-ev-bets")
        odds_client.fetch_snapshot.assert_called_once_with(
            limit=10,
            league_id="NBA",
            bookmaker_ids="fanduel,fanatics,betmgm,fliff,espnbet,caesars,pinnacle",
            live=None,
        )

    def test_query_params_forwarded(self, api, odds_client):
        api.get("/positive-ev-bets", params={"limit": 3, "leagueID": "NFL", "live": "true"})
        kwargs = odds_client.fetch_snapshot.call_args.kwargs
        assert kwargs["limit"] == 3
        assert kwargs["league_id"] == "NFL"
        assert kwargs["live"] is True

    def test_wire_shape(self, api, odds_client):
        response = api.get("/positive-ev-bets", params={"bankroll": 1000, "kellyFraction": 0.25})
        assert response.status_code == 200
        body = response.json()

        assert len(body) == 1
        event = body[0]
        assert event["eventID"] == "EVT1"
        assert event["homeTeam"] == "Celtics"
        assert event["homeColor"] == "#007A33"
        assert event["awayColor"] is None
        assert event["type"] == "match"

        market = event["odds"]["points-all-game-ou-over"]
        assert market["fairOdds"] == -110
        assert market["fairOverUnder"] == 221.5
        assert market["referenceType"] == "fair"
        assert market["referenceOdds"] == -110
        # betmgm: wrong line; caesars: worse price; draftkings: not registered
        assert set(market["positiveEvBets"]) == {"fanduel", "pinnacle"}

        fanduel = market["positiveEvBets"]["fanduel"]
        assert fanduel["name"] == "FanDuel"
        assert fanduel["odds"] == 150
        assert fanduel["overUnder"] == 221.5
        assert fanduel["ev"] == pytest.approx((110 / 210) * 2.5 - 1)
        assert fanduel["stake"] == pytest.approx(51.587, abs=0.01)

    def test_min_ev_filters(self, api, odds_client):
        body = api.get("/positive-ev-bets", params={"minEV": 0.1}).json()
        bets = body[0]["odds"]["points-all-game-ou-over"]["positiveEvBets"]
        assert list(bets) == ["fanduel"]

    def test_max_odds_filters(self, api, odds_client):
        body = api.get("/positive-ev-bets", params={"maxOdds": 140}).json()
        bets = body[0]["odds"]["points-all-game-ou-over"]["positiveEvBets"]
        assert list(bets) == ["pinnacle"]

    def test_events_without_bets_dropped(self, api, odds_client):
        odds_client.fetch_snapshot.return_value = [
            _event("EVT1"),
            _event("EVT2", by_source={"fanduel": Quote(-300, 221.5)}),
            Event(event_id="EVT3"),
        ]
        body = api.get("/positive-ev-bets").json()
        assert [e["eventID"] for e in body] == ["EVT1"]

    def test_compare_to_source(self, api, odds_client):
        body = api.get("/positive-ev-bets", params={"compareTo": "pinnacle"}).json()
        market = body[0]["odds"]["points-all-game-ou-over"]
        assert market["referenceType"] == "source"
        assert market["referenceSource"] == "pinnacle"
        assert market["referenceOdds"] == -105
        assert list(market["positiveEvBets"]) == ["fanduel"]

    def test_fetch_failure_is_404(self, api, odds_client):
        odds_client.fetch_snapshot.return_value = None
        response = api.get("/positive-ev-bets")
        assert response.status_code == 404
        assert response.json() == {"detail": "No events found for search criteria."}

    def test_empty_fetch_is_empty_list(self, api, odds_client):
        odds_client.fetch_snapshot.return_value = []
        response = api.get("/positive-ev-bets")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.parametrize("params", [
        {"kellyFraction": 0},
        {"kellyFraction": 1.5},
        {"bankroll": -5},
        {"limit": 0},
        {"minOdds": 200, "maxOdds": 100},
    ])
    def test_invalid_params_rejected(self, api, odds_client, params):
        response = api.get("/positive-ev-bets", params=params)
        assert response.status_code == 422
        odds_client.fetch_snapshot.assert_not_called()

    @pytest.mark.parametrize("route", ["/positive-ev-bets", "/pinny-bets"])
    @pytest.mark.parametrize("params", [
        {"bankroll": "inf"},
        {"minEV": "nan"},
        {"minEV": "inf"},
    ])
    def test_non_finite_numbers_rejected(self, api, odds_client, route, params):
        response = api.get(route, params=params)
        assert response.status_code == 422
        odds_client.fetch_snapshot.assert_not_called()

    def test_non_finite_bankroll_from_environment_rejected(self, api, odds_client, monkeypatch):
        monkeypatch.setenv("BANKROLL", "inf")
        response = api.get("/positive-ev-bets")
        assert response.status_code == 422
        odds_client.fetch_snapshot.assert_not_called()

    def test_defaults_from_environment(self, api, odds_client, monkeypatch):
        monkeypatch.setenv("BANKROLL", "2000")
        monkeypatch.setenv("KELLY_FRACTION", "0.5")
        default_body = api.get("/positive-ev-bets").json()
        explicit_body = api.get(
            "/positive-ev-bets", params={"bankroll": 2000, "kellyFraction": 0.5},
        ).json()
        assert default_body == explicit_body


# ---------------------------------------------------------------------------
# /pinny-bets
# ---------------------------------------------------------------------------

class TestPinnyBets:

    def test_pinnacle_reference_and_default_limit(self, api, odds_client):
        body = api.get("/pinny-bets").json()

        assert odds_client.fetch_snapshot.call_args.kwargs["limit"] == 5
        market = body[0]["odds"]["points-all-game-ou-over"]
        assert market["referenceSource"] == "pinnacle"
        assert market["referenceOdds"] == -105
        assert market["referenceOverUnder"] == 221.5
        assert list(market["positiveEvBets"]) == ["fanduel"]

    def test_events_without_pinnacle_dropped(self, api, odds_client):
        odds_client.fetch_snapshot.return_value = [
            _event(by_source={"fanduel": Quote(150, 221.5)}),
        ]
        assert api.get("/pinny-bets").json() == []


# ---------------------------------------------------------------------------
# Pass-through routes
# ---------------------------------------------------------------------------

class TestPassThrough:

    def test_raw_odds_forwards_query(self, api, odds_client):
        odds_client.get_events.return_value = [{"eventID": "raw"}]
        response = api.get("/odds", params={"leagueID": "NBA", "limit": "2"})
        assert response.json() == [{"eventID": "raw"}]
        odds_client.get_events.assert_called_once_with({"leagueID": "NBA", "limit": "2"})

    def test_raw_odds_failure(self, api, odds_client):
        odds_client.get_events.return_value = None
        assert api.get("/odds").status_code == 502

    def test_usage(self, api, odds_client):
        odds_client.get_usage.return_value = {"tier": "rookie"}
        assert api.get("/usage").json() == {"tier": "rookie"}

    def test_usage_failure(self, api, odds_client):
        odds_client.get_usage.return_value = None
        assert api.get("/usage").status_code == 502


def test_missing_api_key_is_503(api, monkeypatch):
    import ev_backend.main as main_module

    monkeypatch.delenv("ODDS_API_KEY", raising=False)
    monkeypatch.setattr(main_module, "_odds_client", None)
    response = api.get("/positive-ev-bets")
    assert response.status_code == 503
