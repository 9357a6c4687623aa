#!/usr/bin/env python3
"""Integration test script to verify the full pipeline works offline.

Tests:
1. Spot database loading
2. Open-Meteo client parsing, filtering and error handling (fake session)
3. Timezone lookup
4. Spot forecasting and ranking (fake client)
5. HTTP API
6. Settings and CLI helpers

Run from project root:
    python scripts/test_integration.py
"""

import argparse
import os
import sys
import tempfile
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo

# Add project root and scripts dir to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))
sys.path.insert(0, str(Path(__file__).parent))

import requests
from fastapi.testclient import TestClient

from surfcast.api.app import app
from surfcast.api.dependencies import get_forecaster, get_spot_db
from surfcast.clients.open_meteo_client import (
    MarinePoint,
    OpenMeteoClient,
    OpenMeteoError,
    current_hour_iso,
    wind_to_ms,
)
from surfcast.clients.timezone_lookup import timezone_for
from surfcast.config import Settings, load_settings
from surfcast.core.forecaster import SpotForecaster, UnknownSpotError
from surfcast.core.rating import Axis, WeightProfile
from surfcast.core.spot import BreakType, SpotDatabase

import run_forecast


SPOTS_PATH = Path(__file__).parent.parent / "config" / "spots.yaml"
PERTH = "Australia/Perth"

MARINE_PAYLOAD = {
    "hourly": {
        "time": ["2025-10-06T00:00", "2025-10-06T01:00", "2025-10-06T02:00"],
        "wave_height": [1.8, 2.0, None],
        "wave_period": [9.0, 10.0, 11.0],
        "wave_direction": [200.0, 205.0, 210.0],
        "swell_wave_height": [1.5, None, None],
        "swell_wave_period": [13.0, None, None],
        "swell_wave_direction": [215.0, 220.0, None],
        "sea_surface_temperature": [19.5, 19.6, 19.7],
        "sea_level_height_msl": [0.2, 0.3, None],
    },
}

WIND_PAYLOAD = {
    "hourly_units": {"wind_speed_10m": "km/h", "wind_direction_10m": "°"},
    "hourly": {
        "time": ["2025-10-06T00:00", "2025-10-06T01:00"],
        "wind_speed_10m": [36.0, 18.0],
        "wind_direction_10m": [90.0, 100.0],
    },
}


class FakeResponse:
    """Minimal requests.Response stand-in."""

    def __init__(self, payload, status_code=200):
        self.payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Server Error")

    def json(self):
        return self.payload


class FakeSession:
    """Routes marine and weather URLs to canned payloads."""

    def __init__(self, marine=MARINE_PAYLOAD, wind=WIND_PAYLOAD, status_code=200, error=None):
        self.marine = marine
        self.wind = wind
        self.status_code = status_code
        self.error = error
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append((url, params))
        if self.error is not None:
            raise self.error
        payload = self.marine if "marine" in url else self.wind
        return FakeResponse(payload, self.status_code)


class FakeClient:
    """Forecast client returning fixed points, optionally failing for some spots."""

    def __init__(self, points, fail_lats=()):
        self.points = points
        self.fail_lats = set(fail_lats)
        self.calls = []

    def get_marine_points(self, lat, lon, timezone="UTC"):
        self.calls.append((lat, lon, timezone))
        if lat in self.fail_lats:
            raise OpenMeteoError("Open-Meteo request failed: 503 Server Error")
        return list(self.points)


def sample_points(count=30) -> list[MarinePoint]:
    """Clean offshore hours with a swell that builds over time."""
    return [
        MarinePoint(
            ts=f"2025-10-{6 + i // 24:02d}T{i % 24:02d}:00",
            hs=1.0 + i * 0.05,
            tp=10.0,
            dp=215.0,
            swell_hs=1.0 + i * 0.05,
            swell_tp=13.0,
            swell_dp=215.0,
            wind_ms=3.0,
            wind_dir=90.0,
            water_c=19.5,
            sea_level=0.2,
        )
        for i in range(count)
    ]


def make_forecaster(client=None, settings=None) -> SpotForecaster:
    return SpotForecaster(
        spot_db=SpotDatabase(SPOTS_PATH),
        client=client or FakeClient(sample_points()),
        settings=settings or Settings(),
        timezone_resolver=lambda lat, lon: PERTH,
    )


# ------------------------------ spot database ------------------------------


def test_spot_database():
    """Test loading and querying the spot database."""
    db = SpotDatabase(SPOTS_PATH)
    print(f"\n  Total spots loaded: {db.spot_count}")

    assert db.spot_count == 4

    cottesloe = db.get_spot("cottesloe")
    assert cottesloe is not None
    assert cottesloe.coast_bearing == 270
    assert cottesloe.break_type == BreakType.BEACH
    assert (cottesloe.swell_dir_min, cottesloe.swell_dir_max) == (190, 240)
    assert (cottesloe.min_period, cottesloe.ideal_period) == (8, 13)
    assert cottesloe.has_tide_window is False

    huzzas = db.get_spot("huzzas")
    assert huzzas.has_tide_window is True
    assert (huzzas.min_tide, huzzas.ideal_tide, huzzas.max_tide) == (0.0, 0.5, 1.5)
    assert huzzas.notes.startswith("Reef")

    assert db.get_spot("nowhere") is None
    assert db.get_spot_by_name("trigg").id == "trigg"
    assert {s.id for s in db.get_spots_by_break_type("beach")} == {"cottesloe", "redgate"}


def test_spot_database_normalizes_and_falls_back():
    """Test bearings are normalized and unknown break types become reef."""
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "spots.yaml"
        path.write_text(
            "spots:\n"
            "  - id: north\n"
            "    name: North Wrap\n"
            "    coordinates: {lat: 1.0, lon: 2.0}\n"
            "    coast_bearing: 360\n"
            "    break_type: slab\n"
            "    swell_window: {min: -10, max: 20}\n"
        )
        db = SpotDatabase(path)

    spot = db.get_spot("north")
    assert spot.break_type == BreakType.REEF
    assert spot.swell_dir_min == 350
    assert spot.swell_dir_max == 20
    assert spot.coast_bearing == 0
    assert spot.min_period is None


def test_spot_database_missing_file():
    """Test a missing spots file raises FileNotFoundError."""
    try:
        SpotDatabase(Path("/nonexistent/spots.yaml"))
    except FileNotFoundError:
        return
    raise AssertionError("Expected FileNotFoundError")


def test_spot_database_path_from_dotenv():
    """Test the default database honours SURFCAST_SPOTS_PATH from a .env file."""
    saved_env = os.environ.pop("SURFCAST_SPOTS_PATH", None)
    saved_cwd = os.getcwd()
    with tempfile.TemporaryDirectory() as tmp:
        path = Path(tmp) / "local_spots.yaml"
        path.write_text(
            "spots:\n"
            "  - id: local\n"
            "    name: Local Bank\n"
            "    coordinates: {lat: 1.0, lon: 2.0}\n"
        )
        (Path(tmp) / ".env").write_text(f"SURFCAST_SPOTS_PATH={path}\n")
        os.chdir(tmp)
        try:
            db = SpotDatabase()
        finally:
            os.chdir(saved_cwd)
            if saved_env is not None:
                os.environ["SURFCAST_SPOTS_PATH"] = saved_env

    assert db.spots_path == path
    assert db.get_spot("local").name == "Local Bank"


# ------------------------------ open-meteo client ------------------------------


def test_wind_unit_conversion():
    """Test wind speeds are converted to m/s."""
    assert abs(wind_to_ms(36.0, "km/h") - 10.0) < 1e-9
    assert abs(wind_to_ms(10.0, "mph") - 4.4704) < 1e-9
    assert abs(wind_to_ms(10.0, "kn") - 5.14444) < 1e-9
    assert wind_to_ms(7.0, "m/s") == 7.0
    assert wind_to_ms(7.0, "furlongs") == 7.0
    assert wind_to_ms(None, "km/h") is None


def test_merge_marine_and_wind():
    """Test marine rows are merged with wind by timestamp."""
    client = OpenMeteoClient(session=FakeSession())
    points = client.merge(MARINE_PAYLOAD, WIND_PAYLOAD)

    assert [p.ts for p in points] == ["2025-10-06T00:00", "2025-10-06T01:00", "2025-10-06T02:00"]

    first = points[0]
    assert first.swell_hs == 1.5
    assert first.hs == 1.8
    assert abs(first.wind_ms - 10.0) < 1e-9
    assert first.wind_dir == 90.0
    assert first.sea_level == 0.2

    # Missing values stay missing
    assert points[1].swell_hs is None
    assert points[2].hs is None
    assert points[2].wind_ms is None
    assert points[2].wind_dir is None
    assert first.water_c == 19.5


def test_current_hour_filter_and_horizon():
    """Test points start at the current local hour and respect the horizon."""
    session = FakeSession()
    client = OpenMeteoClient(session=session, horizon_hours=48)
    now = datetime(2025, 10, 6, 1, 30, tzinfo=ZoneInfo(PERTH))

    points = client.get_marine_points(-31.994, 115.751, PERTH, now=now)
    assert [p.ts for p in points] == ["2025-10-06T01:00", "2025-10-06T02:00"]
    assert len(session.calls) == 2

    marine_params = session.calls[0][1]
    assert marine_params["timezone"] == PERTH
    assert marine_params["cell_selection"] == "sea"
    assert "swell_wave_height" in marine_params["hourly"]

    # Served from cache the second time
    client.horizon_hours = 1
    points = client.get_marine_points(-31.994, 115.751, PERTH, now=now)
    assert [p.ts for p in points] == ["2025-10-06T01:00"]
    assert len(session.calls) == 2


def test_cache_keeps_nearby_spots_apart():
    """Test spots a few hundred metres apart get their own forecast fetch."""
    session = FakeSession()
    client = OpenMeteoClient(session=session)
    now = datetime(2025, 10, 6, 1, 30, tzinfo=ZoneInfo(PERTH))

    client.get_marine_points(-31.994, 115.751, PERTH, now=now)
    client.get_marine_points(-31.996, 115.752, PERTH, now=now)
    assert len(session.calls) == 4
    assert session.calls[2][1]["latitude"] == -31.996

    # Same coordinates again come from cache
    client.get_marine_points(-31.996, 115.752, PERTH, now=now)
    assert len(session.calls) == 4


def test_current_hour_iso():
    """Test the current hour string in a given timezone."""
    utc_now = datetime(2025, 10, 5, 18, 45, tzinfo=ZoneInfo("UTC"))
    assert current_hour_iso(PERTH, utc_now) == "2025-10-06T02:00"
    assert current_hour_iso(PERTH, datetime(2025, 10, 6, 7, 59)) == "2025-10-06T07:00"


def test_client_errors():
    """Test network, HTTP and payload failures raise OpenMeteoError."""
    cases = [
        FakeSession(error=requests.ConnectionError("connection refused")),
        FakeSession(status_code=502),
        FakeSession(marine={"error": True, "reason": "Cannot initialize"}),
        FakeSession(marine={"latitude": 1.0}),
    ]
    for session in cases:
        client = OpenMeteoClient(session=session)
        try:
            client.get_marine_points(-31.994, 115.751, PERTH)
        except OpenMeteoError as e:
            print(f"  OpenMeteoError: {e}")
            continue
        raise AssertionError("Expected OpenMeteoError")


# ------------------------------ timezone ------------------------------


def test_timezone_lookup():
    """Test timezone lookup and its UTC fallback."""
    assert timezone_for(-31.994, 115.751) == PERTH
    assert timezone_for(999.0, 999.0) == "UTC"


# ------------------------------ forecaster ------------------------------


def test_build_inputs_fallbacks():
    """Test swell values are preferred, then total wave values, then 0."""
    forecaster = make_forecaster()
    spot = forecaster.spot_db.get_spot("cottesloe")

    point = MarinePoint(ts="2025-10-06T00:00", hs=1.8, tp=9.0, dp=200.0, swell_hs=1.5, swell_tp=None,
                        swell_dp=None, wind_ms=None, wind_dir=None, sea_level=0.4)
    inputs = forecaster.build_inputs(point, spot)
    assert inputs.hs == 1.5
    assert inputs.tp == 9.0
    assert inputs.dp == 200.0
    assert inputs.wind == 0.0
    assert inputs.wind_dir == 0.0
    assert inputs.tide is None

    empty = forecaster.build_inputs(MarinePoint(ts="2025-10-06T00:00"), spot)
    assert (empty.hs, empty.tp, empty.dp) == (0.0, 0.0, 0.0)

    tidal = make_forecaster(settings=Settings(tide_from_sea_level=True))
    assert tidal.build_inputs(point, spot).tide == 0.4


def test_forecast_spot():
    """Test a spot forecast with legacy weights."""
    client = FakeClient(sample_points())
    forecaster = make_forecaster(client)

    forecast = forecaster.forecast_spot("cottesloe")
    assert forecast.timezone == PERTH
    assert len(forecast.hours) == 30
    assert client.calls == [(-31.994, 115.751, PERTH)]

    first = forecast.hours[0]
    assert first.aggregate is None
    assert set(first.components) == {"windScore", "dirScore", "periodScore", "sizeScore", "tideScore"}
    assert "favourable swell direction" in first.reasons
    assert 0.0 <= first.score <= 10.0

    # Summary covers the first 24 hours only
    day_scores = [h.score for h in forecast.hours[:24]]
    assert forecast.summary.max_score == max(day_scores)
    assert forecast.summary.min_score == min(day_scores)

    data = forecast.to_dict()
    assert data["spot"] == {"id": "cottesloe", "name": "Cottesloe", "lat": -31.994, "lon": 115.751}
    assert data["meta"]["timezone"] == PERTH
    assert data["meta"]["source"] == "Open-Meteo Marine"
    assert data["meta"]["fetched_at"] == forecast.fetch_time.isoformat()
    assert datetime.fromisoformat(data["meta"]["fetched_at"]) <= datetime.now()
    assert set(data["today_summary"]) == {"minScore", "maxScore"}
    assert data["hours"][0]["source"] == "open-meteo:marine+weather"
    assert "aggregate" not in data["hours"][0]


def test_forecast_spot_custom_weights():
    """Test custom weights replace the legacy score with the aggregate."""
    forecaster = make_forecaster()
    forecast = forecaster.forecast_spot("cottesloe", WeightProfile(size=1))

    first = forecast.hours[0]
    assert first.aggregate is not None
    assert first.score == first.aggregate.score
    assert first.aggregate.weights[Axis.SIZE] == 1.0
    # hs 1.0 at a beach break -> 1.0 / 2.5
    assert first.score == 4.0
    assert forecast.to_dict()["hours"][0]["aggregate"]["method"] == "geometric"


def test_forecast_errors():
    """Test unknown spots and provider failures surface as errors."""
    forecaster = make_forecaster()
    try:
        forecaster.forecast_spot("nowhere")
    except UnknownSpotError as e:
        assert str(e) == "Unknown spot_id='nowhere'"
    else:
        raise AssertionError("Expected UnknownSpotError")

    failing = make_forecaster(FakeClient(sample_points(), fail_lats={-31.994}))
    try:
        failing.forecast_spot("cottesloe")
    except OpenMeteoError:
        pass
    else:
        raise AssertionError("Expected OpenMeteoError")


def test_timezone_override():
    """Test a configured timezone overrides the per-spot lookup."""
    client = FakeClient(sample_points(2))
    forecaster = make_forecaster(client, settings=Settings(timezone="UTC"))
    assert forecaster.forecast_spot("trigg").timezone == "UTC"
    assert client.calls[0][2] == "UTC"


def test_rank_spots():
    """Test ranking skips failing spots and assigns ranks."""
    forecaster = make_forecaster(FakeClient(sample_points(), fail_lats={-31.866}))
    ranked = forecaster.rank_spots()

    assert [f.rank for f in ranked] == list(range(1, len(ranked) + 1))
    assert "trigg" not in {f.spot.id for f in ranked}
    assert len(ranked) == 3
    scores = [f.best_score for f in ranked]
    assert scores == sorted(scores, reverse=True)

    assert len(forecaster.rank_spots(top_n=2)) == 2


# ------------------------------ HTTP API ------------------------------


def _api_client(forecaster: SpotForecaster) -> TestClient:
    app.dependency_overrides[get_forecaster] = lambda: forecaster
    app.dependency_overrides[get_spot_db] = lambda: forecaster.spot_db
    return TestClient(app)


def test_api_spots_and_health():
    """Test the spot listing and health endpoints."""
    client = _api_client(make_forecaster())
    try:
        resp = client.get("/api/spots")
        assert resp.status_code == 200
        spots = resp.json()
        assert len(spots) == 4
        assert spots[0] == {"id": "cottesloe", "name": "Cottesloe", "lat": -31.994, "lon": 115.751}

        assert client.get("/health").json() == {"status": "healthy"}
        assert client.get("/").status_code == 200
    finally:
        app.dependency_overrides.clear()


def test_api_forecast():
    """Test the forecast endpoint with and without weights."""
    client = _api_client(make_forecaster())
    try:
        resp = client.get("/api/forecast", params={"spot_id": "cottesloe"})
        assert resp.status_code == 200
        body = resp.json()
        assert body["spot"]["id"] == "cottesloe"
        assert len(body["hours"]) == 30
        assert "aggregate" not in body["hours"][0]

        resp = client.get("/api/forecast", params={"spot_id": "cottesloe", "w_size": 1})
        hour = resp.json()["hours"][0]
        assert hour["aggregate"]["weights"]["size"] == 1.0
        assert hour["score"] == 4.0

        # Infinite weights are dropped rather than failing the request
        resp = client.get(
            "/api/forecast",
            params={"spot_id": "cottesloe", "w_wind": "inf", "w_size": 1},
        )
        assert resp.status_code == 200
        hour = resp.json()["hours"][0]
        assert hour["aggregate"]["weights"]["wind"] == 0.0
        assert hour["aggregate"]["weights"]["size"] == 1.0
        assert hour["score"] == 4.0

        resp = client.get("/api/forecast", params={"spot_id": "cottesloe", "w_wind": "inf"})
        assert resp.status_code == 200
        assert resp.json()["hours"][0]["score"] == 10.0
    finally:
        app.dependency_overrides.clear()


def test_api_forecast_errors():
    """Test unknown spots give 400 and provider failures give 502."""
    client = _api_client(make_forecaster())
    try:
        resp = client.get("/api/forecast", params={"spot_id": "nowhere"})
        assert resp.status_code == 400
        assert resp.json() == {"error": "Unknown spot_id='nowhere'"}
    finally:
        app.dependency_overrides.clear()

    client = _api_client(make_forecaster(FakeClient(sample_points(), fail_lats={-31.994})))
    try:
        resp = client.get("/api/forecast", params={"spot_id": "cottesloe"})
        assert resp.status_code == 502
        assert "Open-Meteo" in resp.json()["error"]
    finally:
        app.dependency_overrides.clear()


# ------------------------------ settings & CLI ------------------------------


def test_load_settings_from_env():
    """Test settings read SURFCAST_* variables and ignore bad numbers."""
    keys = {
        "SURFCAST_HORIZON_HOURS": "24",
        "SURFCAST_FORECAST_DAYS": "three",
        "SURFCAST_TIDE_FROM_SEA_LEVEL": "true",
        "SURFCAST_TIMEZONE": "UTC",
    }
    saved = {k: os.environ.get(k) for k in keys}
    os.environ.update(keys)
    try:
        settings = load_settings()
    finally:
        for k, v in saved.items():
            if v is None:
                os.environ.pop(k, None)
            else:
                os.environ[k] = v

    assert settings.horizon_hours == 24
    assert settings.forecast_days == 7
    assert settings.tide_from_sea_level is True
    assert settings.timezone == "UTC"


def test_load_settings_rejects_unknown_timezone():
    """Test an unloadable SURFCAST_TIMEZONE is ignored so spots use their own zone."""
    saved = os.environ.get("SURFCAST_TIMEZONE")
    try:
        for bad in ("Mars/Olympus_Mons", "../etc/passwd"):
            os.environ["SURFCAST_TIMEZONE"] = bad
            assert load_settings().timezone is None, bad
    finally:
        if saved is None:
            os.environ.pop("SURFCAST_TIMEZONE", None)
        else:
            os.environ["SURFCAST_TIMEZONE"] = saved


def test_cli_parse_weights():
    """Test the --weights argument parser."""
    assert run_forecast.parse_weights(None) is None
    assert run_forecast.parse_weights("wind=0.4, dir=0.3,bogus=1") == WeightProfile(wind=0.4, dir=0.3)

    for bad in ("wind", "wind=abc"):
        try:
            run_forecast.parse_weights(bad)
        except argparse.ArgumentTypeError:
            continue
        raise AssertionError(f"Expected ArgumentTypeError for {bad!r}")


def test_cli_list_and_unknown_spot():
    """Test the CLI lists spots and fails cleanly for unknown ids."""
    assert run_forecast.main(["--list"]) == 0
    assert run_forecast.main(["--spot", "nowhere"]) == 1


def run_all_tests():
    """Run all tests and report results."""
    print("\n" + "#"*60)
    print("# SURFCAST INTEGRATION TEST SUITE")
    print("#"*60)

    tests = [
        ("Spot Database", test_spot_database),
        ("Spot Database Normalization", test_spot_database_normalizes_and_falls_back),
        ("Spot Database Missing File", test_spot_database_missing_file),
        ("Spot Database Path from .env", test_spot_database_path_from_dotenv),
        ("Wind Unit Conversion", test_wind_unit_conversion),
        ("Merge Marine and Wind", test_merge_marine_and_wind),
        ("Current Hour Filter", test_current_hour_filter_and_horizon),
        ("Cache Keeps Nearby Spots Apart", test_cache_keeps_nearby_spots_apart),
        ("Current Hour ISO", test_current_hour_iso),
        ("Client Errors", test_client_errors),
        ("Timezone Lookup", test_timezone_lookup),
        ("Input Fallbacks", test_build_inputs_fallbacks),
        ("Forecast Spot", test_forecast_spot),
        ("Forecast Custom Weights", test_forecast_spot_custom_weights),
        ("Forecast Errors", test_forecast_errors),
        ("Timezone Override", test_timezone_override),
        ("Rank Spots", test_rank_spots),
        ("API Spots and Health", test_api_spots_and_health),
        ("API Forecast", test_api_forecast),
        ("API Forecast Errors", test_api_forecast_errors),
        ("Settings from Env", test_load_settings_from_env),
        ("Settings Reject Unknown Timezone", test_load_settings_rejects_unknown_timezone),
        ("CLI Weights", test_cli_parse_weights),
        ("CLI List / Unknown Spot", test_cli_list_and_unknown_spot),
    ]

    passed = 0
    failed = 0

    for name, test_func in tests:
        try:
            test_func()
            passed += 1
            print(f"  ✓ {name}")
        except AssertionError as e:
            failed += 1
            print(f"\n  ✗ FAILED: {name}")
            print(f"    Error: {e}")
        except Exception as e:
            failed += 1
            print(f"\n  ✗ ERROR: {name}")
            print(f"    Exception: {e}")

    print("\n" + "="*60)
    print("TEST RESULTS")
    print("="*60)
    print(f"  Passed: {passed}")
    print(f"  Failed: {failed}")
    print(f"  Total:  {len(tests)}")
    print("="*60)

    return failed == 0


if __name__ == "__main__":
    success = run_all_tests()
    sys.exit(0 if success else 1)
