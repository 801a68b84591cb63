import datetime as dt
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from signal_engine.app.api import app


@pytest.fixture
def client():
    return TestClient(app)


def _bars(closes, start=dt.date(2024, 1, 1)):
    return [
        {
            "date": (start + dt.timedelta(days=i)).isoformat(),
            "open": str(c),
            "high": str(c),
            "low": str(c),
            "close": str(c),
            "volume": 1000,
        }
        for i, c in enumerate(closes)
    ]


def test_compute_indicators(client):
    resp = client.post(
        "/indicators/compute",
        json={"symbol": "BP.L", "bars": _bars([1, 2, 3, 4, 5, 10]), "indicators": ["sma3", "RSI_2", "macd_2_3_2"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert set(body) == {"SMA_3", "RSI_2", "MACD_2_3_2"}
    assert [Decimal(p["value"]) for p in body["SMA_3"]] == [2, 3, 4, Decimal("6.333333")]
    assert body["SMA_3"][0]["date"] == "2024-01-03"
    last = body["MACD_2_3_2"][-1]
    assert Decimal(last["value"]) == Decimal("0.222222")
    assert Decimal(last["metadata"]["signal_line"]) == Decimal("0.944445")


def test_compute_indicators_insufficient_data(client):
    resp = client.post(
        "/indicators/compute",
        json={"symbol": "BP.L", "bars": _bars([1, 2, 3]), "indicators": ["macd"]},
    )
    assert resp.status_code == 422
    assert "MACD_12_26_9" in resp.json()["detail"]


@pytest.mark.parametrize("name", ["bollinger", "sma", "macd_12_26", "sma1", "macd_26_12_9"])
def test_compute_indicators_rejects_bad_names(client, name):
    resp = client.post(
        "/indicators/compute",
        json={"symbol": "BP.L", "bars": _bars([1, 2, 3]), "indicators": [name]},
    )
    assert resp.status_code == 400


def test_compute_indicators_rejects_unordered_bars(client):
    bars = _bars([1, 2, 3])
    resp = client.post(
        "/indicators/compute",
        json={"symbol": "BP.L", "bars": [bars[1], bars[0], bars[2]], "indicators": ["sma2"]},
    )
    assert resp.status_code == 422


def test_score_signal(client):
    resp = client.post(
        "/signals/score",
        json={
            "symbol": "SHEL.L",
            "price": "2450.5",
            "as_of": "2024-06-03",
            "sma20": "110",
            "sma50": "100",
            "sma200": "90",
            "rsi": "25",
            "macd_histogram": "12",
        },
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["signal_type"] == "BUY"
    assert body["strength"] == "STRONG"
    assert body["score"] == 100
    assert body["components"] == {"trend": 30, "momentum": 30, "value": 30, "confluence_bonus": 10}
    assert body["date"] == "2024-06-03"
    assert body["tradeable"] is True
    assert Decimal(body["price"]) == Decimal("2450.5")


def test_score_signal_without_indicators(client):
    resp = client.post("/signals/score", json={"symbol": "NEW", "price": "10"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["signal_type"] == "HOLD"
    assert body["strength"] == "AVOID"
    assert body["reasoning"] == "Insufficient data"


def test_size_position(client):
    resp = client.post(
        "/positions/size",
        json={"symbol": "SHEL.L", "price": "100", "score": 80, "portfolio_value": "20000"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["shares"] == 20
    assert Decimal(body["investment_amount"]) == 2000
    assert Decimal(body["stop_loss_price"]) == 90
    assert Decimal(body["risk_amount"]) == 200
    assert body["valid"] is True


def test_size_position_skips_small_targets(client):
    resp = client.post(
        "/positions/size",
        json={
            "symbol": "SHEL.L",
            "price": "100",
            "score": 40,
            "portfolio_value": "20000",
            "strategy": "signal_strength",
        },
    )
    assert resp.status_code == 200
    assert resp.json()["shares"] == 0
    assert resp.json()["valid"] is False


def test_size_position_unknown_profile(client):
    resp = client.post(
        "/positions/size",
        json={"symbol": "X", "price": "1", "score": 80, "portfolio_value": "1000", "risk_profile": "yolo"},
    )
    assert resp.status_code == 400
