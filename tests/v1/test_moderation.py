# tests/v1/test_moderation.py
"""Tests for the moderation preview endpoint."""

from fastapi import status

from safeyak.core.errors import ScorerUnavailable
from safeyak.models import Post


def test_classify_clean_text(client) -> None:
    response = client.post("/api/v1/moderation/classify", json={"text": "good luck on finals"})
    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "allowed": True,
        "blur": False,
        "hide": False,
        "reason": None,
        "toxicity": 0.0,
    }


def test_classify_severe_text(client, scorer) -> None:
    scorer.toxicity = 0.934
    verdict = client.post("/api/v1/moderation/classify", json={"text": "..."}).json()
    assert verdict["hide"] is True
    assert verdict["allowed"] is False
    assert verdict["toxicity"] == 0.93


def test_classify_empty_text(client) -> None:
    response = client.post("/api/v1/moderation/classify", json={"text": "  "})
    assert response.status_code == status.HTTP_400_BAD_REQUEST


def test_classify_degrades_when_scorer_down(client, scorer) -> None:
    scorer.error = ScorerUnavailable("timeout")
    verdict = client.post("/api/v1/moderation/classify", json={"text": "hello"}).json()
    assert verdict["allowed"] is True
    assert verdict["reason"] == "Moderation service unavailable"


def test_classify_persists_nothing(client, db_session, scorer) -> None:
    scorer.toxicity = 0.99
    client.post("/api/v1/moderation/classify", json={"text": "awful"})
    assert db_session.query(Post).count() == 0
