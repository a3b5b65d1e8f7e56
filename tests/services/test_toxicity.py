"""Tests for the HuggingFace toxicity adapter."""

import json

import httpx
import pytest

from safeyak.core.errors import ScorerNotConfigured, ScorerUnavailable
from safeyak.services.moderation import REASON_UNAVAILABLE, ModerationPolicy
from safeyak.services.toxicity import HuggingFaceScorer, normalize_scores

URL = "https://inference.test/models/unitary/toxic-bert"

MALFORMED_SCORES = [
    [[{"label": "toxic", "score": None}]],
    {"toxicity": {"score": 0.9}},
    {"toxicity": None},
]


def _scorer(handler, api_key: str | None = "hf_test") -> HuggingFaceScorer:
    return HuggingFaceScorer(api_key, URL, timeout=1.0, transport=httpx.MockTransport(handler))


def test_normalize_bare_number() -> None:
    assert normalize_scores(0.42) == 0.42


def test_normalize_attribute_mapping_takes_max() -> None:
    assert normalize_scores({"toxicity": 0.3, "insult": 0.8, "threat": 0.1}) == 0.8


def test_normalize_attribute_mapping_ignores_negative_class() -> None:
    assert normalize_scores({"toxic": 0.05, "non-toxic": 0.95}) == 0.05


@pytest.mark.parametrize("raw", MALFORMED_SCORES)
def test_normalize_rejects_non_numeric_scores(raw) -> None:
    with pytest.raises(ValueError):
        normalize_scores(raw)


def test_normalize_nested_label_list_ignores_non_toxic() -> None:
    raw = [[
        {"label": "non-toxic", "score": 0.97},
        {"label": "toxic", "score": 0.03},
        {"label": "insult", "score": 0.01},
    ]]
    assert normalize_scores(raw) == 0.03


def test_normalize_flat_label_list() -> None:
    raw = [{"label": "toxic", "score": 0.91}, {"label": "obscene", "score": 0.4}]
    assert normalize_scores(raw) == 0.91


def test_normalize_clamps_to_unit_interval() -> None:
    assert normalize_scores(1.7) == 1.0
    assert normalize_scores(-0.2) == 0.0


def test_normalize_rejects_unknown_shape() -> None:
    with pytest.raises(ValueError):
        normalize_scores("very toxic")


@pytest.mark.asyncio
async def test_score_posts_inputs_with_bearer_token() -> None:
    seen: dict[str, object] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["auth"] = request.headers["Authorization"]
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json=[[{"label": "toxic", "score": 0.66}]])

    score = await _scorer(handler).score("go away")

    assert score == 0.66
    assert seen == {"auth": "Bearer hf_test", "body": {"inputs": "go away"}}


@pytest.mark.asyncio
async def test_score_without_key_is_not_configured() -> None:
    def handler(request: httpx.Request) -> httpx.Response:  # pragma: no cover - never called
        raise AssertionError("no request expected")

    with pytest.raises(ScorerNotConfigured):
        await _scorer(handler, api_key=None).score("hi")


@pytest.mark.asyncio
async def test_upstream_error_status_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, json={"error": "Model is loading"})

    with pytest.raises(ScorerUnavailable):
        await _scorer(handler).score("hi")


@pytest.mark.asyncio
async def test_transport_failure_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    with pytest.raises(ScorerUnavailable):
        await _scorer(handler).score("hi")


@pytest.mark.asyncio
async def test_unparseable_body_is_unavailable() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"unexpected": "shape"})

    with pytest.raises(ScorerUnavailable):
        await _scorer(handler).score("hi")


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", MALFORMED_SCORES)
async def test_non_numeric_scores_are_unavailable(raw) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=raw)

    with pytest.raises(ScorerUnavailable):
        await _scorer(handler).score("hi")


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", MALFORMED_SCORES)
async def test_policy_fails_open_on_malformed_scores(raw) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json=raw)

    policy = ModerationPolicy(
        _scorer(handler),
        hide_threshold=0.90,
        blur_threshold=0.60,
        unconfigured_mode="closed",
    )

    verdict = await policy.classify("hello there")

    assert verdict.allowed is True
    assert verdict.hide is False
    assert verdict.reason == REASON_UNAVAILABLE
