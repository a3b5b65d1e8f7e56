"""Toxicity scoring backends.

A scorer turns text into a single toxicity probability in ``[0, 1]``. The
backend-specific response shapes are flattened by :func:`normalize_scores`
so the moderation policy only ever sees one float.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from safeyak.core.errors import ScorerNotConfigured, ScorerUnavailable
from safeyak.core.settings import settings

HTTP_OK = 200


class ToxicityScorer(Protocol):
    """Anything that can score text for toxicity."""

    async def score(self, text: str) -> float:
        ...


def _label_is_negative(label: str) -> bool:
    lowered = label.lower()
    return lowered.startswith("non") or lowered.startswith("not")


def _as_score(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, int | float):
        raise ValueError(f"Not a toxicity score: {value!r}")
    return float(value)


def normalize_scores(raw: Any) -> float:
    """Collapse a backend response into one toxicity probability.

    Accepted shapes:
        * a bare number;
        * an ``{attribute: score}`` mapping (toxicity, insult, threat...);
        * HuggingFace classifier output, ``[[{"label": ..., "score": ...}]]``
          or the un-nested ``[{"label": ..., "score": ...}]``.

    Multi-attribute results take the maximum attribute. Labels naming the
    negative class (``non-toxic``) are ignored in both the mapping and the
    label-list shapes.

    Raises:
        ValueError: If the payload has none of the shapes above, or any
            score in it is not a number.
    """
    if isinstance(raw, Mapping):
        value = max(
            (_as_score(score) for label, score in raw.items() if not _label_is_negative(str(label))),
            default=0.0,
        )
    elif isinstance(raw, list):
        predictions = raw[0] if raw and isinstance(raw[0], list) else raw
        scores: list[float] = []
        for prediction in predictions:
            if not isinstance(prediction, Mapping) or "score" not in prediction:
                raise ValueError(f"Unrecognised classifier prediction: {prediction!r}")
            if _label_is_negative(str(prediction.get("label", ""))):
                continue
            scores.append(_as_score(prediction["score"]))
        value = max(scores, default=0.0)
    elif isinstance(raw, int | float) and not isinstance(raw, bool):
        value = float(raw)
    else:
        raise ValueError(f"Unrecognised toxicity payload type: {type(raw).__name__}")
    return min(1.0, max(0.0, value))


class HuggingFaceScorer:
    """Scores text with a HuggingFace Inference API text classifier.

    Defaults to ``unitary/toxic-bert``. Every call is bounded by ``timeout``;
    missing credentials, transport failures, non-200 answers and unparseable
    bodies are all raised as :class:`ScorerUnavailable` subclasses.
    """

    def __init__(
        self,
        api_key: str | None,
        url: str,
        timeout: float,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.url = url
        self.timeout = timeout
        self._transport = transport

    async def score(self, text: str) -> float:
        """Return the toxicity probability of ``text``."""
        if not self.api_key:
            raise ScorerNotConfigured("HUGGINGFACE_API_KEY is not set")

        headers = {"Authorization": f"Bearer {self.api_key}"}
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.post(self.url, json={"inputs": text}, headers=headers)
            except httpx.HTTPError as exc:
                raise ScorerUnavailable(f"Toxicity backend unreachable: {exc}") from exc

        if response.status_code != HTTP_OK:
            raise ScorerUnavailable(
                f"Toxicity backend returned {response.status_code}: {response.text[:200]}"
            )

        try:
            return normalize_scores(response.json())
        except (TypeError, ValueError) as exc:
            raise ScorerUnavailable(f"Unparseable toxicity response: {exc}") from exc


def get_toxicity_scorer() -> HuggingFaceScorer:
    """Build the scorer described by the current settings."""
    return HuggingFaceScorer(
        api_key=settings.huggingface_api_key,
        url=settings.moderation_api_url,
        timeout=settings.moderation_timeout_seconds,
    )
