"""Moderation policy for SafeYak.

Maps a toxicity probability to a visibility verdict. The policy is a pure
function of the score; talking to the scorer and degrading on its failures
happens in :meth:`ModerationPolicy.classify`.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import asdict, dataclass
from typing import Any, Literal

from safeyak.core.errors import ScorerNotConfigured, ScorerUnavailable, ValidationError
from safeyak.core.settings import settings
from safeyak.services.toxicity import ToxicityScorer, get_toxicity_scorer

logger = logging.getLogger(__name__)

REASON_SEVERE = "Severe toxicity detected"
REASON_OFFENSIVE = "Offensive content detected"
REASON_UNAVAILABLE = "Moderation service unavailable"
REASON_NOT_CONFIGURED = "Moderation service not configured"


@dataclass(frozen=True)
class ModerationVerdict:
    """Normalised moderation outcome copied onto the content it governs.

    ``hide`` wins over ``blur`` and at most one of them is set. Blurred
    content stays ``allowed`` (it is stored and shown obscured).
    """

    allowed: bool
    blur: bool
    hide: bool
    reason: str | None
    toxicity: float

    @property
    def is_violation(self) -> bool:
        """Whether the content was judged toxic.

        Content held back only because no scorer is configured is not.
        """
        return (self.blur or self.hide) and self.reason != REASON_NOT_CONFIGURED

    def fingerprint(self) -> str:
        """Stable digest of the visibility decision, used to key strikes."""
        material = f"{int(self.blur)}:{int(self.hide)}:{self.reason or ''}"
        return hashlib.sha256(material.encode("utf-8")).hexdigest()[:16]

    def as_dict(self) -> dict[str, Any]:
        return asdict(self)


def verdict_for_score(
    toxicity: float,
    *,
    hide_threshold: float | None = None,
    blur_threshold: float | None = None,
) -> ModerationVerdict:
    """Apply the threshold rule to a toxicity probability.

    * ``t > hide_threshold`` -> hide, not allowed
    * ``blur_threshold < t <= hide_threshold`` -> blur, still allowed
    * otherwise -> allow with no reason
    """
    hide_at = settings.moderation_hide_threshold if hide_threshold is None else hide_threshold
    blur_at = settings.moderation_blur_threshold if blur_threshold is None else blur_threshold
    rounded = round(toxicity, 2)

    if toxicity > hide_at:
        return ModerationVerdict(
            allowed=False, blur=False, hide=True, reason=REASON_SEVERE, toxicity=rounded
        )
    if toxicity > blur_at:
        return ModerationVerdict(
            allowed=True, blur=True, hide=False, reason=REASON_OFFENSIVE, toxicity=rounded
        )
    return ModerationVerdict(allowed=True, blur=False, hide=False, reason=None, toxicity=rounded)


def fail_open_verdict(reason: str = REASON_UNAVAILABLE) -> ModerationVerdict:
    """Verdict used when the scorer cannot answer: allow, with a visible reason."""
    return ModerationVerdict(allowed=True, blur=False, hide=False, reason=reason, toxicity=0.0)


def fail_closed_verdict() -> ModerationVerdict:
    """Verdict used for an unconfigured scorer when running fail-closed."""
    return ModerationVerdict(
        allowed=False, blur=False, hide=True, reason=REASON_NOT_CONFIGURED, toxicity=0.0
    )


class ModerationPolicy:
    """Classifies text into allow / blur / hide using a toxicity scorer."""

    def __init__(
        self,
        scorer: ToxicityScorer,
        *,
        hide_threshold: float | None = None,
        blur_threshold: float | None = None,
        unconfigured_mode: Literal["open", "closed"] | None = None,
    ) -> None:
        self.scorer = scorer
        self.hide_threshold = (
            settings.moderation_hide_threshold if hide_threshold is None else hide_threshold
        )
        self.blur_threshold = (
            settings.moderation_blur_threshold if blur_threshold is None else blur_threshold
        )
        self.unconfigured_mode = unconfigured_mode or settings.moderation_unconfigured_mode

    async def classify(self, text: str) -> ModerationVerdict:
        """Classify ``text``; scorer failures never propagate.

        Raises:
            ValidationError: If ``text`` is empty or whitespace.
        """
        if not text or not text.strip():
            raise ValidationError("Text to moderate must not be empty")

        try:
            toxicity = await self.scorer.score(text)
        except ScorerNotConfigured:
            if self.unconfigured_mode == "closed":
                logger.warning("Toxicity scorer not configured; failing closed")
                return fail_closed_verdict()
            logger.warning("Toxicity scorer not configured; failing open")
            return fail_open_verdict()
        except ScorerUnavailable as exc:
            logger.warning("Toxicity scorer unavailable, allowing content: %s", exc)
            return fail_open_verdict()

        return verdict_for_score(
            toxicity,
            hide_threshold=self.hide_threshold,
            blur_threshold=self.blur_threshold,
        )


def get_moderation_policy() -> ModerationPolicy:
    """Return a policy bound to the configured toxicity scorer."""
    return ModerationPolicy(get_toxicity_scorer())
