"""Threshold Decision.

The one branch in the audit: notify if, and only if, the freshly fetched
score is strictly below the configured threshold. A missing score never
notifies.
"""

from dataclasses import dataclass

DEFAULT_THRESHOLD = 95


def should_notify(score: int | float | None, threshold: int | float) -> bool:
    """Return True iff score < threshold."""
    if score is None:
        return False
    return score < threshold


@dataclass(frozen=True)
class ThresholdDecision:
    """The single comparison of one run."""

    score: int | None
    threshold: int = DEFAULT_THRESHOLD

    def __post_init__(self) -> None:
        if not 0 <= self.threshold <= 100:
            raise ValueError("Threshold must be between 0 and 100")

    @property
    def notify(self) -> bool:
        return should_notify(self.score, self.threshold)

    @property
    def gap(self) -> int | None:
        """Points missing to reach the threshold (negative when above)."""
        if self.score is None:
            return None
        return self.threshold - self.score

    def describe(self) -> str:
        if self.score is None:
            return f"score unavailable (threshold {self.threshold})"
        verdict = "below" if self.notify else "meets"
        return f"score {self.score} {verdict} threshold {self.threshold}"
