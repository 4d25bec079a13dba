"""Scoring Engine.

Calculates a deterministic posture score from findings.
Strict rules:
- Max Score: 100
- Categories: Security (40), TLS (30), Performance (30)
- Penalties: Critical (-8), Warning (-3), Info (0)
- Min score per category: 0

This is independent of the PageSpeed score: it grades what the checks
found, not what Lighthouse measured.
"""

from dataclasses import dataclass, field
from typing import List

from site_doctor.model.finding import Finding, Severity


@dataclass
class CategoryScore:
    max_points: int
    current_points: int
    penalties: int = 0
    findings: List[str] = field(default_factory=list)


@dataclass
class SiteScore:
    total: int
    security: CategoryScore
    tls: CategoryScore
    performance: CategoryScore


class ScoringEngine:
    """Calculates scores from findings."""

    BASE_PENALTIES = {
        Severity.CRITICAL: 8,
        Severity.WARNING: 3,
        Severity.INFO: 0,
    }

    def calculate(self, findings: List[Finding]) -> SiteScore:
        """Calculate score based on findings."""
        cats = {
            "security": CategoryScore(40, 40),
            "tls": CategoryScore(30, 30),
            "performance": CategoryScore(30, 30),
        }

        for f in findings:
            penalty = self._penalty_for_finding(f)
            cat = cats[self._map_to_category(f)]
            cat.penalties += penalty
            cat.current_points = max(0, cat.max_points - cat.penalties)
            cat.findings.append(f.id)

        return SiteScore(
            total=sum(c.current_points for c in cats.values()),
            security=cats["security"],
            tls=cats["tls"],
            performance=cats["performance"],
        )

    def _penalty_for_finding(self, finding: Finding) -> int:
        fid = finding.id.upper()
        penalty = int(self.BASE_PENALTIES.get(finding.severity, 0))

        # Name mismatch breaks every visitor, not just audit scores.
        if fid == "TLS-3":
            penalty += 4
        # Version disclosure is hygiene.
        if fid == "SEC-HEAD-4":
            penalty = max(0, penalty - 2)
        return penalty

    def _map_to_category(self, finding: Finding) -> str:
        """Map finding ID to score category."""
        fid = finding.id.upper()
        if fid.startswith("TLS"):
            return "tls"
        if fid.startswith("PERF"):
            return "performance"
        return "security"
