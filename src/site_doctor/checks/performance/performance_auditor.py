"""Performance Auditor.

Checks:
- PERF-1: Page score below the configured threshold
- PERF-2: Page score unavailable
- PERF-3: HTML served without compression
- PERF-4: HTML served with a long cache lifetime
"""

import re

from site_doctor.checks import BaseCheck, CheckContext, register_check
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.evidence import Evidence, Severity
from site_doctor.model.finding import Finding
from site_doctor.model.site import HeaderSnapshot, PageScore

# Anything cached longer than this at the edge makes deploys look stale.
HTML_MAX_AGE = 3600

_MAX_AGE_RE = re.compile(r"(?:s-)?max-age=(\d+)")


@register_check
class PerformanceAuditor(BaseCheck):
    """Auditor for page score and delivery hygiene."""

    @property
    def category(self) -> str:
        return "performance"

    def run(self, context: CheckContext) -> list[Finding]:
        findings: list[Finding] = []
        model = context.model
        if model.page_score is not None:
            findings.extend(self._check_score(model.page_score, context.threshold, model.report_path("pagespeed")))
        if model.headers is not None and model.headers.ok:
            source = model.report_path("headers")
            findings.extend(self._check_compression(model.headers, source))
            findings.extend(self._check_html_cache(model.headers, source))
        return findings

    def _check_score(self, page: PageScore, threshold: int, source: str) -> list[Finding]:
        decision = ThresholdDecision(score=page.score, threshold=threshold)
        if page.score is None:
            return [Finding(
                id="PERF-2",
                severity=Severity.WARNING,
                confidence=1.0,
                condition="Page score unavailable",
                cause=f"PageSpeed Insights returned no {page.category} score: {page.error or 'unknown error'}",
                evidence=[Evidence(
                    source_file=source,
                    line_number=0,
                    excerpt=page.error or "no score",
                    command=f"runPagespeed url={page.url} strategy={page.strategy}",
                )],
                treatment="Check the API key and quota, then re-run the audit.",
                impact=["The threshold check was skipped; no notification was evaluated"],
            )]

        if not decision.notify:
            return []

        severity = Severity.CRITICAL if decision.gap is not None and decision.gap > 20 else Severity.WARNING
        slowest = ", ".join(f"{k}={v}" for k, v in page.metrics.items())
        return [Finding(
            id="PERF-1",
            severity=severity,
            confidence=0.9,
            condition=f"{page.category.capitalize()} score {page.score} is below threshold {threshold}",
            cause=f"Lighthouse ({page.strategy}) scored {page.url} at {page.score}/100."
                  + (f" Lab metrics: {slowest}." if slowest else ""),
            evidence=[Evidence(
                source_file=source,
                line_number=0,
                excerpt=f"lighthouseResult.categories.{page.category}.score={page.score / 100:.2f}",
                command=f"runPagespeed url={page.url} strategy={page.strategy}",
            )],
            treatment="Open the report JSON and work through the 'opportunities' audits with the largest savings.",
            impact=["Slower pages and lower search visibility"],
        )]

    def _check_compression(self, headers: HeaderSnapshot, source: str) -> list[Finding]:
        """PERF-3: text responses should be gzip or brotli encoded."""
        content_type = (headers.get("Content-Type") or "").lower()
        if "text/html" not in content_type:
            return []
        encoding = (headers.get("Content-Encoding") or "").lower()
        if encoding in ("gzip", "br", "zstd", "deflate"):
            return []
        return [Finding(
            id="PERF-3",
            severity=Severity.INFO,
            confidence=0.85,
            condition="HTML served without compression",
            cause=f"No Content-Encoding on {headers.final_url or headers.url} ({content_type}).",
            evidence=[Evidence(
                source_file=source,
                line_number=headers.line_of("Content-Type"),
                excerpt=f"Content-Type: {headers.get('Content-Type')}",
            )],
            treatment="Enable 'Compress objects automatically' on the CloudFront cache behavior.",
            impact=["Larger transfers, slower first paint on mobile"],
        )]

    def _check_html_cache(self, headers: HeaderSnapshot, source: str) -> list[Finding]:
        """PERF-4: HTML should revalidate quickly."""
        content_type = (headers.get("Content-Type") or "").lower()
        cache_control = headers.get("Cache-Control") or ""
        if "text/html" not in content_type or not cache_control:
            return []
        ages = [int(m) for m in _MAX_AGE_RE.findall(cache_control.lower())]
        if not ages or max(ages) <= HTML_MAX_AGE:
            return []
        return [Finding(
            id="PERF-4",
            severity=Severity.INFO,
            confidence=0.8,
            condition="HTML cached for longer than an hour",
            cause=f"Cache-Control: {cache_control}",
            evidence=[Evidence(
                source_file=source,
                line_number=headers.line_of("Cache-Control"),
                excerpt=f"Cache-Control: {cache_control}",
            )],
            treatment="Deploy HTML with a short policy such as 'public, max-age=0, must-revalidate'.",
            impact=["Visitors keep seeing the previous deploy"],
        )]
