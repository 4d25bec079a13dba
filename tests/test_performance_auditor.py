"""Tests for the performance auditor (PERF-*).

PERF-1 must agree with the threshold decision: it fires only when the
score is strictly below the threshold.
"""

from site_doctor.checks import CheckContext
from site_doctor.checks.performance.performance_auditor import PerformanceAuditor
from site_doctor.model.evidence import Severity
from site_doctor.model.site import PageScore, SiteModel


def _audit(page=None, headers=None, threshold=95):
    model = SiteModel(domain="example.com", page_score=page, headers=headers)
    return PerformanceAuditor().run(CheckContext(model=model, threshold=threshold))


def _page(score, **kwargs):
    return PageScore(url="https://example.com/", score=score, ok=score is not None, **kwargs)


def test_score_below_threshold():
    findings = _audit(_page(92, metrics={"LCP": "3.1 s"}))
    assert [f.id for f in findings] == ["PERF-1"]
    assert findings[0].severity == Severity.WARNING
    assert "92" in findings[0].condition
    assert "LCP=3.1 s" in findings[0].cause


def test_score_at_or_above_threshold_is_clean():
    assert _audit(_page(95)) == []
    assert _audit(_page(97)) == []


def test_large_gap_is_critical():
    findings = _audit(_page(60))
    assert findings[0].severity == Severity.CRITICAL


def test_missing_score():
    findings = _audit(_page(None, error="Quota exceeded"))
    assert [f.id for f in findings] == ["PERF-2"]
    assert "Quota exceeded" in findings[0].cause


def test_well_configured_headers_are_clean(good_headers):
    assert _audit(headers=good_headers) == []


def test_uncompressed_html(good_headers):
    good_headers.headers.pop("Content-Encoding")
    findings = _audit(headers=good_headers)
    assert [f.id for f in findings] == ["PERF-3"]
    assert findings[0].severity == Severity.INFO


def test_long_html_cache(good_headers):
    good_headers.headers["Cache-Control"] = "public, max-age=86400"
    findings = _audit(headers=good_headers)
    assert [f.id for f in findings] == ["PERF-4"]


def test_failed_header_fetch_is_ignored(good_headers):
    good_headers.ok = False
    good_headers.headers.pop("Content-Encoding")
    assert _audit(headers=good_headers) == []
