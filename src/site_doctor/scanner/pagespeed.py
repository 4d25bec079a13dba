"""PageSpeed Scanner - Query the PageSpeed Insights v5 API.

The API runs Lighthouse against the live site and returns a large JSON
document. The scanner keeps that document verbatim (it becomes the report
file) and pulls out the category score as a 0-100 integer plus the
display values of a handful of lab metrics.
"""

from __future__ import annotations

import json
import logging

import requests

from site_doctor.model.site import PageScore

logger = logging.getLogger(__name__)

PAGESPEED_ENDPOINT = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"

# CLI name -> (API enum, key under lighthouseResult.categories)
CATEGORIES = {
    "performance": ("PERFORMANCE", "performance"),
    "accessibility": ("ACCESSIBILITY", "accessibility"),
    "best-practices": ("BEST_PRACTICES", "best-practices"),
    "seo": ("SEO", "seo"),
}

METRIC_AUDITS = {
    "FCP": "first-contentful-paint",
    "LCP": "largest-contentful-paint",
    "TBT": "total-blocking-time",
    "CLS": "cumulative-layout-shift",
    "SI": "speed-index",
    "TTFB": "server-response-time",
}


class PageSpeedScanner:
    """Fetch a Lighthouse score for one URL."""

    def __init__(
        self,
        session: requests.Session,
        api_key: str | None = None,
        timeout: float = 60,
        endpoint: str = PAGESPEED_ENDPOINT,
    ) -> None:
        self.session = session
        self.api_key = api_key
        self.timeout = timeout
        self.endpoint = endpoint

    def scan(self, url: str, strategy: str = "mobile", category: str = "performance") -> PageScore:
        if category not in CATEGORIES:
            raise ValueError(f"Unknown PageSpeed category: {category}")
        api_category, _ = CATEGORIES[category]

        result = PageScore(url=url, strategy=strategy, category=category)
        params = {"url": url, "strategy": strategy.upper(), "category": api_category}
        if self.api_key:
            params["key"] = self.api_key

        try:
            response = self.session.get(self.endpoint, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            result.error = str(e)
            logger.warning("PageSpeed request failed for %s: %s", url, e)
            return result

        result.raw = response.text or ""
        try:
            payload = response.json()
        except ValueError:
            result.error = f"Non-JSON response (HTTP {response.status_code})"
            return result

        if response.status_code != 200:
            message = (payload.get("error") or {}).get("message") if isinstance(payload, dict) else None
            result.error = message or f"HTTP {response.status_code}"
            logger.warning("PageSpeed API error for %s: %s", url, result.error)
            return result

        result.score = extract_score(payload, category)
        result.metrics = extract_metrics(payload)
        result.ok = result.score is not None
        if not result.ok:
            result.error = f"No '{category}' score in response"
        return result


def extract_score(payload: dict, category: str = "performance") -> int | None:
    """Lighthouse reports scores as 0-1 floats; return a 0-100 int."""
    _, key = CATEGORIES.get(category, (None, category))
    raw = (
        (payload.get("lighthouseResult") or {})
        .get("categories", {})
        .get(key, {})
        .get("score")
    )
    if raw is None:
        return None
    try:
        return int(round(float(raw) * 100))
    except (TypeError, ValueError):
        return None


def extract_metrics(payload: dict) -> dict[str, str]:
    audits = (payload.get("lighthouseResult") or {}).get("audits", {})
    metrics: dict[str, str] = {}
    for label, audit_id in METRIC_AUDITS.items():
        display = (audits.get(audit_id) or {}).get("displayValue")
        if display:
            metrics[label] = str(display)
    return metrics


def pretty_json(raw: str) -> str:
    """Indent an API response for the report file, passing non-JSON through."""
    try:
        return json.dumps(json.loads(raw), indent=2) + "\n"
    except ValueError:
        return raw
