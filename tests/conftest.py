"""Pytest configuration and fixtures for site-doctor tests."""

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from site_doctor.config import SiteProfile
from site_doctor.connector.local import CommandResult, LocalRunner
from site_doctor.model.site import HeaderSnapshot
from site_doctor.scanner.headers import HeaderScanner


SAMPLE_OPENSSL_OUTPUT = (
    "notBefore=Feb 10 00:00:00 2026 GMT\n"
    "notAfter=May 10 12:34:56 2099 GMT\n"
    "issuer=C = US, O = Amazon, CN = Amazon RSA 2048 M02\n"
    "subject=CN = example.com\n"
    "X509v3 Subject Alternative Name: \n"
    "    DNS:example.com, DNS:www.example.com\n"
)


def pagespeed_payload(score=0.92, category="performance"):
    return {
        "id": "https://example.com/",
        "lighthouseResult": {
            "categories": {category: {"id": category, "score": score}},
            "audits": {
                "largest-contentful-paint": {"displayValue": "2.1 s"},
                "server-response-time": {"displayValue": "Root document took 120 ms"},
                "cumulative-layout-shift": {"displayValue": "0.01"},
            },
        },
    }


def fake_response(status_code=200, payload=None, text=None):
    body = text if text is not None else json.dumps(payload if payload is not None else {})

    def _json():
        return json.loads(body)

    return SimpleNamespace(status_code=status_code, text=body, json=_json)


@pytest.fixture
def mock_runner():
    """A LocalRunner whose commands return canned openssl output."""
    runner = MagicMock(spec=LocalRunner)
    runner.run.return_value = CommandResult(
        command="openssl",
        stdout=SAMPLE_OPENSSL_OUTPUT,
        stderr="",
        exit_code=0,
    )
    return runner


@pytest.fixture
def good_headers():
    """Header snapshot of a well-configured site."""
    snapshot = HeaderSnapshot(
        url="https://example.com/",
        final_url="https://example.com/",
        status_code=200,
        reason="OK",
        headers={
            "Content-Type": "text/html; charset=utf-8",
            "Content-Encoding": "br",
            "Cache-Control": "public, max-age=0, must-revalidate",
            "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
            "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
            "X-Content-Type-Options": "nosniff",
            "Referrer-Policy": "strict-origin-when-cross-origin",
            "Permissions-Policy": "camera=()",
            "Server": "AmazonS3",
        },
        ok=True,
    )
    snapshot.raw = HeaderScanner.dump(snapshot)
    return snapshot


@pytest.fixture
def profile(tmp_path):
    """A fully populated site profile."""
    site_dir = tmp_path / "site"
    site_dir.mkdir()
    return SiteProfile(
        name="example",
        domain="example.com",
        bucket="example-site",
        distribution_id="E123EXAMPLE",
        site_dir=str(site_dir),
        report_dir=str(tmp_path / "reports"),
        threshold=95,
        api_key="test-key",
        notify_email="ops@example.com",
    )
