"""Security Header Auditor.

Grades the front page's response headers the way external header graders
do.

Checks:
- SEC-HEAD-0: Header fetch failed
- SEC-HEAD-1: Missing security headers (HSTS, CSP, X-Frame, X-Content, ...)
- SEC-HEAD-2: HSTS not preload-ready
- SEC-HEAD-3: X-Content-Type-Options has an invalid value
- SEC-HEAD-4: Server / X-Powered-By discloses a version
"""

import re

from site_doctor.checks import BaseCheck, CheckContext, register_check
from site_doctor.model.evidence import Evidence, Severity
from site_doctor.model.finding import Finding
from site_doctor.model.site import HeaderSnapshot

REQUIRED_HEADERS = {
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
    "Content-Security-Policy": "default-src 'self'; frame-ancestors 'none'",
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
}

ONE_YEAR = 31536000

_VERSION_RE = re.compile(r"\d+(\.\d+)+")


@register_check
class HeaderAuditor(BaseCheck):
    """Auditor for HTTP security headers."""

    @property
    def category(self) -> str:
        return "security"

    def run(self, context: CheckContext) -> list[Finding]:
        snapshot = context.model.headers
        if snapshot is None:
            return []

        source = context.model.report_path("headers")
        if not snapshot.ok:
            return [self._fetch_failed(snapshot, source)]

        findings: list[Finding] = []
        findings.extend(self._check_missing(snapshot, source))
        findings.extend(self._check_hsts(snapshot, source))
        findings.extend(self._check_nosniff(snapshot, source))
        findings.extend(self._check_disclosure(snapshot, source))
        return findings

    def _fetch_failed(self, snapshot: HeaderSnapshot, source: str) -> Finding:
        return Finding(
            id="SEC-HEAD-0",
            severity=Severity.WARNING,
            confidence=1.0,
            condition="Response headers could not be fetched",
            cause=f"GET {snapshot.url} failed: {snapshot.error or 'unknown error'}",
            evidence=[Evidence(
                source_file=source,
                line_number=0,
                excerpt=snapshot.error or "no response",
                command=f"GET {snapshot.url}",
            )],
            treatment="Confirm the site is reachable over HTTPS, then re-run the audit.",
            impact=["Security header regressions are not detected"],
        )

    def _check_missing(self, snapshot: HeaderSnapshot, source: str) -> list[Finding]:
        """SEC-HEAD-1: essential headers absent."""
        missing = []
        for name in REQUIRED_HEADERS:
            if snapshot.has(name):
                continue
            # frame-ancestors supersedes X-Frame-Options in modern browsers
            if name == "X-Frame-Options" and "frame-ancestors" in (snapshot.get("Content-Security-Policy") or ""):
                continue
            missing.append(name)

        if not missing:
            return []

        treatment = "Add the missing headers at the CDN (response headers policy):\n" + "\n".join(
            f"    {name}: {REQUIRED_HEADERS[name]}" for name in missing
        )
        return [Finding(
            id="SEC-HEAD-1",
            severity=Severity.WARNING,
            confidence=0.95,
            condition="Missing security headers",
            cause=f"{snapshot.final_url or snapshot.url} does not send: {', '.join(missing)}.",
            evidence=[Evidence(
                source_file=source,
                line_number=1,
                excerpt=(snapshot.raw.splitlines() or [""])[0],
                command=f"GET {snapshot.url}",
            )],
            treatment=treatment,
            impact=[
                "Header graders cap the grade below A",
                "Clickjacking, MIME-sniffing and injection protections are off",
            ],
        )]

    def _check_hsts(self, snapshot: HeaderSnapshot, source: str) -> list[Finding]:
        """SEC-HEAD-2: HSTS present but not preload-ready."""
        value = snapshot.get("Strict-Transport-Security")
        if value is None:
            return []

        directives = [d.strip().lower() for d in value.split(";") if d.strip()]
        max_age = None
        for d in directives:
            if d.startswith("max-age="):
                try:
                    max_age = int(d.split("=", 1)[1].strip().strip('"'))
                except ValueError:
                    max_age = None

        problems = []
        if max_age is None or max_age < ONE_YEAR:
            problems.append(f"max-age {max_age if max_age is not None else 'missing'} < {ONE_YEAR}")
        if "includesubdomains" not in directives:
            problems.append("includeSubDomains missing")
        if "preload" not in directives:
            problems.append("preload missing")
        if not problems:
            return []

        short_age = max_age is None or max_age < ONE_YEAR
        return [Finding(
            id="SEC-HEAD-2",
            severity=Severity.WARNING if short_age else Severity.INFO,
            confidence=1.0,
            condition="HSTS is not preload-ready",
            cause="; ".join(problems),
            evidence=[Evidence(
                source_file=source,
                line_number=snapshot.line_of("Strict-Transport-Security"),
                excerpt=f"Strict-Transport-Security: {value}",
            )],
            treatment=f"Strict-Transport-Security: {REQUIRED_HEADERS['Strict-Transport-Security']}",
            impact=["First visits can be downgraded to plain HTTP"],
        )]

    def _check_nosniff(self, snapshot: HeaderSnapshot, source: str) -> list[Finding]:
        """SEC-HEAD-3: the only valid value is nosniff."""
        value = snapshot.get("X-Content-Type-Options")
        if value is None or value.strip().lower() == "nosniff":
            return []
        return [Finding(
            id="SEC-HEAD-3",
            severity=Severity.WARNING,
            confidence=1.0,
            condition="Invalid X-Content-Type-Options value",
            cause=f"Value '{value}' is ignored by browsers.",
            evidence=[Evidence(
                source_file=source,
                line_number=snapshot.line_of("X-Content-Type-Options"),
                excerpt=f"X-Content-Type-Options: {value}",
            )],
            treatment="X-Content-Type-Options: nosniff",
            impact=["Browsers may MIME-sniff responses"],
        )]

    def _check_disclosure(self, snapshot: HeaderSnapshot, source: str) -> list[Finding]:
        """SEC-HEAD-4: software versions in Server / X-Powered-By."""
        findings = []
        for name in ("Server", "X-Powered-By"):
            value = snapshot.get(name)
            if not value or not _VERSION_RE.search(value):
                continue
            findings.append(Finding(
                id="SEC-HEAD-4",
                severity=Severity.INFO,
                confidence=0.9,
                condition=f"{name} header discloses a software version",
                cause=f"{name}: {value}",
                evidence=[Evidence(
                    source_file=source,
                    line_number=snapshot.line_of(name),
                    excerpt=f"{name}: {value}",
                )],
                treatment=f"Strip or genericize the {name} header at the origin or CDN.",
                impact=["Makes matching the stack against known CVEs trivial"],
            ))
        return findings
