"""Certificate Auditor.

Checks:
- TLS-1: Certificate expiring (critical < 14 days, warning < 30 days)
- TLS-2: Certificate data unavailable
- TLS-3: Domain not covered by the certificate's names
"""

from site_doctor.checks import BaseCheck, CheckContext, register_check
from site_doctor.model.evidence import Evidence, Severity
from site_doctor.model.finding import Finding
from site_doctor.model.site import CertificateStatus
from site_doctor.scanner.certificate import host_matches

CRITICAL_DAYS = 14
WARNING_DAYS = 30


@register_check
class CertificateAuditor(BaseCheck):
    """Auditor for the live TLS certificate."""

    @property
    def category(self) -> str:
        return "tls"

    def run(self, context: CheckContext) -> list[Finding]:
        cert = context.model.certificate
        if cert is None:
            return []

        source = context.model.report_path("cert")
        if not cert.parse_ok:
            return [self._unavailable(cert, source)]

        findings: list[Finding] = []
        findings.extend(self._check_expiry(cert, source))
        findings.extend(self._check_names(cert, context.model.domain, source))
        return findings

    def _unavailable(self, cert: CertificateStatus, source: str) -> Finding:
        return Finding(
            id="TLS-2",
            severity=Severity.WARNING,
            confidence=1.0,
            condition="Certificate details unavailable",
            cause=f"openssl returned no parsable certificate for {cert.target}: {cert.error or 'empty output'}",
            evidence=[Evidence(
                source_file=source,
                line_number=0,
                excerpt=cert.error or "empty output",
                command=f"openssl s_client -servername {cert.host} -connect {cert.target}",
            )],
            treatment="Check that openssl is installed and the host answers on port 443.",
            impact=["Certificate expiry is not being monitored"],
        )

    def _check_expiry(self, cert: CertificateStatus, source: str) -> list[Finding]:
        """TLS-1: expiry inside the renewal window."""
        days = cert.days_remaining
        if days is None or days >= WARNING_DAYS:
            return []
        severity = Severity.CRITICAL if days < CRITICAL_DAYS else Severity.WARNING
        return [Finding(
            id="TLS-1",
            severity=severity,
            confidence=1.0,
            condition=f"Certificate expires in {days} day(s)",
            cause=f"notAfter={cert.not_after} for {cert.target}",
            evidence=[Evidence(
                source_file=source,
                line_number=_line_of(cert.raw, "notAfter="),
                excerpt=f"notAfter={cert.not_after}",
            )],
            treatment=(
                "Renew or re-import the certificate. For ACM certificates, confirm the\n"
                "DNS validation CNAME still exists so managed renewal can succeed."
            ),
            impact=["Browsers block the site once the certificate expires"],
        )]

    def _check_names(self, cert: CertificateStatus, domain: str, source: str) -> list[Finding]:
        """TLS-3: the audited domain must be in the SAN list."""
        if not cert.sans or host_matches(domain, cert.sans):
            return []
        return [Finding(
            id="TLS-3",
            severity=Severity.CRITICAL,
            confidence=0.95,
            condition="Certificate does not cover the domain",
            cause=f"{domain} is not in SANs: {', '.join(cert.sans)}",
            evidence=[Evidence(
                source_file=source,
                line_number=_line_of(cert.raw, "DNS:"),
                excerpt=", ".join(f"DNS:{s}" for s in cert.sans),
            )],
            treatment=f"Issue a certificate that lists {domain} (or a matching wildcard) and attach it to the distribution.",
            impact=["Visitors see a certificate name mismatch error"],
        )]


def _line_of(raw: str, marker: str) -> int:
    for number, line in enumerate(raw.splitlines(), start=1):
        if marker in line:
            return number
    return 0
