"""Certificate Scanner - live TLS inspection using openssl s_client + SNI."""

from __future__ import annotations

import datetime
import logging
import shlex

from site_doctor.connector.local import LocalRunner
from site_doctor.model.site import CertificateStatus

logger = logging.getLogger(__name__)


class CertificateScanner:
    """Collect certificate dates from a live handshake rather than a file."""

    def __init__(self, runner: LocalRunner, timeout: float = 15) -> None:
        self.runner = runner
        self.timeout = timeout

    def build_command(self, host: str, port: int = 443) -> str:
        sni = shlex.quote(host)
        connect = shlex.quote(f"{host}:{port}")
        return (
            f"openssl s_client -servername {sni} -connect {connect} 2>/dev/null "
            "| openssl x509 -noout -dates -issuer -subject -ext subjectAltName 2>/dev/null"
        )

    def scan(self, host: str, port: int = 443) -> CertificateStatus:
        status = CertificateStatus(host=host, port=port)
        res = self.runner.run(self.build_command(host, port), timeout=self.timeout, stdin="")
        status.raw = res.stdout or ""
        if not res.success or not status.raw.strip():
            status.parse_ok = False
            status.error = (res.stderr or "").strip() or f"openssl exited with {res.exit_code}"
            logger.warning("certificate inspection failed for %s: %s", status.target, status.error)
            return status

        for line in (l.strip() for l in status.raw.splitlines()):
            if not line:
                continue
            if line.startswith("notBefore="):
                status.not_before = line[len("notBefore=") :].strip()
            elif line.startswith("notAfter="):
                status.not_after = line[len("notAfter=") :].strip()
            elif line.startswith("issuer="):
                status.issuer = line[len("issuer=") :].strip()
            elif line.startswith("subject="):
                status.subject = line[len("subject=") :].strip()
            elif "DNS:" in line:
                sans = [s.strip().replace("DNS:", "") for s in line.split(",") if "DNS:" in s]
                status.sans.extend([s for s in sans if s])

        status.days_remaining = self._days_until_expiry(status.not_after)
        status.parse_ok = status.not_after is not None
        return status

    def _days_until_expiry(self, expires: str | None) -> int | None:
        expires_at = parse_openssl_date(expires)
        if expires_at is None:
            return None
        now = datetime.datetime.now(datetime.timezone.utc)
        return max(0, int((expires_at - now).total_seconds() // 86400))


def parse_openssl_date(value: str | None) -> datetime.datetime | None:
    # OpenSSL format typically: "May 10 12:34:56 2026 GMT"
    if not value:
        return None
    for fmt in ("%b %d %H:%M:%S %Y %Z", "%b  %d %H:%M:%S %Y %Z"):
        try:
            parsed = datetime.datetime.strptime(value, fmt)
            return parsed.replace(tzinfo=datetime.timezone.utc)
        except ValueError:
            continue
    return None


def host_matches(host: str, names: list[str]) -> bool:
    """True when host is covered by one of the certificate names."""
    host = host.lower().rstrip(".")
    for name in names:
        name = name.lower().rstrip(".")
        if name == host:
            return True
        if name.startswith("*."):
            suffix = name[1:]
            # A wildcard covers exactly one label.
            if host.endswith(suffix) and "." not in host[: -len(suffix)]:
                return True
    return False
