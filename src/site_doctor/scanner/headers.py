"""Header Scanner - Fetch the response headers of a site's front page."""

from __future__ import annotations

import logging

import requests

from site_doctor.model.site import HeaderSnapshot

logger = logging.getLogger(__name__)

_HTTP_VERSIONS = {10: "HTTP/1.0", 11: "HTTP/1.1", 20: "HTTP/2"}


class HeaderScanner:
    """Issue one GET and keep the headers (the body is never read)."""

    def __init__(self, session: requests.Session, timeout: float = 30) -> None:
        self.session = session
        self.timeout = timeout

    def scan(self, domain: str, path: str = "/") -> HeaderSnapshot:
        url = f"https://{domain}{path}"
        snapshot = HeaderSnapshot(url=url)
        try:
            response = self.session.get(
                url,
                timeout=self.timeout,
                allow_redirects=True,
                stream=True,
                headers={"Accept-Encoding": "gzip, deflate, br"},
            )
        except requests.RequestException as e:
            snapshot.error = str(e)
            logger.warning("header fetch failed for %s: %s", url, e)
            return snapshot

        try:
            snapshot.final_url = response.url
            snapshot.status_code = response.status_code
            snapshot.reason = response.reason or ""
            raw_version = getattr(getattr(response, "raw", None), "version", None)
            snapshot.http_version = _HTTP_VERSIONS.get(raw_version, "HTTP/1.1")
            snapshot.headers = dict(response.headers)
            snapshot.ok = True
        finally:
            response.close()

        snapshot.raw = self.dump(snapshot)
        return snapshot

    @staticmethod
    def dump(snapshot: HeaderSnapshot) -> str:
        """Render the snapshot like ``curl -sI`` would."""
        lines = [f"{snapshot.http_version} {snapshot.status_code} {snapshot.reason}".rstrip()]
        lines.extend(f"{name}: {value}" for name, value in snapshot.headers.items())
        return "\n".join(lines) + "\n"
