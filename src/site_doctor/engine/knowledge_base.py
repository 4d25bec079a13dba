"""Knowledge Base for site-doctor.

Provides context (Why, Risk, Ignore conditions) for findings.
Used by --explain mode.
"""

from dataclasses import dataclass


@dataclass
class Explanation:
    why: str
    risk: str
    ignore: str


KNOWLEDGE_BASE = {
    # SECURITY HEADERS
    "SEC-HEAD-0": Explanation(
        why="Header checks need a successful response from the front page.",
        risk="Header regressions go unnoticed until an external scanner reports them.",
        ignore="If the site was intentionally offline during the audit.",
    ),
    "SEC-HEAD-1": Explanation(
        why="Security headers tell browsers to block specific attacks (XSS, clickjacking, sniffing).",
        risk="Header graders cap the grade; users are exposed to clickjacking and injection.",
        ignore="Only for non-HTML endpoints (APIs serving JSON to non-browser clients).",
    ),
    "SEC-HEAD-2": Explanation(
        why="HSTS preload eligibility requires max-age >= 1 year, includeSubDomains and preload.",
        risk="First visits can be downgraded to HTTP; the domain cannot join the preload list.",
        ignore="If some subdomain must still be reachable over plain HTTP.",
    ),
    "SEC-HEAD-3": Explanation(
        why="Only 'nosniff' is a valid X-Content-Type-Options value.",
        risk="Browsers may MIME-sniff uploaded content into executable script.",
        ignore="Never; the fix is a one-word change.",
    ),
    "SEC-HEAD-4": Explanation(
        why="Server and X-Powered-By version strings help attackers match known CVEs.",
        risk="Targeted exploitation of the exact software version.",
        ignore="When the header is set by the CDN and cannot be removed.",
    ),
    # TLS
    "TLS-1": Explanation(
        why="Browsers refuse connections once the certificate expires.",
        risk="Full outage for every visitor.",
        ignore="If automated renewal is confirmed to run before the expiry date.",
    ),
    "TLS-2": Explanation(
        why="The handshake output could not be read, so expiry is unknown.",
        risk="An expiring certificate goes unnoticed.",
        ignore="If openssl is unavailable on the audit host and TLS is monitored elsewhere.",
    ),
    "TLS-3": Explanation(
        why="Browsers match the requested host against the certificate's SAN list.",
        risk="Every visitor gets a certificate name error.",
        ignore="Never for a production domain.",
    ),
    # PERFORMANCE
    "PERF-1": Explanation(
        why="The Lighthouse score fell below the target set for this site.",
        risk="Slower pages, lower search ranking, failed performance budgets.",
        ignore="If the run hit a transient slowdown; re-run before acting.",
    ),
    "PERF-2": Explanation(
        why="The scoring API did not return a score.",
        risk="Regressions are not caught by the threshold check.",
        ignore="If the API quota was exhausted and the next scheduled run succeeds.",
    ),
    "PERF-3": Explanation(
        why="Text assets compress by 70-90% with gzip or brotli.",
        risk="Longer downloads and worse LCP on slow networks.",
        ignore="If the response is already compressed media.",
    ),
    "PERF-4": Explanation(
        why="HTML is the entry point; a long cache lifetime pins visitors to stale pages.",
        risk="Deploys appear not to take effect until caches expire.",
        ignore="If every deploy invalidates the CDN and browsers revalidate.",
    ),
}


def get_explanation(finding_id: str) -> Explanation | None:
    """Get explanation for a finding ID."""
    return KNOWLEDGE_BASE.get(finding_id)
