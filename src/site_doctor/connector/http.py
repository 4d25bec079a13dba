"""HTTP Connector - Shared requests session for audit queries."""

import requests

from site_doctor import __version__

USER_AGENT = f"site-doctor/{__version__}"


def build_session(user_agent: str = USER_AGENT) -> requests.Session:
    """Create a session with the site-doctor User-Agent.

    No retry adapter is mounted: a failed query is recorded, never retried.
    """
    session = requests.Session()
    session.headers.update({"User-Agent": user_agent})
    return session
