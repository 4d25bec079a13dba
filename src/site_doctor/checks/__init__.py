"""Check plugin system for site-doctor.

This module provides the base infrastructure for modular checks.
Each check category (security, tls, performance) registers a BaseCheck.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from site_doctor.engine.threshold import DEFAULT_THRESHOLD

if TYPE_CHECKING:
    from site_doctor.model.finding import Finding
    from site_doctor.model.site import SiteModel

logger = logging.getLogger(__name__)

ALL_CATEGORIES = frozenset({"security", "tls", "performance"})


@dataclass
class CheckContext:
    """Context passed to all check functions.

    Provides read-only access to the audited site model.
    """
    model: "SiteModel"
    threshold: int = DEFAULT_THRESHOLD
    enabled: frozenset[str] = field(default_factory=lambda: ALL_CATEGORIES)


class BaseCheck(ABC):
    """Abstract base class for all checks.

    Each check must implement:
    - run(context) -> list[Finding]
    """

    @property
    @abstractmethod
    def category(self) -> str:
        """Category name (e.g., 'security', 'tls', 'performance')."""
        ...

    @abstractmethod
    def run(self, context: CheckContext) -> list["Finding"]:
        """Run the check and return findings."""
        ...


# Registry of all available checks
_check_registry: list[type[BaseCheck]] = []


def register_check(check_class: type[BaseCheck]) -> type[BaseCheck]:
    """Decorator to register a check class."""
    if check_class not in _check_registry:
        _check_registry.append(check_class)
    return check_class


def get_all_checks() -> list[type[BaseCheck]]:
    """Get all registered check classes."""
    return _check_registry.copy()


def load_builtin_checks() -> None:
    """Import the bundled check modules so they register themselves."""
    import site_doctor.checks.performance.performance_auditor  # noqa: F401
    import site_doctor.checks.security.header_auditor  # noqa: F401
    import site_doctor.checks.tls.certificate_auditor  # noqa: F401


def run_checks(context: CheckContext) -> list["Finding"]:
    """Run all enabled checks and return combined findings.

    A check that raises is logged and skipped; it never fails the audit.
    """
    from site_doctor.model.finding import Finding

    findings: list[Finding] = []

    for check_class in _check_registry:
        check = check_class()
        if check.category not in context.enabled:
            continue

        try:
            findings.extend(check.run(context))
        except Exception as e:
            logger.warning("Check %s failed: %s", check.__class__.__name__, e)

    return findings
