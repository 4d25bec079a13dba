"""Base Reporter Interface."""

from abc import ABC, abstractmethod

from rich.console import Console

from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.evidence import Severity
from site_doctor.model.finding import Finding
from site_doctor.model.site import InvalidationResult, SiteModel, SyncResult


class BaseReporter(ABC):
    """Abstract base class for all audit reporters."""

    def __init__(self, console: Console, show_score: bool = False, show_explain: bool = False) -> None:
        self.console = console
        self.show_score = show_score
        self.show_explain = show_explain

    @abstractmethod
    def report_findings(self, findings: list[Finding]) -> int:
        """Report audit findings; return the exit code they imply."""
        pass

    @abstractmethod
    def report_site_summary(self, model: SiteModel, decision: ThresholdDecision | None = None, notify_result=None) -> None:
        """Display what the audit queried and where it was saved."""
        pass

    @abstractmethod
    def report_deploy(self, sync: SyncResult | None, invalidation: InvalidationResult | None) -> None:
        """Display the outcome of a deploy."""
        pass

    def report_audit(
        self,
        model: SiteModel,
        findings: list[Finding],
        decision: ThresholdDecision | None = None,
        notify_result=None,
    ) -> int:
        """Summary followed by findings; returns the exit code."""
        self.report_site_summary(model, decision, notify_result)
        return self.report_findings(findings)

    @staticmethod
    def exit_code_for(findings: list[Finding]) -> int:
        return 1 if any(f.severity in (Severity.CRITICAL, Severity.WARNING) for f in findings) else 0
