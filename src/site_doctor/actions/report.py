"""Report Action - Render audit and deploy results.

CONTRACT:
- read_only: True
- requires_backup: False
- rollback_support: N/A
- prerequisites: None
"""

from dataclasses import dataclass

from rich.console import Console


@dataclass
class ActionContract:
    """Explicit contract for an action."""

    read_only: bool
    requires_backup: bool
    rollback_support: bool
    prerequisites: list[str]


class ReportAction:
    """Render results through the reporter for the chosen format.

    This action is completely read-only and produces
    formatted output for the terminal.
    """

    CONTRACT = ActionContract(
        read_only=True,
        requires_backup=False,
        rollback_support=False,
        prerequisites=[],
    )

    def __init__(
        self,
        console: Console | None = None,
        format_mode: str = "rich",
        show_score: bool = False,
        show_explain: bool = False,
    ) -> None:
        from site_doctor.actions.reporters.json_reporter import JsonReporter
        from site_doctor.actions.reporters.plain_reporter import PlainReporter
        from site_doctor.actions.reporters.rich_reporter import RichReporter

        self.console = console or Console()
        reporters = {"rich": RichReporter, "plain": PlainReporter, "json": JsonReporter}
        if format_mode not in reporters:
            raise ValueError(f"Unknown format: {format_mode}")
        self.format_mode = format_mode
        self.reporter = reporters[format_mode](self.console, show_score=show_score, show_explain=show_explain)

    def report_findings(self, findings) -> int:
        return self.reporter.report_findings(findings)

    def report_site_summary(self, model, decision=None, notify_result=None) -> None:
        self.reporter.report_site_summary(model, decision, notify_result)

    def report_audit(self, model, findings, decision=None, notify_result=None) -> int:
        return self.reporter.report_audit(model, findings, decision, notify_result)

    def report_deploy(self, sync=None, invalidation=None) -> None:
        self.reporter.report_deploy(sync, invalidation)
