"""Rich Reporter Implementation."""

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from site_doctor.actions.reporters.base import BaseReporter
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.evidence import Severity
from site_doctor.model.finding import Finding, sort_findings
from site_doctor.model.site import InvalidationResult, SiteModel, SyncResult


class RichReporter(BaseReporter):
    """Generates high-fidelity terminal output using Rich."""

    def report_findings(self, findings: list[Finding]) -> int:
        warning_count = sum(1 for f in findings if f.severity == Severity.WARNING)
        critical_count = sum(1 for f in findings if f.severity == Severity.CRITICAL)
        info_count = len(findings) - warning_count - critical_count

        self.console.print()

        if self.show_score:
            self._print_score_summary(findings)
            self.console.print()

        if not findings:
            self.console.print("   [green][bold]PASS:[/] No issues found.[/]")
            return 0

        self.console.print("Audit Results", style="bold underline")
        self.console.print(f"   Summary: {critical_count} critical, {warning_count} warning, {info_count} info")
        self.console.print()

        for finding in sort_findings(findings):
            self._print_finding(finding)

        return self.exit_code_for(findings)

    def _print_score_summary(self, findings: list[Finding]) -> None:
        """Print the 0-100 posture card."""
        from site_doctor.engine.scoring import ScoringEngine
        score = ScoringEngine().calculate(findings)

        total_color = "red"
        if score.total >= 80: total_color = "green"
        elif score.total >= 60: total_color = "yellow"

        grid = Table.grid(expand=True)
        grid.add_column()
        grid.add_column(justify="right")

        def row(name, cur, max_p):
            c = "green" if cur == max_p else ("yellow" if cur > max_p / 2 else "red")
            grid.add_row(name, f"[{c}]{cur}[/][dim]/{max_p}[/]")

        row("Security", score.security.current_points, score.security.max_points)
        row("TLS", score.tls.current_points, score.tls.max_points)
        row("Performance", score.performance.current_points, score.performance.max_points)

        self.console.print(Panel(
            grid,
            title=f"[{total_color}]Site Posture Score: {score.total}/100[/]",
            border_style=total_color,
        ))

    def _print_finding(self, finding: Finding) -> None:
        color, icon = {
            Severity.CRITICAL: ("red", "x"),
            Severity.WARNING: ("yellow", "!"),
            Severity.INFO: ("blue", "i"),
        }.get(finding.severity, ("white", "i"))

        self.console.print(f"[{color}]\\[{finding.severity.value}] {icon} \\[{finding.id}] {escape(finding.condition)}[/]")
        self.console.print(f"   [dim]Cause:[/] {escape(finding.cause)}")
        self.console.print(f"   [dim]Confidence:[/] {finding.confidence:.0%}")

        self.console.print("   [dim]Evidence:[/]")
        for evidence in finding.evidence:
            self.console.print(f"      - {escape(evidence.source_file)}:{evidence.line_number}")
            if evidence.excerpt:
                self.console.print(f"         [italic]{escape(evidence.excerpt)}[/]")

        if finding.treatment:
            treatment_text = escape(str(finding.treatment))
            if "\n" in treatment_text:
                self.console.print(Panel(
                    f"[blue]{treatment_text}[/]",
                    title="[bold white]Configuration Change[/]",
                    title_align="left",
                    border_style="blue",
                    padding=(1, 2),
                ))
            else:
                self.console.print(f"   [dim]Treatment:[/] [green]{treatment_text}[/]")

        if finding.impact:
            self.console.print("   [dim]Impact if ignored:[/]")
            for impact in finding.impact:
                self.console.print(f"      [red]![/] {escape(impact)}")

        if self.show_explain:
            from site_doctor.engine.knowledge_base import get_explanation
            expl = get_explanation(finding.id)
            if expl:
                self.console.print(Panel(
                    f"[bold]Why:[/] {expl.why}\n[bold]Risk:[/] {expl.risk}\n[bold]When to ignore:[/] {expl.ignore}",
                    title="Explanation",
                    title_align="left",
                    border_style="dim",
                ))
        self.console.print()

    def report_site_summary(self, model: SiteModel, decision: ThresholdDecision | None = None, notify_result=None) -> None:
        self.console.print()
        self.console.print(Panel.fit(f"Site: {model.domain}", style="bold cyan"))

        table = Table(show_header=True)
        table.add_column("Query")
        table.add_column("Result")
        table.add_column("Report")

        cert = model.certificate
        if cert is not None:
            if cert.parse_ok:
                days = cert.days_remaining
                style = "red" if days is not None and days < 14 else ("yellow" if days is not None and days < 30 else "green")
                result = f"[{style}]{days} days[/] (notAfter {escape(cert.not_after or '?')})"
            else:
                result = f"[red]unavailable[/] {escape(cert.error or '')}"
            table.add_row("Certificate", result, escape(model.report_path("cert")))

        headers = model.headers
        if headers is not None:
            if headers.ok:
                result = f"{headers.status_code} {escape(headers.final_url or headers.url)}"
            else:
                result = f"[red]failed[/] {escape(headers.error or '')}"
            table.add_row("Headers", result, escape(model.report_path("headers")))

        page = model.page_score
        if page is not None:
            if page.score is not None:
                style = "green" if page.score >= 90 else ("yellow" if page.score >= 50 else "red")
                result = f"[{style}]{page.score}[/] {page.category} ({page.strategy})"
            else:
                result = f"[red]unavailable[/] {escape(page.error or '')}"
            table.add_row("PageSpeed", result, escape(model.report_path("pagespeed")))

        self.console.print(table)

        if page is not None and page.metrics:
            self.console.print("   " + "  ".join(f"[dim]{k}[/] {escape(v)}" for k, v in page.metrics.items()))

        if decision is not None:
            color = "yellow" if decision.notify else ("dim" if decision.score is None else "green")
            self.console.print(f"   [{color}]Threshold: {decision.describe()}[/]")
        if notify_result is not None:
            if notify_result.sent:
                self.console.print(f"   [yellow]Notification sent[/] via {notify_result.channel} to {escape(notify_result.target)}")
            else:
                self.console.print(f"   [red]Notification failed[/] ({notify_result.channel}): {escape(notify_result.error or '')}")

    def report_deploy(self, sync: SyncResult | None, invalidation: InvalidationResult | None) -> None:
        if sync is not None:
            title = f"{'Dry run: ' if sync.dry_run else ''}s3://{sync.bucket}"
            table = Table(title=title, show_header=True)
            table.add_column("Action")
            table.add_column("Key")
            for key in sync.uploaded:
                table.add_row("[green]upload[/]", escape(key))
            for key in sync.deleted:
                table.add_row("[yellow]delete[/]", escape(key))
            for key, error in sync.failed.items():
                table.add_row("[red]failed[/]", f"{escape(key)} [dim]{escape(error)}[/]")
            if table.row_count:
                self.console.print(table)
            self.console.print(
                f"   Uploaded {len(sync.uploaded)}, unchanged {len(sync.skipped)}, "
                f"deleted {len(sync.deleted)}, failed {len(sync.failed)}"
            )

        if invalidation is not None:
            if invalidation.success:
                self.console.print(
                    f"   [bold green]Invalidation[/] {invalidation.invalidation_id or '-'} "
                    f"({invalidation.status}) on {invalidation.distribution_id}: {' '.join(invalidation.paths)}"
                )
            else:
                self.console.print(f"   [bold red]Invalidation failed:[/] {escape(invalidation.error or '')}")
