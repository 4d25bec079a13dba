"""Plain Text Reporter Implementation."""

from site_doctor.actions.reporters.base import BaseReporter
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.evidence import Severity
from site_doctor.model.finding import Finding, sort_findings
from site_doctor.model.site import InvalidationResult, SiteModel, SyncResult


class PlainReporter(BaseReporter):
    """Generates clean, text-only output."""

    def report_findings(self, findings: list[Finding]) -> int:
        warning_count = sum(1 for f in findings if f.severity == Severity.WARNING)
        critical_count = sum(1 for f in findings if f.severity == Severity.CRITICAL)
        info_count = len(findings) - warning_count - critical_count

        self.console.print()

        if self.show_score:
            self._print_score_summary(findings)
            self.console.print()

        self.console.print("AUDIT RESULTS", style="bold")
        self.console.print(f"Summary: {critical_count} critical, {warning_count} warning, {info_count} info")
        self.console.print()

        for finding in sort_findings(findings):
            self._print_finding(finding)

        return self.exit_code_for(findings)

    def _print_score_summary(self, findings: list[Finding]) -> None:
        from site_doctor.engine.scoring import ScoringEngine
        score = ScoringEngine().calculate(findings)

        self.console.print(f"Site Posture Score: {score.total}/100")
        self.console.print(f"Security: {score.security.current_points}/{score.security.max_points}")
        self.console.print(f"TLS: {score.tls.current_points}/{score.tls.max_points}")
        self.console.print(f"Performance: {score.performance.current_points}/{score.performance.max_points}")

    def _print_finding(self, finding: Finding) -> None:
        self.console.print(f"[{finding.severity.value.upper()}]: {finding.id}: {finding.condition}", markup=False)
        self.console.print(f"   Cause: {finding.cause}", markup=False)
        self.console.print(f"   Confidence: {finding.confidence:.0%}")

        self.console.print("   Evidence:")
        for ev in finding.evidence:
            line = f"      - file={ev.source_file} line={ev.line_number}"
            if ev.excerpt:
                clean_excerpt = ev.excerpt.replace("\n", " ").strip()
                line += f" excerpt=\"{clean_excerpt}\""
            self.console.print(line, markup=False)

        if finding.treatment:
            self.console.print("   Treatment:")
            for line in str(finding.treatment).split("\n"):
                self.console.print(f"      {line}", markup=False)

        if finding.impact:
            self.console.print("   Impact if ignored:")
            for impact in finding.impact:
                self.console.print(f"      ! {impact}", markup=False)

        if self.show_explain:
            from site_doctor.engine.knowledge_base import get_explanation
            expl = get_explanation(finding.id)
            if expl:
                self.console.print("   Explanation:")
                self.console.print(f"      Why: {expl.why}", markup=False)
                self.console.print(f"      Risk: {expl.risk}", markup=False)
                self.console.print(f"      When to ignore: {expl.ignore}", markup=False)
        self.console.print()

    def report_site_summary(self, model: SiteModel, decision: ThresholdDecision | None = None, notify_result=None) -> None:
        self.console.print(f"SITE: {model.domain}")
        if model.audit_timestamp:
            self.console.print(f"Audited: {model.audit_timestamp}")

        cert = model.certificate
        if cert is not None:
            if cert.parse_ok:
                self.console.print(f"Certificate: expires {cert.not_after} ({cert.days_remaining} days)")
            else:
                self.console.print(f"Certificate: unavailable ({cert.error})", markup=False)

        headers = model.headers
        if headers is not None:
            if headers.ok:
                self.console.print(f"Headers: {headers.status_code} from {headers.final_url}")
            else:
                self.console.print(f"Headers: fetch failed ({headers.error})", markup=False)

        page = model.page_score
        if page is not None:
            shown = page.score if page.score is not None else "n/a"
            self.console.print(f"Page score: {shown} ({page.category}, {page.strategy})")
            for name, value in page.metrics.items():
                self.console.print(f"   {name}: {value}")

        if decision is not None:
            self.console.print(f"Threshold: {decision.describe()}")
        if notify_result is not None:
            state = "sent" if notify_result.sent else f"failed ({notify_result.error})"
            self.console.print(f"Notification: {notify_result.channel} to {notify_result.target} {state}", markup=False)

        if model.reports:
            self.console.print("\nREPORTS:")
            for report in model.reports.values():
                self.console.print(f"- {report.kind}: {report.path}")

    def report_deploy(self, sync: SyncResult | None, invalidation: InvalidationResult | None) -> None:
        if sync is not None:
            prefix = "DRY RUN " if sync.dry_run else ""
            self.console.print(f"{prefix}SYNC s3://{sync.bucket}")
            self.console.print(
                f"Uploaded: {len(sync.uploaded)}, unchanged: {len(sync.skipped)}, "
                f"deleted: {len(sync.deleted)}, failed: {len(sync.failed)}"
            )
            for key in sync.uploaded:
                self.console.print(f"   + {key}", markup=False)
            for key in sync.deleted:
                self.console.print(f"   - {key}", markup=False)
            for key, error in sync.failed.items():
                self.console.print(f"   ! {key}: {error}", markup=False)
        if invalidation is not None:
            if invalidation.success:
                self.console.print(
                    f"INVALIDATION {invalidation.distribution_id}: "
                    f"{invalidation.invalidation_id or '-'} {invalidation.status} {' '.join(invalidation.paths)}"
                )
            else:
                self.console.print(f"INVALIDATION {invalidation.distribution_id} failed: {invalidation.error}", markup=False)
