"""JSON Reporter Implementation."""

import json
from dataclasses import asdict

from site_doctor.actions.reporters.base import BaseReporter
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.finding import Finding, sort_findings
from site_doctor.model.site import InvalidationResult, SiteModel, SyncResult


def finding_to_dict(finding: Finding) -> dict:
    item = asdict(finding)
    item["severity"] = finding.severity.value
    item["evidence"] = [asdict(e) for e in finding.evidence]
    return item


class JsonReporter(BaseReporter):
    """Generates machine-readable JSON output.

    Every call prints exactly one JSON document.
    """

    def report_findings(self, findings: list[Finding]) -> int:
        self.console.print_json(json.dumps(self._findings_dict(findings)))
        return self.exit_code_for(findings)

    def report_site_summary(self, model: SiteModel, decision: ThresholdDecision | None = None, notify_result=None) -> None:
        self.console.print_json(json.dumps(self._summary_dict(model, decision, notify_result), default=str))

    def report_audit(
        self,
        model: SiteModel,
        findings: list[Finding],
        decision: ThresholdDecision | None = None,
        notify_result=None,
    ) -> int:
        data = self._summary_dict(model, decision, notify_result)
        data.update(self._findings_dict(findings))
        self.console.print_json(json.dumps(data, default=str))
        return self.exit_code_for(findings)

    def _findings_dict(self, findings: list[Finding]) -> dict:
        payload: dict = {"findings": [finding_to_dict(f) for f in sort_findings(findings)]}
        if self.show_score:
            from site_doctor.engine.scoring import ScoringEngine
            payload["posture_score"] = asdict(ScoringEngine().calculate(findings))
        return payload

    @staticmethod
    def _summary_dict(model: SiteModel, decision: ThresholdDecision | None, notify_result) -> dict:
        data = asdict(model)
        # Raw responses live in the report files already.
        for key in ("certificate", "headers", "page_score"):
            if data.get(key):
                data[key].pop("raw", None)
        if decision is not None:
            data["threshold"] = {
                "score": decision.score,
                "threshold": decision.threshold,
                "notify": decision.notify,
            }
        if notify_result is not None:
            data["notification"] = asdict(notify_result)
        return data

    def report_deploy(self, sync: SyncResult | None, invalidation: InvalidationResult | None) -> None:
        data = {
            "sync": asdict(sync) if sync is not None else None,
            "invalidation": asdict(invalidation) if invalidation is not None else None,
        }
        self.console.print_json(json.dumps(data))
