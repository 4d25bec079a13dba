"""Shared audit + deploy pipeline.

Keeps the sequencing out of cli.py.
Public API:
    run_audit(profile, ...) -> AuditResult
    run_deploy(profile, ...) -> DeployResult

Both are straight-line sequences of blocking external calls. Nothing runs
in parallel and nothing is retried; a failed query is recorded in its
result and the sequence carries on.
"""

import datetime
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable

from site_doctor import __version__
from site_doctor.actions.deploy import DeployAction
from site_doctor.actions.notify import NotifyResult, build_notification, notifier_for
from site_doctor.actions.report_files import ReportWriter
from site_doctor.checks import CheckContext, load_builtin_checks, run_checks
from site_doctor.config import SiteProfile
from site_doctor.connector.aws import AWSConfig, AWSConnector
from site_doctor.connector.http import build_session
from site_doctor.connector.local import LocalRunner
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.finding import Finding
from site_doctor.model.site import InvalidationResult, SiteModel, SyncResult
from site_doctor.scanner.certificate import CertificateScanner
from site_doctor.scanner.headers import HeaderScanner
from site_doctor.scanner.pagespeed import PageSpeedScanner, pretty_json

logger = logging.getLogger(__name__)


@dataclass
class AuditResult:
    """Result from run_audit()."""

    model: SiteModel
    findings: list[Finding]
    decision: ThresholdDecision
    notification: NotifyResult | None = None


@dataclass
class DeployResult:
    """Result from run_deploy()."""

    sync: SyncResult | None = None
    invalidation: InvalidationResult | None = None

    @property
    def success(self) -> bool:
        sync_ok = self.sync is None or self.sync.success
        inv_ok = self.invalidation is None or self.invalidation.success
        return sync_ok and inv_ok


def aws_for(profile: SiteProfile) -> AWSConnector:
    return AWSConnector(AWSConfig(region=profile.region, profile_name=profile.aws_profile))


def report_dir_for(profile: SiteProfile, default_root: Path) -> Path:
    if profile.report_dir:
        return Path(profile.report_dir).expanduser()
    return default_root / profile.name


def run_audit(
    profile: SiteProfile,
    report_dir: Path,
    *,
    notify: bool = True,
    categories: frozenset[str] | None = None,
    runner: LocalRunner | None = None,
    session=None,
    aws: AWSConnector | None = None,
    now: datetime.datetime | None = None,
    log_fn: Callable[[str], None] | None = None,
) -> AuditResult:
    """Query the certificate, the headers and the page score; notify if needed.

    Args:
        profile: Site to audit.
        report_dir: Directory receiving this run's report files.
        notify: When False the threshold is still evaluated but nothing is sent.
        categories: Check categories to run; all of them when None.
        runner, session, aws: Injected connectors (tests pass fakes).
        now: Timestamp for the run; defaults to the current time.
        log_fn: Optional callback for progress messages (CLI spinner).
    """
    def _log(msg: str) -> None:
        logger.info(msg)
        if log_fn:
            log_fn(msg)

    now = now or datetime.datetime.now()
    runner = runner or LocalRunner(timeout=profile.timeout)
    session = session or build_session()
    writer = ReportWriter(report_dir, timestamp=now)

    model = SiteModel(
        domain=profile.domain,
        audit_timestamp=now.isoformat(timespec="seconds"),
        doctor_version=__version__,
    )

    _log(f"Inspecting certificate for {profile.domain}...")
    model.certificate = CertificateScanner(runner, timeout=min(profile.timeout, 15)).scan(profile.domain)
    model.reports["cert"] = writer.write("cert", model.certificate.raw)

    _log(f"Fetching headers from https://{profile.domain}/...")
    model.headers = HeaderScanner(session, timeout=profile.timeout).scan(profile.domain)
    model.reports["headers"] = writer.write("headers", model.headers.raw)

    _log("Requesting PageSpeed Insights score...")
    pagespeed = PageSpeedScanner(session, api_key=profile.api_key, timeout=max(profile.timeout, 60))
    model.page_score = pagespeed.scan(f"https://{profile.domain}/", strategy=profile.strategy, category=profile.category)
    model.reports["pagespeed"] = writer.write("pagespeed", pretty_json(model.page_score.raw), extension="json")

    decision = ThresholdDecision(score=model.page_score.score, threshold=profile.threshold)
    _log(f"Threshold: {decision.describe()}")

    load_builtin_checks()
    context = CheckContext(model=model, threshold=profile.threshold)
    if categories:
        context.enabled = frozenset(categories)
    findings = run_checks(context)

    notification = None
    if decision.notify and notify:
        notifier = notifier_for(profile, aws or aws_for(profile))
        if notifier is None:
            logger.warning("score below threshold but no notify_email or sns_topic_arn configured")
        else:
            _log("Sending notification...")
            notification = notifier.send(build_notification(model, decision))

    return AuditResult(model=model, findings=findings, decision=decision, notification=notification)


def run_deploy(
    profile: SiteProfile,
    *,
    dry_run: bool = False,
    delete: bool = False,
    invalidate: bool = True,
    wait: bool = False,
    aws: AWSConnector | None = None,
    log_fn: Callable[[str], None] | None = None,
) -> DeployResult:
    """Sync site_dir to the bucket, then invalidate the distribution."""
    def _log(msg: str) -> None:
        logger.info(msg)
        if log_fn:
            log_fn(msg)

    action = DeployAction(aws or aws_for(profile), profile)
    result = DeployResult()

    _log(f"Planning sync of {profile.site_dir} to s3://{profile.bucket}...")
    plan = action.plan(delete=delete)

    _log(f"Uploading {len(plan.uploads)} file(s)...")
    result.sync = action.sync(plan, dry_run=dry_run)

    if invalidate:
        _log(f"Invalidating /* on {profile.distribution_id}...")
        result.invalidation = action.invalidate(["/*"], wait=wait, dry_run=dry_run)

    return result
