"""Notify Action - Tell a human the score dropped below threshold.

CONTRACT:
- read_only: True (sends a message, changes nothing)
- requires_backup: False
- rollback_support: N/A
- prerequisites: ["notify_email or sns_topic_arn configured"]
"""

import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage

from botocore.exceptions import BotoCoreError, ClientError

from site_doctor.actions.report import ActionContract
from site_doctor.config import SiteProfile
from site_doctor.connector.aws import AWSConnector
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.site import SiteModel

logger = logging.getLogger(__name__)

CONTRACT = ActionContract(
    read_only=True,
    requires_backup=False,
    rollback_support=False,
    prerequisites=["notify_email or sns_topic_arn configured"],
)

SNS_SUBJECT_LIMIT = 100


@dataclass
class Notification:
    subject: str
    body: str


@dataclass
class NotifyResult:
    channel: str
    target: str
    sent: bool
    error: str | None = None


def build_notification(model: SiteModel, decision: ThresholdDecision) -> Notification:
    """Compose the alert for a below-threshold run."""
    page = model.page_score
    subject = f"[site-doctor] {model.domain}: score {decision.score} < {decision.threshold}"
    lines = [
        f"Domain:    {model.domain}",
        f"Audited:   {model.audit_timestamp or 'unknown'}",
        f"Score:     {decision.score} (threshold {decision.threshold})",
    ]
    if page is not None:
        lines.append(f"Category:  {page.category} ({page.strategy})")
        for name, value in page.metrics.items():
            lines.append(f"  {name:<6} {value}")
    if model.reports:
        lines.append("")
        lines.append("Reports:")
        for report in model.reports.values():
            lines.append(f"  {report.kind}: {report.path}")
    return Notification(subject=subject, body="\n".join(lines) + "\n")


class EmailNotifier:
    """Send the alert over SMTP."""

    def __init__(
        self,
        host: str,
        port: int,
        sender: str,
        recipient: str,
        *,
        user: str | None = None,
        password: str | None = None,
        starttls: bool = False,
        timeout: float = 30,
    ) -> None:
        self.host = host
        self.port = port
        self.sender = sender
        self.recipient = recipient
        self.user = user
        self.password = password
        self.starttls = starttls
        self.timeout = timeout

    def send(self, notification: Notification) -> NotifyResult:
        message = EmailMessage()
        message["Subject"] = notification.subject
        message["From"] = self.sender
        message["To"] = self.recipient
        message.set_content(notification.body)

        try:
            with smtplib.SMTP(self.host, self.port, timeout=self.timeout) as smtp:
                if self.starttls:
                    smtp.starttls()
                if self.user and self.password:
                    smtp.login(self.user, self.password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("email to %s failed: %s", self.recipient, e)
            return NotifyResult(channel="email", target=self.recipient, sent=False, error=str(e))

        logger.info("alert emailed to %s", self.recipient)
        return NotifyResult(channel="email", target=self.recipient, sent=True)


class SnsNotifier:
    """Publish the alert to an SNS topic."""

    def __init__(self, aws: AWSConnector, topic_arn: str) -> None:
        self.aws = aws
        self.topic_arn = topic_arn

    def send(self, notification: Notification) -> NotifyResult:
        try:
            self.aws.sns.publish(
                TopicArn=self.topic_arn,
                Subject=notification.subject[:SNS_SUBJECT_LIMIT],
                Message=notification.body,
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("SNS publish to %s failed: %s", self.topic_arn, e)
            return NotifyResult(channel="sns", target=self.topic_arn, sent=False, error=str(e))

        logger.info("alert published to %s", self.topic_arn)
        return NotifyResult(channel="sns", target=self.topic_arn, sent=True)


def notifier_for(profile: SiteProfile, aws: AWSConnector | None = None):
    """Pick the configured channel; SNS wins when both are set."""
    if profile.sns_topic_arn:
        return SnsNotifier(aws or AWSConnector(), profile.sns_topic_arn)
    if profile.notify_email:
        return EmailNotifier(
            profile.smtp_host,
            profile.smtp_port,
            profile.notify_from or f"site-doctor@{profile.domain}",
            profile.notify_email,
            user=profile.smtp_user,
            password=profile.smtp_password,
            starttls=profile.smtp_starttls,
            timeout=profile.timeout,
        )
    return None
