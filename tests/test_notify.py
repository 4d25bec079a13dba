"""Tests for threshold notifications."""

import smtplib
from unittest.mock import MagicMock, patch

from botocore.exceptions import ClientError

from site_doctor.actions.notify import (
    EmailNotifier,
    Notification,
    SnsNotifier,
    build_notification,
    notifier_for,
)
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.site import PageScore, ReportFile, SiteModel


def _model():
    model = SiteModel(
        domain="example.com",
        audit_timestamp="2026-03-04T05:06:07",
        page_score=PageScore(url="https://example.com/", score=92, ok=True, metrics={"LCP": "3.1 s"}),
    )
    model.reports["pagespeed"] = ReportFile(kind="pagespeed", path="/r/pagespeed-20260304-050607.json")
    return model


def test_notification_content():
    note = build_notification(_model(), ThresholdDecision(score=92, threshold=95))
    assert note.subject == "[site-doctor] example.com: score 92 < 95"
    assert "LCP" in note.body
    assert "/r/pagespeed-20260304-050607.json" in note.body


def test_email_notifier_sends_message():
    with patch("site_doctor.actions.notify.smtplib.SMTP") as MockSMTP:
        smtp = MockSMTP.return_value.__enter__.return_value
        notifier = EmailNotifier(
            "smtp.example.com", 587, "alerts@example.com", "ops@example.com",
            user="alerts", password="pw", starttls=True,
        )
        result = notifier.send(Notification(subject="s", body="b"))

    assert result.sent
    MockSMTP.assert_called_once_with("smtp.example.com", 587, timeout=30)
    smtp.starttls.assert_called_once()
    smtp.login.assert_called_once_with("alerts", "pw")
    message = smtp.send_message.call_args[0][0]
    assert message["To"] == "ops@example.com"
    assert message["Subject"] == "s"


def test_email_failure_is_reported_not_raised():
    with patch("site_doctor.actions.notify.smtplib.SMTP") as MockSMTP:
        MockSMTP.side_effect = smtplib.SMTPConnectError(421, "try later")
        result = EmailNotifier("smtp", 25, "a@x", "b@x").send(Notification("s", "b"))
    assert result.sent is False
    assert "try later" in result.error


def test_sns_notifier_truncates_subject():
    aws = MagicMock()
    result = SnsNotifier(aws, "arn:aws:sns:us-east-1:123456789012:alerts").send(
        Notification(subject="x" * 150, body="body")
    )
    assert result.sent
    kwargs = aws.sns.publish.call_args.kwargs
    assert len(kwargs["Subject"]) == 100
    assert kwargs["TopicArn"].endswith(":alerts")


def test_sns_failure_is_reported():
    aws = MagicMock()
    aws.sns.publish.side_effect = ClientError({"Error": {"Code": "AuthorizationError", "Message": "no"}}, "Publish")
    result = SnsNotifier(aws, "arn").send(Notification("s", "b"))
    assert result.sent is False


def test_notifier_selection(profile):
    assert isinstance(notifier_for(profile), EmailNotifier)
    profile.sns_topic_arn = "arn:aws:sns:us-east-1:123456789012:alerts"
    assert isinstance(notifier_for(profile, MagicMock()), SnsNotifier)
    profile.sns_topic_arn = None
    profile.notify_email = None
    assert notifier_for(profile) is None
