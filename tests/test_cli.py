"""Tests for CLI commands.

Verifies:
1. audit passes flags through to the pipeline and exits with the findings' code.
2. deploy validates the profile and exits 1 on a failed sync.
3. config add/list/remove round-trip through the profiles file.
"""

import json
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from site_doctor.cli import main
from site_doctor.engine.threshold import ThresholdDecision
from site_doctor.model.site import SiteModel


@pytest.fixture
def cli(tmp_path):
    runner = CliRunner()

    def invoke(*args, **kwargs):
        return runner.invoke(main, ["--config", str(tmp_path), *args], **kwargs)

    return invoke


@pytest.fixture(autouse=True)
def no_keyring():
    with patch("site_doctor.config.keyring"):
        yield


def _audit_result(score=97, findings=None):
    return MagicMock(
        model=SiteModel(domain="example.com"),
        findings=findings or [],
        decision=ThresholdDecision(score=score, threshold=95),
        notification=None,
    )


def test_audit_bare_domain_passes_flags(cli, tmp_path):
    with patch("site_doctor.cli.run_audit") as mock_run:
        mock_run.return_value = _audit_result()
        result = cli("audit", "example.com", "--format", "plain", "--threshold", "90",
                     "--strategy", "desktop", "--no-notify")

    assert result.exit_code == 0, result.output
    profile, report_dir = mock_run.call_args[0]
    assert profile.domain == "example.com"
    assert profile.threshold == 90
    assert profile.strategy == "desktop"
    assert report_dir == tmp_path / "reports" / "example.com"
    assert mock_run.call_args.kwargs["notify"] is False
    assert "SITE: example.com" in result.output


def test_audit_exits_nonzero_on_warnings(cli):
    from site_doctor.model.evidence import Evidence, Severity
    from site_doctor.model.finding import Finding

    finding = Finding(
        id="PERF-1", severity=Severity.WARNING, confidence=0.9,
        condition="Performance score 92 is below threshold 95", cause="...",
        evidence=[Evidence(source_file="f", line_number=0, excerpt="x")],
    )
    with patch("site_doctor.cli.run_audit") as mock_run:
        mock_run.return_value = _audit_result(92, [finding])
        result = cli("audit", "example.com", "--format", "plain")
    assert result.exit_code == 1
    assert "PERF-1" in result.output


def test_audit_unknown_profile_is_usage_error(cli):
    result = cli("audit", "nosuchprofile")
    assert result.exit_code == 2
    assert "No profile named" in result.output


def test_audit_pipeline_error_prints_and_exits_1(cli):
    with patch("site_doctor.cli.run_audit", side_effect=FileExistsError("cert-20260304-050607.txt")):
        result = cli("audit", "example.com", "--format", "plain")
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_threshold_out_of_range_rejected(cli):
    result = cli("audit", "example.com", "--threshold", "150")
    assert result.exit_code == 2


def test_config_add_list_remove(cli, tmp_path):
    result = cli("config", "add", "blog", "--domain", "blog.example.com", "--bucket", "blog-site",
                 "--threshold", "90")
    assert result.exit_code == 0, result.output

    result = cli("config", "list")
    assert "blog.example.com" in result.output
    assert "s3://blog-site" in result.output

    assert cli("config", "remove", "blog").exit_code == 0
    assert cli("config", "remove", "blog").exit_code == 1


def test_deploy_requires_bucket(cli):
    result = cli("deploy", "example.com", "--format", "plain")
    assert result.exit_code == 2
    assert "bucket" in result.output


def test_deploy_failure_exits_1(cli, tmp_path):
    site_dir = tmp_path / "site"
    site_dir.mkdir()
    cli("config", "add", "blog", "--domain", "blog.example.com", "--bucket", "blog-site",
        "--distribution", "E123", "--site-dir", str(site_dir))

    with patch("site_doctor.cli.run_deploy") as mock_deploy:
        mock_deploy.return_value = MagicMock(success=False, sync=None, invalidation=None)
        result = cli("deploy", "blog", "--format", "plain", "--dry-run")

    assert result.exit_code == 1
    assert mock_deploy.call_args.kwargs["dry_run"] is True


def test_deploy_delete_declined_falls_back_to_dry_run(cli, tmp_path):
    site_dir = tmp_path / "site"
    site_dir.mkdir()
    cli("config", "add", "blog", "--domain", "blog.example.com", "--bucket", "blog-site",
        "--distribution", "E123", "--site-dir", str(site_dir))

    with patch("site_doctor.cli.run_deploy") as mock_deploy:
        mock_deploy.return_value = MagicMock(success=True, sync=None, invalidation=None)
        result = cli("deploy", "blog", "--format", "plain", "--delete", input="n\n")

    assert result.exit_code == 0
    assert mock_deploy.call_args.kwargs["dry_run"] is True
    assert mock_deploy.call_args.kwargs["delete"] is True


def test_audit_json_is_one_document_with_threshold_decision(cli):
    with patch("site_doctor.cli.run_audit") as mock_run:
        mock_run.return_value = _audit_result(score=92)
        result = cli("audit", "example.com", "--format", "json", "--score")

    assert result.exit_code == 0, result.output
    data = json.loads(result.output)
    assert data["domain"] == "example.com"
    assert data["threshold"] == {"score": 92, "threshold": 95, "notify": True}
    assert data["findings"] == []
    assert data["posture_score"]["total"] == 100


def test_audit_rejects_profile_with_empty_domain(cli, tmp_path):
    (tmp_path / "profiles.yaml").write_text("blog:\n  domain: ''\n  bucket: blog-site\n")
    with patch("site_doctor.cli.run_audit") as mock_run:
        result = cli("audit", "blog")
    assert result.exit_code == 2
    assert "missing: domain" in result.output
    mock_run.assert_not_called()


def test_audit_rejects_profile_without_domain_key(cli, tmp_path):
    (tmp_path / "profiles.yaml").write_text("blog:\n  bucket: blog-site\n")
    result = cli("audit", "blog")
    assert result.exit_code == 2
    assert "Profile 'blog' is invalid" in result.output


def test_audit_only_limits_categories(cli):
    with patch("site_doctor.cli.run_audit") as mock_run:
        mock_run.return_value = _audit_result()
        result = cli("audit", "example.com", "--format", "plain", "--only", "tls", "--only", "security")

    assert result.exit_code == 0, result.output
    assert mock_run.call_args.kwargs["categories"] == frozenset({"tls", "security"})

    with patch("site_doctor.cli.run_audit") as mock_run:
        mock_run.return_value = _audit_result()
        cli("audit", "example.com", "--format", "plain")
    assert mock_run.call_args.kwargs["categories"] is None
