"""
Click-based CLI for site-doctor.

IMPORTANT: This module only ORCHESTRATES. It never reasons or makes decisions.
- Loads site profiles
- Invokes the pipeline
- Passes flags
- Formats output
"""

import contextlib
import logging
import sys
from pathlib import Path

import click
from rich.console import Console
from rich.logging import RichHandler

from site_doctor import __version__
from site_doctor.actions.report import ReportAction
from site_doctor.checks import ALL_CATEGORIES
from site_doctor.config import ConfigManager, SiteProfile
from site_doctor.pipeline import report_dir_for, run_audit, run_deploy
from site_doctor.scanner.pagespeed import CATEGORIES

console = Console()
logger = logging.getLogger("site_doctor")


def _configure_logging(verbose: bool) -> None:
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=True)
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False


@click.group()
@click.version_option(version=__version__, prog_name="site-doctor")
@click.option("--config", "-c", type=click.Path(), help="Path to config directory")
@click.option("--verbose", "-v", is_flag=True, help="Log every external call")
@click.pass_context
def main(ctx: click.Context, config: str | None, verbose: bool) -> None:
    """site-doctor: audit and deploy static sites on S3 + CloudFront.

    Inspect certificates, security headers and page scores, and push
    builds with the right cache policy.
    """
    _configure_logging(verbose)
    ctx.ensure_object(dict)
    config_dir = Path(config) if config else None
    ctx.obj["config_mgr"] = ConfigManager(config_dir)


def _resolve_profile(ctx: click.Context, site: str) -> SiteProfile:
    """Resolve a site argument to a profile (profile name or bare domain)."""
    config_mgr: ConfigManager = ctx.obj["config_mgr"]
    try:
        profile = config_mgr.get_profile(site)
    except (TypeError, ValueError) as e:
        raise click.UsageError(f"Profile '{site}' is invalid: {e}")
    if profile:
        return profile
    if "." in site:
        return SiteProfile(name=site, domain=site)
    raise click.UsageError(f"No profile named '{site}'. Add one with 'site-doctor config add'.")


def _require(profile: SiteProfile, *names: str) -> None:
    missing = profile.missing(*names)
    if missing:
        raise click.UsageError(
            f"Profile '{profile.name}' is missing: {', '.join(missing)}"
        )


def _status(fmt: str, message: str):
    return console.status(message, spinner="dots") if fmt == "rich" else contextlib.nullcontext()


def _default_format(fmt: str | None) -> str:
    if fmt is None:
        return "rich" if sys.stdout.isatty() else "plain"
    return fmt


@main.command()
@click.argument("site")
@click.option("--format", "fmt", type=click.Choice(["rich", "plain", "json"]), default=None, help="Output format")
@click.option("--threshold", "-t", type=click.IntRange(0, 100), default=None, help="Override the profile threshold")
@click.option("--strategy", type=click.Choice(["mobile", "desktop"]), default=None, help="Lighthouse form factor")
@click.option("--category", type=click.Choice(sorted(CATEGORIES)), default=None, help="Lighthouse category to score")
@click.option("--report-dir", type=click.Path(file_okay=False), default=None, help="Where report files are written")
@click.option("--no-notify", is_flag=True, help="Evaluate the threshold but send nothing")
@click.option("--only", "only", multiple=True, type=click.Choice(sorted(ALL_CATEGORIES)),
              help="Run only these check categories (repeatable)")
@click.option("--score", is_flag=True, help="Show 0-100 posture score")
@click.option("--explain", is_flag=True, help="Show 'why this matters' for findings")
@click.pass_context
def audit(
    ctx: click.Context,
    site: str,
    fmt: str | None,
    threshold: int | None,
    strategy: str | None,
    category: str | None,
    report_dir: str | None,
    no_notify: bool,
    only: tuple[str, ...],
    score: bool,
    explain: bool,
) -> None:
    """Audit a site's certificate, headers and page score.

    Raw responses are saved as timestamped report files. A notification
    is sent only when the score is below the threshold.
    """
    fmt = _default_format(fmt)
    try:
        profile = _resolve_profile(ctx, site)
        _require(profile, "domain")
        if threshold is not None:
            profile.threshold = threshold
        if strategy:
            profile.strategy = strategy
        if category:
            profile.category = category
        if report_dir:
            profile.report_dir = report_dir

        config_mgr: ConfigManager = ctx.obj["config_mgr"]
        target_dir = report_dir_for(profile, config_mgr.config_dir / "reports")

        with _status(fmt, f"Auditing {profile.domain}...") as status:
            result = run_audit(
                profile,
                target_dir,
                notify=not no_notify,
                categories=frozenset(only) or None,
                log_fn=status.update if status else None,
            )

        reporter = ReportAction(console, format_mode=fmt, show_score=score, show_explain=explain)
        exit_code = reporter.report_audit(result.model, result.findings, result.decision, result.notification)
        sys.exit(exit_code)

    except (SystemExit, click.UsageError):
        raise
    except Exception as e:
        logger.debug("audit failed", exc_info=True)
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@main.command()
@click.argument("site")
@click.option("--format", "fmt", type=click.Choice(["rich", "plain", "json"]), default=None, help="Output format")
@click.option("--dry-run", is_flag=True, help="Show what would change without touching S3 or CloudFront")
@click.option("--delete", is_flag=True, help="Remove bucket keys that no longer exist locally")
@click.option("--no-invalidate", is_flag=True, help="Skip the CloudFront invalidation")
@click.option("--wait", is_flag=True, help="Block until the invalidation completes")
@click.option("--yes", is_flag=True, help="Skip confirmation prompts")
@click.pass_context
def deploy(
    ctx: click.Context,
    site: str,
    fmt: str | None,
    dry_run: bool,
    delete: bool,
    no_invalidate: bool,
    wait: bool,
    yes: bool,
) -> None:
    """Sync the site directory to S3 and invalidate CloudFront.

    ⚠️  WARNING: This modifies the bucket!
    """
    fmt = _default_format(fmt)
    try:
        profile = _resolve_profile(ctx, site)
        required = ["bucket", "site_dir"] + ([] if no_invalidate else ["distribution_id"])
        _require(profile, *required)

        if delete and not dry_run and not yes:
            if not click.confirm(f"Delete keys from s3://{profile.bucket} that are not in {profile.site_dir}?"):
                console.print("[dim]Switching to dry-run mode...[/]")
                dry_run = True

        with _status(fmt, f"Deploying {profile.site_dir}...") as status:
            result = run_deploy(
                profile,
                dry_run=dry_run,
                delete=delete,
                invalidate=not no_invalidate,
                wait=wait,
                log_fn=status.update if status else None,
            )

        ReportAction(console, format_mode=fmt).report_deploy(result.sync, result.invalidation)
        sys.exit(0 if result.success else 1)

    except (SystemExit, click.UsageError):
        raise
    except Exception as e:
        logger.debug("deploy failed", exc_info=True)
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@main.command()
@click.argument("site")
@click.option("--path", "paths", multiple=True, help="Path to invalidate (repeatable, default /*)")
@click.option("--wait", is_flag=True, help="Block until the invalidation completes")
@click.pass_context
def invalidate(ctx: click.Context, site: str, paths: tuple[str, ...], wait: bool) -> None:
    """Invalidate cached copies at the CloudFront edge."""
    from site_doctor.actions.deploy import DeployAction
    from site_doctor.pipeline import aws_for

    try:
        profile = _resolve_profile(ctx, site)
        _require(profile, "distribution_id")
        action = DeployAction(aws_for(profile), profile)
        result = action.invalidate(list(paths) or ["/*"], wait=wait)
        ReportAction(console, format_mode=_default_format(None)).report_deploy(None, result)
        sys.exit(0 if result.success else 1)
    except (SystemExit, click.UsageError):
        raise
    except Exception as e:
        console.print(f"[bold red]Error:[/] {e}")
        sys.exit(1)


@main.group()
def config() -> None:
    """Manage site profiles."""
    pass


@config.command("add")
@click.argument("name")
@click.option("--domain", "-d", required=True, help="Domain to audit (no scheme)")
@click.option("--bucket", "-b", help="S3 bucket holding the site")
@click.option("--distribution", "distribution_id", help="CloudFront distribution ID")
@click.option("--region", default="us-east-1", show_default=True, help="AWS region of the bucket")
@click.option("--aws-profile", help="Named AWS credentials profile")
@click.option("--site-dir", type=click.Path(file_okay=False), help="Local build directory to deploy")
@click.option("--report-dir", type=click.Path(file_okay=False), help="Directory for audit report files")
@click.option("--threshold", type=click.IntRange(0, 100), default=95, show_default=True, help="Notify when the score is below this")
@click.option("--strategy", type=click.Choice(["mobile", "desktop"]), default="mobile", show_default=True)
@click.option("--api-key", help="PageSpeed Insights API key (stored in keyring)")
@click.option("--notify-email", help="Address alerted when the score drops")
@click.option("--notify-from", help="Sender address for alerts")
@click.option("--smtp-host", default="localhost", show_default=True)
@click.option("--smtp-port", default=25, show_default=True, type=int)
@click.option("--smtp-user", help="SMTP login")
@click.option("--smtp-password", help="SMTP password (stored in keyring)")
@click.option("--starttls/--no-starttls", default=False, help="Use STARTTLS for SMTP")
@click.option("--sns-topic", "sns_topic_arn", help="SNS topic ARN to publish alerts to instead of email")
@click.pass_context
def config_add(ctx: click.Context, name: str, **options) -> None:
    """Add a new site profile."""
    config_mgr: ConfigManager = ctx.obj["config_mgr"]
    starttls = options.pop("starttls")
    profile = SiteProfile(name=name, smtp_starttls=starttls, **options)
    config_mgr.add_profile(profile)
    console.print(f"[bold green]✓ Added site profile:[/] {name}")


@config.command("list")
@click.pass_context
def config_list(ctx: click.Context) -> None:
    """List all site profiles."""
    config_mgr: ConfigManager = ctx.obj["config_mgr"]
    profiles = config_mgr.list_profiles()
    if not profiles:
        console.print("[dim]No profiles configured yet.[/]")
        return

    for name, data in profiles.items():
        target = f"s3://{data['bucket']}" if data.get("bucket") else "[dim]no bucket[/]"
        console.print(f"[bold green]{name}[/]: {data['domain']} -> {target} (threshold {data.get('threshold', 95)})")


@config.command("remove")
@click.argument("name")
@click.pass_context
def config_remove(ctx: click.Context, name: str) -> None:
    """Remove a site profile."""
    config_mgr: ConfigManager = ctx.obj["config_mgr"]
    if config_mgr.remove_profile(name):
        console.print(f"[bold green]✓ Removed profile:[/] {name}")
    else:
        console.print(f"[bold red]Error:[/] Profile {name} not found.")
        sys.exit(1)


if __name__ == "__main__":
    main()
