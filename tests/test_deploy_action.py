"""Tests for DeployAction (S3 sync + CloudFront invalidation).

Verifies:
1. Markup, sitemap and robots get the short cache policy; everything else the long one.
2. Files matching the remote ETag are skipped.
3. --delete removes remote keys with no local file.
4. Invalidation covers /* with a unique caller reference.
5. Dry runs touch nothing.
"""

import hashlib
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError

from site_doctor.actions.deploy import DeployAction, cache_control_for, content_type_for
from site_doctor.config import DEFAULT_LONG_CACHE, DEFAULT_SHORT_CACHE


def _write(root: Path, rel: str, content: bytes) -> None:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


@pytest.fixture
def site(profile):
    root = Path(profile.site_dir)
    _write(root, "index.html", b"<html></html>")
    _write(root, "assets/app.css", b"body{}")
    _write(root, "robots.txt", b"User-agent: *")
    _write(root, "sitemap.xml", b"<urlset/>")
    _write(root, ".DS_Store", b"junk")
    return root


def _aws(remote=None):
    aws = MagicMock()
    aws.s3.get_paginator.return_value.paginate.return_value = [{"Contents": remote or []}]
    aws.s3.delete_objects.return_value = {}
    aws.cloudfront.create_invalidation.return_value = {
        "Invalidation": {"Id": "I2J3K4", "Status": "InProgress"}
    }
    return aws


def test_cache_policy(profile):
    assert cache_control_for("index.html", profile) == DEFAULT_SHORT_CACHE
    assert cache_control_for("blog/post/index.html", profile) == DEFAULT_SHORT_CACHE
    assert cache_control_for("sitemap.xml", profile) == DEFAULT_SHORT_CACHE
    assert cache_control_for("robots.txt", profile) == DEFAULT_SHORT_CACHE
    assert cache_control_for("assets/app.css", profile) == DEFAULT_LONG_CACHE
    assert cache_control_for("img/logo.png", profile) == DEFAULT_LONG_CACHE


def test_content_types():
    assert content_type_for("index.html") == "text/html; charset=utf-8"
    assert content_type_for("font.woff2") == "font/woff2"
    assert content_type_for("blob.unknownext") == "application/octet-stream"


def test_plan_skips_unchanged_and_dotfiles(profile, site):
    css_md5 = hashlib.md5(b"body{}").hexdigest()
    aws = _aws([{"Key": "assets/app.css", "Size": 6, "ETag": f'"{css_md5}"'}])

    plan = DeployAction(aws, profile).plan()

    assert plan.unchanged == ["assets/app.css"]
    assert sorted(i.key for i in plan.uploads) == ["index.html", "robots.txt", "sitemap.xml"]
    assert plan.deletions == []


def test_plan_uploads_changed_content(profile, site):
    aws = _aws([{"Key": "assets/app.css", "Size": 6, "ETag": '"0123456789abcdef0123456789abcdef"'}])
    plan = DeployAction(aws, profile).plan()
    assert "assets/app.css" in [i.key for i in plan.uploads]


def test_plan_uploads_same_size_change_behind_multipart_etag(profile, site):
    _write(site, "video.bin", b"NEWDATA")
    aws = _aws([{"Key": "video.bin", "Size": 7, "ETag": '"0123456789abcdef0123456789abcdef-2"'}])

    plan = DeployAction(aws, profile).plan()

    assert "video.bin" in [i.key for i in plan.uploads]
    assert "video.bin" not in plan.unchanged


def test_plan_skips_matching_multipart_etag(profile, site):
    content = b"A" * 10
    _write(site, "video.bin", content)
    parts = [content[0:4], content[4:8], content[8:10]]
    etag = hashlib.md5(b"".join(hashlib.md5(p).digest() for p in parts)).hexdigest() + "-3"
    aws = _aws([{"Key": "video.bin", "Size": 10, "ETag": f'"{etag}"'}])

    plan = DeployAction(aws, profile, transfer_config=TransferConfig(multipart_chunksize=4)).plan()

    assert plan.unchanged == ["video.bin"]


def test_plan_delete_lists_stale_keys(profile, site):
    aws = _aws([{"Key": "old/page.html", "Size": 10, "ETag": '"x"'}])
    assert DeployAction(aws, profile).plan(delete=True).deletions == ["old/page.html"]
    assert DeployAction(aws, profile).plan(delete=False).deletions == []


def test_plan_requires_site_dir(profile):
    profile.site_dir = str(Path(profile.site_dir) / "missing")
    with pytest.raises(FileNotFoundError):
        DeployAction(_aws(), profile).plan()


def test_sync_uploads_with_cache_headers(profile, site):
    aws = _aws()
    action = DeployAction(aws, profile)
    result = action.sync(action.plan())

    assert result.success
    assert len(result.uploaded) == 4
    calls = {c.args[2]: c.kwargs["ExtraArgs"] for c in aws.s3.upload_file.call_args_list}
    assert calls["index.html"]["CacheControl"] == DEFAULT_SHORT_CACHE
    assert calls["index.html"]["ContentType"] == "text/html; charset=utf-8"
    assert calls["assets/app.css"]["CacheControl"] == DEFAULT_LONG_CACHE
    assert aws.s3.upload_file.call_args_list[0].args[1] == "example-site"
    assert aws.s3.upload_file.call_args.kwargs["Config"] is action.transfer_config


def test_sync_records_failures_and_continues(profile, site):
    aws = _aws()
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "Access Denied"}}, "PutObject")
    aws.s3.upload_file.side_effect = [None, error, None, None]
    action = DeployAction(aws, profile)
    result = action.sync(action.plan())

    assert not result.success
    assert len(result.uploaded) == 3
    assert len(result.failed) == 1


def test_sync_deletes_in_batches(profile, site):
    aws = _aws([{"Key": "old.html", "Size": 1, "ETag": '"x"'}])
    action = DeployAction(aws, profile)
    result = action.sync(action.plan(delete=True))

    assert result.deleted == ["old.html"]
    _, kwargs = aws.s3.delete_objects.call_args
    assert kwargs["Delete"]["Objects"] == [{"Key": "old.html"}]


def test_dry_run_touches_nothing(profile, site):
    aws = _aws([{"Key": "old.html", "Size": 1, "ETag": '"x"'}])
    action = DeployAction(aws, profile)
    result = action.sync(action.plan(delete=True), dry_run=True)
    invalidation = action.invalidate(dry_run=True)

    assert result.dry_run
    assert len(result.uploaded) == 4
    assert result.deleted == ["old.html"]
    assert invalidation.status == "DryRun"
    aws.s3.upload_file.assert_not_called()
    aws.s3.delete_objects.assert_not_called()
    aws.cloudfront.create_invalidation.assert_not_called()


def test_invalidate_all_paths(profile):
    aws = _aws()
    action = DeployAction(aws, profile)
    first = action.invalidate()
    second = action.invalidate()

    assert first.success
    assert first.invalidation_id == "I2J3K4"
    assert first.paths == ["/*"]
    refs = [c.kwargs["InvalidationBatch"]["CallerReference"] for c in aws.cloudfront.create_invalidation.call_args_list]
    assert refs[0] != refs[1]
    assert aws.cloudfront.create_invalidation.call_args.kwargs["DistributionId"] == "E123EXAMPLE"
    assert second.status == "InProgress"


def test_invalidate_wait_uses_waiter(profile):
    aws = _aws()
    result = DeployAction(aws, profile).invalidate(wait=True)
    aws.cloudfront.get_waiter.assert_called_once_with("invalidation_completed")
    assert result.status == "Completed"


def test_invalidation_error_is_captured(profile):
    aws = _aws()
    aws.cloudfront.create_invalidation.side_effect = ClientError(
        {"Error": {"Code": "NoSuchDistribution", "Message": "nope"}}, "CreateInvalidation"
    )
    result = DeployAction(aws, profile).invalidate()
    assert not result.success
    assert "NoSuchDistribution" in result.error
