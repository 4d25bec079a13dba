"""Deploy Action - Sync a built site to S3 and invalidate CloudFront.

CONTRACT:
- read_only: False (MODIFIES THE BUCKET AND THE EDGE CACHE)
- requires_backup: False
- rollback_support: False
- prerequisites: ["site_dir exists", "bucket configured", "distribution configured"]

⚠️  WARNING: This action modifies remote storage!

There is no rollback. If a sync is interrupted the bucket keeps whatever
was uploaded up to that point; failed uploads are recorded and the rest
of the sequence still runs.
"""

import fnmatch
import hashlib
import logging
import mimetypes
import os
import time
from pathlib import Path
from typing import Iterable

from boto3.exceptions import Boto3Error
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import BotoCoreError, ClientError, WaiterError

from site_doctor.actions.report import ActionContract
from site_doctor.config import SiteProfile
from site_doctor.connector.aws import AWSConnector
from site_doctor.model.site import InvalidationResult, SyncPlan, SyncResult, UploadItem

logger = logging.getLogger(__name__)

# Types some platforms' mime tables lack.
mimetypes.add_type("application/manifest+json", ".webmanifest")
mimetypes.add_type("font/woff2", ".woff2")
mimetypes.add_type("image/webp", ".webp")
mimetypes.add_type("image/avif", ".avif")
mimetypes.add_type("image/svg+xml", ".svg")

_CHARSET_TYPES = ("application/javascript", "application/json", "application/manifest+json", "image/svg+xml")

DELETE_BATCH = 1000


def content_type_for(path: str) -> str:
    content_type, _ = mimetypes.guess_type(path)
    if not content_type:
        return "application/octet-stream"
    if content_type.startswith("text/") or content_type in _CHARSET_TYPES:
        return f"{content_type}; charset=utf-8"
    return content_type


def cache_control_for(key: str, profile: SiteProfile) -> str:
    """Short policy for markup/sitemap/robots, long policy for the rest."""
    name = key.rsplit("/", 1)[-1]
    if any(fnmatch.fnmatch(name, pattern) for pattern in profile.short_cache_patterns):
        return profile.short_cache_control
    return profile.long_cache_control


def file_md5(path: str) -> str:
    digest = hashlib.md5()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def multipart_etag(path: str, chunksize: int) -> str:
    """ETag S3 assigns to a multipart upload: MD5 of the part MD5s, then -N."""
    digests = []
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(chunksize), b""):
            digests.append(hashlib.md5(chunk).digest())
    return f"{hashlib.md5(b''.join(digests)).hexdigest()}-{len(digests)}"


def iter_site_files(site_dir: Path) -> Iterable[Path]:
    """All files under site_dir, skipping dot-paths except .well-known."""
    for root, dirs, files in os.walk(site_dir):
        dirs[:] = sorted(d for d in dirs if not d.startswith(".") or d == ".well-known")
        for name in sorted(files):
            if name.startswith("."):
                continue
            yield Path(root) / name


class DeployAction:
    """Push a local directory to S3 and invalidate the CDN edge."""

    CONTRACT = ActionContract(
        read_only=False,
        requires_backup=False,
        rollback_support=False,
        prerequisites=["site_dir exists", "bucket configured", "distribution configured"],
    )

    def __init__(
        self,
        aws: AWSConnector,
        profile: SiteProfile,
        transfer_config: TransferConfig | None = None,
    ) -> None:
        self.aws = aws
        self.profile = profile
        # Uploads and multipart ETag comparison must use the same part size.
        self.transfer_config = transfer_config or TransferConfig()

    # =========================================================================
    # PLAN (read-only)
    # =========================================================================

    def plan(self, *, delete: bool = False) -> SyncPlan:
        """Compare the local tree with the bucket.

        Files whose size and MD5 match the remote ETag are left alone.
        Multipart ETags are recomputed locally with the upload part size.
        """
        site_dir = Path(self.profile.site_dir or "").expanduser()
        if not site_dir.is_dir():
            raise FileNotFoundError(f"Site directory not found: {site_dir}")

        plan = SyncPlan(bucket=self.profile.bucket)
        remote = self._list_remote()

        local_keys: set[str] = set()
        for path in iter_site_files(site_dir):
            key = path.relative_to(site_dir).as_posix()
            local_keys.add(key)
            item = UploadItem(
                local_path=str(path),
                key=key,
                content_type=content_type_for(key),
                cache_control=cache_control_for(key, self.profile),
                size=path.stat().st_size,
                md5=file_md5(str(path)),
            )
            if self._unchanged(item, remote.get(key)):
                plan.unchanged.append(key)
            else:
                plan.uploads.append(item)

        if delete:
            plan.deletions = sorted(set(remote) - local_keys)

        logger.info(
            "plan for s3://%s: %d upload(s), %d unchanged, %d deletion(s)",
            plan.bucket, len(plan.uploads), len(plan.unchanged), len(plan.deletions),
        )
        return plan

    def _list_remote(self) -> dict[str, tuple[int, str]]:
        remote: dict[str, tuple[int, str]] = {}
        paginator = self.aws.s3.get_paginator("list_objects_v2")
        for page in paginator.paginate(Bucket=self.profile.bucket):
            for obj in page.get("Contents", []):
                remote[obj["Key"]] = (int(obj.get("Size", 0)), str(obj.get("ETag", "")).strip('"'))
        return remote

    def _unchanged(self, item: UploadItem, remote: tuple[int, str] | None) -> bool:
        if remote is None:
            return False
        size, etag = remote
        if size != item.size:
            return False
        if "-" in etag:
            return etag == multipart_etag(item.local_path, self.transfer_config.multipart_chunksize)
        return etag == item.md5

    # =========================================================================
    # WRITE OPERATIONS
    # =========================================================================

    def sync(self, plan: SyncPlan, *, dry_run: bool = False) -> SyncResult:
        """Upload changed files and delete stale keys."""
        result = SyncResult(bucket=plan.bucket, skipped=list(plan.unchanged), dry_run=dry_run)
        if dry_run:
            result.uploaded = [item.key for item in plan.uploads]
            result.deleted = list(plan.deletions)
            return result

        s3 = self.aws.s3
        total = len(plan.uploads)
        for i, item in enumerate(plan.uploads, start=1):
            logger.info("uploading [%d/%d]: %s (%s)", i, total, item.key, item.cache_control)
            try:
                s3.upload_file(
                    item.local_path,
                    plan.bucket,
                    item.key,
                    ExtraArgs={"ContentType": item.content_type, "CacheControl": item.cache_control},
                    Config=self.transfer_config,
                )
                result.uploaded.append(item.key)
            except (Boto3Error, BotoCoreError, ClientError, OSError) as e:
                logger.error("failed to upload %s: %s", item.key, e)
                result.failed[item.key] = str(e)

        for start in range(0, len(plan.deletions), DELETE_BATCH):
            batch = plan.deletions[start : start + DELETE_BATCH]
            try:
                response = s3.delete_objects(
                    Bucket=plan.bucket,
                    Delete={"Objects": [{"Key": k} for k in batch], "Quiet": True},
                )
            except (BotoCoreError, ClientError) as e:
                logger.error("failed to delete %d key(s): %s", len(batch), e)
                result.failed.update({k: str(e) for k in batch})
                continue
            errors = {err["Key"]: err.get("Message", err.get("Code", "error")) for err in response.get("Errors", [])}
            result.failed.update(errors)
            result.deleted.extend(k for k in batch if k not in errors)

        return result

    def invalidate(
        self,
        paths: Iterable[str] = ("/*",),
        *,
        wait: bool = False,
        dry_run: bool = False,
    ) -> InvalidationResult:
        """Ask CloudFront to drop cached copies of paths."""
        paths = list(paths) or ["/*"]
        result = InvalidationResult(distribution_id=self.profile.distribution_id, paths=paths)
        if dry_run:
            result.status = "DryRun"
            return result

        cloudfront = self.aws.cloudfront
        try:
            response = cloudfront.create_invalidation(
                DistributionId=self.profile.distribution_id,
                InvalidationBatch={
                    "Paths": {"Quantity": len(paths), "Items": paths},
                    "CallerReference": f"site-doctor-{time.time_ns()}",
                },
            )
        except (BotoCoreError, ClientError) as e:
            logger.error("invalidation failed for %s: %s", self.profile.distribution_id, e)
            result.error = str(e)
            return result

        invalidation = response.get("Invalidation", {})
        result.invalidation_id = invalidation.get("Id")
        result.status = invalidation.get("Status")
        logger.info("invalidation %s %s", result.invalidation_id, result.status)

        if wait and result.invalidation_id:
            try:
                cloudfront.get_waiter("invalidation_completed").wait(
                    DistributionId=self.profile.distribution_id,
                    Id=result.invalidation_id,
                )
                result.status = "Completed"
            except WaiterError as e:
                result.error = f"Timed out waiting for invalidation: {e}"
        return result
