"""Model package - Core data structures for site-doctor."""

from site_doctor.model.evidence import Evidence, Severity
from site_doctor.model.finding import Finding, sort_findings
from site_doctor.model.site import (
    CertificateStatus,
    HeaderSnapshot,
    InvalidationResult,
    PageScore,
    ReportFile,
    SiteModel,
    SyncPlan,
    SyncResult,
    UploadItem,
)

__all__ = [
    "CertificateStatus",
    "Evidence",
    "Finding",
    "HeaderSnapshot",
    "InvalidationResult",
    "PageScore",
    "ReportFile",
    "Severity",
    "SiteModel",
    "SyncPlan",
    "SyncResult",
    "UploadItem",
    "sort_findings",
]
