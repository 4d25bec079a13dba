"""Site Model - Snapshot of what the external endpoints returned.

Each snapshot keeps the raw response next to the fields parsed out of it.
The raw text is what lands in the report file; the parsed fields are what
the checks and the threshold decision work on.
"""

from dataclasses import dataclass, field


@dataclass
class CertificateStatus:
    """TLS certificate metadata from a live handshake."""

    host: str
    port: int = 443
    not_before: str | None = None
    not_after: str | None = None
    issuer: str | None = None
    subject: str | None = None
    sans: list[str] = field(default_factory=list)
    days_remaining: int | None = None
    parse_ok: bool = False
    error: str | None = None
    raw: str = ""

    @property
    def target(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass
class HeaderSnapshot:
    """HTTP response headers of the site's front page."""

    url: str
    final_url: str | None = None
    status_code: int | None = None
    http_version: str = "HTTP/1.1"
    reason: str = ""
    headers: dict[str, str] = field(default_factory=dict)
    ok: bool = False
    error: str | None = None
    raw: str = ""

    def get(self, name: str) -> str | None:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None

    def has(self, name: str) -> bool:
        return self.get(name) is not None

    def line_of(self, name: str) -> int:
        """Line number of a header in the raw dump (0 if absent)."""
        prefix = f"{name.lower()}:"
        for number, line in enumerate(self.raw.splitlines(), start=1):
            if line.lower().startswith(prefix):
                return number
        return 0


@dataclass
class PageScore:
    """Result of one PageSpeed Insights run."""

    url: str
    strategy: str = "mobile"
    category: str = "performance"
    score: int | None = None
    metrics: dict[str, str] = field(default_factory=dict)
    ok: bool = False
    error: str | None = None
    raw: str = ""


@dataclass
class ReportFile:
    """A write-once artifact produced by one audit query."""

    kind: str  # cert, headers, pagespeed
    path: str


@dataclass
class SiteModel:
    """Everything one audit run learned about a site."""

    domain: str
    certificate: CertificateStatus | None = None
    headers: HeaderSnapshot | None = None
    page_score: PageScore | None = None
    reports: dict[str, ReportFile] = field(default_factory=dict)
    audit_timestamp: str | None = None
    doctor_version: str | None = None

    def report_path(self, kind: str) -> str:
        """Path of the report file for a query kind, or a placeholder."""
        report = self.reports.get(kind)
        return report.path if report else f"<{kind}:not written>"


@dataclass
class UploadItem:
    """A local file planned for upload."""

    local_path: str
    key: str
    content_type: str
    cache_control: str
    size: int = 0
    md5: str = ""


@dataclass
class SyncPlan:
    """What a sync would do, before doing it."""

    bucket: str
    uploads: list[UploadItem] = field(default_factory=list)
    unchanged: list[str] = field(default_factory=list)
    deletions: list[str] = field(default_factory=list)


@dataclass
class SyncResult:
    """What a sync actually did."""

    bucket: str
    uploaded: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)
    dry_run: bool = False

    @property
    def success(self) -> bool:
        return not self.failed


@dataclass
class InvalidationResult:
    """Outcome of an edge cache invalidation request."""

    distribution_id: str
    paths: list[str] = field(default_factory=list)
    invalidation_id: str | None = None
    status: str | None = None
    error: str | None = None

    @property
    def success(self) -> bool:
        return self.error is None
