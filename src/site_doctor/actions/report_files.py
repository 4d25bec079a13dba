"""Report Files - Timestamped, write-once audit artifacts.

CONTRACT:
- read_only: False (writes local files only)
- requires_backup: False
- rollback_support: N/A
- prerequisites: report directory is writable

Every external query's raw response lands in its own file named
``<kind>-<YYYYmmdd-HHMMSS>.<ext>``. Files are opened in exclusive-create
mode: an existing report is never overwritten or appended to.
"""

import logging
from datetime import datetime
from pathlib import Path

from site_doctor.actions.report import ActionContract
from site_doctor.model.site import ReportFile

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%Y%m%d-%H%M%S"


class ReportWriter:
    """Writes one run's report files into a directory."""

    CONTRACT = ActionContract(
        read_only=False,
        requires_backup=False,
        rollback_support=False,
        prerequisites=["report directory is writable"],
    )

    def __init__(self, report_dir: str | Path, timestamp: datetime | None = None) -> None:
        self.report_dir = Path(report_dir).expanduser()
        self.timestamp = (timestamp or datetime.now()).strftime(TIMESTAMP_FORMAT)

    def path_for(self, kind: str, extension: str = "txt") -> Path:
        return self.report_dir / f"{kind}-{self.timestamp}.{extension}"

    def write(self, kind: str, content: str, extension: str = "txt") -> ReportFile:
        """Create the report file; raises FileExistsError if it already exists."""
        self.report_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(kind, extension)
        with open(path, "x", encoding="utf-8") as f:
            f.write(content)
        logger.info("wrote %s report: %s (%d bytes)", kind, path, len(content))
        return ReportFile(kind=kind, path=str(path))
