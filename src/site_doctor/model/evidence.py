"""Evidence dataclass - Every finding must have evidence."""

from dataclasses import dataclass
from enum import Enum


class Severity(Enum):
    """Severity levels for findings."""

    CRITICAL = "critical"  # Site is broken or about to be
    WARNING = "warning"  # Audit tools will mark this down
    INFO = "info"  # Advisory, nice to fix


@dataclass(frozen=True)
class Evidence:
    """Every finding MUST have evidence.

    Evidence points back into the raw report file captured during the
    audit, so a user can open the file and see exactly what the remote
    endpoint returned.

    Attributes:
        source_file: Report file (or URL when no file was written).
        line_number: Line in the report file, 0 when not line-addressable.
        excerpt: The actual text that constitutes the evidence.
        command: Optional command or request that produced this evidence.
    """

    source_file: str
    line_number: int
    excerpt: str
    command: str | None = None

    def __str__(self) -> str:
        """Format evidence for display."""
        return f"{self.source_file}:{self.line_number}: {self.excerpt}"
