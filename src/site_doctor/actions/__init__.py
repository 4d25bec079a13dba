"""Actions package - Action layer with explicit contracts.

Each action declares:
- read_only: Whether it modifies anything outside this process
- requires_backup: Whether backup is mandatory
- rollback_support: Whether it can undo changes
- prerequisites: What must hold before action runs
"""

from site_doctor.actions.deploy import DeployAction
from site_doctor.actions.report import ActionContract, ReportAction
from site_doctor.actions.report_files import ReportWriter

__all__ = ["ActionContract", "DeployAction", "ReportAction", "ReportWriter"]
