"""Result models returned by Flowkeeper operations."""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field


class SyncOperation(str, Enum):
    """Operation that produced a SyncResult."""

    PULL = "pull"
    PUSH = "push"
    EXTRACT = "extract"
    REHYDRATE = "rehydrate"


class CheckResult(BaseModel):
    """Outcome of the pre-push checks on an edited document."""

    is_valid: bool = True
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    info: List[str] = Field(default_factory=list)
    rules_checked: List[str] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=datetime.now)


class SyncResult(BaseModel):
    """Structured outcome of a pull, push, extract or rehydrate.

    Failures are reported with ``success=False`` plus ``error`` and
    ``error_code`` instead of being raised.
    """

    success: bool
    operation: SyncOperation
    flow_id: Optional[str] = None
    local_path: Optional[str] = None

    placeholder_count: int = 0
    counts: Dict[str, int] = Field(default_factory=dict)
    checks: Optional[CheckResult] = None
    backup_path: Optional[str] = None
    rehydrated: Optional[str] = Field(
        None, description="Rehydrated definition, only set when not uploaded"
    )

    error: Optional[str] = None
    error_code: Optional[str] = None
    total_time: float = 0.0
    timestamp: datetime = Field(default_factory=datetime.now)

    def to_summary(self) -> Dict[str, object]:
        """Presentation-safe summary (never contains secret values)."""
        summary: Dict[str, object] = {
            "success": self.success,
            "operation": self.operation.value,
            "flow_id": self.flow_id,
            "local_path": self.local_path,
            "placeholders": self.placeholder_count,
            "counts": self.counts,
            "time": f"{self.total_time:.2f}s",
        }
        if self.backup_path:
            summary["backup_path"] = self.backup_path
        if self.checks is not None:
            summary["warnings"] = self.checks.warnings
            summary["check_errors"] = self.checks.errors
        if self.error:
            summary["error"] = self.error
            summary["error_code"] = self.error_code
        return summary
