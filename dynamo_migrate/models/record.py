"""Result models for migration and delete runs."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from datetime import datetime

# Cap on per-item error details kept in memory; counts are always exact.
MAX_RECORDED_ERRORS = 100


@dataclass
class MigrationResult:
    """Success/failure accounting for one source -> target table pair."""
    source_table: str
    target_table: str
    success_count: int = 0
    failure_count: int = 0
    errors: List[Dict[str, Any]] = field(default_factory=list)
    completed_at: Optional[datetime] = None

    @property
    def total(self) -> int:
        return self.success_count + self.failure_count

    @property
    def is_final(self) -> bool:
        return self.completed_at is not None

    def record_success(self) -> None:
        self._check_open()
        self.success_count += 1

    def record_failure(self, item_id: Any, error: str) -> None:
        """Count a failed item and keep its details (up to MAX_RECORDED_ERRORS)."""
        self._check_open()
        self.failure_count += 1
        if len(self.errors) < MAX_RECORDED_ERRORS:
            self.errors.append({"item": item_id, "error": error})

    def finalize(self) -> "MigrationResult":
        if self.completed_at is None:
            self.completed_at = datetime.utcnow()
        return self

    def _check_open(self) -> None:
        if self.completed_at is not None:
            raise RuntimeError(
                f"Result for {self.source_table} -> {self.target_table} is already final"
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "source_table": self.source_table,
            "target_table": self.target_table,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "total": self.total,
            "errors": self.errors,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }


@dataclass
class DeletionResult:
    """Outcome of a filtered delete: items found vs. items actually deleted."""
    table: str
    found: int = 0
    deleted: int = 0
    dry_run: bool = False
    errors: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        if self.dry_run:
            return 0
        return self.found - self.deleted

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "table": self.table,
            "found": self.found,
            "deleted": self.deleted,
            "failed": self.failed,
            "dry_run": self.dry_run,
            "errors": self.errors,
        }
