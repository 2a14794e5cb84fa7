# core/entities.py
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


@dataclass
class WorkItem:
    """
    One unit of work in a batch run. `payload` carries whatever the
    per-item operation needs (title, ingredients, cuisine, skill level).
    """

    id: int
    label: str
    payload: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ItemResult:
    success: bool
    value: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, value: str) -> "ItemResult":
        return cls(success=True, value=value)

    @classmethod
    def failed(cls, error: str) -> "ItemResult":
        return cls(success=False, error=error)


@dataclass(frozen=True)
class ItemFailure:
    item_id: int
    label: str
    error_message: str


@dataclass
class JobState:
    """
    Mutable run state. Only the batch controller writes to it.
    """

    current: int = 0
    total: int = 0
    current_item_label: str = ""
    completed_count: int = 0
    failed_count: int = 0
    failures: List[ItemFailure] = field(default_factory=list)
    is_running: bool = False


@dataclass(frozen=True)
class JobProgress:
    """
    Immutable copy of JobState handed to readers.
    """

    current: int
    total: int
    current_item_label: str
    completed_count: int
    failed_count: int
    failures: Tuple[ItemFailure, ...]
    is_running: bool

    @classmethod
    def of(cls, state: JobState) -> "JobProgress":
        return cls(
            current=state.current,
            total=state.total,
            current_item_label=state.current_item_label,
            completed_count=state.completed_count,
            failed_count=state.failed_count,
            failures=tuple(state.failures),
            is_running=state.is_running,
        )


@dataclass(frozen=True)
class GeneratedImage:
    data: bytes
    model: str
    revised_prompt: Optional[str] = None
