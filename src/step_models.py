from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

from runner_errors import MissingRequiredField


STEP_COLUMNS = ["STEP", "STEPDESCRIPTION", "LOCATORPATHTYPE", "LOCATORPATH", "ACTIONTYPE", "INPUTDATA"]
REQUIRED_STEP_COLUMNS = ["STEP", "STEPDESCRIPTION", "ACTIONTYPE"]
MODULE_NAME_COLUMN = "MODULENAME"


def cell_to_text(value) -> str | None:
    """Normalize a spreadsheet cell to text; blank cells become None."""
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value)
    if not text.strip():
        return None
    return text


def cell_to_step(value) -> int:
    """1-based step number; Excel hands integral numbers back as floats."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise MissingRequiredField(f"Invalid STEP value {value!r}") from None
    if not number.is_integer() or number < 1:
        raise MissingRequiredField(f"Invalid STEP value {value!r}")
    return int(number)


@dataclass(frozen=True)
class StepRow:
    step: int
    step_description: str
    action_type: str
    locator_path_type: str | None = None
    locator_path: str | None = None
    input_data: str | None = None

    @classmethod
    def from_record(cls, record: dict, require_step: bool = True) -> "StepRow":
        """Build a row from a record keyed by upper-cased column headers.

        Module marker rows are never executed, so they pass `require_step=False`
        and get step 0.
        """
        return cls(
            step=cell_to_step(record.get("STEP")) if require_step else 0,
            step_description=cell_to_text(record.get("STEPDESCRIPTION")) or "",
            action_type=(cell_to_text(record.get("ACTIONTYPE")) or "").strip(),
            locator_path_type=cell_to_text(record.get("LOCATORPATHTYPE")),
            locator_path=cell_to_text(record.get("LOCATORPATH")),
            input_data=cell_to_text(record.get("INPUTDATA")),
        )

    def with_description(self, description: str) -> "StepRow":
        return replace(self, step_description=description)


@dataclass(frozen=True)
class ModuleRow:
    marker: str | None
    row: StepRow

    @classmethod
    def from_record(cls, record: dict) -> "ModuleRow":
        marker = cell_to_text(record.get(MODULE_NAME_COLUMN))
        marker = marker.strip() if marker else None
        return cls(marker=marker, row=StepRow.from_record(record, require_step=marker is None))


class StepStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"


class RunState(str, Enum):
    # A test case with no tracker entry has not started
    RUNNING = "running"
    COMPLETED = "completed"


def iso(ts: datetime | None) -> str | None:
    if ts is None:
        return None
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class StepOutcome:
    step: int
    step_description: str
    action_type: str
    status: StepStatus
    error: str | None
    timestamp: datetime

    def to_dict(self) -> dict:
        return {
            "step": self.step,
            "stepDescription": self.step_description,
            "actionType": self.action_type,
            "status": self.status.value,
            "error": self.error,
            "timestamp": iso(self.timestamp),
        }


@dataclass
class TestCaseRun:
    __test__ = False

    name: str
    start_time: datetime
    state: RunState = RunState.RUNNING
    status: StepStatus = StepStatus.PASSED
    steps: list[StepOutcome] = field(default_factory=list)
    end_time: datetime | None = None
    duration_ms: int | None = None
    first_failure_step: int | None = None
    first_failure_message: str | None = None

    @property
    def passed_steps(self) -> int:
        return sum(1 for s in self.steps if s.status is StepStatus.PASSED)

    @property
    def failed_steps(self) -> int:
        return sum(1 for s in self.steps if s.status is StepStatus.FAILED)

    def to_dict(self) -> dict:
        return {
            "testCaseName": self.name,
            "status": self.status.value,
            "steps": [s.to_dict() for s in self.steps],
            "startTime": iso(self.start_time),
            "endTime": iso(self.end_time),
            "duration": self.duration_ms,
            "errorStep": self.first_failure_step,
            "errorMessage": self.first_failure_message,
        }
