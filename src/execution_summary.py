from datetime import datetime, timezone
from typing import Callable

from runner_errors import DuplicateTestCase
from step_models import RunState, StepOutcome, StepStatus, TestCaseRun, iso


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def format_duration(ms: int) -> str:
    seconds = int(ms // 1000)
    minutes = seconds // 60
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


class ExecutionSummary:
    """Per-run record of every test case and step outcome.

    The runner owns one instance per run and hands it to each ActionHandler;
    only the methods below mutate the tracked runs.
    """

    def __init__(self, clock: Callable[[], datetime] = utc_now):
        self._clock = clock
        self._runs: dict[str, TestCaseRun] = {}
        self.overall_start_time = clock()
        self.overall_end_time: datetime | None = None
        self.execution_date = self.overall_start_time.date().isoformat()

    @property
    def test_cases(self) -> list[TestCaseRun]:
        return list(self._runs.values())

    def get(self, name: str) -> TestCaseRun | None:
        return self._runs.get(name)

    def start_test_case(self, name: str) -> TestCaseRun:
        if name in self._runs:
            raise DuplicateTestCase(name)
        run = TestCaseRun(name=name, start_time=self._clock())
        self._runs[name] = run
        return run

    def record_step(
        self,
        test_case_name: str,
        step: int,
        step_description: str,
        action_type: str,
        status: StepStatus | str,
        error: str | None = None,
    ) -> None:
        run = self._runs.get(test_case_name)
        if run is None or run.state is not RunState.RUNNING:
            return
        status = StepStatus(status)
        run.steps.append(
            StepOutcome(
                step=step,
                step_description=step_description,
                action_type=action_type,
                status=status,
                error=error,
                timestamp=self._clock(),
            )
        )
        if status is StepStatus.FAILED and run.status is StepStatus.PASSED:
            run.status = StepStatus.FAILED
            run.first_failure_step = step
            run.first_failure_message = error

    def end_test_case(self, name: str) -> None:
        run = self._runs.get(name)
        if run is None:
            return
        run.end_time = self._clock()
        run.duration_ms = int((run.end_time - run.start_time).total_seconds() * 1000)
        run.state = RunState.COMPLETED

    def finish(self) -> None:
        """Freeze the overall end time so later projections are stable."""
        self.overall_end_time = self._clock()

    def has_failures(self) -> bool:
        return self.get_failed_count() > 0

    def get_failed_count(self) -> int:
        return sum(1 for r in self._runs.values() if r.status is StepStatus.FAILED)

    def get_summary_stats(self) -> dict:
        runs = self.test_cases
        total_cases = len(runs)
        passed_cases = sum(1 for r in runs if r.status is StepStatus.PASSED)
        total_steps = sum(len(r.steps) for r in runs)
        passed_steps = sum(r.passed_steps for r in runs)
        end = self.overall_end_time or self._clock()
        duration_ms = int((end - self.overall_start_time).total_seconds() * 1000)
        return {
            "totalTestCases": total_cases,
            "passedTestCases": passed_cases,
            "failedTestCases": total_cases - passed_cases,
            "totalSteps": total_steps,
            "passedSteps": passed_steps,
            "failedSteps": total_steps - passed_steps,
            "successRate": f"{passed_steps / total_steps * 100:.2f}" if total_steps else "0",
            "duration": format_duration(duration_ms),
            "durationMs": duration_ms,
        }

    def closing_timestamp(self) -> str:
        return iso(self.overall_end_time or self._clock())

    def to_dict(self) -> dict:
        return {
            "executionDate": self.execution_date,
            "timestamp": self.closing_timestamp(),
            "statistics": self.get_summary_stats(),
            "testCases": [r.to_dict() for r in self.test_cases],
        }
