import re
from contextlib import asynccontextmanager
from pathlib import Path

from playwright.async_api import expect

from execution_summary import ExecutionSummary
from locators import resolve_locator
from module_resolver import DEFAULT_MAX_MODULE_DEPTH, ModuleTable, check_module_graph, expand_module
from runner_errors import DriverOperationFailed, RunnerError
from step_actions import (
    AssertionAction,
    AssertionKind,
    MODULE_KEYWORD,
    ElementAction,
    ElementKind,
    NavigationAction,
    NavigationKind,
    parse_action,
)
from step_models import StepRow, StepStatus


VISIBILITY_TIMEOUT_MS = 5000

# One locator call per element action: (operation, console message)
ELEMENT_OPERATIONS = {
    ElementKind.FILL: (lambda loc, data: loc.fill(data), "Filled input with data."),
    ElementKind.CLICK: (lambda loc, data: loc.click(), "Clicked on element."),
    ElementKind.DOUBLE_CLICK: (lambda loc, data: loc.dblclick(), "Double clicked on element."),
    ElementKind.CLEAR: (lambda loc, data: loc.fill(""), "Cleared the field."),
    ElementKind.SELECT_OPTION: (lambda loc, data: loc.select_option(label=data), "Selected option."),
    ElementKind.HOVER: (lambda loc, data: loc.hover(), "Hovered over element."),
    ElementKind.RIGHT_CLICK: (lambda loc, data: loc.click(button="right"), "Right clicked on element."),
    ElementKind.PRESS_KEY: (lambda loc, data: loc.press(data), "Pressed key."),
    ElementKind.CHECK: (lambda loc, data: loc.check(), "Checked the checkbox."),
    ElementKind.UNCHECK: (lambda loc, data: loc.uncheck(), "Unchecked the checkbox."),
    ElementKind.UPLOAD_FILE: (lambda loc, data: loc.set_input_files(data), "Uploaded file."),
    ElementKind.RADIO_SELECT: (lambda loc, data: loc.check(), "Selected the radio button."),
    ElementKind.RADIO_DESELECT: (lambda loc, data: loc.uncheck(), "Deselected the radio button."),
}

ASSERTIONS = {
    AssertionKind.VISIBLE: (lambda e: e.to_be_visible(timeout=VISIBILITY_TIMEOUT_MS), "Element is visible."),
    AssertionKind.HIDDEN: (lambda e: e.to_be_hidden(), "Element is hidden."),
    AssertionKind.ENABLED: (lambda e: e.to_be_enabled(), "Element is enabled."),
    AssertionKind.DISABLED: (lambda e: e.to_be_disabled(), "Element is disabled."),
    AssertionKind.EMPTY: (lambda e: e.to_be_empty(), "Element is empty."),
}


MODULE_LABEL = re.compile(r"^\[Module: (.+?)\] ")


def screenshot_name(step: int, action_type: str, prefix: str = "") -> str:
    action_slug = re.sub(r"[\\/:*?\"<>|\s]+", "_", action_type or "UNKNOWN")
    return f"{prefix}Step_{step}_{action_slug}.png"


def screenshot_name_for(step: int, action_type: str, step_description: str) -> str:
    """Screenshot file name of a recorded step; module rows are told apart by their label."""
    m = MODULE_LABEL.match(step_description or "")
    return screenshot_name(step, action_type, f"Module_{m.group(1)}_" if m else "")


def as_step_error(exc: Exception, step: int) -> RunnerError:
    if isinstance(exc, RunnerError):
        if exc.step is None:
            exc.step = step
        return exc
    return DriverOperationFailed(str(exc) or exc.__class__.__name__, step=step)


class ActionHandler:
    """Executes step rows for one test case against a Playwright page."""

    def __init__(
        self,
        page,
        test_case_name: str,
        summary: ExecutionSummary | None = None,
        module_table: ModuleTable | None = None,
        screenshots_root: Path | str = "screenshots",
        verbose: bool = False,
        expect_fn=expect,
        max_module_depth: int = DEFAULT_MAX_MODULE_DEPTH,
    ):
        self.page = page
        self.test_case_name = test_case_name
        self.summary = summary
        self.module_table = module_table or ModuleTable()
        self.verbose = verbose
        self.expect = expect_fn
        self.max_module_depth = max_module_depth
        self._module_stack: list[str] = []

        execution_date = summary.execution_date if summary else ExecutionSummary().execution_date
        self.screenshots_dir = Path(screenshots_root) / execution_date / test_case_name
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)

    def _record(self, row: StepRow, status: StepStatus, error: str | None = None) -> None:
        if self.summary is None:
            return
        self.summary.record_step(
            self.test_case_name,
            row.step,
            row.step_description,
            row.action_type or "UNKNOWN",
            status,
            error,
        )

    async def capture_step_screenshot(self, row: StepRow, prefix: str = "") -> Path | None:
        if self.page.is_closed():
            print(f"⚠️ Page closed; no screenshot for Step {row.step}")
            return None
        shot = self.screenshots_dir / screenshot_name(row.step, row.action_type, prefix)
        await self.page.screenshot(path=str(shot))
        if self.verbose:
            print(f"📸 Screenshot taken for Step {row.step}: {shot}")
        return shot

    @asynccontextmanager
    async def step_span(self, row: StepRow, prefix: str = "", capture_on_success: bool = True):
        """Capture exactly one screenshot when the step exits, however it exits."""
        try:
            yield
        except Exception:
            try:
                await self.capture_step_screenshot(row, prefix)
            except Exception as e:
                print(f"⚠️ Could not save failure screenshot for Step {row.step}: {e}")
            raise
        else:
            if capture_on_success:
                await self.capture_step_screenshot(row, prefix)

    async def perform_step(self, row: StepRow, screenshot_prefix: str = "") -> None:
        if self.verbose:
            print(f"→ Executing Step {row.step}: {row.step_description}")
        try:
            if row.action_type == MODULE_KEYWORD:
                # Inner rows capture and record their own outcomes
                await self.run_module(row, screenshot_prefix)
                return
            async with self.step_span(row, screenshot_prefix):
                await self.execute_action(parse_action(row), row)
        except Exception as e:
            err = as_step_error(e, row.step)
            if not err.recorded:
                self._record(row, StepStatus.FAILED, err.message)
                err.recorded = True
                print(f"✖ Step {row.step} failed: {err.message}")
            if err is e:
                raise
            raise err from e
        self._record(row, StepStatus.PASSED)

    async def run_module(self, row: StepRow, screenshot_prefix: str = "") -> None:
        # Only expansion failures screenshot the module step itself
        async with self.step_span(row, screenshot_prefix, capture_on_success=False):
            action = parse_action(row)
            name = action.module_name
            if not self._module_stack:
                check_module_graph(name, self.module_table, max_depth=self.max_module_depth)
            inner_rows = expand_module(name, self.module_table)
        if self.verbose:
            print(f"→ Step {row.step}: expanding module '{name}' ({len(inner_rows)} step(s))")
        self._module_stack.append(name)
        try:
            for inner in inner_rows:
                await self.perform_step(inner, screenshot_prefix=f"Module_{name}_")
        finally:
            self._module_stack.pop()
        if self.verbose:
            print(f"✓ Step {row.step} completed: Module '{name}' executed.")

    async def execute_action(self, action, row: StepRow) -> None:
        if isinstance(action, NavigationAction):
            message = await self._navigate(action, row)
        elif isinstance(action, ElementAction):
            operation, message = ELEMENT_OPERATIONS[action.kind]
            await operation(resolve_locator(self.page, action.target), action.input_data)
        elif isinstance(action, AssertionAction):
            check, message = ASSERTIONS[action.kind]
            await check(self.expect(resolve_locator(self.page, action.target)))
        else:
            raise TypeError(f"Unexpected action variant: {action!r}")
        if self.verbose:
            print(f"✓ Step {row.step} completed: {message}")

    async def _navigate(self, action: NavigationAction, row: StepRow) -> str:
        if action.kind is NavigationKind.OPEN_URL:
            await self.page.goto(action.input_data.strip())
            return f"Opened URL {action.input_data}"
        if action.kind is NavigationKind.WAIT:
            await self.page.wait_for_timeout(action.wait_ms)
            return f"Waited for {action.wait_ms} ms."
        if action.kind is NavigationKind.CLOSE_PAGE:
            await self.page.close()
            return "Closed the page."
        path = action.input_data.strip() if action.input_data else str(self.screenshots_dir / f"FullPage_Step_{row.step}.png")
        await self.page.screenshot(path=path, full_page=True)
        return f"Took full page screenshot at {path}."
