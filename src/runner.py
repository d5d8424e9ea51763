from pathlib import Path

from playwright.async_api import async_playwright, expect

from action_handler import ActionHandler
from excel_reader import ExcelTestDataSource
from execution_summary import ExecutionSummary
from module_resolver import DEFAULT_MAX_MODULE_DEPTH, ModuleTable
from step_models import StepRow


def load_test_cases(
    source: ExcelTestDataSource, sheet_prefix: str, module_sheet: str | None = "Module"
) -> tuple[dict[str, list[StepRow]], ModuleTable]:
    """Read every selected test case up front; any problem here aborts the run."""
    names = source.get_filtered_sheet_names(sheet_prefix, exclude=(module_sheet,) if module_sheet else ())
    test_cases = {name: source.read_test_steps(name) for name in names}
    if module_sheet and module_sheet in source.get_sheet_names():
        module_table = source.read_module_table(module_sheet)
    else:
        if module_sheet:
            print(f"⚠️ Module sheet '{module_sheet}' not found; GETMODULE steps will fail")
        module_table = ModuleTable()
    return test_cases, module_table


async def execute_test_case(
    page,
    test_case_name: str,
    rows: list[StepRow],
    summary: ExecutionSummary,
    module_table: ModuleTable | None = None,
    screenshots_dir: Path | str = "screenshots",
    verbose: bool = False,
    expect_fn=expect,
    max_module_depth: int = DEFAULT_MAX_MODULE_DEPTH,
) -> bool:
    """Run one test case's rows in order, stopping at the first failing step."""
    print(f"\n📄 Running test case: {test_case_name}")
    summary.start_test_case(test_case_name)
    executed = 0
    try:
        handler = ActionHandler(
            page,
            test_case_name,
            summary=summary,
            module_table=module_table,
            screenshots_root=screenshots_dir,
            verbose=verbose,
            expect_fn=expect_fn,
            max_module_depth=max_module_depth,
        )
        for row in rows:
            await handler.perform_step(row)
            executed += 1
    except Exception as e:
        print(f"✖ Failed: {test_case_name} — {e} ({executed}/{len(rows)} steps completed)")
        return False
    finally:
        summary.end_test_case(test_case_name)
    print(f"✓ Passed: {test_case_name} ({executed} steps)")
    return True


async def run_test_suite(
    workbook_path: Path | str,
    sheet_prefix: str = "Test",
    module_sheet: str | None = "Module",
    screenshots_dir: Path | str = "screenshots",
    headless: bool = True,
    verbose: bool = False,
    max_module_depth: int = DEFAULT_MAX_MODULE_DEPTH,
) -> ExecutionSummary:
    source = ExcelTestDataSource(workbook_path)
    test_cases, module_table = load_test_cases(source, sheet_prefix, module_sheet)

    summary = ExecutionSummary()
    async with async_playwright() as p:
        browser = await p.chromium.launch(headless=headless)
        context = await browser.new_context(viewport={"width": 1366, "height": 900})
        page = await context.new_page()

        for name, rows in test_cases.items():
            if page.is_closed():
                if verbose:
                    print("→ Previous test case closed the page; opening a new one")
                page = await context.new_page()
            await execute_test_case(
                page,
                name,
                rows,
                summary,
                module_table=module_table,
                screenshots_dir=screenshots_dir,
                verbose=verbose,
                max_module_depth=max_module_depth,
            )

        await browser.close()
    summary.finish()
    return summary
