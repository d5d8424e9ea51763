#!/usr/bin/env python3

import argparse
import asyncio
import csv
import os
import zipfile
from datetime import datetime
from pathlib import Path

from excel_reader import ExcelTestDataSource
from module_resolver import DEFAULT_MAX_MODULE_DEPTH
from runner import run_test_suite
from runner_errors import RunnerError, TestDataError
from screenshot_analytics import analyze_screenshots, save_analytics, save_analytics_html
from summary_report import print_summary, save_html_summary, save_summary_json


DEFAULT_WORKBOOK = "data/TestTemplate.xlsx"


def archive_files(zip_path: Path, files: list[Path]):
    with zipfile.ZipFile(zip_path, "w") as zf:
        for f in files:
            if f.exists():
                zf.write(f, arcname=f.name)


def log_to_csv(log_path: Path, timestamp: str, artifacts: dict):
    csv_exists = log_path.exists()
    with open(log_path, "a", newline="") as csvfile:
        writer = csv.writer(csvfile)
        if not csv_exists:
            writer.writerow(["Timestamp", "Workbook", "Summary JSON", "Summary HTML", "Archive", "Failed"])
        writer.writerow([
            timestamp,
            str(artifacts.get("workbook")),
            str(artifacts.get("json")),
            str(artifacts.get("html")),
            str(artifacts.get("archive")),
            str(artifacts.get("failed")),
        ])


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Excel test cases → Playwright → execution summary")
    parser.add_argument("--file", default=os.environ.get("EXCEL_TEST_FILE", DEFAULT_WORKBOOK), help="Test case workbook (.xlsx)")
    parser.add_argument("--prefix", default=os.environ.get("TEST_SHEET_PREFIX", "Test"), help="Only run sheets whose name starts with this")
    parser.add_argument("--module-sheet", default=os.environ.get("MODULE_SHEET_NAME", "Module"), help="Sheet holding <name>_Start/<name>_End module blocks")
    parser.add_argument("--screenshots-dir", default="screenshots", help="Root of the per-step screenshot tree")
    parser.add_argument("--summary-dir", default="report-summary/summaries", help="Where summaries, archive and run log are written")
    parser.add_argument("--reports-dir", default="report-summary/reports", help="Where --analytics writes its JSON and HTML reports")
    parser.add_argument("--max-module-depth", type=int, default=DEFAULT_MAX_MODULE_DEPTH, help="Deepest allowed module nesting")
    parser.add_argument("--headful", action="store_true", help="Run browser headful for debugging")
    parser.add_argument("--verbose", action="store_true", help="Print every step and screenshot")
    parser.add_argument("--analytics", action="store_true", help="Only rebuild analytics from the screenshot tree")
    return parser


def load_step_descriptions(args: argparse.Namespace) -> dict[str, dict[int, str]]:
    try:
        source = ExcelTestDataSource(args.file)
    except TestDataError as e:
        print(f"⚠️ {e}; analytics steps will have no descriptions")
        return {}
    return source.step_descriptions(exclude=(args.module_sheet,) if args.module_sheet else ())


def run_analytics(args: argparse.Namespace) -> int:
    executions = analyze_screenshots(args.screenshots_dir, load_step_descriptions(args))
    if not executions:
        print(f"⚠️ No dated screenshot folders under {args.screenshots_dir}")
        return 1
    reports_dir = Path(args.reports_dir)
    json_path = save_analytics(executions, reports_dir)
    html_path = save_analytics_html(executions, reports_dir)
    latest = executions[-1]
    print(f"📊 {len(executions)} execution(s) analyzed; latest {latest['executionDate']}: "
          f"{latest['totalTestCases']} test case(s), {latest['totalSteps']} step(s)")
    print(f"📝 Analytics written: {json_path}")
    print(f"📊 Analytics report: {html_path}")
    return 0


def main(argv: list[str] | None = None):
    args = build_parser().parse_args(argv)
    if args.analytics:
        raise SystemExit(run_analytics(args))

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    summary_dir = Path(args.summary_dir)

    print(f"🏃 Running test cases from {args.file} with Playwright...")
    try:
        summary = asyncio.run(run_test_suite(
            workbook_path=args.file,
            sheet_prefix=args.prefix,
            module_sheet=args.module_sheet or None,
            screenshots_dir=args.screenshots_dir,
            headless=(not args.headful),
            verbose=args.verbose,
            max_module_depth=args.max_module_depth,
        ))
    except RunnerError as e:
        raise SystemExit(f"✖ {e}")

    print("=" * 80)
    print_summary(summary)

    json_path = save_summary_json(summary, summary_dir)
    print(f"📄 Summary saved to: {json_path}")
    screenshots_href = Path(os.path.relpath(args.screenshots_dir, summary_dir)).as_posix()
    html_path = save_html_summary(summary, summary_dir, screenshots_href=screenshots_href)
    print(f"📊 HTML Summary saved to: {html_path}")

    archive_path = summary_dir / f"archive_{timestamp}.zip"
    archive_files(archive_path, [json_path, html_path])
    print(f"📦 Archive: {archive_path}")

    failed = summary.get_failed_count()
    log_to_csv(summary_dir / "run_log.csv", timestamp, {
        "workbook": args.file,
        "json": json_path,
        "html": html_path,
        "archive": archive_path,
        "failed": failed,
    })
    print("=" * 80)

    if failed:
        print(f"✖ Test execution failed: {failed} test case(s) failed. Check the execution summary above for details.")
        raise SystemExit(1)
    print("✅ Done. All test cases passed.")


if __name__ == "__main__":
    main()
