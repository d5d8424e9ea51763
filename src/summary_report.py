import json
from html import escape
from pathlib import Path

from action_handler import screenshot_name_for
from execution_summary import ExecutionSummary, format_duration
from step_models import StepStatus


BOX_WIDTH = 80


def _center(text: str, width: int = BOX_WIDTH) -> str:
    pad = max(0, width - len(text))
    return " " * (pad // 2) + text + " " * (pad - pad // 2)


def _pad(text: str, width: int = BOX_WIDTH) -> str:
    return text + " " * max(0, width - len(text))


def _wrap(text: str, width: int) -> list[str]:
    lines: list[str] = []
    current = ""
    for word in text.split():
        if len(current) + len(word) + (1 if current else 0) <= width:
            current = f"{current} {word}" if current else word
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines


def _percent(part: int, total: int) -> str:
    return f"{part / total * 100:.1f}" if total else "0.0"


def render_console_summary(summary: ExecutionSummary) -> str:
    stats = summary.get_summary_stats()
    line = "═" * BOX_WIDTH
    thin = "─" * BOX_WIDTH
    out = [
        "╔" + line + "╗",
        "║" + _center("🎯 TEST EXECUTION SUMMARY") + "║",
        "╠" + line + "╣",
        "║" + _center(f"Execution Date: {summary.execution_date}") + "║",
        "║" + _center(f"Duration: {stats['duration']}") + "║",
        "╚" + line + "╝",
        "",
        "┌" + line + "┐",
        "│" + _center("📊 OVERALL STATISTICS") + "│",
        "├" + line + "┤",
        "│" + _pad("  Test Cases:") + "│",
        "│" + _pad(f"    Total: {stats['totalTestCases']}") + "│",
        "│" + _pad(f"    ✓ Passed: {stats['passedTestCases']} ({_percent(stats['passedTestCases'], stats['totalTestCases'])}%)") + "│",
        "│" + _pad(f"    ✖ Failed: {stats['failedTestCases']} ({_percent(stats['failedTestCases'], stats['totalTestCases'])}%)") + "│",
        "│" + _pad("") + "│",
        "│" + _pad("  Steps:") + "│",
        "│" + _pad(f"    Total: {stats['totalSteps']}") + "│",
        "│" + _pad(f"    ✓ Passed: {stats['passedSteps']}") + "│",
        "│" + _pad(f"    ✖ Failed: {stats['failedSteps']}") + "│",
        "│" + _pad(f"    Success Rate: {stats['successRate']}%") + "│",
        "└" + line + "┘",
        "",
        "┌" + line + "┐",
        "│" + _center("🧪 TEST CASE DETAILS") + "│",
        "└" + line + "┘",
    ]
    for tc in summary.test_cases:
        status = "✓ PASSED" if tc.status is StepStatus.PASSED else "✖ FAILED"
        duration = format_duration(tc.duration_ms) if tc.duration_ms is not None else "N/A"
        out += [
            "",
            "┌" + thin + "┐",
            "│ " + _pad(tc.name, BOX_WIDTH - 2) + " │",
            "├" + thin + "┤",
            "│ " + _pad(f"Status: {status}", BOX_WIDTH - 2) + " │",
            "│ " + _pad(f"Duration: {duration}", BOX_WIDTH - 2) + " │",
            "│ " + _pad(f"Steps: {len(tc.steps)} (✓ {tc.passed_steps} / ✖ {tc.failed_steps})", BOX_WIDTH - 2) + " │",
        ]
        if tc.status is StepStatus.FAILED and tc.first_failure_step is not None:
            out.append("├" + thin + "┤")
            out.append("│ " + _pad(f"✖ FAILED AT STEP {tc.first_failure_step}", BOX_WIDTH - 2) + " │")
            for wrapped in _wrap(tc.first_failure_message or "", BOX_WIDTH - 6):
                out.append("│   " + _pad(wrapped, BOX_WIDTH - 4) + "   │")
        failed = [s for s in tc.steps if s.status is StepStatus.FAILED]
        if failed:
            out.append("├" + thin + "┤")
            out.append("│ " + _pad("Failed Steps:", BOX_WIDTH - 2) + " │")
            for s in failed:
                out.append("│   " + _pad(f"Step {s.step}: {s.step_description}", BOX_WIDTH - 4) + "   │")
                out.append("│   " + _pad(f"Action: {s.action_type}", BOX_WIDTH - 4) + "   │")
                if s.error:
                    out.append("│   " + _pad(f"Error: {s.error}", BOX_WIDTH - 4) + "   │")
        out.append("└" + thin + "┘")

    out += ["", "╔" + line + "╗"]
    if stats["failedTestCases"] == 0:
        out.append("║" + _center("🎉 ALL TESTS PASSED! 🎉") + "║")
    else:
        out.append("║" + _center(f"⚠️  {stats['failedTestCases']} TEST(S) FAILED") + "║")
    out.append("║" + _center(f"Overall Success Rate: {stats['successRate']}%") + "║")
    out.append("╚" + line + "╝")
    return "\n".join(out)


def print_summary(summary: ExecutionSummary) -> None:
    print("\n" + render_console_summary(summary) + "\n")


def build_summary_document(summary: ExecutionSummary) -> dict:
    return summary.to_dict()


def render_step_row(tc_name: str, step, screenshots_href: str, execution_date: str) -> str:
    shot = f"{screenshots_href}/{execution_date}/{tc_name}/{screenshot_name_for(step.step, step.action_type, step.step_description)}"
    error_block = (
        f'<div class="error-message"><strong>Error:</strong> {escape(step.error)}</div>' if step.error else ""
    )
    icon = "✓" if step.status is StepStatus.PASSED else "✗"
    return f"""
          <tr class="{step.status.value}">
            <td class="step-number-cell">{step.step}</td>
            <td class="step-action-cell"><span class="action-badge">{escape(step.action_type)}</span></td>
            <td>{escape(step.step_description)}{error_block}</td>
            <td class="step-screenshot-cell"><a href="{escape(shot, quote=True)}" class="screenshot-link" target="_blank">📸 View</a></td>
            <td class="step-status-cell"><span class="status-icon-{step.status.value}">{icon}</span></td>
          </tr>"""


def render_test_case(tc, screenshots_href: str, execution_date: str) -> str:
    duration = format_duration(tc.duration_ms) if tc.duration_ms is not None else "N/A"
    folder = f"{screenshots_href}/{execution_date}/{tc.name}/"
    failure = ""
    if tc.status is StepStatus.FAILED:
        failure = (
            f'<div class="error-message"><strong>✖ Failed at Step {tc.first_failure_step}:</strong><br>'
            f"{escape(tc.first_failure_message or 'No error message available')}</div>"
        )
    rows = "".join(render_step_row(tc.name, s, screenshots_href, execution_date) for s in tc.steps)
    return f"""
    <div class="test-case {tc.status.value}">
      <div class="test-case-header">
        <div class="test-case-name">{escape(tc.name)}</div>
        <div class="status-badge status-{tc.status.value}">{tc.status.value.upper()}</div>
      </div>
      <div class="test-case-body">
        <p><strong>Duration:</strong> {duration}</p>
        <p><strong>Steps:</strong> {len(tc.steps)} (✓ {tc.passed_steps} / ✖ {tc.failed_steps})</p>
        <a href="{escape(folder, quote=True)}" class="folder-link" target="_blank">📁 View Screenshots Folder</a>
        {failure}
        <table class="steps-table">
          <thead><tr><th>Step #</th><th>Action Type</th><th>Description</th><th>Screenshot</th><th>Status</th></tr></thead>
          <tbody>{rows}
          </tbody>
        </table>
      </div>
    </div>"""


def render_html_summary(summary: ExecutionSummary, screenshots_href: str = "../../screenshots") -> str:
    stats = summary.get_summary_stats()
    date = summary.execution_date
    cases = "".join(render_test_case(tc, screenshots_href, date) for tc in summary.test_cases)
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Execution Summary - {date}</title>
<style>
body {{ font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px; }}
.container {{ max-width: 1200px; margin: 0 auto; background: white; border-radius: 10px; }}
.header {{ background: #667eea; color: white; padding: 30px; border-radius: 10px 10px 0 0; }}
.stats {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; padding: 30px; }}
.stat-card {{ background: white; padding: 20px; border-radius: 8px; text-align: center; border: 1px solid #dee2e6; }}
.stat-value {{ font-size: 2.5em; font-weight: bold; color: #667eea; }}
.test-cases {{ padding: 30px; }}
.test-case {{ border: 2px solid #dee2e6; border-radius: 8px; margin-bottom: 20px; }}
.test-case.passed {{ border-left: 5px solid #28a745; }}
.test-case.failed {{ border-left: 5px solid #dc3545; }}
.test-case-header {{ padding: 20px; background: #f8f9fa; display: flex; justify-content: space-between; }}
.test-case-name {{ font-size: 1.3em; font-weight: bold; }}
.status-badge {{ padding: 8px 15px; border-radius: 20px; color: white; }}
.status-passed {{ background: #28a745; }}
.status-failed {{ background: #dc3545; }}
.test-case-body {{ padding: 20px; }}
.error-message {{ color: #dc3545; margin-top: 5px; padding: 10px; background: #fff5f5; border-radius: 5px; }}
.steps-table {{ width: 100%; border-collapse: collapse; margin-top: 15px; }}
.steps-table th, .steps-table td {{ padding: 12px; border: 1px solid #dee2e6; }}
.steps-table tr.passed {{ background: #f0fff4; }}
.steps-table tr.failed {{ background: #fff5f5; }}
.action-badge {{ padding: 5px 12px; background: #667eea; color: white; border-radius: 12px; }}
.status-icon-passed {{ color: #28a745; }}
.status-icon-failed {{ color: #dc3545; }}
</style>
</head>
<body>
<div class="container">
  <div class="header">
    <h1>🎯 Test Execution Summary</h1>
    <p>Execution Date: {date}</p>
    <p>Duration: {stats['duration']}</p>
  </div>
  <div class="stats">
    <div class="stat-card"><div class="stat-value">{stats['totalTestCases']}</div><div>Total Test Cases</div></div>
    <div class="stat-card"><div class="stat-value" style="color: #28a745;">{stats['passedTestCases']}</div><div>Passed</div></div>
    <div class="stat-card"><div class="stat-value" style="color: #dc3545;">{stats['failedTestCases']}</div><div>Failed</div></div>
    <div class="stat-card"><div class="stat-value">{stats['totalSteps']}</div><div>Total Steps</div></div>
    <div class="stat-card"><div class="stat-value">{stats['successRate']}%</div><div>Success Rate</div></div>
  </div>
  <div class="test-cases">
    <h2>Test Case Details</h2>{cases}
  </div>
</div>
</body></html>
"""


def _file_stamp(summary: ExecutionSummary) -> str:
    return summary.closing_timestamp().replace(":", "-").replace(".", "-")


def save_summary_json(summary: ExecutionSummary, out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"execution-summary-{_file_stamp(summary)}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(build_summary_document(summary), f, indent=2, ensure_ascii=False)
    return path


def save_html_summary(summary: ExecutionSummary, out_dir: Path, screenshots_href: str = "../../screenshots") -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"execution-summary-{_file_stamp(summary)}.html"
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_html_summary(summary, screenshots_href))
    return path
