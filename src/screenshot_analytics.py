"""Post-hoc analytics rebuilt purely from the screenshot tree.

A screenshot exists for every executed step, failed or not, so this view can
only tell how far each test case got. Live pass/fail lives in the execution
summary JSON.
"""

import json
import re
from collections import Counter
from datetime import datetime
from html import escape
from pathlib import Path


DATE_DIR = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SHOT_NAME = re.compile(r"^(?:Module_(?P<module>.+?)_)?Step_(?P<step>\d+)_(?P<action>.+)\.png$")


def parse_screenshot_name(name: str) -> dict | None:
    m = SHOT_NAME.match(name)
    if not m:
        return None
    return {"step": int(m.group("step")), "actionType": m.group("action"), "module": m.group("module")}


def analyze_test_case(case_dir: Path, step_descriptions: dict[int, str] | None = None) -> dict:
    # Module rows are numbered within their module, so only top-level steps get a description
    steps = []
    for shot in sorted(case_dir.glob("*.png")):
        parsed = parse_screenshot_name(shot.name)
        if parsed is None:
            continue
        steps.append({
            "step": parsed["step"],
            "stepDescription": (
                (step_descriptions or {}).get(parsed["step"], "N/A") if parsed["module"] is None else "N/A"
            ),
            "actionType": parsed["actionType"],
            "module": parsed["module"],
            "status": "success",
            "screenshotPath": str(shot),
        })
    steps.sort(key=lambda s: s["step"])
    total = len(steps)
    completed = sum(1 for s in steps if s["status"] == "success")
    return {
        "testCaseName": case_dir.name,
        "totalSteps": total,
        "completedSteps": completed,
        "failedSteps": total - completed,
        "successRate": completed / total * 100 if total else 0,
        "steps": steps,
    }


def analyze_execution(date_dir: Path, descriptions: dict[str, dict[int, str]] | None = None) -> dict:
    cases = [
        analyze_test_case(d, (descriptions or {}).get(d.name))
        for d in sorted(date_dir.iterdir())
        if d.is_dir()
    ]
    actions = Counter(s["actionType"] for tc in cases for s in tc["steps"])
    total_steps = sum(tc["totalSteps"] for tc in cases)
    successful = sum(tc["completedSteps"] for tc in cases)
    passed_cases = sum(1 for tc in cases if tc["failedSteps"] == 0)
    return {
        "executionDate": date_dir.name,
        "totalTestCases": len(cases),
        "passedTestCases": passed_cases,
        "failedTestCases": len(cases) - passed_cases,
        "totalSteps": total_steps,
        "successfulSteps": successful,
        "failedSteps": total_steps - successful,
        "overallSuccessRate": successful / total_steps * 100 if total_steps else 0,
        "testCases": cases,
        "actionTypeDistribution": dict(actions),
        "mostUsedActions": [{"action": a, "count": c} for a, c in actions.most_common(10)],
    }


def analyze_screenshots(root: Path | str, descriptions: dict[str, dict[int, str]] | None = None) -> list[dict]:
    """Analyze every dated execution under `root`, oldest first.

    `descriptions` optionally maps test case name -> {step: description}.
    """
    root = Path(root)
    if not root.is_dir():
        return []
    return [
        analyze_execution(d, descriptions)
        for d in sorted(root.iterdir())
        if d.is_dir() and DATE_DIR.match(d.name)
    ]


def save_analytics(executions: list[dict], out_dir: Path) -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"analytics-{datetime.now().strftime('%Y%m%d_%H%M%S')}.json"
    with open(path, "w", encoding="utf-8") as f:
        json.dump(executions, f, indent=2)
    return path


def render_analytics_test_case(tc: dict) -> str:
    rows = "".join(
        f"""
          <tr>
            <td><strong>#{s['step']}</strong></td>
            <td>{escape(s['stepDescription'])}</td>
            <td><span class="action-badge">{escape(s['actionType'])}</span></td>
            <td>{escape(s['module'] or '')}</td>
            <td><span class="status-success">✓ Success</span></td>
          </tr>"""
        for s in tc["steps"]
    )
    return f"""
    <div class="test-case">
      <div class="test-case-header">
        <div class="test-case-name">{escape(tc['testCaseName'])}</div>
        <div>{tc['completedSteps']}/{tc['totalSteps']} steps ({tc['successRate']:.1f}%)</div>
      </div>
      <table class="steps-table">
        <thead><tr><th>Step #</th><th>Description</th><th>Action Type</th><th>Module</th><th>Status</th></tr></thead>
        <tbody>{rows}
        </tbody>
      </table>
    </div>"""


def render_analytics_html(executions: list[dict]) -> str:
    """HTML report for the latest execution plus a trend table of all of them."""
    latest = executions[-1]
    trend = "".join(
        f"""
        <tr><td>{e['executionDate']}</td><td>{e['totalTestCases']}</td><td>{e['totalSteps']}</td>"""
        f"""<td>{e['overallSuccessRate']:.1f}%</td></tr>"""
        for e in executions
    )
    actions = "".join(
        f"""
        <tr><td><span class="action-badge">{escape(a['action'])}</span></td><td>{a['count']}</td></tr>"""
        for a in latest["mostUsedActions"]
    )
    cases = "".join(render_analytics_test_case(tc) for tc in latest["testCases"])
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
<meta charset="UTF-8">
<title>Test Execution Analytics Report</title>
<style>
body {{ font-family: Arial, sans-serif; background: #f5f5f5; padding: 20px; }}
.container {{ max-width: 1200px; margin: 0 auto; background: white; border-radius: 10px; }}
.header {{ background: #667eea; color: white; padding: 30px; border-radius: 10px 10px 0 0; }}
.stats {{ display: grid; grid-template-columns: repeat(auto-fit, minmax(200px, 1fr)); gap: 20px; padding: 30px; }}
.stat-card {{ background: white; padding: 20px; border-radius: 8px; text-align: center; border: 1px solid #dee2e6; }}
.stat-value {{ font-size: 2.5em; font-weight: bold; color: #667eea; }}
.section {{ padding: 0 30px 30px; }}
.test-case {{ border: 2px solid #dee2e6; border-radius: 8px; margin-bottom: 20px; }}
.test-case-header {{ padding: 20px; background: #f8f9fa; display: flex; justify-content: space-between; }}
.test-case-name {{ font-size: 1.3em; font-weight: bold; }}
.steps-table {{ width: 100%; border-collapse: collapse; }}
.steps-table th, .steps-table td {{ padding: 12px; border: 1px solid #dee2e6; }}
.action-badge {{ padding: 5px 12px; background: #667eea; color: white; border-radius: 12px; }}
.status-success {{ color: #28a745; }}
</style>
</head>
<body>
<div class="container">
  <div class="header">
    <h1>📊 Test Execution Analytics</h1>
    <p>Latest Execution: {latest['executionDate']}</p>
    <p>Executions analyzed: {len(executions)}</p>
  </div>
  <div class="stats">
    <div class="stat-card"><div class="stat-value">{latest['totalTestCases']}</div><div>Test Cases</div></div>
    <div class="stat-card"><div class="stat-value">{latest['totalSteps']}</div><div>Steps Executed</div></div>
    <div class="stat-card"><div class="stat-value">{latest['overallSuccessRate']:.1f}%</div><div>Success Rate</div></div>
    <div class="stat-card"><div class="stat-value">{len(latest['actionTypeDistribution'])}</div><div>Action Types</div></div>
  </div>
  <div class="section">
    <h2>Execution Trend</h2>
    <table class="steps-table">
      <thead><tr><th>Date</th><th>Test Cases</th><th>Steps</th><th>Success Rate</th></tr></thead>
      <tbody>{trend}
      </tbody>
    </table>
  </div>
  <div class="section">
    <h2>Most Used Actions</h2>
    <table class="steps-table">
      <thead><tr><th>Action</th><th>Count</th></tr></thead>
      <tbody>{actions}
      </tbody>
    </table>
  </div>
  <div class="section">
    <h2>Test Case Details</h2>{cases}
  </div>
</div>
</body></html>
"""


def save_analytics_html(executions: list[dict], out_dir: Path, filename: str = "analytics-report.html") -> Path:
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / filename
    with open(path, "w", encoding="utf-8") as f:
        f.write(render_analytics_html(executions))
    return path
