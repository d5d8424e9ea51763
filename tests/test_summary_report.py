import json

import pytest

from execution_summary import ExecutionSummary
from summary_report import (
    build_summary_document,
    render_console_summary,
    render_html_summary,
    save_html_summary,
    save_summary_json,
)


@pytest.fixture
def finished(clock):
    summary = ExecutionSummary(clock=clock)
    summary.start_test_case("TestLogin")
    summary.record_step("TestLogin", 1, "[Module: Login] Type user", "FILL", "passed")
    summary.record_step("TestLogin", 2, "Open <admin> page", "OPENURL", "passed")
    summary.end_test_case("TestLogin")
    summary.start_test_case("TestCheckout")
    summary.record_step("TestCheckout", 1, "Open", "OPENURL", "passed")
    summary.record_step("TestCheckout", 2, "Pay", "CLICKBUTTON", "failed", "Timeout <30000ms> exceeded")
    summary.end_test_case("TestCheckout")
    summary.finish()
    return summary


def test_projections_are_idempotent(finished):
    assert build_summary_document(finished) == build_summary_document(finished)
    assert render_html_summary(finished) == render_html_summary(finished)
    assert render_console_summary(finished) == render_console_summary(finished)


def test_console_summary(finished):
    text = render_console_summary(finished)
    assert "TEST EXECUTION SUMMARY" in text
    assert "✖ FAILED AT STEP 2" in text
    assert "1 TEST(S) FAILED" in text
    assert "Success Rate: 75.00%" in text


def test_console_summary_all_passed(clock):
    summary = ExecutionSummary(clock=clock)
    summary.start_test_case("TestA")
    summary.record_step("TestA", 1, "Open", "OPENURL", "passed")
    summary.end_test_case("TestA")
    summary.finish()
    assert "ALL TESTS PASSED" in render_console_summary(summary)


def test_html_escapes_and_links_screenshots(finished):
    html = render_html_summary(finished, screenshots_href="../shots")
    assert "Open &lt;admin&gt; page" in html
    assert "Timeout &lt;30000ms&gt; exceeded" in html
    assert "<admin>" not in html
    assert "../shots/2026-10-18/TestLogin/Module_Login_Step_1_FILL.png" in html
    assert "../shots/2026-10-18/TestLogin/Step_2_OPENURL.png" in html
    assert "../shots/2026-10-18/TestCheckout/" in html
    assert "Failed at Step 2" in html


def test_save_writes_both_documents(finished, tmp_path):
    json_path = save_summary_json(finished, tmp_path / "summary")
    html_path = save_html_summary(finished, tmp_path / "summary")

    assert json_path.name.startswith("execution-summary-")
    assert json_path.stem == html_path.stem
    assert ":" not in json_path.name
    doc = json.loads(json_path.read_text(encoding="utf-8"))
    assert doc["statistics"]["failedTestCases"] == 1
    assert [tc["testCaseName"] for tc in doc["testCases"]] == ["TestLogin", "TestCheckout"]
    assert html_path.read_text(encoding="utf-8").startswith("<!DOCTYPE html>")
