import pytest
from openpyxl import Workbook

from excel_reader import ExcelTestDataSource, filter_sheet_names
from runner_errors import MissingRequiredField, NoTestCasesFound, TestDataError


HEADERS = ["STEP", "STEPDESCRIPTION", "LOCATORPATHTYPE", "LOCATORPATH", "ACTIONTYPE", "INPUTDATA"]


def write_workbook(path, sheets: dict[str, list[list]]):
    wb = Workbook()
    wb.remove(wb.active)
    for name, rows in sheets.items():
        ws = wb.create_sheet(name)
        for r in rows:
            ws.append(r)
    wb.save(path)
    return path


def test_filter_sheet_names_keeps_workbook_order():
    names = ["Module", "TestLogin", "TestCheckout", "Setup"]
    assert filter_sheet_names(names, "Test") == ["TestLogin", "TestCheckout"]


def test_filter_sheet_names_without_match_lists_everything():
    names = ["Module", "TestLogin", "TestCheckout", "Setup"]
    with pytest.raises(NoTestCasesFound) as exc_info:
        filter_sheet_names(names, "Nope")
    assert exc_info.value.available == names
    for name in names:
        assert name in str(exc_info.value)


def test_read_test_steps(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {
        "TestLogin": [
            HEADERS,
            [1, "Open site", None, None, "OPENURL", "https://shop.test"],
            [None, None, None, None, None, None],
            [2.0, "Type user", "getByLabel", "'User'", "FILL", "alice"],
            [3, "Wait", None, None, "WAIT", 500.0],
        ],
    })
    source = ExcelTestDataSource(path)
    rows = source.read_test_steps("TestLogin")

    assert [r.step for r in rows] == [1, 2, 3]
    assert rows[0].action_type == "OPENURL"
    assert rows[0].locator_path_type is None
    assert rows[1].locator_path == "'User'"
    assert rows[2].input_data == "500"


def test_headers_are_matched_case_insensitively(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {
        "TestA": [
            ["Step", " StepDescription ", "ActionType", "InputData"],
            [1, "Open", "OPENURL", "https://shop.test"],
        ],
    })
    rows = ExcelTestDataSource(path).read_test_steps("TestA")
    assert rows[0].input_data == "https://shop.test"


def test_missing_columns(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {"TestA": [["STEP", "ACTIONTYPE"], [1, "OPENURL"]]})
    with pytest.raises(MissingRequiredField) as exc_info:
        ExcelTestDataSource(path).read_test_steps("TestA")
    assert "STEPDESCRIPTION" in str(exc_info.value)


def test_empty_and_missing_sheets(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {"TestEmpty": [HEADERS]})
    source = ExcelTestDataSource(path)
    with pytest.raises(TestDataError):
        source.read_test_steps("TestEmpty")
    with pytest.raises(TestDataError):
        source.read_test_steps("TestMissing")


def test_missing_workbook(tmp_path):
    with pytest.raises(TestDataError):
        ExcelTestDataSource(tmp_path / "nope.xlsx")


def test_filtered_sheet_names_from_workbook(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {
        "Module": [HEADERS],
        "TestLogin": [HEADERS],
        "TestCheckout": [HEADERS],
        "Setup": [HEADERS],
    })
    source = ExcelTestDataSource(path)
    assert source.get_filtered_sheet_names("Test") == ["TestLogin", "TestCheckout"]
    with pytest.raises(NoTestCasesFound):
        source.get_filtered_sheet_names("Nope")


def test_read_module_table(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {
        "Module": [
            ["ModuleName"] + HEADERS,
            ["Login_Start", None, None, None, None, None, None],
            [None, 1, "Type user", "getByLabel", "User", "FILL", "alice"],
            [None, 2, "Submit", "getByRole", "button", "CLICKBUTTON", None],
            [" Login_End ", None, None, None, None, None, None],
        ],
    })
    table = ExcelTestDataSource(path).read_module_table("Module")
    assert len(table) == 4
    assert table.module_names() == ["Login"]
    assert table.rows[3].marker == "Login_End"
    assert table.rows[1].row.action_type == "FILL"


def test_module_table_requires_module_column(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {"Module": [HEADERS, [1, "x", None, None, "HOVER", None]]})
    with pytest.raises(MissingRequiredField):
        ExcelTestDataSource(path).read_module_table("Module")


def test_module_sheet_is_excluded_before_the_empty_check():
    with pytest.raises(NoTestCasesFound):
        filter_sheet_names(["TestModules", "Setup"], "Test", exclude=("TestModules",))
    assert filter_sheet_names(["TestModules", "TestA"], "Test", exclude=("TestModules",)) == ["TestA"]


@pytest.mark.parametrize("bad_step", ["abc", None, 0, -1, 2.5])
def test_invalid_step_numbers_fail_at_load(tmp_path, bad_step):
    path = write_workbook(tmp_path / "cases.xlsx", {
        "TestA": [
            HEADERS,
            [1, "Open", None, None, "OPENURL", "https://shop.test"],
            [bad_step, "Click", "locator", "#go", "CLICKBUTTON", None],
        ],
    })
    with pytest.raises(MissingRequiredField) as exc_info:
        ExcelTestDataSource(path).read_test_steps("TestA")
    assert "TestA" in str(exc_info.value)
    assert "Invalid STEP value" in str(exc_info.value)


def test_step_descriptions_for_analytics(tmp_path):
    path = write_workbook(tmp_path / "cases.xlsx", {
        "Module": [["MODULENAME"] + HEADERS, ["Login_Start"], [None, 1, "Type user", None, None, "FILL", "a"]],
        "TestA": [
            HEADERS,
            [1, "Open site", None, None, "OPENURL", "https://shop.test"],
            ["x", "Broken row", None, None, "HOVER", None],
            [2.0, "Click go", "locator", "#go", "CLICKBUTTON", None],
        ],
        "Notes": [["TITLE"], ["free text"]],
    })
    descriptions = ExcelTestDataSource(path).step_descriptions(exclude=("Module",))
    assert descriptions == {"TestA": {1: "Open site", 2: "Click go"}}
