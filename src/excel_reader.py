from pathlib import Path

from openpyxl import load_workbook

from module_resolver import ModuleTable
from runner_errors import MissingRequiredField, NoTestCasesFound, TestDataError
from step_models import (
    MODULE_NAME_COLUMN,
    REQUIRED_STEP_COLUMNS,
    STEP_COLUMNS,
    ModuleRow,
    StepRow,
    cell_to_step,
    cell_to_text,
)


def filter_sheet_names(names: list[str], prefix: str, exclude=()) -> list[str]:
    """Sheets whose name starts with `prefix`, in workbook order; none is an error.

    Names in `exclude` (the module sheet) never count as test cases.
    """
    filtered = [n for n in names if n.startswith(prefix) and n not in exclude]
    if not filtered:
        raise NoTestCasesFound(prefix, list(names))
    return filtered


def sheet_records(sheet) -> tuple[list[str], list[dict]]:
    """Read a worksheet into records keyed by trimmed, upper-cased headers."""
    rows = sheet.iter_rows(values_only=True)
    header_row = next(rows, None)
    if header_row is None:
        return [], []
    headers = [str(h).strip().upper() if h is not None else "" for h in header_row]
    records = []
    for values in rows:
        if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
            continue
        records.append({h: v for h, v in zip(headers, values) if h})
    return headers, records


class ExcelTestDataSource:
    def __init__(self, file_path: Path | str):
        self.file_path = Path(file_path)
        if not self.file_path.exists():
            raise TestDataError(f"Test workbook not found: {self.file_path}")
        self.workbook = load_workbook(self.file_path, data_only=True)

    def get_sheet_names(self) -> list[str]:
        return list(self.workbook.sheetnames)

    def get_filtered_sheet_names(self, prefix: str, exclude=()) -> list[str]:
        try:
            filtered = filter_sheet_names(self.get_sheet_names(), prefix, exclude)
        except NoTestCasesFound as e:
            print("✖ No test cases found!")
            print(f"   Filter criteria: sheets starting with '{prefix}'")
            print(f"   Available sheets in {self.file_path}: {', '.join(e.available)}")
            raise
        print(f"📊 Found {len(filtered)} test case(s): {', '.join(filtered)}")
        return filtered

    def _records(self, sheet_name: str, required: list[str]) -> list[dict]:
        if sheet_name not in self.workbook.sheetnames:
            raise TestDataError(f"Sheet '{sheet_name}' does not exist in {self.file_path}")
        headers, records = sheet_records(self.workbook[sheet_name])
        if not records:
            raise TestDataError(
                f"No test steps found in sheet '{sheet_name}'. Expected columns: {', '.join(STEP_COLUMNS)}"
            )
        missing = [c for c in required if c not in headers]
        if missing:
            raise MissingRequiredField(f"Sheet '{sheet_name}' is missing column(s): {', '.join(missing)}")
        return records

    def read_test_steps(self, sheet_name: str) -> list[StepRow]:
        rows = []
        for record in self._records(sheet_name, REQUIRED_STEP_COLUMNS):
            try:
                rows.append(StepRow.from_record(record))
            except MissingRequiredField as e:
                raise MissingRequiredField(f"Sheet '{sheet_name}': {e.message}") from e
        print(f"📋 Read {len(rows)} test step(s) from sheet '{sheet_name}'")
        return rows

    def step_descriptions(self, exclude=()) -> dict[str, dict[int, str]]:
        """Map sheet name -> {step: STEPDESCRIPTION} for labelling screenshots.

        Rows without a usable step number are skipped; the first description
        of a repeated step wins.
        """
        descriptions: dict[str, dict[int, str]] = {}
        for name in self.get_sheet_names():
            if name in exclude:
                continue
            _, records = sheet_records(self.workbook[name])
            steps: dict[int, str] = {}
            for record in records:
                description = cell_to_text(record.get("STEPDESCRIPTION"))
                if not description:
                    continue
                try:
                    steps.setdefault(cell_to_step(record.get("STEP")), description)
                except MissingRequiredField:
                    continue
            if steps:
                descriptions[name] = steps
        return descriptions

    def read_module_table(self, sheet_name: str) -> ModuleTable:
        records = self._records(sheet_name, [MODULE_NAME_COLUMN] + REQUIRED_STEP_COLUMNS)
        table = ModuleTable([ModuleRow.from_record(r) for r in records])
        print(f"🧩 Module sheet '{sheet_name}': {', '.join(table.module_names()) or '(no modules)'}")
        return table
