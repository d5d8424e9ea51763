from runner_errors import (
    ModuleCycle,
    ModuleDepthExceeded,
    ModuleEmpty,
    ModuleMalformed,
    ModuleNotFound,
    ModuleUnterminated,
)
from step_actions import MODULE_KEYWORD
from step_models import ModuleRow, StepRow


START_SUFFIX = "_Start"
END_SUFFIX = "_End"
DEFAULT_MAX_MODULE_DEPTH = 10


class ModuleTable:
    """Rows of the shared module sheet, in sheet order."""

    def __init__(self, rows: list[ModuleRow] | None = None):
        self.rows = list(rows or [])

    def __len__(self) -> int:
        return len(self.rows)

    def module_names(self) -> list[str]:
        names: list[str] = []
        for r in self.rows:
            marker = (r.marker or "").strip()
            for suffix in (START_SUFFIX, END_SUFFIX):
                if marker.endswith(suffix) and len(marker) > len(suffix):
                    base = marker[: -len(suffix)]
                    if base not in names:
                        names.append(base)
        return names


def find_module_range(module_name: str, table: ModuleTable) -> tuple[int, int]:
    """Return the half-open index range of the rows between a module's markers."""
    name = module_name.strip()
    start_marker = f"{name}{START_SUFFIX}"
    end_marker = f"{name}{END_SUFFIX}"
    start = None
    end = None
    for idx, r in enumerate(table.rows):
        marker = (r.marker or "").strip()
        if marker == start_marker:
            start = idx
        elif marker == end_marker and start is not None:
            end = idx
            break
    if start is None:
        raise ModuleNotFound(name, table.module_names())
    if end is None:
        raise ModuleUnterminated(name)
    if start >= end:
        raise ModuleMalformed(name, start, end)
    if end - start == 1:
        raise ModuleEmpty(name)
    return start + 1, end


def module_description(module_name: str, description: str) -> str:
    return f"[Module: {module_name}] {description}"


def expand_module(module_name: str, table: ModuleTable) -> list[StepRow]:
    """Inline a module's rows, relabelled but keeping their step numbers."""
    name = module_name.strip()
    lo, hi = find_module_range(name, table)
    return [r.row.with_description(module_description(name, r.row.step_description)) for r in table.rows[lo:hi]]


def check_module_graph(
    module_name: str,
    table: ModuleTable,
    max_depth: int = DEFAULT_MAX_MODULE_DEPTH,
    chain: list[str] | None = None,
) -> None:
    """Walk nested GETMODULE references and fail on cycles or excessive nesting."""
    name = module_name.strip()
    chain = list(chain or [])
    if name in chain:
        raise ModuleCycle(name, chain + [name])
    chain.append(name)
    if len(chain) > max_depth:
        raise ModuleDepthExceeded(name, max_depth, chain)
    for row in expand_module(name, table):
        if row.action_type == MODULE_KEYWORD and row.input_data:
            check_module_graph(row.input_data, table, max_depth=max_depth, chain=chain)
