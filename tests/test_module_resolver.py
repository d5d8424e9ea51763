import pytest

from module_resolver import ModuleTable, check_module_graph, expand_module, find_module_range
from runner_errors import (
    ModuleCycle,
    ModuleDepthExceeded,
    ModuleEmpty,
    ModuleMalformed,
    ModuleNotFound,
    ModuleUnterminated,
)
from step_models import ModuleRow, StepRow


def mrow(marker=None, step=0, description="", action_type="", input_data=None):
    return ModuleRow(
        marker=marker,
        row=StepRow(step=step, step_description=description, action_type=action_type, input_data=input_data),
    )


def test_expand_returns_inner_rows_in_order():
    r1 = mrow(step=1, description="open", action_type="OPENURL", input_data="https://x.test")
    r2 = mrow(step=2, description="click", action_type="CLICKBUTTON")
    table = ModuleTable([mrow("A_Start"), r1, r2, mrow("A_End")])

    assert find_module_range("A", table) == (1, 3)
    expanded = expand_module("A", table)
    assert [r.step for r in expanded] == [1, 2]
    assert [r.step_description for r in expanded] == ["[Module: A] open", "[Module: A] click"]
    assert expanded[0].input_data == "https://x.test"


def test_markers_are_matched_after_trimming():
    table = ModuleTable([mrow(" A_Start "), mrow(step=1, description="x"), mrow("A_End  ")])
    assert len(expand_module(" A ", table)) == 1


def test_empty_module():
    with pytest.raises(ModuleEmpty):
        expand_module("A", ModuleTable([mrow("A_Start"), mrow("A_End")]))


def test_missing_start_lists_other_modules():
    table = ModuleTable([
        mrow("Login_Start"), mrow(step=1), mrow("Login_End"),
        mrow("Logout_Start"), mrow(step=1), mrow("Logout_End"),
    ])
    with pytest.raises(ModuleNotFound) as exc_info:
        expand_module("A", table)
    assert exc_info.value.available == ["Login", "Logout"]
    assert "Login, Logout" in str(exc_info.value)


def test_missing_end_marker():
    with pytest.raises(ModuleUnterminated):
        expand_module("A", ModuleTable([mrow("A_Start"), mrow(step=1)]))


def test_end_before_start_is_unterminated():
    table = ModuleTable([mrow("A_End"), mrow("A_Start"), mrow(step=1)])
    with pytest.raises(ModuleUnterminated):
        expand_module("A", table)


def test_latest_start_before_end_wins():
    table = ModuleTable([
        mrow("A_Start"), mrow(step=1, description="stale"),
        mrow("A_Start"), mrow(step=2, description="fresh"),
        mrow("A_End"),
    ])
    assert [r.step for r in expand_module("A", table)] == [2]


def test_malformed_error_message():
    err = ModuleMalformed("A", 4, 2)
    assert "out of order" in str(err)


def test_expansion_is_not_memoized():
    table = ModuleTable([mrow("A_Start"), mrow(step=1, description="one"), mrow("A_End")])
    first = expand_module("A", table)
    table.rows.insert(2, mrow(step=2, description="two"))
    assert len(expand_module("A", table)) == len(first) + 1


def test_nested_modules_pass_graph_check():
    table = ModuleTable([
        mrow("Outer_Start"), mrow(step=1, action_type="GETMODULE", input_data="Inner"), mrow("Outer_End"),
        mrow("Inner_Start"), mrow(step=1, action_type="CLICKBUTTON"), mrow("Inner_End"),
    ])
    check_module_graph("Outer", table)


def test_direct_self_reference_is_a_cycle():
    table = ModuleTable([mrow("A_Start"), mrow(step=1, action_type="GETMODULE", input_data="A"), mrow("A_End")])
    with pytest.raises(ModuleCycle) as exc_info:
        check_module_graph("A", table)
    assert exc_info.value.chain == ["A", "A"]


def test_indirect_self_reference_is_a_cycle():
    table = ModuleTable([
        mrow("A_Start"), mrow(step=1, action_type="GETMODULE", input_data="B"), mrow("A_End"),
        mrow("B_Start"), mrow(step=1, action_type="GETMODULE", input_data="A"), mrow("B_End"),
    ])
    with pytest.raises(ModuleCycle) as exc_info:
        check_module_graph("A", table)
    assert exc_info.value.chain == ["A", "B", "A"]


def test_depth_limit():
    rows = []
    for i in range(4):
        rows += [mrow(f"M{i}_Start"), mrow(step=1, action_type="GETMODULE", input_data=f"M{i + 1}"), mrow(f"M{i}_End")]
    rows += [mrow("M4_Start"), mrow(step=1, action_type="CLICKBUTTON"), mrow("M4_End")]
    table = ModuleTable(rows)
    check_module_graph("M0", table, max_depth=5)
    with pytest.raises(ModuleDepthExceeded):
        check_module_graph("M0", table, max_depth=3)
