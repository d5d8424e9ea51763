"""Closed set of actions a step row can declare.

A row's ACTIONTYPE keyword is parsed once into one of four variants. Each
variant only carries the fields its operations use, so an element action
always has a locator and a navigation action never does.
"""

from dataclasses import dataclass
from enum import Enum

from locators import LocatorSpec, parse_locator
from runner_errors import MissingRequiredField, UnsupportedActionType
from step_models import StepRow


class NavigationKind(str, Enum):
    OPEN_URL = "OPENURL"
    WAIT = "WAIT"
    CLOSE_PAGE = "CLOSEPAGE"
    FULL_PAGE_SCREENSHOT = "TAKEFullPageScreenshot"


class ElementKind(str, Enum):
    FILL = "FILL"
    CLICK = "CLICKBUTTON"
    DOUBLE_CLICK = "DOUBLECLICK"
    CLEAR = "CLEARFIELD"
    SELECT_OPTION = "SELECTOPTION"
    HOVER = "HOVER"
    RIGHT_CLICK = "RIGHTCLICK"
    PRESS_KEY = "PRESSKEY"
    CHECK = "CHECKCheckbox"
    UNCHECK = "UNCHECKCheckbox"
    UPLOAD_FILE = "UPLOADFile"
    RADIO_SELECT = "RADIOButtonSelect"
    RADIO_DESELECT = "RADIOButtonDeselect"


class AssertionKind(str, Enum):
    VISIBLE = "ValidateElementtobeVisible"
    HIDDEN = "ValidateElementtobeHidden"
    ENABLED = "ValidateElementtobeEnabled"
    DISABLED = "ValidateElementtobeDisabled"
    EMPTY = "ValidateElementtobeEmpty"


MODULE_KEYWORD = "GETMODULE"

KEYWORD_ALIASES = {
    "RADIOBUttonDeselect": ElementKind.RADIO_DESELECT,
}

NAVIGATION_INPUT_REQUIRED = {NavigationKind.OPEN_URL, NavigationKind.WAIT}
ELEMENT_INPUT_REQUIRED = {
    ElementKind.FILL,
    ElementKind.SELECT_OPTION,
    ElementKind.PRESS_KEY,
    ElementKind.UPLOAD_FILE,
}


def _require_input(keyword: str, input_data: str | None) -> None:
    if input_data is None or not str(input_data).strip():
        raise MissingRequiredField(f"{keyword} requires INPUTDATA")


@dataclass(frozen=True)
class NavigationAction:
    kind: NavigationKind
    input_data: str | None = None

    def __post_init__(self):
        if self.kind in NAVIGATION_INPUT_REQUIRED:
            _require_input(self.kind.value, self.input_data)
        if self.kind is NavigationKind.WAIT:
            try:
                int(str(self.input_data).strip())
            except ValueError:
                raise MissingRequiredField(
                    f"WAIT requires INPUTDATA in whole milliseconds, got {self.input_data!r}"
                ) from None

    @property
    def wait_ms(self) -> int:
        return int(str(self.input_data).strip())


@dataclass(frozen=True)
class ElementAction:
    kind: ElementKind
    target: LocatorSpec
    input_data: str | None = None

    def __post_init__(self):
        if self.kind in ELEMENT_INPUT_REQUIRED:
            _require_input(self.kind.value, self.input_data)


@dataclass(frozen=True)
class AssertionAction:
    kind: AssertionKind
    target: LocatorSpec


@dataclass(frozen=True)
class ModuleAction:
    module_name: str

    def __post_init__(self):
        _require_input(MODULE_KEYWORD, self.module_name)


Action = NavigationAction | ElementAction | AssertionAction | ModuleAction


def available_action_types() -> list[str]:
    return (
        [k.value for k in NavigationKind]
        + [k.value for k in ElementKind]
        + [k.value for k in AssertionKind]
        + [MODULE_KEYWORD]
    )


def _lookup(action_type: str):
    if action_type == MODULE_KEYWORD:
        return MODULE_KEYWORD
    if action_type in KEYWORD_ALIASES:
        return KEYWORD_ALIASES[action_type]
    for kinds in (NavigationKind, ElementKind, AssertionKind):
        try:
            return kinds(action_type)
        except ValueError:
            continue
    return None


def _target(row: StepRow) -> LocatorSpec:
    missing = [
        name
        for name, value in (("LOCATORPATHTYPE", row.locator_path_type), ("LOCATORPATH", row.locator_path))
        if value is None
    ]
    if missing:
        raise MissingRequiredField(f"{row.action_type} requires {' and '.join(missing)}")
    return parse_locator(row.locator_path_type, row.locator_path)


def parse_action(row: StepRow) -> Action:
    """Map a row's keyword to its action variant, validating the fields it needs."""
    kind = _lookup(row.action_type)
    if kind is None:
        raise UnsupportedActionType(row.action_type, available_action_types())
    if kind == MODULE_KEYWORD:
        return ModuleAction(module_name=(row.input_data or "").strip())
    if isinstance(kind, NavigationKind):
        return NavigationAction(kind=kind, input_data=row.input_data)
    if isinstance(kind, ElementKind):
        return ElementAction(kind=kind, target=_target(row), input_data=row.input_data)
    return AssertionAction(kind=kind, target=_target(row))
