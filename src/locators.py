import re
from dataclasses import dataclass
from enum import Enum

from runner_errors import UnsupportedLocatorStrategy


class LocatorStrategy(str, Enum):
    SELECTOR = "locator"
    ROLE = "getByRole"
    TEXT = "getByText"
    TEST_ID = "getByTestId"
    LABEL = "getByLabel"
    PLACEHOLDER = "getByPlaceholder"
    ALT_TEXT = "getByAltText"
    TITLE = "getByTitle"


# Spellings found in existing workbooks
STRATEGY_ALIASES = {
    "getByBlaceholder": LocatorStrategy.PLACEHOLDER,
}

# Playwright page method behind each strategy
PAGE_QUERIES = {
    LocatorStrategy.SELECTOR: "locator",
    LocatorStrategy.ROLE: "get_by_role",
    LocatorStrategy.TEXT: "get_by_text",
    LocatorStrategy.TEST_ID: "get_by_test_id",
    LocatorStrategy.LABEL: "get_by_label",
    LocatorStrategy.PLACEHOLDER: "get_by_placeholder",
    LocatorStrategy.ALT_TEXT: "get_by_alt_text",
    LocatorStrategy.TITLE: "get_by_title",
}

_QUOTES = re.compile(r"^['\"]|['\"]$")


def clean_locator_value(value) -> str:
    if value is None:
        return ""
    return _QUOTES.sub("", str(value).strip()).strip()


@dataclass(frozen=True)
class LocatorSpec:
    strategy: LocatorStrategy
    path: str


def parse_strategy(locator_type) -> LocatorStrategy:
    cleaned = clean_locator_value(locator_type)
    if cleaned in STRATEGY_ALIASES:
        return STRATEGY_ALIASES[cleaned]
    try:
        return LocatorStrategy(cleaned)
    except ValueError:
        raise UnsupportedLocatorStrategy(locator_type) from None


def parse_locator(locator_type, locator_path) -> LocatorSpec:
    return LocatorSpec(strategy=parse_strategy(locator_type), path=clean_locator_value(locator_path))


def resolve_locator(page, spec: LocatorSpec):
    """Return Playwright's lazy Locator for a parsed spec.

    Strategy validation happens in `parse_locator`, when the row is parsed;
    nothing is queried on the page until the Locator is used.
    """
    return getattr(page, PAGE_QUERIES[spec.strategy])(spec.path)
