from datetime import datetime, timedelta, timezone

import pytest


class FakeDriverError(Exception):
    pass


class FakeLocator:
    def __init__(self, page, query: str, path: str):
        self.page = page
        self.query = query
        self.path = path

    async def _act(self, name, *args, **kwargs):
        self.page.calls.append((name, self.path, args, kwargs))
        if self.path in self.page.fail_paths:
            raise FakeDriverError(f"Timeout 30000ms exceeded waiting for {self.path}")

    async def fill(self, value):
        await self._act("fill", value)

    async def click(self, **kwargs):
        await self._act("click", **kwargs)

    async def dblclick(self):
        await self._act("dblclick")

    async def select_option(self, **kwargs):
        await self._act("select_option", **kwargs)

    async def hover(self):
        await self._act("hover")

    async def press(self, key):
        await self._act("press", key)

    async def check(self):
        await self._act("check")

    async def uncheck(self):
        await self._act("uncheck")

    async def set_input_files(self, files):
        await self._act("set_input_files", files)


class FakeAssertions:
    def __init__(self, locator: FakeLocator):
        self.locator = locator

    async def _check(self, name, **kwargs):
        page = self.locator.page
        page.calls.append((f"expect.{name}", self.locator.path, (), kwargs))
        if self.locator.path in page.fail_paths:
            raise AssertionError(f"Locator expected {name}: {self.locator.path}")

    async def to_be_visible(self, **kwargs):
        await self._check("to_be_visible", **kwargs)

    async def to_be_hidden(self, **kwargs):
        await self._check("to_be_hidden", **kwargs)

    async def to_be_enabled(self, **kwargs):
        await self._check("to_be_enabled", **kwargs)

    async def to_be_disabled(self, **kwargs):
        await self._check("to_be_disabled", **kwargs)

    async def to_be_empty(self, **kwargs):
        await self._check("to_be_empty", **kwargs)


def fake_expect(locator):
    return FakeAssertions(locator)


class FakePage:
    """Stands in for playwright's async Page; records every driver call."""

    def __init__(self):
        self.calls: list[tuple] = []
        self.queries: list[tuple[str, str]] = []
        self.screenshots: list[str] = []
        self.fail_paths: set[str] = set()
        self.closed = False

    def _query(self, name, path):
        self.queries.append((name, path))
        return FakeLocator(self, name, path)

    def locator(self, selector):
        return self._query("locator", selector)

    def get_by_role(self, role):
        return self._query("get_by_role", role)

    def get_by_text(self, text):
        return self._query("get_by_text", text)

    def get_by_test_id(self, test_id):
        return self._query("get_by_test_id", test_id)

    def get_by_label(self, label):
        return self._query("get_by_label", label)

    def get_by_placeholder(self, text):
        return self._query("get_by_placeholder", text)

    def get_by_alt_text(self, text):
        return self._query("get_by_alt_text", text)

    def get_by_title(self, text):
        return self._query("get_by_title", text)

    async def goto(self, url):
        self.calls.append(("goto", None, (url,), {}))
        if url in self.fail_paths:
            raise FakeDriverError(f"net::ERR_NAME_NOT_RESOLVED at {url}")

    async def wait_for_timeout(self, ms):
        self.calls.append(("wait_for_timeout", None, (ms,), {}))

    async def close(self):
        self.calls.append(("close", None, (), {}))
        self.closed = True

    def is_closed(self):
        return self.closed

    async def screenshot(self, path=None, full_page=False):
        if full_page:
            self.calls.append(("screenshot", None, (), {"path": path, "full_page": True}))
        self.screenshots.append(path)
        with open(path, "wb") as f:
            f.write(b"\x89PNG")

    def driver_calls(self):
        return [c[0] for c in self.calls]


class TickingClock:
    """Deterministic clock advancing one second per reading."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 10, 18, 9, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def clock():
    return TickingClock()
