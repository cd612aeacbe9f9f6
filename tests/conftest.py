"""Shared fixtures: an in-memory stand-in for the Playwright browser."""

import asyncio
from typing import Any, Callable, Dict, List, Optional

import pytest

from netlink_scraper.browser_config import BrowserConfig
from netlink_scraper.infrastructure.browser_session import BrowserSession


class FakeResponse:
    def __init__(self, status: int):
        self.status = status


class FakePage:
    """Records calls and replays the engine's scripted page behaviour."""

    def __init__(self, engine: "FakeEngine"):
        self.engine = engine
        self.closed = False
        self.default_timeout = None
        self.visited: List[str] = []

    def set_default_timeout(self, timeout):
        self.default_timeout = timeout

    async def goto(self, url, wait_until=None, timeout=None):
        self.visited.append(url)
        if self.engine.goto_errors:
            raise self.engine.goto_errors.pop(0)
        if self.engine.status is None:
            return None
        return FakeResponse(self.engine.status)

    async def wait_for_selector(self, selector, timeout=None):
        return None

    async def evaluate(self, script):
        if self.engine.evaluate_error is not None:
            raise self.engine.evaluate_error
        return [dict(link) for link in self.engine.links]

    async def close(self):
        self.closed = True
        if self.engine.page_close_error is not None:
            raise self.engine.page_close_error


class FakeContext:
    def __init__(self, engine: "FakeEngine", options: Dict[str, Any]):
        self.engine = engine
        self.options = options
        self.closed = False
        self.init_scripts: List[str] = []
        self.pages: List[FakePage] = []

    async def add_init_script(self, script):
        if self.engine.init_script_error is not None:
            raise self.engine.init_script_error
        self.init_scripts.append(script)

    async def new_page(self):
        page = FakePage(self.engine)
        self.pages.append(page)
        self.engine.pages.append(page)
        return page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, engine: "FakeEngine"):
        self.engine = engine
        self.connected = True
        self.closed = False

    def is_connected(self):
        return self.connected

    async def new_context(self, **options):
        self.engine.creating += 1
        self.engine.max_creating = max(self.engine.max_creating, self.engine.creating)
        try:
            # Yield so overlapping creations would be observable
            await asyncio.sleep(0)
            context = FakeContext(self.engine, options)
            self.engine.contexts.append(context)
            return context
        finally:
            self.engine.creating -= 1

    async def close(self):
        self.closed = True
        self.connected = False


class FakeEngine:
    """Scriptable browser engine; counts every context and page it hands out."""

    def __init__(self):
        self.links: List[Dict[str, str]] = []
        self.status: Optional[int] = 200
        self.goto_errors: List[BaseException] = []
        self.evaluate_error: Optional[BaseException] = None
        self.page_close_error: Optional[BaseException] = None
        self.init_script_error: Optional[BaseException] = None
        self.launch_error: Optional[BaseException] = None

        self.browsers: List[FakeBrowser] = []
        self.contexts: List[FakeContext] = []
        self.pages: List[FakePage] = []
        self.creating = 0
        self.max_creating = 0

    async def launch(self, config: BrowserConfig) -> FakeBrowser:
        if self.launch_error is not None:
            raise self.launch_error
        browser = FakeBrowser(self)
        self.browsers.append(browser)
        return browser

    @property
    def contexts_closed(self) -> int:
        return sum(1 for c in self.contexts if c.closed)

    @property
    def pages_closed(self) -> int:
        return sum(1 for p in self.pages if p.closed)


class SleepRecorder:
    """Sleep replacement that records requested delays and returns at once."""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, seconds: float):
        self.calls.append(seconds)
        await asyncio.sleep(0)


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def sleep():
    return SleepRecorder()


@pytest.fixture
def backoff():
    """Separate recorder for the page scraper's own backoff."""
    return SleepRecorder()


@pytest.fixture
def make_session(engine, sleep) -> Callable[..., BrowserSession]:
    """Build a BrowserSession wired to the fake engine."""

    def factory(**kwargs) -> BrowserSession:
        kwargs.setdefault("launcher", engine.launch)
        kwargs.setdefault("sleep", sleep)
        return BrowserSession(**kwargs)

    return factory
