"""
Playwright E2E Test Configuration and Fixtures

This module provides shared fixtures, configuration, and utilities
for end-to-end browser testing of the vehicle registry with Playwright.

Browser, context and page lifecycles, artifacts (screenshots, videos,
traces) and the ``--browser``/``--device`` matrix come from
pytest-playwright; this module only parameterizes them.
"""
import functools
import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Generator

import pytest
import requests
from playwright.sync_api import Browser, BrowserContext, Page, expect

from registry_e2e import ConfigError, Settings, get_settings
from registry_e2e.data_loader import load_test_data
from registry_e2e.models import TestData, UserCredentials

from .pages import DashboardPage, LoginPage

logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================


def pytest_configure(config):
    """Apply the global assertion timeout; markers live in pyproject.toml."""
    try:
        settings = get_settings()
    except ConfigError as e:
        raise pytest.UsageError(f"Invalid E2E configuration: {e}")

    expect.set_options(timeout=settings.expect_timeout)


@pytest.hookimpl(tryfirst=True)
def pytest_collection_modifyitems(config, items):
    """Mark browser tests as e2e; feature-area marks come from each module."""
    e2e_dir = Path(__file__).parent
    for item in items:
        if e2e_dir in Path(str(item.fspath)).parents:
            item.add_marker(pytest.mark.e2e)


@pytest.fixture(scope="session")
def e2e_settings() -> Settings:
    """Settings resolved once per worker process."""
    settings = get_settings()
    logger.info(f"E2E settings: {json.dumps(settings.to_dict(), default=str)}")
    return settings


@pytest.fixture(scope="session")
def base_url(e2e_settings: Settings, pytestconfig) -> str:
    """Application base URL; ``--base-url`` wins over settings."""
    option = pytestconfig.getoption("base_url", default=None)
    return (option or e2e_settings.base_url).rstrip("/")


@pytest.fixture(scope="session")
def test_data(e2e_settings: Settings) -> TestData:
    """Credentials, search scenarios and expected profiles."""
    return load_test_data(
        e2e_settings.environment,
        directory=str(e2e_settings.test_data_dir),
        user_email=e2e_settings.user_email,
        user_password=e2e_settings.user_password,
    )


@pytest.fixture(scope="session")
def standard_user(test_data: TestData) -> UserCredentials:
    return test_data.user("standard")


# =============================================================================
# Application Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def app_available(e2e_settings: Settings, base_url: str) -> str:
    """
    Wait for the application under test to answer.

    Any response below 500 counts as up; login redirects are expected.
    """
    if not e2e_settings.health_check:
        return base_url

    probe_url = f"{base_url}/{e2e_settings.health_check_path.lstrip('/')}"
    deadline = time.monotonic() + e2e_settings.health_check_timeout
    last_error = None

    while True:
        try:
            resp = requests.get(probe_url, timeout=5, allow_redirects=True)
            if resp.status_code < 500:
                logger.info(f"Application reachable at {base_url} (HTTP {resp.status_code})")
                return base_url
            last_error = f"HTTP {resp.status_code}"
        except requests.exceptions.RequestException as e:
            last_error = str(e)

        if time.monotonic() >= deadline:
            break
        time.sleep(1)

    raise RuntimeError(
        f"Application at {probe_url} not reachable within "
        f"{e2e_settings.health_check_timeout}s: {last_error}"
    )


# =============================================================================
# Browser Fixtures
# =============================================================================


@pytest.fixture(scope="session")
def browser_type_launch_args(browser_type_launch_args: Dict, e2e_settings: Settings) -> Dict[str, Any]:
    """Browser launch arguments; CLI flags win over settings."""
    args = dict(browser_type_launch_args)
    if not e2e_settings.headless:
        args["headless"] = False
    if e2e_settings.slow_mo and not args.get("slow_mo"):
        args["slow_mo"] = e2e_settings.slow_mo
    return args


@pytest.fixture(scope="session")
def browser_context_args(
    browser_context_args: Dict, e2e_settings: Settings, base_url: str
) -> Dict[str, Any]:
    """Browser context arguments; a ``--device`` profile keeps its own viewport."""
    args = {
        **browser_context_args,
        "base_url": base_url,
        "locale": e2e_settings.locale,
        "ignore_https_errors": True,
    }
    if e2e_settings.timezone_id:
        args["timezone_id"] = e2e_settings.timezone_id
    if "viewport" not in browser_context_args:
        args["viewport"] = e2e_settings.viewport
    return args


@pytest.fixture
def page(page: Page, e2e_settings: Settings, app_available, request) -> Generator[Page, None, None]:
    """Playwright page with suite timeouts and console error capture."""
    page.set_default_timeout(e2e_settings.default_timeout)
    page.set_default_navigation_timeout(e2e_settings.navigation_timeout)

    _collect_console_errors(page, request.node)

    yield page


# =============================================================================
# Authentication Fixtures
# =============================================================================


def _collect_console_errors(page: Page, item) -> None:
    errors = []

    def on_console(msg):
        if msg.type == "error":
            errors.append(msg.text)

    page.on("console", on_console)
    item.console_errors = errors


def _login(page: Page, base_url: str, user: UserCredentials) -> None:
    login_page = LoginPage(page, base_url)
    login_page.navigate()
    login_page.login_and_wait(user.email, user.password)


@pytest.fixture
def authenticated_page(page: Page, base_url: str, standard_user: UserCredentials) -> Page:
    """Return a page that's logged in through the login form."""
    _login(page, base_url, standard_user)
    return page


@pytest.fixture(scope="session")
def auth_storage_state(
    browser: Browser,
    browser_context_args: Dict,
    e2e_settings: Settings,
    base_url: str,
    standard_user: UserCredentials,
    app_available,
    worker_id: str,
) -> Path:
    """
    Log in once per browser and worker, saving cookies and storage.

    Tests using ``auth_page`` start already signed in.
    """
    state_dir = e2e_settings.artifacts_dir / ".auth"
    state_dir.mkdir(parents=True, exist_ok=True)
    state_path = state_dir / f"{browser.browser_type.name}-{worker_id}.json"

    context = browser.new_context(**browser_context_args)
    context.set_default_timeout(e2e_settings.default_timeout)
    try:
        page = context.new_page()
        _login(page, base_url, standard_user)
        context.storage_state(path=str(state_path))
    finally:
        context.close()

    logger.info(f"Saved authenticated state for {standard_user.email} to {state_path}")
    return state_path


@pytest.fixture
def auth_context(
    browser: Browser, browser_context_args: Dict, auth_storage_state: Path, e2e_settings: Settings
) -> Generator[BrowserContext, None, None]:
    """Browser context restored from the saved signed-in state."""
    context = browser.new_context(**browser_context_args, storage_state=str(auth_storage_state))
    context.set_default_timeout(e2e_settings.default_timeout)
    context.set_default_navigation_timeout(e2e_settings.navigation_timeout)

    yield context

    context.close()


@pytest.fixture
def auth_page(auth_context: BrowserContext, base_url: str, request) -> Generator[Page, None, None]:
    """Signed-in page opened on the dashboard."""
    page = auth_context.new_page()
    _collect_console_errors(page, request.node)

    page.goto(f"{base_url}{DashboardPage.PATH}")
    yield page
    page.close()


# =============================================================================
# Diagnostics
# =============================================================================


@pytest.fixture(autouse=True)
def failure_diagnostics(request):
    """Log page URL and browser console errors when a test fails."""
    yield

    rep = getattr(request.node, "rep_call", None)
    if rep is None or not rep.failed:
        return

    for name in ("auth_page", "authenticated_page", "page"):
        failed_page = request.node.funcargs.get(name)
        if failed_page is not None:
            logger.error(f"[{request.node.nodeid}] failed at {failed_page.url}")
            break

    for message in getattr(request.node, "console_errors", []):
        logger.error(f"[{request.node.nodeid}] console error: {message}")


# =============================================================================
# Hooks
# =============================================================================


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Store test results for use in fixtures."""
    outcome = yield
    rep = outcome.get_result()
    setattr(item, f"rep_{rep.when}", rep)


@functools.lru_cache(maxsize=None)
def _collection_test_data() -> TestData:
    settings = get_settings()
    return load_test_data(settings.environment, directory=str(settings.test_data_dir))


def _scenario_params(scenarios):
    return [
        pytest.param(s, id=s.id, marks=[getattr(pytest.mark, tag) for tag in s.tags])
        for s in scenarios
    ]


def pytest_generate_tests(metafunc):
    """Parametrize search tests from test_data/searches.yaml."""
    if "search_scenario" in metafunc.fixturenames:
        scenarios = _collection_test_data().positive_searches()
        metafunc.parametrize("search_scenario", _scenario_params(scenarios))

    if "empty_search_scenario" in metafunc.fixturenames:
        scenarios = _collection_test_data().negative_searches()
        metafunc.parametrize("empty_search_scenario", _scenario_params(scenarios))
