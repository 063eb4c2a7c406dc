"""
Suite Settings

Resolves the effective run configuration once per process: YAML profile
values from ``config/`` overlaid with ``E2E_*`` environment variables.
"""

import functools
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union

from .config_loader import ConfigLoader
from .exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_ENVIRONMENT = "local"
SUPPORTED_BROWSERS = ("chromium", "firefox", "webkit")
ARTIFACT_MODES = {
    "screenshot": ("on", "off", "only-on-failure"),
    "video": ("on", "off", "retain-on-failure"),
    "tracing": ("on", "off", "retain-on-failure"),
}


@dataclass
class Settings:
    """Effective configuration for one test run."""

    environment: str
    base_url: str
    browsers: List[str] = field(default_factory=lambda: ["chromium"])
    device: Optional[str] = None
    headless: bool = True
    slow_mo: int = 0
    viewport: Dict[str, int] = field(default_factory=lambda: {"width": 1280, "height": 720})
    locale: str = "en-US"
    timezone_id: Optional[str] = None

    # Timeouts (milliseconds)
    default_timeout: int = 30000
    navigation_timeout: int = 60000
    expect_timeout: int = 10000

    # Runner
    workers: Union[int, str] = 1
    retries: int = 0
    retry_delay: int = 0

    # Artifacts
    artifacts_dir: Path = Path("test-results")
    screenshot: str = "only-on-failure"
    video: str = "retain-on-failure"
    tracing: str = "retain-on-failure"

    # Application reachability probe
    health_check: bool = True
    health_check_path: str = "/"
    health_check_timeout: int = 30

    # Credentials for the "standard" role, when supplied via environment
    user_email: Optional[str] = None
    user_password: Optional[str] = None

    test_data_dir: Path = Path(__file__).parent.parent / "test_data"

    def url(self, path: str = "") -> str:
        """Join a path onto the base URL."""
        if not path:
            return self.base_url
        return f"{self.base_url}/{path.lstrip('/')}"

    @property
    def report_html(self) -> Path:
        return self.artifacts_dir / "report.html"

    @property
    def report_junit(self) -> Path:
        return self.artifacts_dir / "junit.xml"

    @property
    def report_json(self) -> Path:
        return self.artifacts_dir / "report.json"

    @property
    def playwright_output_dir(self) -> Path:
        return self.artifacts_dir / "playwright"

    def to_dict(self) -> Dict[str, Any]:
        """Serializable view with secrets masked, for logging."""
        data = asdict(self)
        data["artifacts_dir"] = str(self.artifacts_dir)
        data["test_data_dir"] = str(self.test_data_dir)
        if data["user_password"]:
            data["user_password"] = "***"
        return data


def _env_str(environ: Mapping[str, str], name: str, default: Optional[str]) -> Optional[str]:
    value = environ.get(name)
    if value is None or value.strip() == "":
        return default
    return value.strip()


def _as_int(value: Any, source: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"{source} must be an integer, got {value!r}")
    try:
        number = int(value)
    except (TypeError, ValueError):
        raise ConfigError(f"{source} must be an integer, got {value!r}")
    if number < minimum:
        raise ConfigError(f"{source} must be >= {minimum}, got {number}")
    return number


def _env_int(
    environ: Mapping[str, str], name: str, default: Any, source: str, minimum: int = 0
) -> int:
    """``name`` from the environment, else the YAML value found at ``source``."""
    raw = _env_str(environ, name, None)
    if raw is None:
        return _as_int(default, source, minimum)
    return _as_int(raw, name, minimum)


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = _env_str(environ, name, None)
    if raw is None:
        return default
    lowered = raw.lower()
    if lowered in ("1", "true", "yes", "on"):
        return True
    if lowered in ("0", "false", "no", "off"):
        return False
    raise ConfigError(f"{name} must be a boolean, got {raw!r}")


def _parse_workers(value: Any, source: str) -> Union[int, str]:
    if isinstance(value, str):
        if value.strip().lower() == "auto":
            return "auto"
        try:
            value = int(value)
        except ValueError:
            raise ConfigError(f"{source} must be a positive integer or 'auto', got {value!r}")
    if not isinstance(value, int) or value < 1:
        raise ConfigError(f"{source} must be a positive integer or 'auto', got {value!r}")
    return value


def _parse_browsers(value: Any, source: str) -> List[str]:
    if isinstance(value, str):
        value = [b for b in (part.strip() for part in value.split(",")) if b]
    browsers = [str(b).lower() for b in (value or [])]
    if not browsers:
        raise ConfigError(f"{source} must name at least one browser")
    unknown = [b for b in browsers if b not in SUPPORTED_BROWSERS]
    if unknown:
        raise ConfigError(
            f"{source} has unsupported browser(s) {unknown}; "
            f"choose from {list(SUPPORTED_BROWSERS)}"
        )
    # Keep order, drop duplicates
    return list(dict.fromkeys(browsers))


def _parse_viewport(value: Any) -> Dict[str, int]:
    if not isinstance(value, dict) or set(value) != {"width", "height"}:
        raise ConfigError(f"browser.viewport must be a mapping of width and height, got {value!r}")
    return {
        key: _as_int(value[key], f"browser.viewport.{key}", minimum=1)
        for key in ("width", "height")
    }


def _check_mode(kind: str, value: str) -> str:
    if value not in ARTIFACT_MODES[kind]:
        raise ConfigError(f"artifacts.{kind} must be one of {ARTIFACT_MODES[kind]}, got {value!r}")
    return value


def load_settings(
    environment: str = None,
    config_dir: str = None,
    environ: Mapping[str, str] = None,
) -> Settings:
    """
    Build settings from the YAML profile and environment variables.

    Args:
        environment: Profile name; defaults to ``E2E_ENV`` or "local"
        config_dir: Override for the config directory (tests)
        environ: Mapping used instead of ``os.environ`` (tests)

    Returns:
        Settings instance

    Raises:
        ConfigError: on missing base config or invalid values
    """
    environ = os.environ if environ is None else environ
    environment = environment or _env_str(environ, "E2E_ENV", DEFAULT_ENVIRONMENT)

    loader = ConfigLoader(config_dir=config_dir, environment=environment)
    if environment not in loader.available_environments():
        logger.warning(f"Environment profile '{environment}' not found, using base config only")
    config = loader.load("e2e")

    app = config.get("app", {})
    browser = config.get("browser", {})
    timeouts = config.get("timeouts", {})
    runner = config.get("runner", {})
    artifacts = config.get("artifacts", {})
    health = config.get("health_check", {})

    base_url = _env_str(environ, "E2E_BASE_URL", app.get("base_url"))
    if not base_url:
        raise ConfigError(f"No base_url configured for environment '{environment}'")

    raw_browsers = _env_str(environ, "E2E_BROWSERS", None)
    if raw_browsers is not None:
        browsers = _parse_browsers(raw_browsers, "E2E_BROWSERS")
    else:
        browsers = _parse_browsers(browser.get("matrix", ["chromium"]), "browser.matrix")

    raw_workers = _env_str(environ, "E2E_WORKERS", None)
    if raw_workers is not None:
        workers = _parse_workers(raw_workers, "E2E_WORKERS")
    else:
        workers = _parse_workers(runner.get("workers", 1), "runner.workers")

    artifacts_dir = Path(_env_str(environ, "E2E_ARTIFACTS_DIR", artifacts.get("dir", "test-results")))

    locale = app.get("locale", "en-US")
    if not isinstance(locale, str) or not locale.strip():
        raise ConfigError(f"app.locale must be a non-empty string, got {locale!r}")

    settings = Settings(
        environment=environment,
        base_url=base_url.rstrip("/"),
        browsers=browsers,
        device=_env_str(environ, "E2E_DEVICE", browser.get("device")),
        headless=_env_bool(environ, "E2E_HEADLESS", browser.get("headless", True)),
        slow_mo=_env_int(environ, "E2E_SLOW_MO", browser.get("slow_mo", 0), "browser.slow_mo"),
        viewport=_parse_viewport(browser.get("viewport", {"width": 1280, "height": 720})),
        locale=locale,
        timezone_id=app.get("timezone_id"),
        default_timeout=_env_int(
            environ, "E2E_TIMEOUT", timeouts.get("default", 30000), "timeouts.default", minimum=1
        ),
        navigation_timeout=_env_int(
            environ,
            "E2E_NAVIGATION_TIMEOUT",
            timeouts.get("navigation", 60000),
            "timeouts.navigation",
            minimum=1,
        ),
        expect_timeout=_env_int(
            environ, "E2E_EXPECT_TIMEOUT", timeouts.get("expect", 10000), "timeouts.expect", minimum=1
        ),
        workers=workers,
        retries=_env_int(environ, "E2E_RETRIES", runner.get("retries", 0), "runner.retries"),
        retry_delay=_env_int(
            environ, "E2E_RETRY_DELAY", runner.get("retry_delay", 0), "runner.retry_delay"
        ),
        artifacts_dir=artifacts_dir,
        screenshot=_check_mode("screenshot", artifacts.get("screenshot", "only-on-failure")),
        video=_check_mode("video", artifacts.get("video", "retain-on-failure")),
        tracing=_check_mode("tracing", artifacts.get("tracing", "retain-on-failure")),
        health_check=not _env_bool(environ, "E2E_SKIP_HEALTHCHECK", not health.get("enabled", True)),
        health_check_path=health.get("path", "/"),
        health_check_timeout=_as_int(health.get("timeout", 30), "health_check.timeout", minimum=1),
        user_email=_env_str(environ, "E2E_USER_EMAIL", None),
        user_password=_env_str(environ, "E2E_USER_PASSWORD", None),
    )

    data_dir = _env_str(environ, "E2E_TEST_DATA_DIR", None)
    if data_dir:
        settings.test_data_dir = Path(data_dir)

    logger.debug(f"Loaded settings: {settings.to_dict()}")
    return settings


@functools.lru_cache(maxsize=None)
def get_settings(environment: str = None) -> Settings:
    """Process-wide settings, resolved on first use."""
    return load_settings(environment)
