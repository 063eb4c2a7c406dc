"""
Pytest fixtures shared by unit and e2e tests
"""
import importlib.util
import os
import sys
import textwrap
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Browser tests need playwright; leave them out of collection without it
collect_ignore_glob = []
if importlib.util.find_spec("playwright") is None:
    collect_ignore_glob.append("e2e/*")


BASE_CONFIG = """
app:
  base_url: http://registry.test
  locale: en-US
browser:
  matrix: [chromium]
  headless: true
  viewport: {width: 1024, height: 768}
timeouts:
  default: 15000
  navigation: 20000
  expect: 5000
runner:
  workers: 1
  retries: 0
artifacts:
  dir: out
health_check:
  enabled: true
  timeout: 5
"""

STAGING_CONFIG = """
e2e:
  app:
    base_url: https://staging.registry.test/
  browser:
    matrix: [chromium, firefox]
  runner:
    workers: 4
    retries: 2
    retry_delay: 1
"""

USERS = """
default:
  standard:
    email: citizen@registry.test
    password: secret-1
  locked:
    email: locked@registry.test
    password: secret-2
staging:
  standard:
    email: citizen@staging.registry.test
    password: secret-3
"""

PROFILES = """
default:
  standard:
    full_name: Jordan Example
    email: citizen@registry.test
    phone: "+1 555 010 0100"
"""

SEARCHES = """
scenarios:
  - id: toyota
    tags: [smoke]
    criteria:
      brand: Toyota
  - id: fiat-500
    criteria:
      brand: Fiat
      model: 500
      price_max: 20000
    min_results: 2
  - id: nothing
    criteria:
      brand: Toyota
      model: Nope
    expect_results: false
    expected_message: No vehicles found
"""


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(textwrap.dedent(content).lstrip())
    return path


@pytest.fixture
def config_dir(tmp_path: Path) -> Path:
    """Config directory with a base file and a staging profile."""
    root = tmp_path / "config"
    _write(root / "base" / "e2e.yaml", BASE_CONFIG)
    _write(root / "environments" / "staging.yaml", STAGING_CONFIG)
    return root


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Test data directory with users, profiles and searches."""
    root = tmp_path / "test_data"
    _write(root / "users.yaml", USERS)
    _write(root / "profiles.yaml", PROFILES)
    _write(root / "searches.yaml", SEARCHES)
    return root


@pytest.fixture
def write_file():
    """Write a file, creating parent directories."""
    return _write
