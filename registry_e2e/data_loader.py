"""
Test Data Loader

Loads credentials, search scenarios and expected profiles from data files
(YAML or JSON) under ``test_data/``.

Each file may be flat, or split per environment:

    default:
      standard: {email: ..., password: ...}
    staging:
      standard: {email: ..., password: ...}

Environment sections are merged over ``default``.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .exceptions import TestDataError
from .models import ProfileExpectation, SearchScenario, TestData, UserCredentials

logger = logging.getLogger(__name__)

# Default test data directory
TEST_DATA_DIR = Path(__file__).parent.parent / "test_data"

DATA_FILES = {
    "users": "users",
    "searches": "searches",
    "profiles": "profiles",
}


def read_data_file(path: Path) -> Any:
    """
    Read a JSON or YAML file.

    Raises:
        TestDataError: if the file is missing or unparseable
    """
    if not path.exists():
        raise TestDataError(f"Test data file not found: {path}")

    with open(path) as f:
        try:
            if path.suffix in (".yaml", ".yml"):
                return yaml.safe_load(f)
            return json.load(f)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise TestDataError(f"Error parsing {path}: {e}") from e


def find_data_file(directory: Path, stem: str) -> Optional[Path]:
    """Locate ``stem`` with a supported extension, YAML preferred."""
    for suffix in (".yaml", ".yml", ".json"):
        candidate = directory / f"{stem}{suffix}"
        if candidate.exists():
            return candidate
    return None


def select_environment(data: Any, environment: str) -> Any:
    """
    Resolve a per-environment section.

    Files without a ``default`` key are returned as-is. Otherwise the
    environment section is merged over ``default`` (mappings) or replaces
    it (lists).
    """
    if not isinstance(data, dict) or "default" not in data:
        return data

    base = data.get("default")
    override = data.get(environment)
    if override is None:
        return base
    if isinstance(base, dict) and isinstance(override, dict):
        merged = dict(base)
        merged.update(override)
        return merged
    return override


def _load_section(directory: Path, stem: str, environment: str, required: bool = True) -> Any:
    path = find_data_file(directory, stem)
    if path is None:
        if required:
            raise TestDataError(f"Test data file not found: {directory / stem}.yaml")
        logger.warning(f"Optional test data '{stem}' not found in {directory}")
        return None
    logger.debug(f"Loading {stem} from {path}")
    return select_environment(read_data_file(path), environment)


def parse_users(data: Any) -> Dict[str, UserCredentials]:
    if not isinstance(data, dict):
        raise TestDataError("users data must be a mapping of role -> credentials")
    return {role: UserCredentials.from_dict(role, entry or {}) for role, entry in data.items()}


def parse_profiles(data: Any) -> Dict[str, ProfileExpectation]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise TestDataError("profiles data must be a mapping of role -> profile")
    return {role: ProfileExpectation.from_dict(role, entry or {}) for role, entry in data.items()}


def parse_searches(data: Any) -> List[SearchScenario]:
    if data is None:
        return []
    if isinstance(data, dict):
        data = data.get("scenarios", [])
    if not isinstance(data, list):
        raise TestDataError("searches data must be a list of scenarios")

    scenarios = [SearchScenario.from_dict(entry) for entry in data]
    seen = set()
    for scenario in scenarios:
        if scenario.id in seen:
            raise TestDataError(f"Duplicate search scenario id '{scenario.id}'")
        seen.add(scenario.id)
    return scenarios


def load_test_data(
    environment: str,
    directory: str = None,
    user_email: str = None,
    user_password: str = None,
) -> TestData:
    """
    Load every test data file for one environment.

    Args:
        environment: Environment name used to pick per-environment sections
        directory: Path to test data directory
        user_email: Overrides the ``standard`` role email when given
        user_password: Overrides the ``standard`` role password when given

    Returns:
        TestData bundle
    """
    dir_path = Path(directory) if directory else TEST_DATA_DIR

    users = parse_users(_load_section(dir_path, DATA_FILES["users"], environment))
    if user_email or user_password:
        current = users.get("standard")
        if current is None and not (user_email and user_password):
            raise TestDataError(
                "E2E_USER_EMAIL and E2E_USER_PASSWORD must both be set "
                "when users data has no 'standard' role"
            )
        users["standard"] = UserCredentials(
            role="standard",
            email=user_email or current.email,
            password=user_password or current.password,
        )
        logger.info(f"Using credentials from environment for {users['standard'].email}")

    data = TestData(
        environment=environment,
        users=users,
        searches=parse_searches(_load_section(dir_path, DATA_FILES["searches"], environment)),
        profiles=parse_profiles(
            _load_section(dir_path, DATA_FILES["profiles"], environment, required=False)
        ),
    )

    logger.info(
        f"Loaded test data for '{environment}': {len(data.users)} users, "
        f"{len(data.searches)} search scenarios, {len(data.profiles)} profiles"
    )
    return data
