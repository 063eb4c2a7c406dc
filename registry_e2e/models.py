"""
Test Data Models

Data structures for the read-only inputs of the suite: credentials,
vehicle search criteria, expected profile fields and search scenarios.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional

from .exceptions import TestDataError

_PRICE_JUNK = re.compile(r"[^\d.,-]")


def parse_price(text: Optional[str]) -> Optional[float]:
    """
    Parse a displayed price into a number.

    Handles currency symbols, spaces (including non-breaking) and either
    comma or dot as the thousands separator. Returns None when the text
    holds no number.
    """
    if text is None:
        return None
    cleaned = _PRICE_JUNK.sub("", str(text))
    if not cleaned or not re.search(r"\d", cleaned):
        return None

    # "12.500,00" -> decimal comma; "12,500.00" -> decimal dot
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        head, _, tail = cleaned.rpartition(",")
        # "12,500" is a thousands group, "12,5" a decimal
        if len(tail) == 3:
            cleaned = cleaned.replace(",", "")
        else:
            cleaned = head.replace(",", "") + "." + tail
    elif cleaned.count(".") > 1:
        cleaned = cleaned.replace(".", "")
    elif "." in cleaned and len(cleaned.rpartition(".")[2]) == 3:
        # "25.990" is a thousands group
        cleaned = cleaned.replace(".", "")

    try:
        return float(cleaned)
    except ValueError:
        return None


def _same(expected: Optional[str], actual: Optional[str]) -> bool:
    return (expected or "").strip().casefold() == (actual or "").strip().casefold()


def _optional_text(data: Dict, key: str) -> Optional[str]:
    # YAML turns model names like 500 into ints
    value = data.get(key)
    if value is None or value == "":
        return None
    return str(value)


def _optional_number(data: Dict, key: str) -> Optional[float]:
    value = data.get(key)
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        raise TestDataError(f"'{key}' must be a number, got {value!r}")


@dataclass(frozen=True)
class UserCredentials:
    """Login credentials for one role in one environment."""

    role: str
    email: str
    password: str

    def masked(self) -> "UserCredentials":
        """Copy safe for logging."""
        return replace(self, password="***")

    @classmethod
    def from_dict(cls, role: str, data: Dict) -> "UserCredentials":
        """Create from dictionary (loaded from data file)."""
        try:
            return cls(role=role, email=data["email"], password=str(data["password"]))
        except KeyError as e:
            raise TestDataError(f"User '{role}' is missing field {e.args[0]!r}") from e


@dataclass(frozen=True)
class VehicleRecord:
    """A registered vehicle as displayed in search results or detail view."""

    plate: str = ""
    brand: str = ""
    model: str = ""
    fuel_type: str = ""
    transmission: str = ""
    price: Optional[float] = None
    year: Optional[int] = None

    @classmethod
    def from_display(cls, fields: Dict[str, Optional[str]]) -> "VehicleRecord":
        """Build from raw text scraped off the page."""
        year_text = (fields.get("year") or "").strip()
        return cls(
            plate=(fields.get("plate") or "").strip(),
            brand=(fields.get("brand") or "").strip(),
            model=(fields.get("model") or "").strip(),
            fuel_type=(fields.get("fuel_type") or "").strip(),
            transmission=(fields.get("transmission") or "").strip(),
            price=parse_price(fields.get("price")),
            year=int(year_text) if year_text.isdigit() else None,
        )


@dataclass(frozen=True)
class VehicleSearchCriteria:
    """
    Filters applied on the vehicle registry search form.

    Every field is optional; unset fields leave the matching control alone.
    """

    brand: Optional[str] = None
    model: Optional[str] = None
    fuel_type: Optional[str] = None
    transmission: Optional[str] = None
    price_min: Optional[float] = None
    price_max: Optional[float] = None

    def __post_init__(self):
        if self.price_min is not None and self.price_max is not None:
            if self.price_min > self.price_max:
                raise ValueError(
                    f"price_min ({self.price_min}) is greater than price_max ({self.price_max})"
                )
        for bound in ("price_min", "price_max"):
            value = getattr(self, bound)
            if value is not None and value < 0:
                raise ValueError(f"{bound} must not be negative, got {value}")

    def is_empty(self) -> bool:
        return all(value is None for value in self.as_dict().values())

    def as_dict(self) -> Dict[str, Any]:
        return {
            "brand": self.brand,
            "model": self.model,
            "fuel_type": self.fuel_type,
            "transmission": self.transmission,
            "price_min": self.price_min,
            "price_max": self.price_max,
        }

    def matches(self, vehicle: VehicleRecord) -> bool:
        """Check a result row against every criterion that is set."""
        for name in ("brand", "model", "fuel_type", "transmission"):
            expected = getattr(self, name)
            if expected is not None and not _same(expected, getattr(vehicle, name)):
                return False

        if self.price_min is not None or self.price_max is not None:
            if vehicle.price is None:
                return False
            if self.price_min is not None and vehicle.price < self.price_min:
                return False
            if self.price_max is not None and vehicle.price > self.price_max:
                return False

        return True

    def describe(self) -> str:
        """Short label for test ids and log lines."""
        parts = []
        for name, value in self.as_dict().items():
            if value is None:
                continue
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            parts.append(f"{name}={value}")
        return ",".join(parts) or "no-filters"

    @classmethod
    def from_dict(cls, data: Dict) -> "VehicleSearchCriteria":
        """Create from dictionary (loaded from data file)."""
        data = data or {}
        unknown = set(data) - {"brand", "model", "fuel_type", "transmission", "price_min", "price_max"}
        if unknown:
            raise TestDataError(f"Unknown search criteria field(s): {sorted(unknown)}")
        try:
            return cls(
                brand=_optional_text(data, "brand"),
                model=_optional_text(data, "model"),
                fuel_type=_optional_text(data, "fuel_type"),
                transmission=_optional_text(data, "transmission"),
                price_min=_optional_number(data, "price_min"),
                price_max=_optional_number(data, "price_max"),
            )
        except ValueError as e:
            raise TestDataError(str(e)) from e


@dataclass(frozen=True)
class SearchScenario:
    """A named registry search together with its expected outcome."""

    id: str
    criteria: VehicleSearchCriteria
    description: Optional[str] = None
    expect_results: bool = True
    min_results: int = 1
    expected_message: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.expect_results and not self.expected_message:
            raise ValueError(f"Scenario '{self.id}' expects no results but has no expected_message")
        if self.min_results < 0:
            raise ValueError(f"Scenario '{self.id}' has negative min_results")

    @classmethod
    def from_dict(cls, data: Dict) -> "SearchScenario":
        """Create from dictionary (loaded from data file)."""
        if "id" not in data:
            raise TestDataError(f"Search scenario without 'id': {data!r}")
        expect_results = data.get("expect_results", True)
        try:
            return cls(
                id=data["id"],
                criteria=VehicleSearchCriteria.from_dict(data.get("criteria", {})),
                description=data.get("description"),
                expect_results=expect_results,
                min_results=data.get("min_results", 1 if expect_results else 0),
                expected_message=data.get("expected_message"),
                tags=data.get("tags", []),
            )
        except ValueError as e:
            raise TestDataError(str(e)) from e


@dataclass(frozen=True)
class ProfileExpectation:
    """Profile fields the application should display for a role."""

    role: str
    full_name: str
    email: str
    phone: Optional[str] = None
    address: Optional[str] = None
    national_id: Optional[str] = None

    def fields(self) -> Dict[str, str]:
        """Fields that carry an expectation."""
        return {
            name: value
            for name, value in (
                ("full_name", self.full_name),
                ("email", self.email),
                ("phone", self.phone),
                ("address", self.address),
                ("national_id", self.national_id),
            )
            if value is not None
        }

    def mismatches(self, displayed: Dict[str, Optional[str]]) -> Dict[str, tuple]:
        """Return ``{field: (expected, actual)}`` for every differing field."""
        diff = {}
        for name, expected in self.fields().items():
            actual = displayed.get(name)
            if (actual or "").strip() != expected.strip():
                diff[name] = (expected, actual)
        return diff

    @classmethod
    def from_dict(cls, role: str, data: Dict) -> "ProfileExpectation":
        """Create from dictionary (loaded from data file)."""
        try:
            return cls(
                role=role,
                full_name=data["full_name"],
                email=data["email"],
                phone=_optional_text(data, "phone"),
                address=_optional_text(data, "address"),
                national_id=_optional_text(data, "national_id"),
            )
        except KeyError as e:
            raise TestDataError(f"Profile '{role}' is missing field {e.args[0]!r}") from e


@dataclass
class TestData:
    """All static inputs for one environment."""

    __test__ = False

    environment: str
    users: Dict[str, UserCredentials] = field(default_factory=dict)
    searches: List[SearchScenario] = field(default_factory=list)
    profiles: Dict[str, ProfileExpectation] = field(default_factory=dict)

    def user(self, role: str = "standard") -> UserCredentials:
        try:
            return self.users[role]
        except KeyError:
            raise KeyError(f"No credentials for role '{role}' in environment '{self.environment}'")

    def profile(self, role: str = "standard") -> ProfileExpectation:
        try:
            return self.profiles[role]
        except KeyError:
            raise KeyError(f"No profile expectation for role '{role}' in environment '{self.environment}'")

    def search(self, scenario_id: str) -> SearchScenario:
        for scenario in self.searches:
            if scenario.id == scenario_id:
                return scenario
        raise KeyError(f"No search scenario '{scenario_id}'")

    def positive_searches(self) -> List[SearchScenario]:
        return [s for s in self.searches if s.expect_results]

    def negative_searches(self) -> List[SearchScenario]:
        return [s for s in self.searches if not s.expect_results]
