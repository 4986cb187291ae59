"""Static facility tables used to place synthesized events on a map."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from .errors import ConfigurationError

DEFAULT_STATE = "DEFAULT"

STATE_FACILITIES: dict[str, list[str]] = {
    "CA": ["Los Angeles Distribution Center", "San Francisco Bay Area Facility", "Oakland Sorting Facility"],
    "NY": ["Queens Distribution Center", "Brooklyn Sorting Facility", "Long Island Facility"],
    "TX": ["Dallas-Fort Worth Hub", "Houston Distribution Center", "Austin Sorting Facility"],
    "FL": ["Miami Distribution Center", "Orlando Sorting Facility", "Tampa Bay Facility"],
    "IL": ["Chicago O'Hare Hub", "Rockford Distribution Center", "Schaumburg Facility"],
    "OH": ["Cincinnati Hub", "Columbus Distribution Center", "Cleveland Sorting Facility"],
    "PA": ["Philadelphia Distribution Center", "Pittsburgh Sorting Facility", "Allentown Hub"],
    "GA": ["Atlanta Distribution Center", "Savannah Sorting Facility", "Augusta Hub"],
    "NC": ["Charlotte Hub", "Raleigh Distribution Center", "Greensboro Sorting Facility"],
    "WA": ["Seattle Distribution Center", "Spokane Sorting Facility", "Tacoma Hub"],
    DEFAULT_STATE: ["Regional Distribution Center", "Local Sorting Facility", "Area Hub"],
}

TRANSIT_HUBS: list[str] = [
    "Memphis, TN Hub",
    "Louisville, KY World Hub",
    "Indianapolis, IN Hub",
    "Cincinnati, OH Air Hub",
    "Phoenix, AZ Distribution Center",
    "Denver, CO Hub",
    "Dallas, TX Hub",
    "Atlanta, GA Hub",
    "Chicago, IL Hub",
    "Los Angeles, CA Hub",
]


@dataclass
class FacilityTables:
    """Per-state facility lists plus the national transit-hub list."""

    state_facilities: dict[str, list[str]] = field(
        default_factory=lambda: {k: list(v) for k, v in STATE_FACILITIES.items()}
    )
    transit_hubs: list[str] = field(default_factory=lambda: list(TRANSIT_HUBS))

    def for_state(self, province_code: str | None) -> list[str]:
        """Facilities for a state code, falling back to the DEFAULT entry."""
        code = (province_code or "").strip().upper()
        return self.state_facilities.get(code) or self.state_facilities[DEFAULT_STATE]


def _check_names(setting: str, value: Any) -> list[str]:
    if not isinstance(value, list) or not value or not all(
        isinstance(v, str) and v for v in value
    ):
        raise ConfigurationError(setting, "expected a non-empty list of names")
    return list(value)


def load_facility_tables(path: str | Path | None = None) -> FacilityTables:
    """
    Load facility tables, applying overrides from a JSON file if given.

    The file may hold "state_facilities" (state code -> list of names,
    including a "DEFAULT" entry) and/or "transit_hubs" (list of names).
    Each key present replaces the built-in table entirely.

    Raises:
        ConfigurationError: If the file is missing, unreadable, or malformed.
    """
    tables = FacilityTables()
    if path is None:
        return tables

    file_path = Path(path)
    try:
        with open(file_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigurationError("facilities file", f"{file_path}: {e}")

    if not isinstance(data, dict):
        raise ConfigurationError("facilities file", "expected a JSON object")

    if "state_facilities" in data:
        raw = data["state_facilities"]
        if not isinstance(raw, dict):
            raise ConfigurationError("state_facilities", "expected an object keyed by state code")
        states = {
            str(code).upper(): _check_names(f"state_facilities.{code}", names)
            for code, names in raw.items()
        }
        if DEFAULT_STATE not in states:
            raise ConfigurationError("state_facilities", f"missing {DEFAULT_STATE} entry")
        tables.state_facilities = states

    if "transit_hubs" in data:
        tables.transit_hubs = _check_names("transit_hubs", data["transit_hubs"])

    return tables
