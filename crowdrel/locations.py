"""
Neighborhood names (display lookup)
===================================

Read-only id -> name table used by the rendering side (CLI, DOCX report).
The metrics engine never needs it; callers inject a `LocationNames` into
whatever renders profiles.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

LOCATION_NAMES: Mapping[str, str] = MappingProxyType({
    "1": "Palace Hills",
    "2": "Northwest",
    "3": "Old Town",
    "4": "Safe Town",
    "5": "Southwest",
    "6": "Downtown",
    "7": "Wilson Forest",
    "8": "Scenic Vista",
    "9": "Broadview",
    "10": "Chapparal",
    "11": "Terrapin Springs",
    "12": "Pepper Mill",
    "13": "Cheddarford",
    "14": "Easton",
    "15": "Weston",
    "16": "Southton",
    "17": "Oak Willow",
    "18": "East Parton",
    "19": "West Parton",
})


@dataclass(frozen=True)
class LocationNames:
    names: Mapping[str, str] = field(default_factory=lambda: LOCATION_NAMES)

    def __call__(self, location) -> str:
        key = str(location).strip()
        return self.names.get(key) or f"Location {key}"

    def known_ids(self):
        """Ids in table order (used to declare every neighborhood)."""
        return list(self.names.keys())
