"""Filter predicates shared by the SQL search and the static fallback.

A `LocationFilter` picks exactly one branch from the supplied fields and can
render it either as SQLAlchemy conditions or as an in-memory predicate, so
database results and fallback results are filtered by the same rules.
"""

from dataclasses import dataclass
from typing import List, Optional

from models.programs import ProgramDetails, ProgramLocation

VIRTUAL_MODES = ["virtual-live", "virtual-self-paced"]
VIRTUAL_KEYWORDS = ("virtual", "remote", "online")
IN_PERSON_KEYWORDS = ("in-person", "in person")

# Branch names, highest priority first.
BRANCH_ZIP_STATE_CITY = "zip_state_city"
BRANCH_STATE_CITY = "state_city"
BRANCH_STATE = "state"
BRANCH_CITY = "city"
BRANCH_ZIP = "zip"
BRANCH_ALL = "all"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


@dataclass(frozen=True)
class LocationFilter:
    """Location criteria for a program search.

    Empty strings are treated as missing and the state is upper-cased before
    the exact match. Only the fields that belong to the
    selected branch take part in filtering.
    """

    zip_code: Optional[str] = None
    state: Optional[str] = None
    city: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "zip_code", _blank_to_none(self.zip_code))
        state = _blank_to_none(self.state)
        object.__setattr__(self, "state", state.upper() if state else None)
        object.__setattr__(self, "city", _blank_to_none(self.city))

    @property
    def is_empty(self) -> bool:
        return not (self.zip_code or self.state or self.city)

    @property
    def branch(self) -> str:
        """Return the name of the single branch these criteria select.

        Priority: zip+state+city > state+city > state > city > zip > all.
        """
        if self.state and self.city and self.zip_code:
            return BRANCH_ZIP_STATE_CITY
        if self.state and self.city:
            return BRANCH_STATE_CITY
        if self.state:
            return BRANCH_STATE
        if self.city:
            return BRANCH_CITY
        if self.zip_code:
            return BRANCH_ZIP
        return BRANCH_ALL

    def _uses(self) -> tuple[bool, bool, bool]:
        branch = self.branch
        use_state = branch in (BRANCH_ZIP_STATE_CITY, BRANCH_STATE_CITY, BRANCH_STATE)
        use_city = branch in (BRANCH_ZIP_STATE_CITY, BRANCH_STATE_CITY, BRANCH_CITY)
        use_zip = branch in (BRANCH_ZIP_STATE_CITY, BRANCH_ZIP)
        return use_state, use_city, use_zip

    def sql_conditions(self) -> list:
        """Return SQLAlchemy WHERE conditions for the selected branch."""
        use_state, use_city, use_zip = self._uses()
        conditions = []
        if use_state:
            conditions.append(ProgramLocation.state == self.state)
        if use_city:
            conditions.append(ProgramLocation.city.ilike(f"%{self.city}%"))
        if use_zip:
            conditions.append(ProgramLocation.zip_code == self.zip_code)
        return conditions

    def matches(self, program: dict) -> bool:
        """Apply the selected branch to an in-memory program row."""
        use_state, use_city, use_zip = self._uses()
        if use_state and (program.get("state") or "") != self.state:
            return False
        if use_city and self.city.lower() not in (program.get("city") or "").lower():
            return False
        if use_zip and program.get("zip_code") != self.zip_code:
            return False
        return True


def normalize_delivery_mode(delivery_mode: str) -> List[str]:
    """Map free text to the stored delivery mode values it stands for.

    "virtual", "remote" and "online" expand to both virtual modes. Input that
    matches no keyword is returned as its lower-cased literal.
    """
    mode = delivery_mode.lower().strip()
    if mode in VIRTUAL_MODES:
        return [mode]
    if mode in VIRTUAL_KEYWORDS:
        return list(VIRTUAL_MODES)
    if mode in IN_PERSON_KEYWORDS:
        return ["in-person"]
    if mode == "hybrid":
        return ["hybrid"]
    return [mode]


def delivery_mode_condition(delivery_mode: str):
    """Return the `delivery_mode = ANY(...)` condition for `delivery_mode`."""
    return ProgramDetails.delivery_mode.in_(normalize_delivery_mode(delivery_mode))


def matches_delivery_mode(program: dict, delivery_mode: str) -> bool:
    return (program.get("delivery_mode") or "").lower() in normalize_delivery_mode(
        delivery_mode
    )


def matches_name(program: dict, name: str) -> bool:
    return name.lower() in (program.get("organization_name") or "").lower()
