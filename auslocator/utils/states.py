"""Australian state and territory codes."""

from typing import Literal

StateCode = Literal["NSW", "VIC", "QLD", "WA", "SA", "TAS", "ACT", "NT"]

STATE_NAMES = {
    "NSW": "New South Wales",
    "VIC": "Victoria",
    "QLD": "Queensland",
    "WA": "Western Australia",
    "SA": "South Australia",
    "TAS": "Tasmania",
    "ACT": "Australian Capital Territory",
    "NT": "Northern Territory",
}


def format_state_display(state: str) -> str:
    """Full state name for a code (case-insensitive); unknown codes pass through."""
    return STATE_NAMES.get(state.upper().strip(), state)


def format_suburb_name(suburb: str) -> str:
    """Title-case an upstream suburb name: 'NORTH MELBOURNE' -> 'North Melbourne'."""
    return " ".join(word[:1].upper() + word[1:] for word in suburb.lower().split(" "))
