# analysis/managers.py

"""
Manager naming for the stats pages.

Yahoo gives us each team's manager nickname, which is not always what the
league calls that person. Every aggregator labels entries through
`manager_display_name()` so a manager reads the same across seasons and
categories (and so tie-breaks sort on the name people actually see).
"""

from typing import Dict, Optional

UNKNOWN_MANAGER = "Unknown"

# Yahoo nickname (lowercased) -> preferred display name
DISPLAY_NAME_MAP: Dict[str, str] = {
    "h0geveen": "Hogy",
    "bryan inglis": "Inglis",
    "deeze nuts": "Dinesh",
}


def _normalize(name: str) -> str:
    return name.strip().lower()


def manager_display_name(nickname: Optional[str]) -> str:
    """
    Preferred display name for a Yahoo manager nickname.

    Matching is case/whitespace-insensitive; nicknames with no mapping are
    returned as-is (trimmed). Missing nicknames become "Unknown".
    """
    if nickname is None or not isinstance(nickname, str) or not nickname.strip():
        return UNKNOWN_MANAGER
    return DISPLAY_NAME_MAP.get(_normalize(nickname), nickname.strip())
