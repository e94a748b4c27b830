# analysis/__init__.py

from .constants import HALL_OF_FAME_CATEGORIES, WALL_OF_SHAME_CATEGORIES
from .dashboard import build_dashboard
from .managers import manager_display_name
from .services import (
    HALL_OF_FAME,
    WALL_OF_SHAME,
    Board,
    board_overview,
    championship_summary,
    compute_category,
    empty_championship_summary,
    season_overview,
)

__all__ = [
    # constants
    "HALL_OF_FAME_CATEGORIES",
    "WALL_OF_SHAME_CATEGORIES",

    # managers
    "manager_display_name",

    # boards
    "Board",
    "HALL_OF_FAME",
    "WALL_OF_SHAME",
    "board_overview",
    "compute_category",

    # summaries
    "championship_summary",
    "empty_championship_summary",
    "season_overview",

    # dashboard
    "build_dashboard",
]
