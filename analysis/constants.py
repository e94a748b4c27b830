from typing import Dict, List

# Display order matters: the frontend renders categories in this order.
WALL_OF_SHAME_CATEGORIES: List[Dict[str, str]] = [
    # All-time disappointments
    {
        "id": "close-but-no-cigar",
        "name": "Close but No Cigar",
        "description": "Most 2nd/3rd place finishes with no championships",
        "type": "all-time",
    },
    {
        "id": "eternal-last",
        "name": "Eternal Last",
        "description": "Worst average season finish",
        "type": "all-time",
    },
    {
        "id": "playoff-choker",
        "name": "Playoff Choker",
        "description": "Most playoff losses without a championship",
        "type": "all-time",
    },
    # Single-season disasters
    {
        "id": "rock-bottom",
        "name": "Rock Bottom",
        "description": "Fewest wins in a completed season",
        "type": "single-season",
    },
    {
        "id": "worst-record",
        "name": "Worst Record",
        "description": "Lowest single-season win percentage",
        "type": "single-season",
    },
    {
        "id": "the-collapse",
        "name": "Mr. Collapse",
        "description": "Longest losing streak",
        "type": "single-season",
    },
    {
        "id": "brick-hands",
        "name": "Brick Hands",
        "description": "Most points against in one season",
        "type": "single-season",
    },
    {
        "id": "the-heartbreak",
        "name": "The Heartbreak",
        "description": "Most losses by less than 5 points",
        "type": "all-time",
    },
    {
        "id": "glass-cannon",
        "name": "Glass Cannon",
        "description": "High points + bad rank (single season)",
        "type": "single-season",
    },
    {
        "id": "the-snooze",
        "name": "The Snooze",
        "description": "Lowest weekly score ever",
        "type": "single-season",
    },
]

HALL_OF_FAME_CATEGORIES: List[Dict[str, str]] = [
    # All-time achievements
    {
        "id": "dynasty-king",
        "name": "Dynasty King",
        "description": "Most championships",
        "type": "all-time",
    },
    {
        "id": "point-titan",
        "name": "Point Titan",
        "description": "Most total fantasy points all-time",
        "type": "all-time",
    },
    {
        "id": "the-consistent",
        "name": "Mr. Consistent",
        "description": "Best win percentage",
        "type": "all-time",
    },
    {
        "id": "playoff-warrior",
        "name": "Playoff Warrior",
        "description": "Most playoff wins all-time",
        "type": "all-time",
    },
    # Single-season records
    {
        "id": "season-dominator",
        "name": "Season Dominator",
        "description": "Best single-season record + points",
        "type": "single-season",
    },
    {
        "id": "weekly-explosion",
        "name": "Weekly Explosion",
        "description": "Highest single-week score ever",
        "type": "single-season",
    },
    {
        "id": "unstoppable",
        "name": "Unstoppable",
        "description": "Longest win streak",
        "type": "single-season",
    },
    {
        "id": "close-game-specialist",
        "name": "Close Game Specialist",
        "description": "Best win percentage in close games (<10 point margin)",
        "type": "all-time",
    },
]

# Ranked lists never return more than this many entries
MAX_ENTRIES = 10

# Entries per category on the "all categories" overview
OVERVIEW_ENTRIES = 3

# A loss by less than this many points is a heartbreak
CLOSE_LOSS_MARGIN = 5.0

# Close-game specialist: games decided by less than this, minimum games played
CLOSE_GAME_MARGIN = 10.0
CLOSE_GAME_MIN_GAMES = 3

# Final ranks that count as a playoff appearance
PLAYOFF_TEAMS = 6

# Dashboard "current form" window, in weeks
RECENT_WEEKS = 5

# A rivalry needs this many meetings before it can be the most lopsided
RIVALRY_MIN_GAMES = 5
