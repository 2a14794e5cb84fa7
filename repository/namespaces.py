# repository/namespaces.py
from typing import Final

ROOT: Final[str] = "nomnomchow"

MEALS: Final[str] = f"{ROOT}:meals"
MEAL_IDS: Final[str] = f"{MEALS}:ids"  # sorted set, score == meal id
MEAL_SEQ: Final[str] = f"{MEALS}:seq"
MEAL_STATS: Final[str] = f"{ROOT}:stats"
