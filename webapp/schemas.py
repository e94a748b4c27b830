# webapp/schemas.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from webapp.errors import ValidationError

T = TypeVar("T", bound=BaseModel)


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


# --- Sync trigger (query string) ---
class SyncQuery(_CamelModel):
    mode: Literal["full", "test", "single"] = "full"
    league_key: Optional[str] = Field(default=None, alias="leagueKey")
    season: Optional[str] = None
    seasons: Optional[List[str]] = None
    force_refresh: bool = Field(default=False, alias="forceRefresh")

    @field_validator("seasons", mode="before")
    @classmethod
    def _split_seasons(cls, v: Any) -> Any:
        # "2024,2022" on the query string
        if isinstance(v, str):
            return [s.strip() for s in v.split(",") if s.strip()] or None
        return v

    @field_validator("league_key", "season", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v


# --- Stats boards ---
class StatsQuery(_CamelModel):
    category: Optional[str] = None
    season: Optional[str] = None

    @field_validator("category", "season", mode="before")
    @classmethod
    def _blank_to_none(cls, v: Any) -> Any:
        if isinstance(v, str) and not v.strip():
            return None
        return v.strip() if isinstance(v, str) else v


class DraftLoadQuery(_CamelModel):
    session_id: Optional[str] = Field(default=None, alias="sessionId")
    year: Optional[str] = None


# --- Draft ---
class DraftPickIn(_CamelModel):
    pick: int
    round: int
    team_index: int = Field(alias="teamIndex")
    team_name: Optional[str] = Field(default=None, alias="teamName")
    player_name: Optional[str] = Field(default=None, alias="playerName")
    player_rank: Optional[int] = Field(default=None, alias="playerRank")
    player_team: Optional[str] = Field(default=None, alias="playerTeam")
    player_position: Optional[str] = Field(default=None, alias="playerPosition")
    average_pick: Optional[float] = Field(default=None, alias="averagePick")
    picked_at: Optional[datetime] = Field(default=None, alias="pickedAt")


class DraftSaveRequest(_CamelModel):
    picks: List[DraftPickIn]
    selected_players: List[str] = Field(default_factory=list, alias="selectedPlayers")
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class DraftResetRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)


class DraftExportRequest(_CamelModel):
    session_id: str = Field(alias="sessionId", min_length=1)
    format: Literal["json", "csv"] = "json"


def parse_model(model: Type[T], data: Optional[Dict[str, Any]], message: str = "Invalid request data") -> T:
    """Validate `data` against `model`; ValidationError (400) with pydantic's issues otherwise."""
    try:
        return model.model_validate(data or {})
    except PydanticValidationError as e:
        details = [
            {"loc": [str(p) for p in err["loc"]], "msg": err["msg"], "type": err["type"]}
            for err in e.errors()
        ]
        raise ValidationError(message, details=details) from e
