from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

_U32_MAX = 2**32 - 1
_U64_MAX = 2**64 - 1


class _Record(BaseModel):
    # Records are replaced whole under the guard, never edited in place.
    model_config = ConfigDict(frozen=True)


class Task(_Record):
    id: int = Field(ge=0, le=_U64_MAX)
    name: str
    completed: bool


class User(_Record):
    id: int = Field(ge=0, le=_U64_MAX)
    username: str
    # Stored and compared as plain text.
    password: str


class LoginRequest(BaseModel):
    username: str
    password: str


class FitnessProgress(_Record):
    id: int = Field(ge=0, le=_U64_MAX)
    user_id: int = Field(ge=0, le=_U64_MAX)
    date: str
    timezone: str
    steps: int = Field(ge=0, le=_U32_MAX)
    calories_burned: int = Field(ge=0, le=_U32_MAX)


class CurrencyPair(_Record):
    symbol: str
    # JSON has no inf/nan; such a price would not survive a snapshot round trip.
    price: float = Field(allow_inf_nan=False)


class Snapshot(BaseModel):
    """On-disk layout: one JSON object per entity, keyed by the record key."""

    tasks: dict[str, Task] = Field(default_factory=dict)
    users: dict[str, User] = Field(default_factory=dict)
    progress: dict[str, FitnessProgress] = Field(default_factory=dict)
    forex_pairs: dict[str, CurrencyPair] = Field(default_factory=dict)
