from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ..models import CamelModel


class FavoriteCafe(CamelModel):
    id: str
    user_id: str
    cafe_id: str
    cafe_name: str
    cafe_address: str
    added_at: datetime


class FavoriteRequest(CamelModel):
    cafe_id: str = Field(..., min_length=1)
    cafe_name: str = Field(..., min_length=1)
    cafe_address: str | None = None


class FavoriteStatus(CamelModel):
    cafe_id: str
    is_favorite: bool
