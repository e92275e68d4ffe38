from __future__ import annotations

from typing import Literal

from pydantic import Field, field_validator

from ..models import CamelModel

Budget = Literal["budget", "moderate", "premium"]

COFFEE_TYPES = ["espresso", "cold-brew", "latte", "pour-over", "tea", "cappuccino", "americano", "mocha"]
VIBE_OPTIONS = ["study-friendly", "aesthetic", "quick-grab", "quiet", "date-spot", "lively"]
FLAVOR_OPTIONS = ["chocolatey", "fruity", "nutty", "spicy", "floral"]
MILK_OPTIONS = ["dairy", "oat", "almond", "soy", "none"]


class UserPreferences(CamelModel):
    coffee_types: list[str] = Field(default_factory=list)
    vibe: list[str] = Field(default_factory=list)
    budget: Budget | None = None
    favorite_flavor: str = ""
    milk_type: str = ""

    @field_validator("budget", mode="before")
    @classmethod
    def _blank_budget(cls, value: object) -> object:
        # Onboarding saves "" until the budget step is answered
        return value or None

    @field_validator("favorite_flavor", "milk_type", mode="before")
    @classmethod
    def _none_to_blank(cls, value: object) -> object:
        return "" if value is None else value


class DisplayNameRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=80)

    @field_validator("name")
    @classmethod
    def _strip(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter your name")
        return value
