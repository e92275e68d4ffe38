from __future__ import annotations

from pydantic import Field

from ..models import CamelModel


class EmailPasswordRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ProviderSignInRequest(CamelModel):
    id_token: str = Field(..., min_length=1)
