"""Auth Pydantic schemas for request / response validation."""

import uuid

from pydantic import BaseModel, Field

from svs.users.schemas import UserOut


# ── Requests ────────────────────────────────────────────────────────

class PinLoginRequest(BaseModel):
    user_id: uuid.UUID
    pin: str = Field(..., min_length=1, max_length=32)


# ── Responses ───────────────────────────────────────────────────────

class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserOut
