from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class UserOut(BaseModel):
    id: uuid.UUID
    email: str
    created_at: datetime
    updated_at: datetime
    is_chirpy_red: bool = False

    model_config = ConfigDict(from_attributes=True)


class UserCreateIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class UserUpdateIn(BaseModel):
    email: EmailStr | None = None
    password: str | None = Field(default=None, min_length=1, max_length=128)
