# chirpy/schemas/auth.py
from pydantic import BaseModel, EmailStr, Field

from chirpy.schemas.user import UserOut


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)


class LoginOut(UserOut):
    token: str
    refresh_token: str


class TokenOut(BaseModel):
    token: str
