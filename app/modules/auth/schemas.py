from pydantic import BaseModel, EmailStr, Field
from typing import Any, Optional


class CurrentUser(BaseModel):
    id: str
    email: Optional[str] = None

    @classmethod
    def from_session(cls, session: Any) -> Optional["CurrentUser"]:
        """Read the user carried by a Supabase session; None when there is no session."""
        user = getattr(session, "user", None) if session is not None else None
        if user is None:
            return None
        return cls(id=user.id, email=user.email)

    @property
    def greeting_name(self) -> str:
        return (self.email or "").split("@")[0]


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    user_id: str
    email: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)
    display_name: str = Field(min_length=1)
    phone: str = Field(min_length=1)


class RegisterResponse(BaseModel):
    user_id: str
    email: str
    message: str
