from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProfileCreate(BaseModel):
    id: str
    display_name: str
    email: str
    phone: Optional[str] = None


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None


class ProfileResponse(BaseModel):
    id: str
    display_name: str
    email: str
    phone: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
