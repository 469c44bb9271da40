from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class User(BaseModel):
    id: str = Field(..., alias="_id")
    email: str
    name: str

    role: str = "student"  # student | college | recruiter | admin

    created_at: datetime
    last_login_at: Optional[datetime] = None

    is_active: bool = True

    class Config:
        populate_by_name = True

    @property
    def is_student(self) -> bool:
        return self.role == "student"


class UserCreate(BaseModel):
    email: str
    name: str
    role: str = "student"
