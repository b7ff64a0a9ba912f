from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from myboard.db.models.members import Role


class MemberBase(BaseModel):
    username: str
    name: str
    nickname: str
    age: int
    role: Role = Role.USER


class MemberCreate(MemberBase):
    password: str  # raw; hashed before it reaches the entity


class MemberUpdate(BaseModel):
    name: Optional[str] = None
    nickname: Optional[str] = None
    age: Optional[int] = None
    password: Optional[str] = None


class Member(MemberBase):
    id: int
    created_date: datetime
    last_modified_date: datetime
    model_config = ConfigDict(from_attributes=True)
