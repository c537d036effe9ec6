from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from lms.utils.permissions import Role


class UserIn(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    password: str = Field(..., min_length=6)
    role: Role = Role.STUDENT

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    email: str
    role: Role
    enrolledCourses: List[str] = Field(default_factory=list)
    createdAt: Optional[str] = None


class LoginOut(BaseModel):
    token: str
    type: str = "Bearer"
    id: str
    name: str
    email: str
    role: Role
    expires_in: int
