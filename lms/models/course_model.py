from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Level(str, Enum):
    BEGINNER = "Beginner"
    INTERMEDIATE = "Intermediate"
    ADVANCED = "Advanced"


class CourseIn(BaseModel):
    title: str = Field(..., min_length=1)
    description: str = ""
    instructor: str = ""
    thumbnail: Optional[str] = None
    duration: Optional[str] = None  # texto libre, ej. "6 weeks"
    level: Level = Level.BEGINNER
    price: float = Field(0.0, ge=0)


class CourseUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    instructor: Optional[str] = None
    thumbnail: Optional[str] = None
    duration: Optional[str] = None
    level: Optional[Level] = None
    price: Optional[float] = Field(None, ge=0)


class CourseOut(CourseIn):
    id: str
    createdAt: Optional[str] = None
    updatedAt: Optional[str] = None
