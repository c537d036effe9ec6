from typing import Optional

from pydantic import BaseModel, Field


class EnrollmentRequest(BaseModel):
    courseId: str = Field(..., min_length=1)


class ProgressUpdateRequest(BaseModel):
    courseId: str = Field(..., min_length=1)
    progress: int = Field(..., ge=0, le=100)


class EnrollmentOut(BaseModel):
    id: str
    userId: str
    courseId: str
    enrolledAt: str
    progress: int
    updatedAt: str


class MessageResponse(BaseModel):
    message: str


class EnrollResponse(MessageResponse):
    enrollment: EnrollmentOut
    # False si la inscripción quedó creada pero el índice del usuario no se pudo actualizar
    userIndexSynced: bool = True
    userIndexError: Optional[str] = None
