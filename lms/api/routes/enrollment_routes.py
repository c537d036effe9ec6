# enrollment_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from lms.api.dependencies import get_caller, get_enrollment_service
from lms.models.course_model import CourseOut
from lms.models.enrollment_model import (
    EnrollmentOut,
    EnrollmentRequest,
    EnrollResponse,
    MessageResponse,
    ProgressUpdateRequest,
)
from lms.services.enrollment_service import EnrollmentService
from lms.services.errors import LMSError
from lms.utils.permissions import Caller

router = APIRouter(prefix="/enrollments", tags=["enrollments"])


def _http_error(err: LMSError) -> HTTPException:
    return HTTPException(status_code=err.status_code, detail=err.message)


@router.get("", response_model=List[CourseOut])
def list_enrolled_courses(
    caller: Optional[Caller] = Depends(get_caller),
    svc: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        return svc.list_enrolled_courses(caller)
    except LMSError as err:
        raise _http_error(err) from err


@router.post("/enroll", response_model=EnrollResponse)
def enroll(
    body: EnrollmentRequest,
    caller: Optional[Caller] = Depends(get_caller),
    svc: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        outcome = svc.enroll(caller, body.courseId)
    except LMSError as err:
        raise _http_error(err) from err

    return EnrollResponse(
        message="Successfully enrolled in course",
        enrollment=EnrollmentOut(**outcome.enrollment),
        userIndexSynced=outcome.user_index_synced,
        userIndexError=outcome.user_index_error,
    )


@router.put("/progress", response_model=MessageResponse)
def update_progress(
    body: ProgressUpdateRequest,
    caller: Optional[Caller] = Depends(get_caller),
    svc: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        svc.update_progress(caller, body.courseId, body.progress)
    except LMSError as err:
        raise _http_error(err) from err
    return MessageResponse(message="Progress updated successfully")


@router.get("/progress/{course_id}", response_model=EnrollmentOut)
def get_progress(
    course_id: str,
    caller: Optional[Caller] = Depends(get_caller),
    svc: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        return svc.get_progress(caller, course_id)
    except LMSError as err:
        raise _http_error(err) from err


@router.post("/users/{user_id}/resync")
def resync_course_index(
    user_id: str,
    caller: Optional[Caller] = Depends(get_caller),
    svc: EnrollmentService = Depends(get_enrollment_service),
):
    try:
        courses = svc.resync_course_index(caller, user_id)
    except LMSError as err:
        raise _http_error(err) from err
    return {"userId": user_id, "enrolledCourses": courses}
