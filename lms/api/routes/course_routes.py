# course_routes.py
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from lms.api.dependencies import get_course_service, require_action
from lms.models.course_model import CourseIn, CourseOut, CourseUpdate
from lms.models.enrollment_model import MessageResponse
from lms.services.course_service import CourseService
from lms.utils.permissions import Action

router = APIRouter(prefix="/courses", tags=["courses"])

admin_only = require_action(Action.MANAGE_COURSES)


@router.get("", response_model=List[CourseOut])
def list_courses(
    title: Optional[str] = Query(None),
    level: Optional[str] = Query(None),
    svc: CourseService = Depends(get_course_service),
):
    return svc.list(title=title, level=level)


@router.get("/{course_id}", response_model=CourseOut)
def get_course(course_id: str, svc: CourseService = Depends(get_course_service)):
    course = svc.get(course_id)
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.post("", response_model=CourseOut, status_code=status.HTTP_201_CREATED, dependencies=[Depends(admin_only)])
def create_course(body: CourseIn, svc: CourseService = Depends(get_course_service)):
    return svc.create(body.model_dump(mode="json"))


@router.put("/{course_id}", response_model=CourseOut, dependencies=[Depends(admin_only)])
def update_course(course_id: str, body: CourseUpdate, svc: CourseService = Depends(get_course_service)):
    course = svc.update(course_id, body.model_dump(mode="json", exclude_unset=True))
    if course is None:
        raise HTTPException(status_code=404, detail="Course not found")
    return course


@router.delete("/{course_id}", response_model=MessageResponse, dependencies=[Depends(admin_only)])
def delete_course(course_id: str, svc: CourseService = Depends(get_course_service)):
    if not svc.delete(course_id):
        raise HTTPException(status_code=404, detail="Course not found")
    return MessageResponse(message="Course deleted successfully")
