from functools import lru_cache
from typing import Optional

from fastapi import Depends, HTTPException, Request

from lms.api.middleware.session_middleware import get_session_repository
from lms.services.auth_service import AuthService
from lms.services.course_service import CourseService
from lms.services.enrollment_service import EnrollmentService
from lms.utils.permissions import Action, Caller, is_allowed


@lru_cache(maxsize=1)
def get_enrollment_service() -> EnrollmentService:
    return EnrollmentService()


@lru_cache(maxsize=1)
def get_course_service() -> CourseService:
    return CourseService()


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    return AuthService(sessions=get_session_repository())


def get_caller(request: Request, auth: AuthService = Depends(get_auth_service)) -> Optional[Caller]:
    """Identity resolver: userId de la sesión (middleware) + rol guardado en el usuario."""
    user_id = getattr(request.state, "user_id", None)
    return auth.resolve_caller(user_id)


def require_action(action: Action):
    def dependency(caller: Optional[Caller] = Depends(get_caller)) -> Caller:
        if caller is None:
            raise HTTPException(status_code=401, detail="User not found")
        if not is_allowed(caller.role, action):
            raise HTTPException(status_code=403, detail=f"Role '{caller.role.value}' cannot perform '{action.value}'")
        return caller

    return dependency
