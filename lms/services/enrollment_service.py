# lms/services/enrollment_service.py
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pymongo.database import Database
from pymongo.errors import PyMongoError

from lms.repositories.enrollment_repository import EnrollmentRepository, is_valid_progress
from lms.repositories.user_repository import UserRepository
from lms.services.course_service import CourseService
from lms.services.errors import (
    AlreadyEnrolledError,
    CourseNotFoundError,
    InvalidProgressError,
    NotEnrolledError,
    UnauthenticatedError,
    UserNotFoundError,
)
from lms.utils.permissions import Action, Caller, authorize

logger = logging.getLogger(__name__)


@dataclass
class EnrollOutcome:
    """
    Resultado de `enroll`, escrito en dos fases sin transacción:
      1) la inscripción en el ledger (fuente de verdad)
      2) la referencia en `users.enrolledCourses` (caché derivada)

    Si (2) falla, la inscripción existe igual y `user_index_synced` es False
    hasta que se corra `resync_course_index`.
    """
    enrollment: Dict[str, Any]
    user_index_synced: bool = True
    user_index_error: Optional[str] = None


class EnrollmentService:
    def __init__(self, db: Optional[Database] = None):
        self.enrollments = EnrollmentRepository(db)
        self.users = UserRepository(db)
        self.courses = CourseService(db)

    def _resolve_user(self, caller: Optional[Caller]) -> Dict[str, Any]:
        if caller is None or not caller.user_id:
            raise UnauthenticatedError()
        user = self.users.find_by_id(caller.user_id)
        if not user:
            raise UnauthenticatedError()
        return user

    # -------------------- API --------------------

    def enroll(self, caller: Optional[Caller], course_id: str) -> EnrollOutcome:
        user = self._resolve_user(caller)
        authorize(caller, Action.ENROLL)
        user_id = user["id"]

        if not self.courses.exists(course_id):
            raise CourseNotFoundError()

        # camino rápido; la garantía real es el índice único del ledger
        if self.enrollments.exists(user_id, course_id):
            raise AlreadyEnrolledError()

        enrollment = self.enrollments.create(user_id, course_id)
        logger.info(f"[enroll] usuario {user_id} inscripto en curso {course_id}")

        try:
            self.users.add_course_reference(user_id, course_id)
        except PyMongoError as e:
            logger.warning(
                f"[enroll] inscripción {enrollment['id']} creada pero no se pudo actualizar "
                f"enrolledCourses del usuario {user_id}: {e}"
            )
            return EnrollOutcome(enrollment, user_index_synced=False, user_index_error=str(e))

        return EnrollOutcome(enrollment)

    def update_progress(self, caller: Optional[Caller], course_id: str, progress: int) -> Dict[str, Any]:
        user = self._resolve_user(caller)
        authorize(caller, Action.UPDATE_PROGRESS)

        if not is_valid_progress(progress):
            raise InvalidProgressError()

        enrollment = self.enrollments.find_by_user_and_course(user["id"], course_id)
        if not enrollment:
            raise NotEnrolledError()

        # sin clamping ni "sólo hacia adelante": gana la última escritura
        updated = self.enrollments.update_progress(enrollment["id"], progress)
        if not updated:
            raise NotEnrolledError()

        logger.info(f"[progress] inscripción {updated['id']} → {progress}%")
        return updated

    def list_enrolled_courses(self, caller: Optional[Caller]) -> List[Dict[str, Any]]:
        user = self._resolve_user(caller)
        authorize(caller, Action.LIST_ENROLLED_COURSES)

        courses: List[Dict[str, Any]] = []
        for enrollment in self.enrollments.list_by_user(user["id"]):
            # join por id: un curso re-creado con el mismo id vuelve a aparecer (limitación conocida)
            course = self.courses.get(enrollment["courseId"])
            if course is None:
                # Política: un curso borrado del catálogo se omite, no rompe el listado.
                logger.info(
                    f"[enrollments.list] curso {enrollment['courseId']} ya no existe; "
                    f"se omite la inscripción {enrollment['id']} del usuario {user['id']}"
                )
                continue
            courses.append(course)
        return courses

    def get_progress(self, caller: Optional[Caller], course_id: str) -> Dict[str, Any]:
        user = self._resolve_user(caller)
        authorize(caller, Action.VIEW_PROGRESS)

        enrollment = self.enrollments.find_by_user_and_course(user["id"], course_id)
        if not enrollment:
            raise NotEnrolledError()
        return enrollment

    def resync_course_index(self, caller: Optional[Caller], user_id: str) -> List[str]:
        """Completa `enrolledCourses` con las inscripciones del ledger que le falten."""
        self._resolve_user(caller)
        authorize(caller, Action.RESYNC_COURSE_INDEX)

        if not self.users.find_by_id(user_id):
            raise UserNotFoundError()

        course_ids = [e["courseId"] for e in self.enrollments.list_by_user(user_id)]
        synced = self.users.add_course_references(user_id, course_ids)
        logger.info(f"[enrollments.resync] usuario {user_id}: {len(synced)} cursos en el índice")
        return synced
