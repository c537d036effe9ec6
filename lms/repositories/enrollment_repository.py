from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from lms.repositories.mongo_repository import MongoRepository, clean_doc, to_object_id
from lms.services.errors import AlreadyEnrolledError, InvalidProgressError

MIN_PROGRESS = 0
MAX_PROGRESS = 100


def is_valid_progress(progress: Any) -> bool:
    # bool es subclase de int: True no es un progreso
    if isinstance(progress, bool) or not isinstance(progress, int):
        return False
    return MIN_PROGRESS <= progress <= MAX_PROGRESS


class EnrollmentRepository(MongoRepository):
    """
    Ledger de inscripciones: único dueño de la colección `enrollments`.

    La unicidad (userId, courseId) la garantiza el índice único `user_course_idx`
    (ver `ensure_indexes`); `exists` es sólo el camino rápido.
    """

    def __init__(self, db: Optional[Database] = None):
        super().__init__("enrollments", db)

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def exists(self, user_id: str, course_id: str) -> bool:
        return self.col.count_documents({"userId": user_id, "courseId": course_id}, limit=1) > 0

    def create(self, user_id: str, course_id: str) -> Dict[str, Any]:
        now = self._now()
        payload = {
            "userId": user_id,
            "courseId": course_id,
            "enrolledAt": now,
            "progress": 0,
            "updatedAt": now,
        }
        try:
            return super().create(payload)
        except DuplicateKeyError as e:
            # otro request ganó la carrera entre exists() y el insert
            raise AlreadyEnrolledError() from e

    def find_by_user_and_course(self, user_id: str, course_id: str) -> Optional[Dict[str, Any]]:
        return clean_doc(self.col.find_one({"userId": user_id, "courseId": course_id}))

    def list_by_user(self, user_id: str) -> List[Dict[str, Any]]:
        return self.find({"userId": user_id})

    def update_progress(self, enrollment_id: str, progress: int) -> Optional[Dict[str, Any]]:
        if not is_valid_progress(progress):
            raise InvalidProgressError()

        doc = self.col.find_one_and_update(
            {"_id": to_object_id(enrollment_id)},
            {"$set": {"progress": progress, "updatedAt": self._now()}},
            return_document=ReturnDocument.AFTER,
        )
        return clean_doc(doc)
