from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from pymongo import ReturnDocument
from pymongo.database import Database
from pymongo.errors import DuplicateKeyError

from lms.repositories.mongo_repository import MongoRepository, clean_doc, to_object_id
from lms.services.errors import EmailInUseError


class UserRepository(MongoRepository):
    """Usuarios + índice denormalizado `enrolledCourses` (caché, nunca autoritativo)."""

    def __init__(self, db: Optional[Database] = None):
        super().__init__("users", db)

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    def find_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return clean_doc(self.col.find_one({"email": email.strip().lower()}))

    def find_by_id(self, user_id: str) -> Optional[Dict[str, Any]]:
        return self.find_one(user_id)

    def create_user(self, name: str, email: str, password_hash: str, role: str) -> Dict[str, Any]:
        now = self._now()
        doc = {
            "name": name,
            "email": email.strip().lower(),
            "passwordHash": password_hash,
            "role": role,
            "enrolledCourses": [],
            "createdAt": now,
            "updatedAt": now,
        }
        try:
            return self.create(doc)
        except DuplicateKeyError as e:
            raise EmailInUseError() from e

    # ==============================================
    # 📚 Índice de cursos del usuario
    # ==============================================
    def add_course_reference(self, user_id: str, course_id: str) -> None:
        # $addToSet: repetir la referencia no cambia nada
        self.col.update_one(
            {"_id": to_object_id(user_id)},
            {"$addToSet": {"enrolledCourses": course_id}, "$set": {"updatedAt": self._now()}},
        )

    def add_course_references(self, user_id: str, course_ids: Iterable[str]) -> List[str]:
        # sólo agrega: un enroll concurrente que ya sumó su referencia no se pisa
        doc = self.col.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {
                "$addToSet": {"enrolledCourses": {"$each": list(dict.fromkeys(course_ids))}},
                "$set": {"updatedAt": self._now()},
            },
            return_document=ReturnDocument.AFTER,
        )
        return list(doc.get("enrolledCourses", [])) if doc else []
