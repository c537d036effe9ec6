# lms/services/course_service.py
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pymongo.database import Database

from lms.repositories.mongo_repository import MongoRepository

logger = logging.getLogger(__name__)


class CourseService:
    """Catálogo de cursos: almacenamiento por clave, sin reglas de negocio propias."""

    def __init__(self, db: Optional[Database] = None) -> None:
        self.repo = MongoRepository("courses", db)

    def _now(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    # -------------------- CRUD --------------------
    def create(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        now = self._now()
        course = dict(payload)
        course["createdAt"] = now
        course["updatedAt"] = now
        created = self.repo.create(course)
        logger.info(f"[courses.create] curso {created['id']} creado: {created.get('title')!r}")
        return created

    def list(self, title: Optional[str] = None, level: Optional[str] = None) -> List[Dict[str, Any]]:
        # title tiene prioridad sobre level; sin filtros → catálogo completo
        q: Dict[str, Any] = {}
        if title:
            q["title"] = {"$regex": re.escape(title), "$options": "i"}
        elif level:
            q["level"] = level
        return self.repo.find(q)

    def get(self, course_id: str) -> Optional[Dict[str, Any]]:
        return self.repo.find_one(course_id)

    def exists(self, course_id: str) -> bool:
        return self.get(course_id) is not None

    def update(self, course_id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        updates = dict(updates or {})
        updates["updatedAt"] = self._now()
        return self.repo.update(course_id, updates)

    def delete(self, course_id: str) -> bool:
        # las inscripciones que lo referencian quedan colgando a propósito;
        # si se re-crea un curso con este mismo id, esas inscripciones se vuelven a asociar (no definido)
        deleted = self.repo.delete(course_id)
        if deleted:
            logger.info(f"[courses.delete] curso {course_id} eliminado")
        return deleted
