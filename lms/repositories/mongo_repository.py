from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.database import Database

from lms.config.database import get_mongo_db


def to_object_id(_id: Any) -> Optional[ObjectId]:
    """Convierte un id str → ObjectId; None si no tiene formato válido."""
    if isinstance(_id, ObjectId):
        return _id
    try:
        return ObjectId(_id)
    except (InvalidId, TypeError):
        return None


def clean_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Copia del documento con `_id` expuesto como `id` (string)."""
    if not doc:
        return None
    d = dict(doc)
    if "_id" in d:
        d["id"] = str(d.pop("_id"))
    return d


class MongoRepository:
    def __init__(self, collection_name: str, db: Optional[Database] = None):
        # 🔗 Conexión global salvo que se inyecte otra base (tests)
        db = db if db is not None else get_mongo_db()
        self.col = db[collection_name]

    def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        doc = dict(data)
        res = self.col.insert_one(doc)
        doc["_id"] = res.inserted_id
        return clean_doc(doc)

    def find_one(self, _id: str) -> Optional[Dict[str, Any]]:
        oid = to_object_id(_id)
        if oid is None:
            return None
        return clean_doc(self.col.find_one({"_id": oid}))

    def find(self, query: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [clean_doc(d) for d in self.col.find(query)]

    def update(self, _id: str, updates: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """`$set` atómico sobre un documento; devuelve la versión nueva o None si no existe."""
        oid = to_object_id(_id)
        if oid is None:
            return None
        doc = self.col.find_one_and_update(
            {"_id": oid},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return clean_doc(doc)

    def delete(self, _id: str) -> bool:
        oid = to_object_id(_id)
        if oid is None:
            return False
        return self.col.delete_one({"_id": oid}).deleted_count == 1
