"""
MongoDB implementation of UserRepository.

All methods share the process-wide AsyncMongoClient opened in the app
lifespan; each call borrows a pooled connection for its duration.
Expiry predicates are part of the query so an expired secret never leaves
the database.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Mapping, Optional

from pymongo import ASCENDING
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from errors import UserAlreadyExistsError
from schemas.models.base import parse_object_id
from schemas.models.user import UserDoc
from shared.logging import get_logger

log = get_logger(__name__)

USERS_COLLECTION = "users"


class MongoUserRepository:
    def __init__(self, db: AsyncDatabase) -> None:
        self._col = db[USERS_COLLECTION]

    async def ensure_indexes(self) -> None:
        await self._col.create_index([("email", ASCENDING)], unique=True)
        await self._col.create_index([("reset_token_hash", ASCENDING)], sparse=True)

    async def find_by_email(self, email: str) -> Optional[UserDoc]:
        doc = await self._col.find_one({"email": email})
        return UserDoc.from_mongo(doc)

    async def find_by_id(self, user_id: str) -> Optional[UserDoc]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        doc = await self._col.find_one({"_id": oid})
        return UserDoc.from_mongo(doc)

    async def find_by_reset_token(
        self, token_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        doc = await self._col.find_one(
            {"reset_token_hash": token_hash, "reset_token_expiry": {"$gt": now}}
        )
        return UserDoc.from_mongo(doc)

    async def find_by_verification_code(
        self, user_id: str, code_hash: str, now: datetime
    ) -> Optional[UserDoc]:
        oid = parse_object_id(user_id)
        if oid is None:
            return None
        doc = await self._col.find_one(
            {
                "_id": oid,
                "verification_code_hash": code_hash,
                "verification_code_expiry": {"$gt": now},
                # the code is layered on a live reset token
                "reset_token_hash": {"$ne": None},
                "reset_token_expiry": {"$gt": now},
            }
        )
        return UserDoc.from_mongo(doc)

    async def create(self, user: UserDoc) -> UserDoc:
        data = user.to_mongo()
        try:
            result = await self._col.insert_one(data)
        except DuplicateKeyError as e:
            log.warning("user_insert_duplicate_email", error_type=type(e).__name__)
            raise UserAlreadyExistsError("User already exists", field="email") from e
        return user.model_copy(update={"id": result.inserted_id})

    async def update_credential_fields(
        self, user_id: str, fields: Mapping[str, Any]
    ) -> bool:
        oid = parse_object_id(user_id)
        if oid is None:
            return False
        result = await self._col.update_one({"_id": oid}, {"$set": dict(fields)})
        return result.matched_count > 0
