"""
UserRepository - MongoDB access for users collection.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from app.models.user import User, UserCreate


class UserRepository:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db
        self.collection = db["users"]

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        doc = await self.collection.find_one({"_id": user_id})
        return User(**doc) if doc else None

    async def get_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        doc = await self.collection.find_one({"email": email})
        return User(**doc) if doc else None

    async def create(self, user_data: UserCreate) -> User:
        """Create a new user with no linked platforms."""
        now = datetime.now(timezone.utc)

        user_doc = {
            "_id": uuid.uuid4().hex,
            "email": user_data.email,
            "name": user_data.name,
            "role": user_data.role,
            "created_at": now,
            "last_login_at": None,
            "is_active": True,
            "platforms": {},
        }

        await self.collection.insert_one(user_doc)
        return User(**user_doc)

    async def exists(self, user_id: str) -> bool:
        """Check if user exists."""
        count = await self.collection.count_documents({"_id": user_id}, limit=1)
        return count > 0
