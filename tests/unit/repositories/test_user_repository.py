"""
Unit tests for UserRepository
"""

import pytest

from app.models.user import UserCreate
from app.repositories.user_repository import UserRepository


class TestUserRepository:
    """Test suite for UserRepository database operations."""

    @pytest.mark.asyncio
    async def test_create_user(self, test_db):
        """Test creating a new student."""
        repo = UserRepository(test_db)

        # Act
        user = await repo.create(UserCreate(email="new@example.com", name="New Student"))

        # Assert
        assert user.id
        assert user.email == "new@example.com"
        assert user.role == "student"
        assert user.is_student
        assert user.is_active is True

        doc = await test_db["users"].find_one({"_id": user.id})
        assert doc["platforms"] == {}

    @pytest.mark.asyncio
    async def test_get_by_id(self, test_db, student, sample_user_data):
        """Test retrieving user by ID."""
        repo = UserRepository(test_db)

        # Act
        user = await repo.get_by_id(student)

        # Assert
        assert user is not None
        assert user.id == student
        assert user.email == sample_user_data["email"]

    @pytest.mark.asyncio
    async def test_get_by_id_not_found(self, test_db):
        """Test retrieving non-existent user returns None."""
        repo = UserRepository(test_db)

        assert await repo.get_by_id("non_existent_id") is None

    @pytest.mark.asyncio
    async def test_get_by_email(self, test_db, student, sample_user_data):
        """Test retrieving user by email."""
        repo = UserRepository(test_db)

        user = await repo.get_by_email(sample_user_data["email"])

        assert user is not None
        assert user.id == student

    @pytest.mark.asyncio
    async def test_non_student_role(self, test_db):
        """Test recruiters are not students."""
        repo = UserRepository(test_db)

        user = await repo.create(UserCreate(email="hr@example.com", name="Recruiter", role="recruiter"))

        assert not user.is_student

    @pytest.mark.asyncio
    async def test_exists(self, test_db, student):
        """Test checking if user exists."""
        repo = UserRepository(test_db)

        assert await repo.exists(student) is True
        assert await repo.exists("non_existent_id") is False
