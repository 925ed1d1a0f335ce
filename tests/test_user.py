"""Tests for user service."""

import pytest

from bankimport.domain.errors import UserNotFoundError, ValidationError
from bankimport.domain.user import UserService


def test_get_or_create_user_is_idempotent(temp_db):
    service = UserService(temp_db)

    first = service.get_or_create_user("alice")
    second = service.get_or_create_user(" alice ")

    assert first.id == second.id
    assert first.counterparty_id is not None


def test_get_or_create_user_requires_name(temp_db):
    with pytest.raises(ValidationError):
        UserService(temp_db).get_or_create_user("  ")


def test_get_unknown_user(temp_db):
    with pytest.raises(UserNotFoundError):
        UserService(temp_db).get_user(999)
