"""Tests for the SSO user cache."""

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from family_cloud.models.user import User
from family_cloud.services.users import upsert_user


@pytest.mark.asyncio
async def test_upsert_creates_then_updates(db_session: AsyncSession):
    created = await upsert_user(
        db_session, user_id="sub-1", email="alice@example.com", provider="cognito", name="Alice"
    )
    first_login = created.last_login

    updated = await upsert_user(
        db_session,
        user_id="sub-1",
        email="alice@example.org",
        provider="cognito",
        name="Alice Smith",
        email_verified=True,
    )

    count = await db_session.scalar(select(func.count()).select_from(User))
    assert count == 1
    assert updated.email == "alice@example.org"
    assert updated.name == "Alice Smith"
    assert updated.email_verified is True
    assert updated.last_login >= first_login
