"""User cache: upsert identities after a successful SSO."""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from family_cloud.models.user import User

logger = logging.getLogger(__name__)


async def upsert_user(
    db: AsyncSession,
    *,
    user_id: str,
    email: str,
    provider: str,
    name: Optional[str] = None,
    given_name: Optional[str] = None,
    family_name: Optional[str] = None,
    picture: Optional[str] = None,
    email_verified: bool = False,
) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        user = User(id=user_id, email=email, provider=provider)
        db.add(user)
        logger.info("New %s user %s", provider, email)

    user.email = email
    user.provider = provider
    user.name = name
    user.given_name = given_name
    user.family_name = family_name
    user.picture = picture
    user.email_verified = email_verified
    user.last_login = datetime.now(timezone.utc)

    await db.commit()
    await db.refresh(user)
    return user
