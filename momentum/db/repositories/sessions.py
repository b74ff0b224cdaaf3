"""
Remembered-session repository functions.

The "remember me" login is a single optional value: writing one replaces
whatever was there, so at most one ever exists.
"""
from __future__ import annotations

import logging
from typing import Optional

from momentum.db import schemas
from momentum.db.collections import REMEMBERED_SESSION
from momentum.db.record_store import TransactionHandle
from momentum.db.repositories.users import require_user

logger = logging.getLogger(__name__)


async def set_remembered_session(tx: TransactionHandle, user_id: int, credential: str) -> schemas.RememberedSession:
    await require_user(tx, user_id)
    session = schemas.RememberedSession(user_id=user_id, credential=credential)
    await tx.set_slot(REMEMBERED_SESSION, session)
    logger.info(f"Remembered login for user {user_id}")
    return session


async def get_remembered_session(tx: TransactionHandle) -> Optional[schemas.RememberedSession]:
    return await tx.get_slot(REMEMBERED_SESSION)


async def clear_remembered_session(tx: TransactionHandle) -> bool:
    return await tx.clear_slot(REMEMBERED_SESSION)
