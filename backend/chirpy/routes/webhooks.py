from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Response, status
from sqlalchemy.orm import Session

from chirpy.core.database import get_db
from chirpy.dependencies.auth import require_polka_key
from chirpy.schemas.webhooks import PolkaWebhookIn
from chirpy.services.users import get_user_by_id, upgrade_to_chirpy_red

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/polka", tags=["webhooks"])

USER_UPGRADED_EVENT = "user.upgraded"


@router.post(
    "/webhooks",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(require_polka_key)],
)
def polka_webhook(payload: PolkaWebhookIn, db: Session = Depends(get_db)):
    if payload.event != USER_UPGRADED_EVENT:
        logger.info("Ignoring Polka event: %s", payload.event)
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    try:
        user_id = uuid.UUID(payload.data.user_id)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid user id")

    user = get_user_by_id(db, user_id)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")

    upgrade_to_chirpy_red(db, user)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
