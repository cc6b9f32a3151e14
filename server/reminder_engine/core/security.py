from __future__ import annotations
"""server/reminder_engine/core/security.py
~~~~~~~~~~~~~~~~~~~~~~~~
Identité utilisateur (header X-User-Id).

La vérification des jetons est faite en amont (passerelle / collaborateur
d'authentification) ; ici on ne fait que valider la forme de l'identité.
"""
import uuid
from typing import Any, Optional

from fastapi import Header, HTTPException, status

from reminder_engine.core.errors import ValidationError

USER_HEADER = "X-User-Id"


def parse_user_id(raw: Any) -> uuid.UUID:
    """Convertit str → UUID ; lève ValidationError si invalide."""
    if isinstance(raw, uuid.UUID):
        return raw
    try:
        return uuid.UUID(str(raw).strip())
    except (TypeError, ValueError, AttributeError):
        raise ValidationError(f"invalid user id: {raw!r}") from None


async def get_current_user_id(
    x_user_id: Optional[str] = Header(default=None, alias=USER_HEADER),
) -> uuid.UUID:
    if not x_user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="missing_user")
    try:
        return parse_user_id(x_user_id)
    except ValidationError:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="invalid_user") from None
