import logging
from typing import Optional

from fastapi import Header, HTTPException, status

PARTICIPANT_HEADER = "X-Participant-Email"

# Set up a dedicated logger for identity events
logger = logging.getLogger("auth_module")


async def get_current_participant(
    x_participant_email: Optional[str] = Header(default=None),
) -> str:
    """
    FastAPI dependency returning the acting participant's email.
    Credentials are handled upstream; this only reads the forwarded identity.
    """
    email = (x_participant_email or "").strip()
    if not email:
        logger.warning("Request without %s header rejected.", PARTICIPANT_HEADER)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Missing {PARTICIPANT_HEADER} header.",
        )
    return email
