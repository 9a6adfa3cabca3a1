"""Storage of the staff principal in the signed session."""

import logging
from typing import Optional

from pydantic import ValidationError
from starlette.requests import Request

from trainingdesk_types.auth import StaffPrincipal

logger = logging.getLogger(__name__)

SESSION_PRINCIPAL_KEY = "principal"
SESSION_STATE_KEY = "oauth_state"


def store_principal(request: Request, principal: StaffPrincipal) -> None:
    request.session[SESSION_PRINCIPAL_KEY] = principal.model_dump(mode="json")


def load_principal(request: Request) -> Optional[StaffPrincipal]:
    data = request.session.get(SESSION_PRINCIPAL_KEY)
    if not data:
        return None
    try:
        return StaffPrincipal.model_validate(data)
    except ValidationError:
        logger.warning("Discarding unreadable principal from session")
        request.session.pop(SESSION_PRINCIPAL_KEY, None)
        return None


def clear_session(request: Request) -> None:
    request.session.clear()
