"""
Authentication dependency for staff routes.

The principal is rebuilt from the signed session cookie on every request and
handed to the route as an explicit argument; nothing about the current user
is kept in module state.
"""

import logging

from fastapi import Request

from trainingdesk_backend.exceptions import AccessDeniedException, UnauthorizedException
from trainingdesk_backend.permissions.policy import email_in_domain
from trainingdesk_backend.permissions.principal import clear_session, load_principal
from trainingdesk_backend.settings import get_settings
from trainingdesk_types.auth import StaffPrincipal

logger = logging.getLogger(__name__)


def get_current_principal(request: Request) -> StaffPrincipal:
    """
    Return the signed-in staff member.

    Raises:
        UnauthorizedException: No principal in the session.
        AccessDeniedException: The principal's email is no longer in the
            allowed domain (e.g. the domain setting changed).
    """
    principal = load_principal(request)
    if principal is None:
        raise UnauthorizedException()

    settings = getattr(request.app.state, "settings", None) or get_settings()
    if not email_in_domain(principal.email, settings.allowed_email_domain):
        logger.warning(f"Session principal {principal.email} outside allowed domain")
        clear_session(request)
        raise AccessDeniedException(user_email=principal.email)

    request.state.user_email = principal.email
    return principal
