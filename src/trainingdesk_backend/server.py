import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.sessions import SessionMiddleware

from trainingdesk_backend.api.auth import auth_router, limiter
from trainingdesk_backend.api.events import events_router
from trainingdesk_backend.api.students import student_router
from trainingdesk_backend.api.system import system_router
from trainingdesk_backend.exceptions import register_exception_handlers
from trainingdesk_backend.middleware import RequestContextMiddleware
from trainingdesk_backend.oauth import GoogleOAuthClient
from trainingdesk_backend.settings import BackendSettings, get_settings
from trainingdesk_client.gateway import CourseBackend, HttpCourseBackend

logger = logging.getLogger(__name__)

SESSION_COOKIE = "trainingdesk_session"


def create_app(
    settings: Optional[BackendSettings] = None,
    backend: Optional[CourseBackend] = None,
    oauth_client: Optional[GoogleOAuthClient] = None,
) -> FastAPI:
    """
    Build the dashboard API.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        backend: Course backend; an HTTP backend from settings when omitted
        oauth_client: Google OAuth client; built from settings when omitted
    """
    settings = settings or get_settings()

    if backend is None:
        backend = HttpCourseBackend.create(
            settings.course_api_url,
            username=settings.course_api_username,
            password=settings.course_api_password,
            timeout=settings.course_api_timeout,
        )
    if oauth_client is None:
        oauth_client = GoogleOAuthClient(
            settings.oauth_client_id,
            settings.oauth_client_secret,
            timeout=settings.course_api_timeout,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Course backend: {settings.course_api_url}")
        if not settings.oauth_enabled:
            logger.warning("OAUTH_CLIENT_ID/OAUTH_CLIENT_SECRET not set; staff sign-in is disabled")
        yield
        await backend.close()
        await oauth_client.close()

    app = FastAPI(title="TrainingDesk", lifespan=lifespan)
    app.state.settings = settings
    app.state.backend = backend
    app.state.oauth_client = oauth_client
    app.state.limiter = limiter

    # Register custom exception handlers for structured error responses
    register_exception_handlers(app)

    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE,
        max_age=settings.session_max_age,
        same_site="lax",
        https_only=settings.session_https_only,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Total-Count", "X-Total-Pages", "Content-Disposition", "X-Request-ID"],
    )
    app.add_middleware(RequestContextMiddleware)

    app.include_router(system_router, tags=["system"])
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(events_router, prefix="/events", tags=["events"])
    app.include_router(student_router, prefix="/students", tags=["students"])

    return app


app = create_app()
