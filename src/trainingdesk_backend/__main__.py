import uvicorn

from trainingdesk_backend.log_config import build_uvicorn_log_config, setup_logging
from trainingdesk_backend.settings import get_settings


def main():
    settings = get_settings()
    setup_logging(settings.log_level)

    print(f"Starting TrainingDesk on {settings.host}:{settings.port} (backend: {settings.course_api_url})")

    uvicorn.run(
        "trainingdesk_backend.server:app",
        host=settings.host,
        port=settings.port,
        log_config=build_uvicorn_log_config(settings.uvicorn_log_level),
        workers=1
    )


if __name__ == "__main__":
    main()
