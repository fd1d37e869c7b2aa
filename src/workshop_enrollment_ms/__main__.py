"""Entry point for running the Workshop Enrollment Microservice."""

import uvicorn

from workshop_enrollment_ms.shared.core.settings import get_settings


def main() -> None:
    """Run the FastAPI application."""
    settings = get_settings()
    uvicorn.run(
        "workshop_enrollment_ms.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=None,
    )


if __name__ == "__main__":
    main()
