"""FastAPI application for the Check-in Service."""
from fastapi import FastAPI
from dotenv import load_dotenv

load_dotenv()

from libs.common.logging import configure_logging
from services.checkin_service.router import router as checkin_router


def create_app() -> FastAPI:
    """Create and configure the Check-in Service FastAPI app."""
    configure_logging()

    app = FastAPI(
        title="TeamSync Check-in Service",
        version="0.1.0",
        description="Event check-in, geofencing and attendance reliability for TeamSync.",
    )

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Health check endpoint."""
        return {"status": "ok", "service": "checkin"}

    app.include_router(checkin_router)

    return app


app = create_app()
