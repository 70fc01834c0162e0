from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from voyage_engine.api.routers.attractions import router as attractions_router
from voyage_engine.api.routers.cities import router as cities_router
from voyage_engine.api.routers.links import router as links_router
from voyage_engine.api.routers.schedule import router as schedule_router
from voyage_engine.api.routers.trips import router as trips_router
from voyage_engine.core.settings import get_settings

load_dotenv()


def create_app() -> FastAPI:
    application = FastAPI(title="Voyage Engine")
    settings = get_settings()

    # Local frontends; more origins come from ALLOWED_ORIGINS (comma separated)
    allowed_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    if settings.allowed_origins:
        allowed_origins.extend(
            [origin.strip() for origin in settings.allowed_origins.split(",") if origin.strip()]
        )

    application.add_middleware(
        CORSMiddleware,
        allow_origins=allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @application.get("/health", tags=["health"])
    def health() -> dict:
        return {"status": "ok"}

    application.include_router(cities_router)
    application.include_router(schedule_router)
    application.include_router(attractions_router)
    application.include_router(links_router)
    application.include_router(trips_router)
    return application


app = create_app()
