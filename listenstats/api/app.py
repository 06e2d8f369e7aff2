from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from listenstats import __version__, config
from listenstats.api.routes import export, settings, stats
from listenstats.db import connection as db_connection

app = FastAPI(
    title="Listenstats API",
    description="Listening analytics over a user's play history",
    version=__version__,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(stats.router, prefix="/api/stats", tags=["stats"])
app.include_router(export.router, prefix="/api/export", tags=["export"])
app.include_router(settings.router, prefix="/api/settings", tags=["settings"])

# Per-artist concert search; installed by the deployment, None disables /concerts
app.state.concert_lookup = None


@app.on_event("shutdown")
async def shutdown_connection_pool() -> None:
    """Close the database connection pool on shutdown."""
    db_connection.close_pool()


@app.get("/")
async def root():
    return {"message": "Listenstats API", "version": __version__}


@app.get("/health")
async def health():
    """Health check with connection pool stats."""
    try:
        return {"status": "healthy", "pool": db_connection.get_pool_stats()}
    except Exception as e:
        return {
            "status": "degraded",
            "error": str(e),
        }
