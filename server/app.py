"""FastAPI application exposing generation sessions over HTTP."""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from appflow.config import get_settings
from appflow.log import setup_logging
from server.session_routes import router as session_router

settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Configure logging on startup."""
    logger = setup_logging(settings.log_level)
    logger.info("appflow server starting (default provider %s)", settings.provider)
    yield


app = FastAPI(
    title="AppFlow API",
    description="API server for AI-assisted feature and workflow design sessions",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(session_router, prefix="/api")


@app.get("/")
def root():
    """Health check endpoint."""
    return {
        "status": "ok",
        "version": "0.1.0",
        "endpoints": {
            "sessions": "/api/sessions",
        },
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
