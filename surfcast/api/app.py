"""FastAPI application entry point."""
from fastapi import FastAPI

from surfcast import __version__
from surfcast.api.routes import router
from surfcast.config import load_settings


settings = load_settings()

app = FastAPI(
    title=settings.api_title,
    version=__version__,
)

app.include_router(router)


@app.get("/")
def root():
    """Root endpoint."""
    return {
        "name": settings.api_title,
        "version": __version__,
        "docs": "/docs",
    }


@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "healthy"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
