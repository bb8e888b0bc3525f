"""
FastAPI Application
==================
Main entry point for the ProdReady API.

Run with:
    uvicorn prodready.web_api.main:app --reload
"""
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from prodready import __version__
from prodready.web_api.config import settings
from prodready.web_api.routers import fix, health, scan

# Create application
app = FastAPI(
    title="ProdReady API",
    description="Detect and auto-fix production-readiness defects in JavaScript",
    version=__version__,
    docs_url="/docs" if settings.DEBUG else None,
    redoc_url="/redoc" if settings.DEBUG else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(health.router, tags=["Health"])
app.include_router(scan.router, prefix="/scan", tags=["Scan"])
app.include_router(fix.router, prefix="/fix", tags=["Fix"])


@app.get("/")
async def root():
    """Root endpoint - API info"""
    return {
        "name": "ProdReady API",
        "version": __version__,
        "docs": "/docs" if settings.DEBUG else "disabled",
    }


# For running directly: python -m prodready.web_api.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.HOST, port=settings.PORT)
