"""
Drawfolio - FastAPI Application

HTTP entry point for the portfolio engine.

Pipeline:
- Roadmap + Ledger -> Projection (point creep, draw odds)
- Roadmap -> Capital Allocator (sunk / floated / contingent)
- Roadmap + Ledger -> Conflict Resolver, Inactivity Purge
- Milestones -> Fiduciary Dispatcher (missed deadlines, success disaster)
- All of the above -> Health Score -> Advisor Insights
"""
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import API_HOST, API_PORT, CORS_ORIGINS, LOG_LEVEL
from .routers import portfolio_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Drawfolio",
    description="""
    Drawfolio - Draw Portfolio Engine

    Treats a multi-region hunting license strategy as a financial portfolio:
    points are appreciating (or decaying) assets, fees are capital, and
    deadlines and purge rules are fiduciary obligations.

    ## Key Principles
    - Every engine function is pure; "now" is always an input
    - Severity and urgency each have exactly one total order
    - Detectors run in isolation; one failure never hides the others
    """,
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(portfolio_router)


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": "Drawfolio",
        "version": __version__,
        "description": "Draw Portfolio Engine",
        "docs": "/docs",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


# For running with: python -m drawfolio.main
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=API_HOST, port=API_PORT)
