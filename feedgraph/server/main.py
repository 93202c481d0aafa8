"""
feedgraph HTTP service.

Start with:
    feedgraph-server

Or via uvicorn directly:
    uvicorn feedgraph.server.main:app --port 3001 --reload
"""
from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from feedgraph.server.routes.graph_routes import router

# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(title="feedgraph API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(router, prefix="/api")


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def run() -> None:
    import uvicorn

    from feedgraph.config import configure_logging, load_settings

    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "feedgraph.server.main:app",
        host=settings.host,
        port=settings.port,
    )


if __name__ == "__main__":
    run()
