from __future__ import annotations

import os

from fastapi import FastAPI

from connection_coach.api.routes.insights import router as insights_router
from connection_coach.api.routes.recommendations import router as rec_router
from connection_coach.config import configure_logging, load_config


cfg = load_config()
configure_logging(cfg)

app = FastAPI(title="Connection Coach Recommendations API", version="0.1.0")

app.include_router(rec_router)
app.include_router(insights_router)


@app.on_event("startup")
def _startup() -> None:
    """Create tables on startup."""
    from connection_coach.db.session import init_db

    init_db()


@app.get("/health")
def health():
    return {"status": "ok"}


def run() -> None:
    """Serve the API with uvicorn; PORT overrides the default 8000."""
    import uvicorn

    port = int(os.getenv("PORT", "8000"))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    run()
