import logging
from fastapi import FastAPI
from fleetgroups.api import groups
from fleetgroups.core.config import settings

logging.basicConfig(level=settings.LOG_LEVEL)

app = FastAPI(title="Fleet Device Groups")

app.include_router(groups.router, prefix="/api/v1/groups", tags=["groups"])


@app.get("/health")
async def health():
    return {"status": "ok"}
