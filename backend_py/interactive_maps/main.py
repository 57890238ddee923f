# backend_py/interactive_maps/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse, RedirectResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from .core.config import settings
from .core.logging import configure_logging
from .models.db import init_db
from .api import locations, maps

APP_NAME = settings.APP_NAME
APP_VERSION = settings.VERSION

@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL)
    init_db()
    yield

# --- App
app = FastAPI(
    title=APP_NAME,
    version=APP_VERSION,
    default_response_class=ORJSONResponse,
    lifespan=lifespan,
)

# --- CORS (maps are embedded on arbitrary pages)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "POST", "PUT"],
    allow_headers=["*"],
)

# --- Schemas
class Health(BaseModel):
    ok: bool
    service: str
    version: str

class VersionInfo(BaseModel):
    service: str
    version: str

# --- Routes
@app.get("/", include_in_schema=False)
def root():
    return RedirectResponse(url="/docs")

@app.get("/health", response_model=Health, summary="Liveness/health check")
def health():
    return Health(ok=True, service=APP_NAME, version=APP_VERSION)

@app.get("/version", response_model=VersionInfo, summary="Service version")
def version():
    return VersionInfo(service=APP_NAME, version=APP_VERSION)

@app.get("/settings", summary="Display options for map clients")
def display_settings():
    return settings.display_options().model_dump(by_alias=True)

app.include_router(maps.router)
app.include_router(locations.router)

def run() -> None:
    import uvicorn
    uvicorn.run("interactive_maps.main:app", host=settings.HOST, port=settings.PORT)

if __name__ == "__main__":
    run()
