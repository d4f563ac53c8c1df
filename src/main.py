import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles

from database import engine, init_models
from cornhole.router import router as cornhole_router

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await init_models(engine)
    logger.info("Database tables ready")
    yield
    await engine.dispose()


app = FastAPI(title="Cornhole Cup", lifespan=lifespan)
app.mount(
    "/static",
    StaticFiles(directory=str(Path(__file__).resolve().parent / "cornhole" / "static")),
    name="static",
)
app.include_router(cornhole_router)

# Routes

@app.get("/")
async def index():
    return RedirectResponse("/cornhole/", status_code=303)
