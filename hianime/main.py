from fastapi import FastAPI
from loguru import logger

from hianime._version import __version__
from hianime.api import router as videos_router
from hianime.utils.logger import config as configure_logger

configure_logger()

app = FastAPI(title="HiAnime Resolver", version=__version__)
app.include_router(videos_router)
logger.debug("FastAPI app created (version {})", __version__)


# Healthcheck endpoint for CI/CD and monitoring
@app.get("/health")
async def healthcheck():
    return {"status": "ok"}
