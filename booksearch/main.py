from fastapi import FastAPI

from booksearch.internal.env_settings import Settings
from booksearch.routers import api
from booksearch.util.log import logger

app = FastAPI(
    title="booksearch",
    version=Settings().app.version,
    description="Book metadata search across Google Books and OpenLibrary",
)
app.include_router(api.router)

logger.info("Application initialized", version=Settings().app.version)
