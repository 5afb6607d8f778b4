from fastapi import APIRouter

from booksearch.routers.api.books import router as books_router
from booksearch.routers.api.health import router as health_router
from booksearch.routers.api.search import router as search_router

router = APIRouter(prefix="/api")
router.include_router(books_router)
router.include_router(health_router)
router.include_router(search_router)
