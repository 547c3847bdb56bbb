from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from campus_library.core.errors import register_exception_handlers
from campus_library.core.logging import configure_logging
from campus_library.core.settings import get_app_settings
from campus_library.db.session import SessionLocal, engine
from campus_library.models import Base
from campus_library.routers.auth import router as auth_router
from campus_library.routers.books import router as books_router
from campus_library.routers.catalog import routers as catalog_routers
from campus_library.routers.collections import router as collections_router
from campus_library.routers.lendings import router as lendings_router
from campus_library.routers.points import router as points_router
from campus_library.routers.readers import router as readers_router
from campus_library.routers.requests import router as requests_router
from campus_library.routers.reviews import router as reviews_router
from campus_library.routers.volunteers import router as volunteers_router
from campus_library.routers.wishlist import router as wishlist_router
from campus_library.services.point_service import seed_point_rules

logger = logging.getLogger(__name__)

settings = get_app_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.log_level)
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        seed_point_rules(db)
    logger.info("%s started", settings.app_name)
    yield


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


@app.get("/")
def read_root():
    return {"message": "Campus Library API is running"}


app.include_router(auth_router)
app.include_router(books_router)
app.include_router(collections_router)
for catalog_router in catalog_routers:
    app.include_router(catalog_router)
app.include_router(requests_router)
app.include_router(lendings_router)
app.include_router(reviews_router)
app.include_router(wishlist_router)
app.include_router(volunteers_router)
app.include_router(readers_router)
app.include_router(points_router)
