# productshop/main.py
from contextlib import asynccontextmanager

from fastapi import FastAPI
import uvicorn

from productshop.data.database import Base, engine
from productshop.api.routers import health, members, orders
from productshop.utils.logging import get_logger

# import every model before create_all
from productshop.data import models  # noqa: F401

logger = get_logger(__name__)


def init_db(bind=engine) -> None:
    logger.info(f"Models registered in Base.metadata: {list(Base.metadata.tables.keys())}")
    try:
        Base.metadata.create_all(bind=bind)
    except Exception as e:
        logger.error(f"Failed to create tables: {e}")
        raise
    logger.info("Database tables ready")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


def create_app(with_lifespan: bool = True) -> FastAPI:
    app = FastAPI(
        title="Order Service",
        version="1.0.0",
        lifespan=lifespan if with_lifespan else None,
    )

    app.include_router(health.router)
    app.include_router(members.router)
    app.include_router(orders.router)

    return app


app = create_app()

if __name__ == "__main__":
    uvicorn.run(app, host="0.0.0.0", port=8000)
