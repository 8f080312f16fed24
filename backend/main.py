import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from db.database import create_db_and_tables
from routers.costing import router as costing_router
from routers.currency import router as currency_router
from routers.inventory import router as inventory_router
from routers.prep_sheets import router as prep_sheets_router

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    yield


app = FastAPI(
    title="Kitchen Costing API",
    description="API for recipe costing, inventory transactions and prep sheets",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


app.include_router(costing_router, prefix="/recipes", tags=["costing"])
app.include_router(currency_router, prefix="/currency", tags=["currency"])
app.include_router(inventory_router, prefix="/inventory", tags=["inventory"])
app.include_router(prep_sheets_router, prefix="/prep-sheets", tags=["prep-sheets"])

if __name__ == "__main__":
    uvicorn.run("main:app", host="0.0.0.0", port=8000, reload=True)
