import logging
from fastapi import FastAPI
from contextlib import asynccontextmanager
from tiffin_api.core.config import settings
from tiffin_api.db.session import create_db_and_tables

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

@asynccontextmanager
async def lifespan(app: FastAPI):
    create_db_and_tables()
    yield

app = FastAPI(
    title=settings.PROJECT_NAME,
    version="1.0.0",
    lifespan=lifespan,
    description="Bookings, pricing and coupons for home-cooked tiffin services"
)

@app.get("/")
def read_root():
    return {"message": f"Welcome to {settings.PROJECT_NAME}. Visit /docs for Swagger UI."}

from tiffin_api.routers import bookings, coupons, sellers, tiffins  # noqa: E402

app.include_router(sellers.router, prefix="/api/v1/sellers", tags=["sellers"])
app.include_router(tiffins.router, prefix="/api/v1/tiffins", tags=["tiffins"])
app.include_router(coupons.router, prefix="/api/v1/coupons", tags=["coupons"])
app.include_router(bookings.router, prefix="/api/v1/bookings", tags=["bookings"])

# Add CORS
from fastapi.middleware.cors import CORSMiddleware  # noqa: E402
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
