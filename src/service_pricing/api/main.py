from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..config.settings import get_settings
from ..utils.logger import setup_logging
from ..store.csv_store import CsvPriceStore
from .prices_api import router as prices_router
from .state import get_store

setup_logging(get_settings().log_level)

app = FastAPI(
    title="Service Pricing API",
    description="Hierarchical price resolution and administration for the service-point network",
    version="1.0.0"
)

# Enable CORS for the dashboard frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include price resolution and management API
app.include_router(prices_router)


@app.get("/")
async def root():
    return {"status": "online", "message": "Service Pricing API Active"}


@app.get("/system/status")
async def get_status(store: CsvPriceStore = Depends(get_store)):
    settings = get_settings()
    return {
        "engine_active": True,
        "prices_csv": str(settings.prices_csv),
        "prices_loaded": store.count(),
    }
