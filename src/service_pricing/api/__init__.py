"""HTTP boundary - FastAPI app and routers."""
