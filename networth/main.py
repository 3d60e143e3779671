from fastapi import FastAPI

from networth.logging_config import setup_logging, log_service_settings
from networth.routers.net_worth import router as net_worth_router
from networth.routers.inclusions import router as inclusions_router
from networth.routers.networth_history import router as networth_history_router

logger = setup_logging()
log_service_settings(logger)

app = FastAPI(title="Net Worth Service")

app.include_router(net_worth_router)
app.include_router(inclusions_router)
app.include_router(networth_history_router)


@app.get("/")
def read_root():
    return "Server is running."
