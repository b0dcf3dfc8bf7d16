import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from venture_analytica.api.founder_routes import router as founder_router
from venture_analytica.api.routes import router as report_router


logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="VentureAnalytica API")

origins = [o.strip() for o in os.getenv("FRONTEND_ORIGIN", "*").split(",") if o.strip()]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    allow_credentials=False,
)

app.include_router(report_router)
app.include_router(founder_router)
