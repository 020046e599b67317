from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .routers import quotes, packaging

logger = logging.getLogger("exportquote")
logging.basicConfig(level=settings.LOG_LEVEL.upper())

app = FastAPI(
    title="Export Quotation Engine",
    description="Landed cost, sell price and profit for packaged-goods export quotes",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(quotes.router, prefix="/api")
app.include_router(packaging.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": settings.APP_NAME}
