from fastapi import FastAPI
import logging

from soloquiz.api.routes import router
from soloquiz.config import get_settings
from soloquiz.questions.startup import init_questions_for_app

app = FastAPI(title="soloquiz", version="0.1.0")
app.include_router(router)
# Configure logging
logging.basicConfig(level=get_settings().log_level)
logger = logging.getLogger(__name__)


@app.on_event("startup")
async def _startup() -> None:
    init_questions_for_app()


@app.get("/info")
async def info() -> dict[str, str]:
    return {"name": "soloquiz", "version": "0.1.0"}
