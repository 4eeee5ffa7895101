from fastapi import FastAPI, Request
from contextlib import asynccontextmanager
from loguru import logger
import uuid

from vidbriefs.core.config import settings
from vidbriefs.core.exceptions import AppException, app_exception_handler
from vidbriefs.core.logging import setup_logging
from vidbriefs.api.endpoints import router as api_router
from vidbriefs.api.dependencies import (
    get_conversation_store,
    get_key_value_store,
    get_llm_provider,
    get_transcript_service,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(level=settings.LOG_LEVEL, log_file=settings.LOG_FILE)
    logger.info("🚀 Application startup")

    await get_key_value_store().initialize()
    await get_conversation_store().load()

    yield

    await get_transcript_service().aclose()
    await get_llm_provider().aclose()
    logger.info("🛑 Application shutdown")


app = FastAPI(title=settings.PROJECT_NAME, lifespan=lifespan)
app.add_exception_handler(AppException, app_exception_handler)


@app.middleware("http")
async def request_context_middleware(request: Request, call_next):
    request_id = str(uuid.uuid4())
    with logger.contextualize(request_id=request_id):
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response


app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health_check():
    return {"status": "ok", "project": settings.PROJECT_NAME}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("vidbriefs.main:app", host="0.0.0.0", port=8000, reload=True)
