from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from resumezap.config import get_settings
from resumezap.core.errors import ResumeZapError
from resumezap.core.logger import get_logger, setup_logging
from resumezap.db.database import init_db
from resumezap.routes import ROUTERS

settings = get_settings()
setup_logging(settings.log_level, settings.log_file)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    logger.info("ResumeZap API ready (model=%s)", settings.model)
    yield


app = FastAPI(title="ResumeZap API", version="1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.web_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ResumeZapError)
async def resumezap_error_handler(request: Request, exc: ResumeZapError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


for r in ROUTERS:
    app.include_router(r)
