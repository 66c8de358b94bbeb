import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from chatbot.core.config import settings
from chatbot.core.database import create_db_engine, init_db
from chatbot.core.errors import ChatbotError
from chatbot.api import chat, document, files, history, suggestions, vote
from chatbot.services.llm import get_llm_provider
from chatbot.services.store import ChatStore

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Configure logging based on debug setting
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(levelname)-8s %(name)s: %(message)s" if settings.debug
        else "%(levelname)-8s %(name)s: %(message)s",
    )

    engine = create_db_engine(settings.database_url, echo=settings.debug)
    init_db(engine)
    settings.uploads_dir.mkdir(parents=True, exist_ok=True)

    store = ChatStore(engine)
    store.ensure_user(settings.default_user_id, settings.default_user_email)
    app.state.store = store
    app.state.provider = get_llm_provider()

    yield

    store.close()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(ChatbotError)
async def chatbot_error_handler(request: Request, exc: ChatbotError):
    logger.debug(f"{request.method} {request.url.path} failed: {exc.code} {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


app.include_router(chat.router, prefix="/api", tags=["chat"])
app.include_router(history.router, prefix="/api", tags=["history"])
app.include_router(document.router, prefix="/api", tags=["document"])
app.include_router(suggestions.router, prefix="/api", tags=["suggestions"])
app.include_router(vote.router, prefix="/api", tags=["vote"])
app.include_router(files.router, prefix="/api", tags=["files"])


@app.get("/api/health")
async def health():
    return {"status": "ok", "app": settings.app_name}
