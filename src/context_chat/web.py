"""FastAPI adapter exposing the chat engine over HTTP."""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from context_chat.chat_engine import ChatEngine
from context_chat.config import AIConfig, AppConfig
from context_chat.corpus import list_corpus_files
from context_chat.errors import ChatError
from context_chat.llm_client import CompletionClient
from context_chat.memory import ConversationStore
from context_chat.web_search import WebSearchClient

logger = logging.getLogger(__name__)

_config = AppConfig()


def _current_ai_config() -> AIConfig:
    return _config.ai


@asynccontextmanager
async def lifespan(application: FastAPI):
    """Create the shared HTTP client and chat engine for the app's lifetime."""
    async with httpx.AsyncClient(follow_redirects=True) as http_client:
        application.state.engine = ChatEngine(
            _current_ai_config,
            _config.rag_dir,
            store=ConversationStore(_config.ai.max_history_messages),
            web_search=WebSearchClient(http_client),
            completion_client=CompletionClient(http_client),
        )
        logger.info(
            "Chat engine ready (AI %s, corpus %s)",
            "enabled" if _config.ai.enabled else "disabled",
            _config.rag_dir,
        )
        yield


app = FastAPI(title="Context Chat", lifespan=lifespan)

router = APIRouter(prefix="/api/v1")


@app.exception_handler(ChatError)
async def _chat_error_handler(request: Request, exc: ChatError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


def get_engine(request: Request) -> ChatEngine:
    """FastAPI dependency — return the chat engine from app state."""
    return request.app.state.engine


class ChatRequest(BaseModel):
    sessionId: str | None = None
    message: str = Field(min_length=1, max_length=4000)
    systemInstruction: str | None = None
    useRag: bool | None = None
    useWebSearch: bool | None = None


class RagSourceResponse(BaseModel):
    source: str
    line: int


class WebSourceResponse(BaseModel):
    title: str
    link: str
    snippet: str


class ChatResponse(BaseModel):
    sessionId: str
    model: str
    reply: str
    messagesInMemory: int
    ragSources: list[RagSourceResponse]
    webSources: list[WebSourceResponse]


class ClearChatResponse(BaseModel):
    sessionId: str
    cleared: bool


class HealthResponse(BaseModel):
    status: str
    aiEnabled: bool
    corpusFiles: int


@router.get("/health", response_model=HealthResponse)
def api_health():
    ai_enabled = _config.ai.enabled and bool(_config.ai.api_key)
    return HealthResponse(
        status="healthy" if ai_enabled else "degraded",
        aiEnabled=ai_enabled,
        corpusFiles=len(list_corpus_files(_config.rag_dir)),
    )


@router.post("/chat", response_model=ChatResponse)
async def api_chat(body: ChatRequest, engine: ChatEngine = Depends(get_engine)):
    result = await engine.chat(
        body.sessionId,
        body.message,
        system_instruction=body.systemInstruction,
        use_rag=body.useRag,
        use_web_search=body.useWebSearch,
    )
    return ChatResponse(**result.to_dict())


@router.delete("/chat/{session_id}", response_model=ClearChatResponse)
def api_clear_chat(session_id: str, engine: ChatEngine = Depends(get_engine)):
    return ClearChatResponse(sessionId=session_id, cleared=engine.clear_session(session_id))


app.include_router(router)
