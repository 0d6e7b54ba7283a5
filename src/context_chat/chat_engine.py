"""Chat engine — retrieves context, builds the prompt, calls the model,
and commits conversation history."""

import asyncio
import logging
from pathlib import Path
from typing import Callable

from context_chat.config import AIConfig
from context_chat.context import build_context_block, build_system_instruction
from context_chat.errors import ConfigurationError
from context_chat.llm_client import CompletionClient
from context_chat.memory import ConversationStore
from context_chat.models import (
    ChatMessage,
    ChatResult,
    RagSource,
    ScoredSnippet,
    WebResult,
)
from context_chat.retriever import retrieve_local_context
from context_chat.web_search import WebSearchClient

logger = logging.getLogger(__name__)

DEFAULT_SESSION_ID = "default"

ConfigProvider = Callable[[], AIConfig]


class ChatEngine:
    """Runs one grounded chat turn per :meth:`chat` call.

    The engine holds no locks of its own; the conversation store is the
    only state shared between concurrent calls.

    Args:
        config: Either a fixed ``AIConfig`` or a zero-argument callable
            returning one. A callable is invoked once per chat call so
            that configuration changes apply to the next turn.
        corpus_dir: Directory holding the local notes.
        store: Conversation history. A private store is created if omitted.
        web_search: Search client. Created on demand if omitted.
        completion_client: Model client. Created on demand if omitted.
        relative_to: Base for reported snippet sources. Defaults to
            *corpus_dir*.
    """

    def __init__(
        self,
        config: AIConfig | ConfigProvider,
        corpus_dir: str | Path,
        store: ConversationStore | None = None,
        web_search: WebSearchClient | None = None,
        completion_client: CompletionClient | None = None,
        relative_to: str | Path | None = None,
    ) -> None:
        if isinstance(config, AIConfig):
            self._config_provider: ConfigProvider = lambda: config
        else:
            self._config_provider = config
        self.corpus_dir = Path(corpus_dir)
        self.relative_to = relative_to
        self.store = store if store is not None else ConversationStore()
        self.web_search = web_search if web_search is not None else WebSearchClient()
        self.completion_client = (
            completion_client if completion_client is not None else CompletionClient()
        )

    async def aclose(self) -> None:
        await self.web_search.aclose()
        await self.completion_client.aclose()

    def clear_session(self, session_id: str) -> bool:
        """Forget a session's history. Returns whether it existed."""
        return self.store.clear(session_id)

    async def chat(
        self,
        session_id: str | None,
        message: str,
        system_instruction: str | None = None,
        use_rag: bool | None = None,
        use_web_search: bool | None = None,
    ) -> ChatResult:
        """Answer *message* within the conversation *session_id*.

        Args:
            session_id: Conversation key. Blank selects ``"default"``.
            message: The user's message.
            system_instruction: Extra instruction for this call only.
            use_rag: Search the local corpus. Defaults to
                ``AIConfig.enable_rag``.
            use_web_search: Search the web. Defaults to
                ``AIConfig.enable_web_search``.

        Returns:
            The reply with the sources that went into the prompt.

        Raises:
            ConfigurationError: AI is disabled or no API key is set.
                Raised before any network access.
            UpstreamError: The completion call failed. History is left
                unchanged.
        """
        cfg = self._config_provider()
        if not cfg.enabled:
            raise ConfigurationError("AI is disabled. Set AI_ENABLED=true to enable it.")
        if not cfg.api_key:
            raise ConfigurationError(
                "AI API key is missing. Set AI_API_KEY in the environment."
            )

        session_id = (session_id or "").strip() or DEFAULT_SESSION_ID
        message = (message or "").strip()
        extra_instruction = (system_instruction or "").strip()
        rag_on = cfg.enable_rag if use_rag is None else use_rag
        web_on = cfg.enable_web_search if use_web_search is None else use_web_search

        local_context, web_results = await asyncio.gather(
            self._retrieve_local(message, cfg, rag_on),
            self._search_web(message, cfg, web_on),
        )

        context_block = build_context_block(local_context, web_results)
        system_prompt = build_system_instruction(
            cfg.system_prompt, extra_instruction, context_block
        )

        history = self.store.get(session_id)
        conversation = [*history, ChatMessage(role="user", content=message)]
        outbound = [ChatMessage(role="system", content=system_prompt), *conversation]

        logger.debug(
            "Session %s: %d history messages, %d local, %d web",
            session_id,
            len(history),
            len(local_context),
            len(web_results),
        )
        reply = await self.completion_client.complete(outbound, cfg)

        stored = self.store.set(
            session_id,
            [*conversation, ChatMessage(role="assistant", content=reply)],
            max_messages=cfg.max_history_messages,
        )

        return ChatResult(
            session_id=session_id,
            model=cfg.model,
            reply=reply,
            messages_in_memory=len(stored),
            rag_sources=[RagSource(source=s.source, line=s.line) for s in local_context],
            web_sources=list(web_results),
        )

    async def _retrieve_local(
        self, message: str, cfg: AIConfig, enabled: bool
    ) -> list[ScoredSnippet]:
        if not enabled:
            return []
        # Blocking file I/O runs on the loop's bounded default executor.
        return await asyncio.to_thread(
            retrieve_local_context, message, self.corpus_dir, cfg, self.relative_to
        )

    async def _search_web(
        self, message: str, cfg: AIConfig, enabled: bool
    ) -> list[WebResult]:
        if not enabled:
            return []
        return await self.web_search.search(
            message, cfg.web_search_top_k, timeout_s=cfg.search_timeout_s
        )
