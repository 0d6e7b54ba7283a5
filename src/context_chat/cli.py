"""CLI interface for the chat engine."""

import argparse
import asyncio
import logging
import sys

from context_chat.chat_engine import ChatEngine
from context_chat.config import AppConfig
from context_chat.errors import ChatError
from context_chat.retriever import retrieve_local_context

_EXIT_COMMANDS = ("quit", "exit", "q")


def _setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def search(query: str, top_k: int | None = None, config: AppConfig | None = None) -> None:
    """Print the local corpus snippets that best match *query*.

    Args:
        query: Text to match against the corpus.
        top_k: Overrides ``AIConfig.rag_top_k`` when given.
        config: Application configuration. Uses defaults if not provided.
    """
    cfg = config or AppConfig()
    ai_cfg = cfg.ai
    if top_k is not None:
        ai_cfg = ai_cfg.model_copy(update={"rag_top_k": top_k})

    snippets = retrieve_local_context(query, cfg.rag_dir, ai_cfg)
    if not snippets:
        print(f"No matches in {cfg.rag_dir}")
        return

    for snippet in snippets:
        print(f"\n[{snippet.score}] {snippet.source}:{snippet.line}")
        print(snippet.text)


async def _chat_loop(
    engine: ChatEngine,
    session_id: str,
    use_rag: bool | None,
    use_web_search: bool | None,
) -> None:
    while True:
        try:
            message = input("You: ").strip()
        except (EOFError, KeyboardInterrupt):
            print("\nGoodbye!")
            return

        if not message:
            continue
        if message.lower() in _EXIT_COMMANDS:
            print("Goodbye!")
            return
        if message == "/clear":
            engine.clear_session(session_id)
            print("Session cleared.\n")
            continue

        try:
            result = await engine.chat(
                session_id,
                message,
                use_rag=use_rag,
                use_web_search=use_web_search,
            )
        except ChatError as exc:
            print(f"\nError: {exc.message}\n")
            continue

        print(f"\nAssistant:\n{result.reply}\n")
        for src in result.rag_sources:
            print(f"  local: {src.source}:{src.line}")
        for web in result.web_sources:
            print(f"  web:   {web.link}")


def chat(
    session_id: str = "cli",
    use_rag: bool | None = None,
    use_web_search: bool | None = None,
    config: AppConfig | None = None,
) -> None:
    """Start an interactive chat session.

    Each line typed is sent through the full engine (local retrieval,
    web search, completion). Exits on 'quit', 'exit', 'q', EOF, or
    KeyboardInterrupt; '/clear' forgets the conversation so far.

    Args:
        session_id: Conversation key used for history.
        use_rag: Override for ``AIConfig.enable_rag``.
        use_web_search: Override for ``AIConfig.enable_web_search``.
        config: Application configuration. Uses defaults if not provided.
    """
    cfg = config or AppConfig()

    if not cfg.ai.enabled or not cfg.ai.api_key:
        print("AI is not configured. Set AI_ENABLED=true and AI_API_KEY.")
        return

    print(f"\n💬 Context Chat ({cfg.ai.model})")
    print(f"📂 Local notes: {cfg.rag_dir}")
    print("\nType your message (or 'quit' to exit, '/clear' to reset):\n")

    async def _run() -> None:
        engine = ChatEngine(cfg.ai, cfg.rag_dir)
        try:
            await _chat_loop(engine, session_id, use_rag, use_web_search)
        finally:
            await engine.aclose()

    asyncio.run(_run())


def serve(host: str | None = None, port: int | None = None, config: AppConfig | None = None) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    cfg = config or AppConfig()
    uvicorn.run(
        "context_chat.web:app",
        host=host or cfg.server.host,
        port=port or cfg.server.port,
    )


def main() -> None:
    """CLI entry point — parse arguments and dispatch to a subcommand."""
    parser = argparse.ArgumentParser(
        description="Context Chat — grounded chat over local notes and the web",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # chat
    chat_p = subparsers.add_parser("chat", help="Start interactive chat")
    chat_p.add_argument("--session", type=str, default="cli", help="Session id")
    chat_p.add_argument(
        "--no-rag", action="store_true", help="Do not search local notes"
    )
    chat_p.add_argument(
        "--no-web", action="store_true", help="Do not search the web"
    )

    # search
    search_p = subparsers.add_parser("search", help="Search local notes only")
    search_p.add_argument("query", type=str, help="Search text")
    search_p.add_argument("--top-k", type=int, default=None, help="Max results")

    # serve
    serve_p = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_p.add_argument("--host", type=str, default=None, help="Bind address")
    serve_p.add_argument("--port", type=int, default=None, help="Bind port")

    args = parser.parse_args()
    _setup_logging(args.verbose)

    if args.command == "chat":
        chat(
            session_id=args.session,
            use_rag=False if args.no_rag else None,
            use_web_search=False if args.no_web else None,
        )
    elif args.command == "search":
        search(args.query, top_k=args.top_k)
    elif args.command == "serve":
        serve(host=args.host, port=args.port)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
