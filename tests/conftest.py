"""Shared fixtures for the test suite."""

import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Callable

import httpx
import pytest

from context_chat.config import AIConfig


@pytest.fixture
def ai_config() -> AIConfig:
    """An enabled configuration with both retrieval toggles off."""
    return AIConfig(
        enabled=True,
        api_key="test-key",
        api_base_url="https://llm.example.com/v1",
        model="test-model",
        enable_rag=False,
        enable_web_search=False,
    )


@pytest.fixture
def corpus_dir(tmp_path: Path) -> Path:
    """Create a notes corpus: one specific file, one unrelated, one catch-all."""
    root = tmp_path / "rag"
    (root / "notes").mkdir(parents=True)

    (root / "notes" / "project.txt").write_text(
        "Project pipeline uses blue green rollout.\n"
        "Rollback is manual.\n"
        "\n"
        "Owner: platform team.\n",
        encoding="utf-8",
    )
    (root / "other.txt").write_text(
        "The pipeline in the garden leaks.\n",
        encoding="utf-8",
    )
    (root / "knowledge.txt").write_text(
        "General facts.\n"
        "A pipeline moves water.\n",
        encoding="utf-8",
    )
    return root


@pytest.fixture
def make_http_client() -> Callable[[Callable], httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` whose requests are answered by *handler*."""

    def _make(handler: Callable) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _make


@pytest.fixture
def slow_server():
    """Start a local HTTP server answering every request after *delay* seconds.

    Yields a ``start(payload, delay)`` callable returning the base URL.
    """
    servers: list[ThreadingHTTPServer] = []

    def start(payload: dict, delay: float) -> str:
        body = json.dumps(payload).encode("utf-8")

        class Handler(BaseHTTPRequestHandler):
            def _reply(self) -> None:
                length = int(self.headers.get("Content-Length") or 0)
                if length:
                    self.rfile.read(length)
                time.sleep(delay)
                self.send_response(200)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            do_GET = _reply
            do_POST = _reply

            def log_message(self, format, *args) -> None:
                pass

        server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        servers.append(server)
        threading.Thread(target=server.serve_forever, daemon=True).start()
        return f"http://127.0.0.1:{server.server_address[1]}"

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()
