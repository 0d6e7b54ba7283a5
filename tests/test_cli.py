"""Tests for the cli module."""

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from context_chat.cli import _chat_loop, _setup_logging, chat, main, search
from context_chat.config import AIConfig, AppConfig
from context_chat.errors import UpstreamError
from context_chat.models import ChatResult, RagSource, WebResult


class TestSetupLogging:
    def test_default_level_is_info(self) -> None:
        with patch("context_chat.cli.logging.basicConfig") as mock_basic:
            _setup_logging()
            mock_basic.assert_called_once()
            assert mock_basic.call_args[1]["level"] == 20  # logging.INFO

    def test_verbose_sets_debug(self) -> None:
        with patch("context_chat.cli.logging.basicConfig") as mock_basic:
            _setup_logging(verbose=True)
            mock_basic.assert_called_once()
            assert mock_basic.call_args[1]["level"] == 10  # logging.DEBUG


class TestSearch:
    def test_prints_matches(self, corpus_dir: Path, capsys) -> None:
        search("project pipeline", config=AppConfig(rag_dir=str(corpus_dir)))
        out = capsys.readouterr().out
        assert "[8] notes/project.txt:1" in out
        assert "Project pipeline uses blue green rollout." in out

    def test_top_k_override(self, corpus_dir: Path, capsys) -> None:
        search("project pipeline", top_k=1, config=AppConfig(rag_dir=str(corpus_dir)))
        out = capsys.readouterr().out
        assert "notes/project.txt" in out
        assert "other.txt" not in out

    def test_no_matches(self, tmp_path: Path, capsys) -> None:
        search("anything", config=AppConfig(rag_dir=str(tmp_path)))
        assert "No matches" in capsys.readouterr().out


class TestChat:
    def test_unconfigured_exits(self, capsys) -> None:
        chat(config=AppConfig(ai=AIConfig(enabled=False)))
        assert "AI is not configured" in capsys.readouterr().out

    @patch("builtins.input", side_effect=["quit"])
    def test_quit_command(self, mock_input, capsys) -> None:
        chat(config=AppConfig(ai=AIConfig(enabled=True, api_key="k")))
        assert "Goodbye!" in capsys.readouterr().out


def _run_loop(engine, inputs):
    import asyncio

    with patch("builtins.input", side_effect=inputs):
        asyncio.run(_chat_loop(engine, "cli", None, None))


class TestChatLoop:
    def test_prints_reply_and_sources(self, capsys) -> None:
        engine = MagicMock()
        engine.chat = AsyncMock(
            return_value=ChatResult(
                session_id="cli",
                model="m",
                reply="Hi there",
                messages_in_memory=2,
                rag_sources=[RagSource(source="notes/a.txt", line=2)],
                web_sources=[WebResult(title="T", link="https://x/t", snippet="S")],
            )
        )

        _run_loop(engine, ["hello", "", "exit"])

        out = capsys.readouterr().out
        assert "Hi there" in out
        assert "local: notes/a.txt:2" in out
        assert "web:   https://x/t" in out
        engine.chat.assert_awaited_once_with(
            "cli", "hello", use_rag=None, use_web_search=None
        )

    def test_errors_do_not_end_session(self, capsys) -> None:
        engine = MagicMock()
        engine.chat = AsyncMock(side_effect=UpstreamError("AI request failed."))

        _run_loop(engine, ["hello", "q"])

        out = capsys.readouterr().out
        assert "Error: AI request failed." in out
        assert "Goodbye!" in out

    def test_clear_command(self, capsys) -> None:
        engine = MagicMock()
        _run_loop(engine, ["/clear", EOFError()])
        engine.clear_session.assert_called_once_with("cli")
        assert "Session cleared." in capsys.readouterr().out


class TestMain:
    @patch("context_chat.cli.search")
    def test_search_command(self, mock_search) -> None:
        with patch("sys.argv", ["context-chat", "search", "blue green", "--top-k", "2"]):
            main()
        mock_search.assert_called_once_with("blue green", top_k=2)

    @patch("context_chat.cli.chat")
    def test_chat_command_flags(self, mock_chat) -> None:
        with patch("sys.argv", ["context-chat", "chat", "--no-web", "--session", "me"]):
            main()
        mock_chat.assert_called_once_with(
            session_id="me", use_rag=None, use_web_search=False
        )

    @patch("context_chat.cli.serve")
    def test_serve_command(self, mock_serve) -> None:
        with patch("sys.argv", ["context-chat", "serve", "--port", "9000"]):
            main()
        mock_serve.assert_called_once_with(host=None, port=9000)

    def test_no_command_exits(self) -> None:
        with patch("sys.argv", ["context-chat"]):
            with pytest.raises(SystemExit):
                main()
