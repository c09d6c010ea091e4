"""CLI 命令测试"""

import httpx
import pytest
import sidebyside.__main__ as cli
from sidebyside.client import GeminiClient
from sidebyside.store import open_prompt_store


@pytest.fixture
def cli_env(monkeypatch, tmp_path, gemini_body):
    """隔离数据目录，并让 CLI 创建的客户端走 MockTransport"""
    monkeypatch.setenv("SIDEBYSIDE_DB_PATH", str(tmp_path / "cli.db"))
    monkeypatch.setenv("SIDEBYSIDE_EXPORT_DIR", str(tmp_path / "exports"))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GEMINI_BASE_URL", raising=False)
    monkeypatch.setattr(cli, "setup_logging", lambda: None)

    def handler(request: httpx.Request) -> httpx.Response:
        if "gemini-2.5-flash:" in request.url.path:
            return httpx.Response(503, text="overloaded")
        return httpx.Response(200, json=gemini_body())

    def client_factory(**kwargs) -> GeminiClient:
        return GeminiClient(transport=httpx.MockTransport(handler), **kwargs)

    monkeypatch.setattr(cli, "GeminiClient", client_factory)
    return tmp_path


class TestCompare:
    """compare 命令测试"""

    async def test_compare_with_export(self, cli_env, monkeypatch, capsys):
        monkeypatch.setenv("GEMINI_API_KEY", "k")

        code = await cli.compare("Hello", [], export=True)

        out = capsys.readouterr().out
        assert code == 0
        assert "Gemini 2.5 Pro" in out
        assert "Hi there!" in out
        assert "[错误] gemini-2.5-flash" in out
        assert len(list((cli_env / "exports").glob("gemini-comparison-*.json"))) == 1

        store = await open_prompt_store(cli_env / "cli.db")
        try:
            assert await store.prompts.load_history() == ["Hello"]
        finally:
            await store.close()

    async def test_stored_api_key_used(self, cli_env, capsys):
        store = await open_prompt_store(cli_env / "cli.db")
        try:
            await store.prompts.save_api_key("stored-key")
        finally:
            await store.close()

        code = await cli.compare("Hello", ["gemini-2.0-flash"])

        assert code == 0
        assert "Gemini 2.0 Flash" in capsys.readouterr().out

    async def test_missing_api_key(self, cli_env, capsys):
        assert await cli.compare("Hello", []) == 1
        assert "GEMINI_API_KEY" in capsys.readouterr().out

    async def test_invalid_prompt(self, cli_env, capsys):
        assert await cli.compare("   ", []) == 1
        assert "prompt 无效" in capsys.readouterr().out

    async def test_all_slots_failed(self, cli_env, monkeypatch):
        monkeypatch.setenv("GEMINI_API_KEY", "k")
        models = ["gemini-2.5-flash", "gemini-2.5-flash", "gemini-2.5-flash"]
        assert await cli.compare("Hello", models) == 1


class TestMain:
    """命令分发测试"""

    def test_models(self, cli_env, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["sidebyside", "models"])
        cli.main()
        out = capsys.readouterr().out
        assert "Gemini 2.5:" in out
        assert "gemini-2.5-pro" in out

    def test_no_command(self, cli_env, monkeypatch):
        monkeypatch.setattr("sys.argv", ["sidebyside"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1

    def test_unknown_command(self, cli_env, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["sidebyside", "nope"])
        with pytest.raises(SystemExit):
            cli.main()
        assert "未知命令" in capsys.readouterr().out

    def test_too_many_models(self, cli_env, monkeypatch):
        monkeypatch.setattr("sys.argv", ["sidebyside", "compare", "Hi", "a", "b", "c", "d"])
        with pytest.raises(SystemExit) as exc_info:
            cli.main()
        assert exc_info.value.code == 1
