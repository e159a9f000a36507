"""Tests for the command-line entry point."""

import json

import pytest

from codelore.__main__ import main
from codelore.config import settings


@pytest.fixture
def project(tmp_path):
    app = tmp_path / "App"
    app.mkdir()
    (app / "XYHomeViewController.m").write_text(
        "@implementation XYHomeViewController\n// TODO: paginate the feed\n@end\n", encoding="utf-8"
    )
    return tmp_path


class TestMain:
    async def test_json_to_file(self, project, tmp_path, monkeypatch):
        out = tmp_path / "knowledge.json"
        monkeypatch.setattr("sys.argv", ["codelore", str(project), "-d", "agent-guidelines", "--json", "-o", str(out)])
        assert await main() == 0
        payload = json.loads(out.read_text(encoding="utf-8"))
        titles = [c["title"] for c in payload["candidates"]]
        assert "[Bootstrap] agent-guidelines/coding-principles" in titles
        assert "[Bootstrap] agent-guidelines/todo-fixme" in titles

    async def test_markdown_to_stdout(self, project, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["codelore", str(project), "-d", "agent-guidelines"])
        assert await main() == 0
        assert "<!-- [Bootstrap] agent-guidelines/coding-principles" in capsys.readouterr().out

    async def test_review_needs_api_key(self, project, monkeypatch, capsys):
        monkeypatch.setattr(settings, "ANTHROPIC_API_KEY", "")
        monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
        monkeypatch.setattr("sys.argv", ["codelore", str(project), "--review"])
        assert await main() == 1
        assert "ANTHROPIC_API_KEY" in capsys.readouterr().err

    async def test_missing_directory(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr("sys.argv", ["codelore", str(tmp_path / "nope")])
        assert await main() == 1
        assert "Not a directory" in capsys.readouterr().err
