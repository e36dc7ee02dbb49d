"""
Unit tests for the command line interface (bookstudio/cli.py)
"""
import logging
import pytest
from unittest.mock import AsyncMock, patch

from bookstudio import cli


def fake_client(chapters, slots):
    client = AsyncMock()
    client.__aenter__.return_value = client
    client.list_chapters.return_value = chapters
    client.get_publish_slots.return_value = slots
    return client


def chapter(number, words):
    return {"id": f"c{number}", "number": number, "title": f"Chapter {number}",
            "content": " ".join(["word"] * words)}


class TestMetricsCommand:
    """Test `bookstudio metrics`"""

    def test_totals(self, tmp_path, capsys):
        """Counts words in plain text and HTML files."""
        plain = tmp_path / "one.txt"
        plain.write_text(" ".join(["word"] * 300), encoding="utf-8")
        markup = tmp_path / "two.html"
        markup.write_text("<p>alpha</p><p>beta&nbsp;gamma</p>", encoding="utf-8")

        assert cli.main(["metrics", str(plain), str(markup)]) == 0

        out = capsys.readouterr().out
        assert "one.txt" in out
        assert "two.html" in out
        # 300 words -> 2 pages, 3 words -> 1 page
        assert "303" in out
        assert "Estimated reading time: 2 min" in out

    def test_missing_file(self, tmp_path, capsys):
        """A missing file is reported with exit code 1."""
        assert cli.main(["metrics", str(tmp_path / "nope.txt")]) == 1
        assert "File not found" in capsys.readouterr().out


class TestReadinessCommand:
    """Test `bookstudio readiness`"""

    def test_ready(self, capsys):
        """A 30-page book with a tag and consent is ready."""
        client = fake_client([chapter(1, 250 * 30)], {"remaining": 1, "limit": 2})
        with patch.object(cli, "PersistenceClient", return_value=client):
            code = cli.main(["readiness", "doc1", "--tag", "fantasy", "--consent"])

        assert code == 0
        out = capsys.readouterr().out
        assert "30 / 30 pages" in out
        assert "Ready to publish." in out

    def test_not_ready_shows_first_reason(self, capsys):
        """The first failing rule is printed with exit code 2."""
        client = fake_client([chapter(1, 250 * 29)], {"remaining": 1, "limit": 2})
        with patch.object(cli, "PersistenceClient", return_value=client):
            code = cli.main(["readiness", "doc1", "--tag", "fantasy", "--consent"])

        assert code == 2
        assert "at least 30 pages" in capsys.readouterr().out


class TestParser:
    """Test argument handling"""

    def test_no_command_prints_help(self, capsys):
        """Running without a command exits with 1."""
        assert cli.main([]) == 1
        assert "metrics" in capsys.readouterr().out

    def test_serve_uses_uvicorn(self):
        """`serve` hands the app path to uvicorn."""
        with patch("uvicorn.run") as run:
            assert cli.main(["serve", "--port", "9001"]) == 0
        run.assert_called_once()
        assert run.call_args.args[0] == "api.main:app"
        assert run.call_args.kwargs["port"] == 9001

    def test_verbose_flag(self, capsys):
        """`-v` turns on debug console logging."""
        with patch.object(cli, "set_console_level") as set_level:
            assert cli.main(["-v", "config"]) == 0
        set_level.assert_called_once_with(logging.DEBUG)
        assert "CONFIGURATION" in capsys.readouterr().out
