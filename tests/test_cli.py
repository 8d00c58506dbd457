"""Tests for the typer CLI."""

from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from conftest import FakeGeminiClient
from studio import __version__, cli
from studio.config import Config
from studio.services import gemini as gemini_module

runner = CliRunner()


@pytest.fixture
def fake_client() -> FakeGeminiClient:
    return FakeGeminiClient()


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, settings: Config, fake_client: FakeGeminiClient) -> Config:
    """Point the CLI at a temp storage file and a fake generation client."""
    monkeypatch.setattr(cli, "config", settings)
    monkeypatch.setattr(gemini_module, "GeminiClient", lambda *args, **kwargs: fake_client)
    return settings


@pytest.fixture
def photo(tmp_path: Path) -> Path:
    path = tmp_path / "photo.png"
    path.write_bytes(b"\x89PNG fake")
    return path


def _saved_ids() -> list[str]:
    result = runner.invoke(cli.app, ["projects"])
    return [line.split()[0] for line in result.output.splitlines()[1:] if line.strip()]


class TestProjectCommands:
    def test_version(self):
        result = runner.invoke(cli.app, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_projects_empty(self):
        result = runner.invoke(cli.app, ["projects"])
        assert result.exit_code == 0
        assert "No saved projects." in result.output

    def test_show_unknown(self):
        result = runner.invoke(cli.app, ["show", "proj-404"])
        assert result.exit_code == 1
        assert "Project not found: proj-404" in result.output

    def test_save_show_delete(self, photo: Path, tmp_path: Path):
        result = runner.invoke(
            cli.app, ["image", "a portrait", "--output", str(tmp_path / "out.png"), "--save", "Portraits"]
        )
        assert result.exit_code == 0, result.output
        assert "Saved project 'Portraits'" in result.output

        ids = _saved_ids()
        assert len(ids) == 1

        shown = runner.invoke(cli.app, ["show", ids[0]])
        assert shown.exit_code == 0
        assert "Portraits" in shown.output
        assert "History: 1 image(s)" in shown.output

        deleted = runner.invoke(cli.app, ["delete", ids[0], "--yes"])
        assert deleted.exit_code == 0
        assert _saved_ids() == []

    def test_show_empty_history(self):
        runner.invoke(cli.app, ["prompt", "--save", "Blank"])
        [project_id] = _saved_ids()
        result = runner.invoke(cli.app, ["show", project_id])
        assert result.exit_code == 0, result.output
        assert "History: empty" in result.output
        assert "current #0" not in result.output

    def test_delete_cancelled(self, tmp_path: Path):
        runner.invoke(cli.app, ["prompt", "--save", "Keep"])
        ids = _saved_ids()
        result = runner.invoke(cli.app, ["delete", ids[0]], input="n\n")
        assert "Cancelled." in result.output
        assert _saved_ids() == ids

    def test_export_import(self, tmp_path: Path):
        runner.invoke(cli.app, ["prompt", "--job-title", "chef", "--save", "Original"])
        [project_id] = _saved_ids()
        exported = tmp_path / "export" / "project.yaml"

        result = runner.invoke(cli.app, ["export", project_id, "--output", str(exported)])
        assert result.exit_code == 0, result.output
        assert exported.exists()

        result = runner.invoke(cli.app, ["import", str(exported), "--name", "Copy"])
        assert result.exit_code == 0, result.output
        assert len(_saved_ids()) == 2

    def test_import_invalid_file(self, tmp_path: Path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("just a string\n")
        result = runner.invoke(cli.app, ["import", str(bad)])
        assert result.exit_code == 1


class TestGenerationCommands:
    def test_prompt(self):
        result = runner.invoke(cli.app, ["prompt", "--job-title", "pilot", "--horizontal", "1"])
        assert result.exit_code == 0, result.output
        assert "The subject is a pilot." in result.output
        assert "Horizontal: -35°" in result.output

    def test_video_prompt(self):
        result = runner.invoke(cli.app, ["prompt", "--target", "video", "--age", "50"])
        assert result.exit_code == 0, result.output
        assert "The person is around 50 years old." in result.output

    def test_chat(self, fake_client: FakeGeminiClient):
        result = runner.invoke(cli.app, ["chat", "hello"])
        assert result.exit_code == 0, result.output
        assert fake_client.text_result.text in result.output

    def test_chat_empty(self):
        result = runner.invoke(cli.app, ["chat", ""])
        assert result.exit_code == 1

    def test_image_with_reference(self, photo: Path, tmp_path: Path, fake_client: FakeGeminiClient):
        output = tmp_path / "gen.png"
        result = runner.invoke(cli.app, ["image", "at the beach", "--reference", str(photo), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert fake_client.call_names() == ["combine_images"]
        assert output.read_bytes() == fake_client.image.to_bytes()

    def test_image_failure(self, tmp_path: Path, fake_client: FakeGeminiClient):
        from studio.errors import RemoteServiceError

        fake_client.error = RemoteServiceError("generate_image", "quota")
        result = runner.invoke(cli.app, ["image", "x", "-o", str(tmp_path / "x.png")])
        assert result.exit_code == 1
        assert "Generation failed" in result.output

    def test_edit(self, photo: Path, tmp_path: Path, fake_client: FakeGeminiClient):
        output = tmp_path / "edited.png"
        result = runner.invoke(cli.app, ["edit", str(photo), "make it sepia", "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert fake_client.call_names() == ["edit_image"]
        assert output.exists()

    def test_combine_needs_two_images(self, photo: Path):
        result = runner.invoke(cli.app, ["combine", "merge", str(photo)])
        assert result.exit_code == 1
        assert "at least two" in result.output

    def test_video(self, photo: Path, tmp_path: Path, fake_client: FakeGeminiClient):
        output = tmp_path / "clip.mp4"
        result = runner.invoke(cli.app, ["video", "wave hello", "--image", str(photo), "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert output.read_bytes() == fake_client.video_bytes

    def test_missing_credentials(self, monkeypatch: pytest.MonkeyPatch, settings: Config):
        monkeypatch.setattr(cli, "config", settings.model_copy(update={"gemini_api_key": ""}))
        result = runner.invoke(cli.app, ["chat", "hello"])
        assert result.exit_code == 1
        assert "Configuration error" in result.output
