"""Tests for the voice-cal CLI entry point."""

from __future__ import annotations

import json
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from voice_cal.__main__ import _resolve_command, build_parser, main
from voice_cal.exceptions import EncodingFailed, ExtractionFailed
from voice_cal.history import HistoryStore
from voice_cal.models.event import EventDetails
from voice_cal.storage import LocalStorage

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_gemini(lunch_event: EventDetails) -> Iterator[MagicMock]:
    """Patch the Gemini client used by the session factory."""
    with patch("voice_cal.session.GeminiClient") as mock_cls:
        client = mock_cls.return_value
        client.extract_event_details.return_value = lunch_event
        client.transcribe_audio.return_value = "lunch with Sam tomorrow at noon"
        yield client


def _answers(*values: str):
    return patch("builtins.input", side_effect=list(values))


def _history(env: dict[str, str]) -> HistoryStore:
    return HistoryStore(LocalStorage(Path(env["VOICE_CAL_HOME"]) / "storage.json"))


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


class TestResolveCommand:
    def test_bare_text_routes_to_create(self) -> None:
        args = _resolve_command(build_parser(), ["lunch", "tomorrow"])

        assert args.command == "create"
        assert args.text == ["lunch", "tomorrow"]

    def test_empty_argv_routes_to_create(self) -> None:
        args = _resolve_command(build_parser(), [])

        assert args.command == "create"
        assert args.text == []

    def test_explicit_subcommand(self) -> None:
        args = _resolve_command(build_parser(), ["history", "remove", "abc"])

        assert args.command == "history"
        assert args.action == "remove"
        assert args.item_id == "abc"

    def test_history_defaults_to_list(self) -> None:
        assert _resolve_command(build_parser(), ["history"]).action == "list"

    def test_sources_are_mutually_exclusive(self) -> None:
        with pytest.raises(SystemExit):
            _resolve_command(build_parser(), ["create", "--file", "a", "--audio", "b"])


# ---------------------------------------------------------------------------
# create
# ---------------------------------------------------------------------------


class TestCreate:
    def test_confirmed_event_is_saved(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with _answers("y"):
            code = main(["lunch", "with", "Sam", "tomorrow", "at", "noon"])

        assert code == 0
        out = capsys.readouterr().out
        assert 'Transcript: "lunch with Sam tomorrow at noon"' in out
        assert "Event created successfully!" in out
        items = _history(monkeypatch_env).items
        assert len(items) == 1
        assert Path(items[0].download_url.removeprefix("file://")).exists()

    def test_yes_skips_review(
        self, monkeypatch_env: dict[str, str], mock_gemini: MagicMock
    ) -> None:
        with patch("builtins.input") as mock_input:
            code = main(["create", "-y", "lunch"])

        assert code == 0
        mock_input.assert_not_called()
        assert len(_history(monkeypatch_env)) == 1

    def test_declined_event_is_discarded(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with _answers("n"):
            code = main(["lunch"])

        assert code == 0
        assert "Event discarded." in capsys.readouterr().out
        assert len(_history(monkeypatch_env)) == 0

    def test_edit_before_saving(
        self, monkeypatch_env: dict[str, str], mock_gemini: MagicMock
    ) -> None:
        # edit -> title, description, start, end, location -> yes
        with _answers("e", "Lunch with Alex", "", "", "2026-02-19T14:00", "", "y"):
            code = main(["lunch"])

        assert code == 0
        saved = _history(monkeypatch_env).items[0].event_details
        assert saved.title == "Lunch with Alex"
        assert saved.end == (2026, 2, 19, 14, 0)
        assert saved.location == "Cafe Roma"

    def test_invalid_edit_keeps_candidate(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with _answers("e", "", "", "2026-02-30T12:00", "", "", "y"):
            code = main(["lunch"])

        assert code == 0
        assert "Invalid event details" in capsys.readouterr().err
        assert _history(monkeypatch_env).items[0].event_details.start == (2026, 2, 19, 12, 0)

    def test_unrecognised_answer_reprompts(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        with _answers("maybe", "y"):
            code = main(["lunch"])

        assert code == 0
        assert "Please answer y, e or n." in capsys.readouterr().out

    @pytest.mark.parametrize(
        "answers",
        [[EOFError()], ["e", "Lunch with Alex", EOFError()]],
    )
    def test_closed_stdin_discards_and_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
        answers: list,
    ) -> None:
        with patch("builtins.input", side_effect=answers):
            code = main(["lunch"])

        assert code == 1
        assert "Input closed" in capsys.readouterr().err
        assert len(_history(monkeypatch_env)) == 0

    def test_extraction_failure_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        mock_gemini.extract_event_details.side_effect = ExtractionFailed("bad json")

        code = main(["lunch"])

        assert code == 1
        assert "Error creating event" in capsys.readouterr().err

    def test_encoding_failure_with_yes_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
    ) -> None:
        with patch(
            "voice_cal.session.CalendarEncoder.encode",
            side_effect=EncodingFailed("disk full"),
        ):
            code = main(["-y", "lunch"])

        assert code == 1
        assert len(_history(monkeypatch_env)) == 0

    def test_no_text_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = main([])

        assert code == 1
        assert "No event description" in capsys.readouterr().err
        mock_gemini.extract_event_details.assert_not_called()

    def test_file_source(
        self, monkeypatch_env: dict[str, str], mock_gemini: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "note.txt"
        path.write_text("dentist on Monday at 9\n", encoding="utf-8")

        code = main(["create", "-y", "--file", str(path)])

        assert code == 0
        args, _ = mock_gemini.extract_event_details.call_args
        assert args[0] == "dentist on Monday at 9"

    def test_missing_file_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        mock_gemini: MagicMock,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        code = main(["create", "--file", "/nonexistent/note.txt"])

        assert code == 1
        assert "File not found" in capsys.readouterr().err

    def test_audio_source(
        self, monkeypatch_env: dict[str, str], mock_gemini: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "memo.mp3"
        path.write_bytes(b"\x1aE\xdf\xa3fake")

        code = main(["create", "-y", "--audio", str(path)])

        assert code == 0
        mock_gemini.transcribe_audio.assert_called_once_with(
            b"\x1aE\xdf\xa3fake", mime_type="audio/mpeg"
        )

    def test_replay_source(
        self, monkeypatch_env: dict[str, str], mock_gemini: MagicMock, tmp_path: Path
    ) -> None:
        path = tmp_path / "rec.jsonl"
        batches = [
            {"results": [{"isFinal": True, "transcript": "lunch with Sam"}]},
            {"results": [{"isFinal": False, "transcript": "tomorrow"}]},
        ]
        path.write_text("\n".join(json.dumps(b) for b in batches), encoding="utf-8")

        code = main(["create", "-y", "--replay", str(path)])

        assert code == 0
        args, _ = mock_gemini.extract_event_details.call_args
        assert args[0] == "lunch with Sam tomorrow"

    def test_missing_api_key_exits_1(
        self, clean_env: None, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["lunch"])

        assert code == 1
        assert "GEMINI_API_KEY" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# transcribe
# ---------------------------------------------------------------------------


class TestTranscribe:
    def test_prints_transcription(
        self,
        monkeypatch_env: dict[str, str],
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "memo.wav"
        path.write_bytes(b"RIFFfake")

        with patch("voice_cal.__main__.GeminiClient") as mock_cls:
            mock_cls.return_value.transcribe_audio.return_value = "call mom at six"
            code = main(["transcribe", str(path)])

        assert code == 0
        assert capsys.readouterr().out.strip() == "call mom at six"

    def test_service_failure_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        tmp_path: Path,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        path = tmp_path / "memo.wav"
        path.write_bytes(b"RIFFfake")

        with patch("voice_cal.__main__.GeminiClient") as mock_cls:
            mock_cls.return_value.transcribe_audio.side_effect = ExtractionFailed("timeout")
            code = main(["transcribe", str(path)])

        assert code == 1
        assert "Error transcribing audio" in capsys.readouterr().err


# ---------------------------------------------------------------------------
# history and share
# ---------------------------------------------------------------------------


class TestHistoryCommand:
    def test_list_empty_without_api_key(
        self,
        monkeypatch_env: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.delenv("GEMINI_API_KEY")

        code = main(["history"])

        assert code == 0
        assert "No events created yet." in capsys.readouterr().out

    def test_remove_and_clear(
        self,
        monkeypatch_env: dict[str, str],
        make_history_item,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        history = _history(monkeypatch_env)
        history.add(make_history_item("a"))
        history.add(make_history_item("b"))

        assert main(["history", "remove", "a"]) == 0
        assert [item.id for item in _history(monkeypatch_env).items] == ["b"]
        assert main(["history", "clear"]) == 0
        assert len(_history(monkeypatch_env)) == 0
        out = capsys.readouterr().out
        assert "Removed a." in out
        assert "History cleared." in out

    def test_remove_unknown_id(
        self, monkeypatch_env: dict[str, str], capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["history", "remove", "nope"]) == 1
        assert "No history item with id nope" in capsys.readouterr().err

    def test_remove_requires_id(self, monkeypatch_env: dict[str, str]) -> None:
        assert main(["history", "remove"]) == 1


class TestShareCommand:
    def test_mailto(
        self,
        monkeypatch_env: dict[str, str],
        make_history_item,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _history(monkeypatch_env).add(make_history_item("abc"))

        code = main(["share", "abc", "--mailto"])

        assert code == 0
        assert capsys.readouterr().out.startswith("mailto:?subject=Lunch%20with%20Sam")

    def test_send(
        self, monkeypatch_env: dict[str, str], make_history_item
    ) -> None:
        _history(monkeypatch_env).add(make_history_item("abc"))

        with patch("voice_cal.__main__.send_invite") as mock_send:
            code = main(["share", "abc", "--to", "sam@example.com", "--from", "me@example.com"])

        assert code == 0
        _, kwargs = mock_send.call_args
        assert kwargs["recipient"] == "sam@example.com"
        assert kwargs["sender"] == "me@example.com"

    def test_send_without_smtp_exits_1(
        self,
        monkeypatch_env: dict[str, str],
        make_history_item,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        _history(monkeypatch_env).add(make_history_item("abc"))

        code = main(["share", "abc", "--to", "sam@example.com", "--from", "me@example.com"])

        assert code == 1
        assert "SMTP_HOST" in capsys.readouterr().err

    def test_unknown_item(self, monkeypatch_env: dict[str, str]) -> None:
        assert main(["share", "nope", "--mailto"]) == 1
