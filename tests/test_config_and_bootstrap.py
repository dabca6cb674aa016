# tests/test_config_and_bootstrap.py

from __future__ import annotations

import dataclasses
import io
from pathlib import Path

import pytest

from flowx.cli.bootstrap import create_initial_state
from flowx.config import Settings
from flowx.llm.client import friendly_llm_error_message
from flowx.llm.offline import OfflineLLMClient
from flowx.storage.kv_store import SqliteKeyValueStore, read_json, write_json
from flowx.voice import tts_speaker
from flowx.voice.speaker import ConsoleSpeaker
from flowx.voice.tts_speaker import TtsBackend, TtsSpeaker

from .fakes import FakePlayer, FakeTtsModel, RecordingSpeaker


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> pytest.MonkeyPatch:
    for name in (
        "FLOWX_OPENROUTER_API_KEY",
        "OPENROUTER_API_KEY",
        "FLOWX_LLM_MODELS",
        "FLOWX_LATE_CREDIT",
        "FLOWX_TTS_MODE",
        "FLOWX_SPEAKER_WAV",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("FLOWX_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.delenv("FLOWX_STORAGE_DB_PATH", raising=False)
    return monkeypatch


def test_settings_defaults(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    s = Settings.from_env()
    assert s.late_credit == 0.5
    assert s.storage_db_path == tmp_path / "data" / "flowx.sqlite3"
    assert s.openrouter_api_key is None
    assert len(s.llm_models) == 3


def test_settings_parse_and_clamp(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("FLOWX_LATE_CREDIT", "1.7")
    clean_env.setenv("FLOWX_LLM_MODELS", "a/b, c/d  e/f")
    s = Settings.from_env()
    assert s.late_credit == 1.0
    assert s.llm_models == ["a/b", "c/d", "e/f"]

    clean_env.setenv("FLOWX_LATE_CREDIT", "not a number")
    assert Settings.from_env().late_credit == 0.5


def test_bootstrap_without_api_key_runs_offline(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings.from_env()
    state = create_initial_state(settings=settings, speaker=RecordingSpeaker())

    assert settings.storage_db_path.exists()
    assert isinstance(state.coach._llm, OfflineLLMClient)
    assert state.profile is None
    assert state.task_store.count_tasks() == 0


def test_friendly_llm_error_message() -> None:
    assert "FLOWX_OPENROUTER_API_KEY" in friendly_llm_error_message(RuntimeError("LLM API key is not set"))
    assert friendly_llm_error_message(RuntimeError("")) == "LLM error."


def test_kv_store_upsert_delete_and_json_helpers(tmp_path: Path) -> None:
    kv = SqliteKeyValueStore(tmp_path / "nested" / "kv.sqlite3")
    assert kv.get("k") is None

    kv.set("k", "1")
    kv.set("k", "2")
    assert kv.get("k") == "2"
    assert kv.count_keys() == 1

    write_json(kv, "doc", {"name": "Café"})
    assert read_json(kv, "doc", default=None) == {"name": "Café"}

    kv.set("doc", "{broken")
    assert read_json(kv, "doc", default=[]) == []

    kv.delete("k")
    assert kv.get("k") is None
    assert read_json(kv, "k", default="missing") == "missing"


def test_console_speaker_prints_voice_line() -> None:
    out = io.StringIO()
    ConsoleSpeaker(out).speak("Time to stretch")
    assert out.getvalue() == "[VOICE] Time to stretch\n"


def test_bootstrap_defaults_to_console_speaker(clean_env: pytest.MonkeyPatch) -> None:
    settings = Settings.from_env()
    assert settings.tts_mode is False

    state = create_initial_state(settings=settings)
    assert isinstance(state.speaker, ConsoleSpeaker)


def test_bootstrap_selects_tts_speaker_when_enabled(clean_env: pytest.MonkeyPatch) -> None:
    model, player = FakeTtsModel(), FakePlayer()
    clean_env.setattr(tts_speaker, "load_xtts_backend", lambda: TtsBackend(model, player, 22050))
    clean_env.setenv("FLOWX_TTS_MODE", "1")
    clean_env.setenv("FLOWX_XTTS_LANGUAGE", "de")

    state = create_initial_state(settings=Settings.from_env())
    try:
        assert isinstance(state.speaker, TtsSpeaker)
        state.speaker.speak("Time  to\nstretch")
    finally:
        state.speaker.shutdown()

    assert model.calls == [{"text": "Time to stretch", "language": "de", "speaker": "Ana Florence"}]
    assert player.played == [("audio:Time to stretch", 22050)]
    assert player.waits == 1


def test_tts_speaker_uses_speaker_wav_and_survives_failures(clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
    wav = tmp_path / "voice.wav"
    wav.write_bytes(b"RIFF")
    settings = dataclasses.replace(Settings.from_env(), speaker_wav=str(wav))

    class BrokenModel(FakeTtsModel):
        def tts(self, **kwargs):
            super().tts(**kwargs)
            if kwargs["text"] == "boom":
                raise RuntimeError("synthesis failed")
            return "audio"

    model, player = BrokenModel(), FakePlayer()
    speaker = TtsSpeaker(settings, backend_loader=lambda: TtsBackend(model, player, 24000))
    speaker.speak("boom")
    speaker.speak("fine")
    speaker.shutdown()
    speaker.speak("after shutdown")

    assert [c["speaker_wav"] for c in model.calls] == [str(wav), str(wav)]
    assert player.played == [("audio", 24000)]
