import asyncio

import pytest
from typer.testing import CliRunner

from lingualink import cli, config
from lingualink.credentials import CredentialStore
from lingualink.history import HistoryStore
from lingualink.models import SynthesizedAudio, TranslationRecord
from lingualink.pipeline import Orchestrator, PipelineState
from lingualink.storage import LocalStore, StorageError

runner = CliRunner()


class FakeRelay:
    spoken = []

    def __init__(self, *args, **kwargs):
        pass

    @classmethod
    def from_config(cls, cfg, credentials=None):
        return cls()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return None

    async def transcribe(self, audio, source_language, content_type="audio/wav"):
        return "hello"

    async def translate(self, text, source_language, target_language):
        return "hola"

    async def synthesize(self, text, language):
        FakeRelay.spoken.append((text, language))
        return SynthesizedAudio(content=b"ID3")


class FakePlayer:
    played = []

    async def play(self, audio):
        FakePlayer.played.append(audio)

    def stop(self):
        pass


class FakeCapture:
    content_type = "audio/wav"
    active = False

    async def start(self):
        self.active = True

    async def stop(self):
        self.active = False
        return b"RIFF"

    async def close(self):
        self.active = False


@pytest.fixture
def store(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "CONFIG_PATH", tmp_path / "config.json")
    local = LocalStore(db_path=tmp_path / "local.db")
    monkeypatch.setattr(cli, "_local_store", lambda: local)
    monkeypatch.setattr(cli, "RelayClient", FakeRelay)
    monkeypatch.setattr(cli, "SoundDevicePlayer", FakePlayer)
    FakeRelay.spoken = []
    FakePlayer.played = []
    return local


def test_speak_replays_history_entry(store):
    history = HistoryStore(store)
    history.append(TranslationRecord.create("good morning", "bonjour", "en", "fr"))
    history.append(TranslationRecord.create("hello", "hola", "en", "es"))

    result = runner.invoke(cli.app, ["speak", "--history", "2"])

    assert result.exit_code == 0, result.output
    assert FakeRelay.spoken == [("bonjour", "fr")]
    assert len(FakePlayer.played) == 1


def test_speak_rejects_unknown_history_entry(store):
    result = runner.invoke(cli.app, ["speak", "--history", "3"])

    assert result.exit_code != 0
    assert FakeRelay.spoken == []


def test_speak_text(store):
    result = runner.invoke(cli.app, ["speak", "hola", "--language", "es"])

    assert result.exit_code == 0, result.output
    assert FakeRelay.spoken == [("hola", "es")]


def test_history_lists_numbered_entries(store):
    HistoryStore(store).append(TranslationRecord.create("hello", "hola", "en", "es"))

    result = runner.invoke(cli.app, ["history"])

    assert result.exit_code == 0
    assert "hola" in result.output


def test_keys_clear_reports_storage_errors(store, monkeypatch):
    def fail(self, provider, value):
        raise StorageError("database is locked")

    monkeypatch.setattr(CredentialStore, "set", fail)

    result = runner.invoke(cli.app, ["keys", "--clear"])

    assert result.exit_code == 1
    assert "Error Clearing Settings" in result.output


def test_session_speak_choice_uses_orchestrator(store, monkeypatch):
    answers = iter(["", "", "s", "q"])
    monkeypatch.setattr("builtins.input", lambda *args: next(answers))
    relay = FakeRelay()
    orchestrator = Orchestrator(
        capture=FakeCapture(),
        relay=relay,
        history=HistoryStore(store),
        player=FakePlayer(),
    )

    asyncio.run(cli._run_session(orchestrator, once=False))

    assert FakeRelay.spoken == [("hola", "es")]
    assert orchestrator.state is PipelineState.IDLE
