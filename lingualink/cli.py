"""Command line interface for the lingualink application."""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import asdict
from typing import Dict, Optional

import typer
from rich.console import Console
from rich.table import Table

from . import config as config_mod
from .adapters import AdapterError
from .capture import SoundDeviceCapture
from .config import ConfigError
from .credentials import PROVIDERS, CredentialStore
from .history import HistoryStore
from .languages import LANGUAGES, is_supported, language_name
from .models import Config, TranslationRecord
from .pipeline import Notice, NoticeKind, Orchestrator
from .playback import PlaybackError, SoundDevicePlayer
from .relay_client import RelayClient
from .storage import LocalStore, StorageError

app = typer.Typer(add_completion=False, help="Record speech, translate it and speak the translation.")

_NOTICE_COLORS = {
    NoticeKind.ERROR: typer.colors.RED,
    NoticeKind.EMPTY: typer.colors.YELLOW,
    NoticeKind.INFO: typer.colors.BLUE,
}


def _load_config() -> Config:
    try:
        return config_mod.load_config()
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _local_store() -> LocalStore:
    try:
        return LocalStore()
    except StorageError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


def _check_language(code: str) -> str:
    if not is_supported(code):
        supported = ", ".join(language.code for language in LANGUAGES)
        raise typer.BadParameter(f"Unsupported language '{code}'. Choose one of: {supported}.")
    return code


def _print_notice(notice: Notice) -> None:
    typer.secho(f"{notice.title}: {notice.message}", fg=_NOTICE_COLORS[notice.kind], err=notice.kind is NoticeKind.ERROR)


def _mask(secret: Optional[str]) -> str:
    if not secret:
        return "-"
    if len(secret) <= 8:
        return "*" * len(secret)
    return f"{secret[:4]}…{secret[-4:]}"


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", help="Interface to bind the relay to."),
    port: int = typer.Option(8000, help="Port to bind the relay to."),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes (development)."),
) -> None:  # pragma: no cover - starts a server
    """Run the relay server."""

    import uvicorn

    uvicorn.run("lingualink.api:app", host=host, port=port, reload=reload)


async def _run_session(orchestrator: Orchestrator, once: bool) -> None:
    try:
        while True:
            answer = await asyncio.to_thread(input, "Press Enter to record (s to speak, q to quit): ")
            choice = answer.strip().lower()
            if choice == "q":
                return
            if choice == "s":
                if not orchestrator.translated_text:
                    typer.echo("Nothing to speak yet.")
                else:
                    await orchestrator.speak()
                continue
            if not await orchestrator.start_recording():
                continue
            typer.secho("Recording… press Enter to stop.", fg=typer.colors.MAGENTA)
            await asyncio.to_thread(input)

            typer.echo("Translating…")
            record = await orchestrator.stop_recording()
            if orchestrator.original_text:
                typer.secho(f"[{orchestrator.source_language}] {orchestrator.original_text}", fg=typer.colors.CYAN)
            if record is not None:
                typer.secho(f"[{record.target_language}] {record.translated_text}", fg=typer.colors.GREEN)
            if once:
                return
    finally:
        await orchestrator.close()


@app.command()
def translate(
    source: Optional[str] = typer.Option(None, "--source", "-s", help="Language spoken into the microphone."),
    target: Optional[str] = typer.Option(None, "--target", "-t", help="Language to translate into."),
    auto_play: Optional[bool] = typer.Option(None, "--auto-play/--no-auto-play", help="Speak each translation."),
    once: bool = typer.Option(False, "--once", help="Exit after a single recording."),
) -> None:
    """Record from the microphone and translate interactively."""

    cfg = _load_config()
    source_language = _check_language(source or cfg.source_language)
    target_language = _check_language(target or cfg.target_language)
    store = _local_store()
    history = HistoryStore(store)
    history.load()

    async def run() -> None:
        async with RelayClient.from_config(cfg, CredentialStore(store)) as relay:
            orchestrator = Orchestrator(
                capture=SoundDeviceCapture(samplerate=cfg.samplerate),
                relay=relay,
                history=history,
                player=SoundDevicePlayer(),
                source_language=source_language,
                target_language=target_language,
                auto_play=cfg.auto_play if auto_play is None else auto_play,
                on_notice=_print_notice,
            )
            await _run_session(orchestrator, once)

    typer.secho(
        f"{language_name(source_language)} → {language_name(target_language)}",
        fg=typer.colors.BLUE,
    )
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        typer.echo()


def _history_entry(position: int) -> TranslationRecord:
    records = HistoryStore(_local_store()).load()
    if not 1 <= position <= len(records):
        raise typer.BadParameter(
            f"No history entry {position}; there are {len(records)} stored translations.",
            param_hint="--history",
        )
    return records[position - 1]


@app.command()
def speak(
    text: Optional[str] = typer.Argument(None, help="Text to speak."),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Language of the text."),
    entry: Optional[int] = typer.Option(
        None,
        "--history",
        "-H",
        help="Replay the translation of history entry N (as numbered by `lingualink history`).",
    ),
) -> None:
    """Synthesize and play a piece of text, or a stored translation, through the relay."""

    cfg = _load_config()
    if entry is not None:
        if text is not None:
            raise typer.BadParameter("Pass either TEXT or --history, not both.")
        record = _history_entry(entry)
        text, code = record.translated_text, record.target_language
    elif text is None:
        raise typer.BadParameter("Nothing to speak. Pass TEXT or --history N.")
    else:
        code = _check_language(language or cfg.target_language)
    store = _local_store()

    async def run() -> None:
        async with RelayClient.from_config(cfg, CredentialStore(store)) as relay:
            audio = await relay.synthesize(text, code)
        await SoundDevicePlayer().play(audio)

    try:
        asyncio.run(run())
    except (AdapterError, PlaybackError) as exc:
        typer.secho(f"Speech Error: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc


@app.command()
def history() -> None:
    """Show the most recent translations."""

    records = HistoryStore(_local_store()).load()
    if not records:
        typer.echo("No translations yet. Use `lingualink translate` to create one.")
        return

    table = Table(title="Recent translations")
    table.add_column("#", justify="right")
    table.add_column("When", no_wrap=True)
    table.add_column("From → To", no_wrap=True)
    table.add_column("Original")
    table.add_column("Translation")
    for position, record in enumerate(records, start=1):
        table.add_row(
            str(position),
            record.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            f"{record.source_language} → {record.target_language}",
            record.original_text,
            record.translated_text,
        )
    Console().print(table)


@app.command("clear-history")
def clear_history() -> None:
    """Delete the stored translation history."""

    HistoryStore(_local_store()).clear()
    typer.secho("Your translation history has been cleared.", fg=typer.colors.BLUE)


@app.command()
def languages() -> None:
    """List the supported languages."""

    for language in LANGUAGES:
        typer.echo(f"{language.code:<4}{language.name}")


@app.command()
def keys(
    deepgram: Optional[str] = typer.Option(None, help="Deepgram key used for speech-to-text."),
    openai: Optional[str] = typer.Option(None, help="OpenAI key used for translation."),
    elevenlabs: Optional[str] = typer.Option(None, help="ElevenLabs key used for text-to-speech."),
    clear: bool = typer.Option(False, "--clear", help="Remove all stored keys."),
) -> None:
    """Store personal API keys that override the relay's defaults."""

    credentials = CredentialStore(_local_store())
    updates: Dict[str, Optional[str]] = {
        "deepgram": deepgram,
        "openai": openai,
        "elevenlabs": elevenlabs,
    }

    if clear:
        try:
            for name in PROVIDERS:
                credentials.set(name, None)
        except StorageError as exc:
            typer.secho(f"Error Clearing Settings: {exc}", fg=typer.colors.RED, err=True)
            raise typer.Exit(code=1) from exc
        typer.secho("Stored API keys removed.", fg=typer.colors.BLUE)
        return

    changed = {name: value for name, value in updates.items() if value is not None}
    if not changed:
        for name, provider in PROVIDERS.items():
            typer.echo(f"{provider.display_name:<12}{_mask(credentials.get(name))}")
        return

    try:
        for name, value in changed.items():
            credentials.set(name, value)
    except StorageError as exc:
        typer.secho(f"Error Saving Settings: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho("Your API keys have been saved successfully.", fg=typer.colors.BLUE)


@app.command()
def config(
    server_url: Optional[str] = typer.Option(None, help="Base URL of the lingualink relay."),
    source_language: Optional[str] = typer.Option(None, help="Default spoken language."),
    target_language: Optional[str] = typer.Option(None, help="Default translation language."),
    auto_play: Optional[bool] = typer.Option(None, "--auto-play/--no-auto-play", help="Speak translations."),
    verify_ssl: Optional[bool] = typer.Option(
        None,
        "--verify-ssl/--no-verify-ssl",
        help="Toggle TLS certificate verification for relay calls.",
    ),
    api_timeout: Optional[float] = typer.Option(None, help="HTTP timeout (seconds) for relay calls."),
    show: bool = typer.Option(False, "--show", help="Display the active configuration."),
) -> None:
    """Update or inspect configuration settings."""

    updates: Dict[str, object] = {
        key: value
        for key, value in {
            "server_url": server_url,
            "source_language": _check_language(source_language) if source_language else None,
            "target_language": _check_language(target_language) if target_language else None,
            "auto_play": auto_play,
            "verify_ssl": verify_ssl,
            "api_timeout": api_timeout,
        }.items()
        if value is not None
    }

    if show or not updates:
        typer.echo(json.dumps(asdict(_load_config()), indent=2, default=str))
        return

    try:
        config_mod.update_config(**updates)
    except ConfigError as exc:
        typer.secho(str(exc), fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc
    typer.secho("Configuration updated.", fg=typer.colors.BLUE)


@app.command()
def settings() -> None:
    """Open the interactive settings screen."""

    try:
        from .settings_ui import show_settings_ui
    except ImportError as exc:
        typer.secho(
            "Missing dependencies for settings UI. Install with `pip install textual`.",
            fg=typer.colors.RED,
            err=True,
        )
        raise typer.Exit(code=1) from exc

    show_settings_ui()


@app.command()
def health() -> None:
    """Check connectivity to the configured relay."""

    cfg = _load_config()

    async def run() -> dict:
        async with RelayClient.from_config(cfg) as relay:
            return await relay.health()

    try:
        payload = asyncio.run(run())
    except AdapterError as exc:
        typer.secho(f"Request to relay failed: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1) from exc

    typer.echo(f"Status: {payload.get('status', 'unknown')}")
    for name, configured in payload.get("providers", {}).items():
        state = "server key configured" if configured else "no server key"
        typer.echo(f"{name}: {state}")


if __name__ == "__main__":  # pragma: no cover
    app()
