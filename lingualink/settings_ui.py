from __future__ import annotations

from typing import Optional

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Container, Horizontal
from textual.widgets import Button, Footer, Header, Input, Label, Select, Static, Switch

from .config import CONFIG_PATH, ConfigError, load_config, save_config
from .credentials import PROVIDERS, CredentialStore
from .history import HistoryStore
from .languages import LANGUAGES
from .storage import LocalStore, StorageError


class SettingsApp(App):
    CSS = """
    Screen {
        align: center middle;
    }

    #settings-container {
        width: 76;
        height: auto;
        border: solid $primary;
        background: $surface;
        padding: 1 2;
    }

    .section-title {
        text-style: bold;
        color: $accent;
        margin: 1 0;
    }

    .field-row {
        height: 3;
        margin: 0 0 0 2;
    }

    .field-label {
        width: 22;
        content-align: left middle;
    }

    .field-input {
        width: 40;
    }

    #button-container {
        height: 3;
        margin: 1 0 0 0;
        align: center middle;
    }

    Button {
        margin: 0 1;
    }
    """

    BINDINGS = [
        Binding("ctrl+s", "save", "Save"),
        Binding("escape", "cancel", "Cancel"),
        Binding("ctrl+c", "quit", "Quit"),
    ]

    def __init__(self, store: Optional[LocalStore] = None):
        super().__init__()
        self.config = load_config()
        self.store = store or LocalStore()
        self.credentials = CredentialStore(self.store)

    def compose(self) -> ComposeResult:
        language_options = [(language.name, language.code) for language in LANGUAGES]

        yield Header()

        with Container(id="settings-container"):
            yield Static("lingualink Settings", classes="section-title")

            yield Static("API Keys", classes="section-title")
            yield Static("Leave a field empty to use the relay's default key.")
            for name, provider in PROVIDERS.items():
                with Horizontal(classes="field-row"):
                    yield Label(f"{provider.display_name} API Key:", classes="field-label")
                    yield Input(
                        value=self.credentials.get(name) or "",
                        placeholder="Enter your API key",
                        password=True,
                        id=f"key-{name}",
                        classes="field-input",
                    )

            yield Static("Translation", classes="section-title")
            with Horizontal(classes="field-row"):
                yield Label("Speak in:", classes="field-label")
                yield Select(
                    options=language_options,
                    value=self.config.source_language,
                    id="source_language",
                    allow_blank=False,
                )
            with Horizontal(classes="field-row"):
                yield Label("Translate to:", classes="field-label")
                yield Select(
                    options=language_options,
                    value=self.config.target_language,
                    id="target_language",
                    allow_blank=False,
                )
            with Horizontal(classes="field-row"):
                yield Label("Auto-play:", classes="field-label")
                yield Switch(value=self.config.auto_play, id="auto_play")

            yield Static("Relay", classes="section-title")
            with Horizontal(classes="field-row"):
                yield Label("Server URL:", classes="field-label")
                yield Input(
                    value=self.config.server_url,
                    placeholder="http://127.0.0.1:8000",
                    id="server_url",
                    classes="field-input",
                )

            with Horizontal(id="button-container"):
                yield Button("Save", variant="primary", id="save-button")
                yield Button("Clear History", variant="error", id="clear-history-button")
                yield Button("Cancel", variant="default", id="cancel-button")

        yield Footer()

    def action_save(self) -> None:
        self.save_settings()

    def action_cancel(self) -> None:
        self.exit()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "save-button":
            self.save_settings()
        elif event.button.id == "clear-history-button":
            self.clear_history()
        elif event.button.id == "cancel-button":
            self.exit()

    def save_settings(self) -> None:
        try:
            for name in PROVIDERS:
                self.credentials.set(name, self.query_one(f"#key-{name}", Input).value)

            self.config.source_language = str(self.query_one("#source_language", Select).value)
            self.config.target_language = str(self.query_one("#target_language", Select).value)
            self.config.auto_play = self.query_one("#auto_play", Switch).value
            self.config.server_url = self.query_one("#server_url", Input).value.strip() or self.config.server_url

            save_config(self.config)
        except (StorageError, ConfigError, OSError) as exc:
            self.notify(f"There was an error saving your settings: {exc}", severity="error")
            return
        self.notify(f"Settings saved to {CONFIG_PATH}", severity="information")
        self.exit()

    def clear_history(self) -> None:
        HistoryStore(self.store).clear()
        self.notify("Your translation history has been cleared.", severity="information")


def show_settings_ui() -> None:
    app = SettingsApp()
    app.run()
