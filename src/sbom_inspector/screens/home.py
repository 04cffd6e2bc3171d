"""Home screen — repository URL, compilation date and optional token."""

import re
from datetime import date

from textual import on
from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Button, Footer, Header, Input, Label, Static

_GITHUB_URL_RE = re.compile(r"^(https?://)?(www\.)?github\.com/[^/\s]+/[^/\s]+")


class HomeScreen(Screen):
    """Initial screen to collect the repository to inspect."""

    CSS = """
    HomeScreen {
        align: center middle;
    }
    #home-container {
        width: 76;
        height: auto;
        padding: 1 4;
        border: round $primary;
        background: $surface;
    }
    #title {
        text-align: center;
        text-style: bold;
        color: $accent;
    }
    #subtitle {
        text-align: center;
        color: $text-muted;
        margin-bottom: 1;
    }
    .field-label {
        margin-top: 1;
    }
    #start-btn {
        margin-top: 2;
        width: 100%;
    }
    #error-label {
        color: $error;
        text-align: center;
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="home-container"):
                yield Static("SBOM Risk Inspector", id="title")
                yield Static(
                    "Source-level dependency discovery · date-aware CWE/CVE risk",
                    id="subtitle",
                )
                yield Label("Repository URL:", classes="field-label")
                yield Input(placeholder="https://github.com/owner/repo", id="repo-input")
                yield Label("Compilation date (YYYY-MM-DD):", classes="field-label")
                yield Input(value=date.today().isoformat(), id="date-input")
                yield Label("GitHub token (optional):", classes="field-label")
                yield Input(placeholder="ghp_…", password=True, id="token-input")
                yield Button("▶  Start Analysis", id="start-btn", variant="primary")
                yield Label("", id="error-label")
        yield Footer()

    def on_mount(self) -> None:
        self.query_one("#repo-input", Input).focus()

    @on(Button.Pressed, "#start-btn")
    def start_analysis(self) -> None:
        error_label = self.query_one("#error-label", Label)
        repo_url = self.query_one("#repo-input", Input).value.strip()
        compilation_date = self.query_one("#date-input", Input).value.strip()
        token = self.query_one("#token-input", Input).value.strip() or None

        if not repo_url:
            error_label.update("⚠  Please enter a GitHub repository URL.")
            return
        if not _GITHUB_URL_RE.match(repo_url):
            error_label.update("⚠  Please enter a valid GitHub repository URL.")
            return
        try:
            date.fromisoformat(compilation_date)
        except ValueError:
            error_label.update("⚠  Compilation date must look like 2024-05-31.")
            return

        error_label.update("")
        self.app.run_inspection(repo_url, compilation_date, token)  # type: ignore[attr-defined]

    @on(Input.Submitted, "#repo-input")
    def submit_on_enter(self) -> None:
        self.start_analysis()
