"""Loading screen — shows discovery progress."""

from textual.app import ComposeResult
from textual.containers import Center, Vertical
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, LoadingIndicator, Static


class LoadingScreen(Screen):
    """Displayed while the root repository is being scanned."""

    BINDINGS = [
        ("b", "go_back", "Back"),
    ]

    CSS = """
    LoadingScreen {
        align: center middle;
    }
    #loading-container {
        width: 76;
        height: auto;
        padding: 2 4;
        border: round $primary;
        background: $surface;
    }
    #loading-title {
        text-align: center;
        text-style: bold;
        margin-bottom: 1;
    }
    #status-label {
        width: 100%;
        text-align: center;
        margin: 1 0;
    }
    #hint-label {
        width: 100%;
        text-align: center;
        color: $text-muted;
    }
    """

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Center():
            with Vertical(id="loading-container"):
                yield Static("🔍  Scanning Repository …", id="loading-title")
                yield LoadingIndicator(id="spinner")
                yield Label("Initiating deep analysis …", id="status-label")
                yield Label("", id="hint-label")
        yield Footer()

    def update_status(self, message: str) -> None:
        self.query_one("#status-label", Label).update(message)

    def show_error(self, message: str) -> None:
        self.query_one("#spinner", LoadingIndicator).display = False
        self.query_one("#status-label", Label).update(f"❌ {message}")
        self.query_one("#hint-label", Label).update("Press  b  to go back and try again.")

    def action_go_back(self) -> None:
        self.app.pop_screen()
