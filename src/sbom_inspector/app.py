"""Main Textual TUI application for sbom-inspector."""

import logging
import os
from typing import Optional

from textual.app import App

from sbom_inspector.analyzer import Analyzer
from sbom_inspector.errors import (
    FetchError,
    InvalidRepositoryUrl,
    NotFound,
    RateLimited,
    RequestFailed,
)
from sbom_inspector.screens.home import HomeScreen
from sbom_inspector.screens.loading import LoadingScreen
from sbom_inspector.screens.results import ResultsScreen

logger = logging.getLogger(__name__)


def describe_error(error: Exception) -> str:
    """User-facing message for a discovery run that failed outright."""
    if isinstance(error, RateLimited):
        has_token = bool(os.environ.get("GITHUB_TOKEN") or os.environ.get("GH_TOKEN"))
        hint = "" if has_token else " Set GITHUB_TOKEN to get 5 000 req/hour."
        return f"{error}{hint}"
    if isinstance(error, NotFound):
        return "Repository not found. It may be private or the URL may be wrong."
    if isinstance(error, RequestFailed) and error.status is None:
        return "Could not connect to GitHub. Check your internet connection."
    if isinstance(error, RequestFailed) and error.status == 401:
        return "Authentication failed. Please check your GitHub token."
    if isinstance(error, (FetchError, InvalidRepositoryUrl)):
        return str(error)
    return f"Unexpected error: {error}"


class SbomInspectorApp(App):
    """TUI application for firmware dependency risk inspection."""

    TITLE = "SBOM Inspector"
    SUB_TITLE = "Manifests · Sources · Licenses · CWE/CVE risk"

    BINDINGS = [
        ("q", "quit", "Quit"),
    ]

    def __init__(self) -> None:
        super().__init__()
        self.analyzer: Optional[Analyzer] = None

    def on_mount(self) -> None:
        self.push_screen(HomeScreen())

    def _on_status(self, msg: str) -> None:
        screen = self.screen
        if isinstance(screen, LoadingScreen):
            screen.update_status(msg)
        elif isinstance(screen, ResultsScreen):
            screen.set_status(msg)

    def run_inspection(
        self, repo_url: str, compilation_date: str, token: Optional[str]
    ) -> None:
        """Kick off discovery of the root repository — called from HomeScreen."""
        loading = LoadingScreen()
        self.push_screen(loading)

        async def _do_work() -> None:
            if self.analyzer is not None:
                await self.analyzer.close()
            self.analyzer = Analyzer(
                token=token,
                on_status=self._on_status,
                compilation_date=compilation_date,
            )
            try:
                await self.analyzer.inspect(repo_url)
            except (FetchError, InvalidRepositoryUrl) as e:
                loading.show_error(describe_error(e))
                return
            except Exception as e:
                logger.exception("Inspection of %s failed", repo_url)
                loading.show_error(describe_error(e))
                return
            self.pop_screen()
            self.push_screen(ResultsScreen(self.analyzer))

        self.run_worker(_do_work(), exclusive=True)

    async def on_unmount(self) -> None:
        if self.analyzer is not None:
            await self.analyzer.close()
