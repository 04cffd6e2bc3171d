"""Session object that ties discovery, analysis and the dependency tree together.

A UI holds one ``Analyzer``, calls ``inspect`` for the root repository and
then drives ``discover_children``, ``analyze_node`` and ``toggle_expand`` on
individual nodes. Every change to the tree goes through
``DependencyTree.update_at`` against the latest snapshot.
"""

import logging
from datetime import date
from typing import Callable, Optional

from sbom_inspector.config import Settings, load_settings
from sbom_inspector.extraction import ExtractionClient
from sbom_inspector.fetcher import GitHubFetcher, parse_repo_url
from sbom_inspector.llm import CopilotBackend, LLMBackend
from sbom_inspector.models import DependencyNode, DiscoveryResult, LicenseInfo, RiskAssessment
from sbom_inspector.orchestrator import AnalysisOrchestrator
from sbom_inspector.scanner import RepositoryScanner
from sbom_inspector.tree import DependencyTree, Mutator, build_root, with_children

logger = logging.getLogger(__name__)


class Analyzer:
    """End-to-end dependency inspection for one repository."""

    def __init__(
        self,
        token: Optional[str] = None,
        on_status: Optional[Callable[[str], None]] = None,
        compilation_date: Optional[str] = None,
        settings: Optional[Settings] = None,
        backend: Optional[LLMBackend] = None,
    ) -> None:
        self.settings = settings or load_settings()
        self.token = token or self.settings.github_token
        self.compilation_date = compilation_date or date.today().isoformat()
        self._on_status = on_status or (lambda _: None)
        self._fetcher = GitHubFetcher(
            token=self.token, min_interval=self.settings.request_interval
        )
        self._backend: LLMBackend = backend or CopilotBackend(
            default_model=self.settings.analysis_model
        )
        self._extractor = ExtractionClient(
            self._backend,
            discovery_model=self.settings.discovery_model,
            analysis_model=self.settings.analysis_model,
        )
        self._scanner = RepositoryScanner(self._fetcher, self._extractor, self.settings.policy)
        self._orchestrator = AnalysisOrchestrator(self._extractor)

        self.tree = DependencyTree()
        self.toolchain_info: Optional[str] = None
        self.root_license: Optional[LicenseInfo] = None

    # ── Status helper ─────────────────────────────────────────────────────

    def _status(self, msg: str) -> None:
        self._on_status(msg)

    def _update(self, node: DependencyNode, mutator: Mutator) -> DependencyTree:
        self.tree = self.tree.update_at(node.path, mutator)
        return self.tree

    async def close(self) -> None:
        """Tear down resources."""
        await self._fetcher.close()
        await self._backend.close()

    # ── Discovery / analysis primitives ───────────────────────────────────

    async def discover(
        self,
        repo_url: str,
        on_status: Optional[Callable[[str], None]] = None,
        token: Optional[str] = None,
    ) -> DiscoveryResult:
        return await self._scanner.discover(repo_url, on_status or self._status, token)

    async def analyze(
        self,
        name: str,
        url: str,
        compilation_date: Optional[str] = None,
        on_status: Optional[Callable[[str], None]] = None,
    ) -> RiskAssessment:
        return await self._orchestrator.analyze(
            name, url, compilation_date or self.compilation_date, on_status or self._status
        )

    # ── Tree entry points ─────────────────────────────────────────────────

    async def inspect(self, repo_url: str) -> DiscoveryResult:
        """Discover the root repository and rebuild the tree from scratch."""
        owner, repo = parse_repo_url(repo_url)
        result = await self.discover(repo_url)
        self.tree = DependencyTree([build_root(f"{owner}/{repo}", repo_url, result.dependencies)])
        self.toolchain_info = result.toolchain_info
        self.root_license = result.root_license_info
        self._status(f"Found {len(result.dependencies)} dependencies.")
        return result

    async def discover_children(self, node: DependencyNode) -> DependencyTree:
        """Run discovery against ``node.url`` and attach what it finds."""
        self._update(node, lambda n: n.model_copy(update={"is_loading": True, "is_expanded": True}))
        try:
            result = await self.discover(node.url)
        except Exception:
            logger.warning("Failed to discover dependencies for %s", node.name)
            self._update(node, lambda n: n.model_copy(update={"is_loading": False}))
            raise
        return self._update(
            node,
            lambda n: with_children(n, result.dependencies).model_copy(
                update={"is_loading": False}
            ),
        )

    async def analyze_node(self, node: DependencyNode) -> DependencyTree:
        """Assess ``node`` and store the result on it, replacing any earlier one."""
        self._update(node, lambda n: n.model_copy(update={"is_loading": True}))
        try:
            assessment = await self._orchestrator.analyze_node(
                node, self.compilation_date, self._status
            )
        except Exception:
            logger.warning("Failed to analyze %s", node.name)
            self._update(node, lambda n: n.model_copy(update={"is_loading": False}))
            raise
        return self._update(
            node,
            lambda n: n.model_copy(update={"is_loading": False, "assessment": assessment}),
        )

    def toggle_expand(self, node: DependencyNode) -> DependencyTree:
        return self._update(
            node, lambda n: n.model_copy(update={"is_expanded": not n.is_expanded})
        )
