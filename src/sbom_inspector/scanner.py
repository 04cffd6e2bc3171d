"""Four-phase dependency discovery for a single repository."""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Awaitable, Callable, Optional, TypeVar

from sbom_inspector.config import ScanPolicy
from sbom_inspector.errors import DecodeFailed, RequestFailed
from sbom_inspector.extraction import ExtractionClient, ExtractionFailed, ExtractionKind
from sbom_inspector.fetcher import GitHubFetcher, parse_repo_url
from sbom_inspector.models import (
    DependencyRecord,
    DiscoveryResult,
    DiscoverySource,
    LicenseInfo,
    TOOLCHAIN_UNKNOWN,
)
from sbom_inspector import prompts
from sbom_inspector.registry import DependencyRegistry

logger = logging.getLogger(__name__)

T = TypeVar("T")

_LICENSE_RE = re.compile(r"^license", re.IGNORECASE)

# Failures that cost one phase (or one batch) its result but not the run.
# RateLimited and NotFound end the run.
_DEGRADABLE = (RequestFailed, DecodeFailed)


@dataclass
class RepoLayout:
    """The files of a repository that discovery cares about."""

    sources: list[str] = field(default_factory=list)
    manifests: list[str] = field(default_factory=list)
    license: Optional[str] = None


def partition_files(paths: list[str], policy: ScanPolicy) -> RepoLayout:
    layout = RepoLayout()
    extensions = tuple(e.lower() for e in policy.source_extensions)
    manifest_names = {n.lower() for n in policy.manifest_names}
    for path in paths:
        lowered = path.lower()
        if lowered.endswith(extensions):
            layout.sources.append(path)
        elif PurePosixPath(lowered).name in manifest_names:
            layout.manifests.append(path)
        if layout.license is None and _LICENSE_RE.match(path):
            layout.license = path
    return layout


def batched(items: list[str], size: int) -> list[list[str]]:
    return [items[i:i + size] for i in range(0, len(items), size)]


async def gather_settled(*aws: Awaitable[T]) -> list[T]:
    """Await every fetch, then raise the first failure, fatal ones first.

    No request of the group is left running once this returns or raises.
    """
    results = await asyncio.gather(*aws, return_exceptions=True)
    errors = [r for r in results if isinstance(r, BaseException)]
    fatal = [e for e in errors if not isinstance(e, _DEGRADABLE)]
    if errors:
        raise (fatal or errors)[0]
    return results  # type: ignore[return-value]


class RepositoryScanner:
    """Turns a repository URL into a deduplicated list of dependencies."""

    def __init__(
        self,
        fetcher: GitHubFetcher,
        extractor: ExtractionClient,
        policy: Optional[ScanPolicy] = None,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor
        self.policy = policy or ScanPolicy()

    async def discover(
        self,
        repo_url: str,
        on_status: Optional[Callable[[str], None]] = None,
        token: Optional[str] = None,
    ) -> DiscoveryResult:
        """Run tree listing, manifest, source and license phases in order.

        Fetch failures while listing the tree propagate. Later phases degrade
        to empty results, except for rate-limit and not-found failures.
        """
        status = on_status or (lambda _: None)
        owner, repo = parse_repo_url(repo_url)
        registry = DependencyRegistry()
        result = DiscoveryResult()

        # 1. File tree
        status(f"Phase 1/4: Mapping file structure for {owner}/{repo} …")
        branch = await self.fetcher.fetch_default_branch(owner, repo, token)
        tree = await self.fetcher.fetch_file_tree(owner, repo, branch, token)
        layout = partition_files([f["path"] for f in tree], self.policy)
        logger.info(
            "%s/%s@%s: %d source file(s), %d manifest(s), license=%s",
            owner, repo, branch, len(layout.sources), len(layout.manifests), layout.license,
        )

        # 2. Build manifests
        if layout.manifests:
            status(f"Phase 2/4: Analyzing {len(layout.manifests)} build manifest(s) …")
            toolchain, records = await self._scan_manifests(owner, repo, layout.manifests, token)
            if toolchain is not None:
                result.toolchain_info = toolchain
            registry.add(records)

        # 3. Source code, batch by batch
        if layout.sources:
            total = len(layout.sources)
            size = self.policy.batch_size
            for start, batch in zip(range(0, total, size), batched(layout.sources, size)):
                status(
                    f"Phase 3/4: Deep scanning source files "
                    f"({start + 1}-{start + len(batch)} of {total}) …"
                )
                registry.add(
                    await self._scan_source_batch(owner, repo, batch, registry.names(), token)
                )

        # 4. Root license
        if layout.license:
            status("Phase 4/4: Analyzing root license file …")
            result.root_license_info = await self._scan_license(owner, repo, layout.license, token)

        status("Finalizing dependency list …")
        result.dependencies = registry.snapshot()
        return result

    # ── Phases ────────────────────────────────────────────────────────────

    async def _scan_manifests(
        self, owner: str, repo: str, paths: list[str], token: Optional[str]
    ) -> tuple[Optional[str], list[DependencyRecord]]:
        try:
            contents = await gather_settled(
                *(self.fetcher.fetch_file_content(owner, repo, p, token) for p in paths)
            )
        except _DEGRADABLE as e:
            logger.warning("Skipping manifest analysis for %s/%s: %s", owner, repo, e)
            return None, []

        extracted = await self.extractor.extract(
            ExtractionKind.manifest_scan,
            prompts.manifest_prompt(list(zip(paths, contents))),
        )
        if isinstance(extracted, ExtractionFailed):
            return None, []
        toolchain = extracted.toolchain_info.strip() or TOOLCHAIN_UNKNOWN
        return toolchain, [
            d.to_record(DiscoverySource.build_manifest) for d in extracted.dependencies
        ]

    async def _read_source(
        self, owner: str, repo: str, path: str, token: Optional[str]
    ) -> Optional[tuple[str, str]]:
        try:
            return path, await self.fetcher.fetch_file_content(owner, repo, path, token)
        except DecodeFailed as e:
            logger.warning("Skipping undecodable file %s: %s", path, e)
            return None

    async def _scan_source_batch(
        self,
        owner: str,
        repo: str,
        paths: list[str],
        known_names: list[str],
        token: Optional[str],
    ) -> list[DependencyRecord]:
        try:
            fetched = await gather_settled(
                *(self._read_source(owner, repo, p, token) for p in paths)
            )
        except RequestFailed as e:
            logger.warning("Source batch %s… failed, counting it as empty: %s", paths[0], e)
            return []

        files = [f for f in fetched if f is not None]
        if not files:
            return []
        extracted = await self.extractor.extract(
            ExtractionKind.source_scan,
            prompts.source_batch_prompt(files, known_names, self.policy),
        )
        if isinstance(extracted, ExtractionFailed):
            return []
        return [d.to_record(DiscoverySource.source_scan) for d in extracted.dependencies]

    async def _scan_license(
        self, owner: str, repo: str, path: str, token: Optional[str]
    ) -> Optional[LicenseInfo]:
        try:
            text = await self.fetcher.fetch_file_content(owner, repo, path, token)
        except _DEGRADABLE as e:
            logger.warning("Skipping license analysis of %s: %s", path, e)
            return None
        extracted = await self.extractor.extract(
            ExtractionKind.license_scan, prompts.license_prompt(text, self.policy)
        )
        if isinstance(extracted, ExtractionFailed):
            return None
        return extracted
