"""GitHub data fetching via REST API, throttled through a single watermark."""

import asyncio
import base64
import binascii
import logging
import re
import time
from typing import Optional
from urllib.parse import quote

import httpx

from sbom_inspector.errors import (
    DecodeFailed,
    InvalidRepositoryUrl,
    NotFound,
    RateLimited,
    RequestFailed,
)

logger = logging.getLogger(__name__)

_REPO_URL_RE = re.compile(
    r"^(?:(?:https?://)?(?:www\.)?github\.com[/:]|git@github\.com:)?"
    r"(?P<owner>[A-Za-z0-9_.-]+)/(?P<repo>[A-Za-z0-9_.-]+?)(?:\.git)?/?$"
)


def parse_repo_url(repo_url: str) -> tuple[str, str]:
    """Split a GitHub URL (https, ssh or bare ``owner/repo``) into owner and repo."""
    match = _REPO_URL_RE.match(repo_url.strip())
    if not match:
        # Deep links such as .../owner/repo/tree/main still name the repo.
        deep = re.search(r"github\.com/([^/]+)/([^/?#]+)", repo_url)
        if not deep:
            raise InvalidRepositoryUrl(f"Invalid GitHub URL: {repo_url}")
        return deep.group(1), re.sub(r"\.git$", "", deep.group(2))
    return match.group("owner"), match.group("repo")


class GitHubFetcher:
    """Fetches repository trees and file contents from the GitHub REST API.

    Every outbound request waits on one shared "last request" watermark, so
    concurrent callers overlap their waiting but never issue two requests
    closer together than ``min_interval`` seconds.
    """

    def __init__(self, token: Optional[str] = None, min_interval: float = 0.3) -> None:
        self.token = token
        self.min_interval = min_interval
        self.base_url = "https://api.github.com"
        self._client: Optional[httpx.AsyncClient] = None
        self._last_request = 0.0
        self._watermark_lock = asyncio.Lock()

    # ── HTTP plumbing ─────────────────────────────────────────────────────

    @property
    def headers(self) -> dict[str, str]:
        h: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        if self.token:
            h["Authorization"] = f"Bearer {self.token}"
        return h

    async def _client_instance(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers=self.headers,
                timeout=30.0,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _wait_turn(self) -> None:
        """Block until ``min_interval`` has passed since the previous request."""
        async with self._watermark_lock:
            wait = self._last_request + self.min_interval - time.monotonic()
            if wait > 0:
                await asyncio.sleep(wait)
            self._last_request = time.monotonic()

    async def fetch(self, url: str, token: Optional[str] = None) -> httpx.Response:
        """GET ``url`` (absolute or API-relative) and classify failures."""
        client = await self._client_instance()
        headers = {"Authorization": f"Bearer {token}"} if token else None
        await self._wait_turn()
        logger.debug("GET %s", url)
        try:
            resp = await client.get(url, headers=headers)
        except httpx.TransportError as e:
            raise RequestFailed(None, url, str(e)) from e

        if resp.is_success:
            return resp
        if resp.status_code == 403 and resp.headers.get("x-ratelimit-remaining") == "0":
            raise RateLimited(retry_after=_seconds_until_reset(resp.headers))
        if resp.status_code == 404:
            raise NotFound(str(resp.request.url))
        raise RequestFailed(resp.status_code, str(resp.request.url))

    # ── Repository structure ──────────────────────────────────────────────

    async def fetch_default_branch(
        self, owner: str, repo: str, token: Optional[str] = None
    ) -> str:
        resp = await self.fetch(f"/repos/{owner}/{repo}", token)
        return resp.json().get("default_branch", "main")

    async def fetch_file_tree(
        self, owner: str, repo: str, branch: str, token: Optional[str] = None
    ) -> list[dict]:
        """List every blob in the branch's recursive tree as ``{path, type}``."""
        resp = await self.fetch(
            f"/repos/{owner}/{repo}/git/trees/{quote(branch, safe='')}?recursive=1",
            token,
        )
        data = resp.json()
        if data.get("truncated"):
            logger.warning(
                "File tree of %s/%s is truncated; some dependencies may be missed",
                owner, repo,
            )
        return [
            {"path": item["path"], "type": item["type"]}
            for item in data.get("tree", [])
            if item.get("type") == "blob"
        ]

    # ── File contents ─────────────────────────────────────────────────────

    async def fetch_file_content(
        self, owner: str, repo: str, path: str, token: Optional[str] = None
    ) -> str:
        """Fetch and decode a file, following the blob URL for large files."""
        resp = await self.fetch(
            f"/repos/{owner}/{repo}/contents/{quote(path, safe='/')}", token
        )
        data = resp.json()
        encoding = data.get("encoding")

        # Files above the inline size limit come back with encoding "none".
        if encoding == "none":
            git_url = data.get("git_url")
            if not git_url:
                raise DecodeFailed(path, encoding)
            blob = (await self.fetch(git_url, token)).json()
            if blob.get("encoding") != "base64" or not blob.get("content"):
                raise DecodeFailed(path, blob.get("encoding"))
            return _decode_base64(blob["content"], path)

        if encoding != "base64" or not data.get("content"):
            raise DecodeFailed(path, encoding)
        return _decode_base64(data["content"], path)


def _decode_base64(content: str, path: str) -> str:
    try:
        raw = base64.b64decode(content.replace("\n", ""), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeFailed(path, "base64") from e
    return raw.decode("utf-8", errors="replace")


def _seconds_until_reset(headers: httpx.Headers) -> float:
    try:
        reset = int(headers.get("x-ratelimit-reset", "0") or 0)
    except ValueError:
        logger.debug("Unparsable x-ratelimit-reset header %r", headers.get("x-ratelimit-reset"))
        return 0.0
    return reset - time.time()
