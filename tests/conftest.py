"""Pytest configuration and fixtures."""

import base64
import json
from typing import Callable, Optional, Union

import httpx
import pytest
import respx

API = "https://api.github.com"


@pytest.fixture(scope="session")
def anyio_backend():
    """Configure anyio backend for async tests."""
    return "asyncio"


class FakeBackend:
    """Scripted stand-in for the reasoning service.

    ``reply`` is either a list of canned responses consumed in order, or a
    function of the prompt.
    """

    def __init__(self, reply: Union[list, Callable[[str], str]]) -> None:
        self._reply = reply
        self.calls: list[dict] = []
        self.closed = False

    async def generate(self, prompt: str, schema: dict, model: Optional[str] = None) -> str:
        self.calls.append({"prompt": prompt, "schema": schema, "model": model})
        if callable(self._reply):
            return self._reply(prompt)
        response = self._reply.pop(0)
        if isinstance(response, Exception):
            raise response
        return response if isinstance(response, str) else json.dumps(response)

    async def close(self) -> None:
        self.closed = True


def b64(text: str) -> str:
    return base64.b64encode(text.encode()).decode()


def mock_repo(
    router: respx.MockRouter,
    files: dict[str, str],
    owner: str = "acme",
    repo: str = "firmware",
    branch: str = "main",
    truncated: bool = False,
    overrides: Optional[dict[str, httpx.Response]] = None,
) -> None:
    """Serve a repository with the given ``{path: content}`` files.

    ``overrides`` maps a file path to the raw response its contents request
    should get instead.
    """
    overrides = overrides or {}
    router.get(f"/repos/{owner}/{repo}").mock(
        return_value=httpx.Response(200, json={"default_branch": branch})
    )
    tree = [{"path": "src", "type": "tree"}] + [
        {"path": path, "type": "blob"} for path in files
    ]
    router.get(f"/repos/{owner}/{repo}/git/trees/{branch}").mock(
        return_value=httpx.Response(200, json={"tree": tree, "truncated": truncated})
    )
    for path, content in files.items():
        response = overrides[path] if path in overrides else httpx.Response(
            200, json={"encoding": "base64", "content": b64(content)}
        )
        router.get(f"/repos/{owner}/{repo}/contents/{path}").mock(return_value=response)


@pytest.fixture
def github():
    with respx.mock(base_url=API, assert_all_called=False) as router:
        yield router


@pytest.fixture
def sample_assessment():
    return {
        "maintainerAnalysis": "Maintained by a single developer.",
        "codeSecurityAnalysis": "Uses unchecked memcpy in the parser.",
        "licenseAnalysis": {"spdxId": "MIT", "complianceSummary": "Permissive."},
        "vulnerabilityAnalysis": [
            {
                "cweId": "CWE-787",
                "cweTitle": "Out-of-bounds Write",
                "riskSummary": "Malformed packets can corrupt memory.",
                "cves": [{"id": "CVE-2025-0001", "summary": "Heap overflow in parser."}],
            }
        ],
        "riskLevel": "High",
        "riskSummary": "Known memory-safety CVEs after the build date.",
    }
