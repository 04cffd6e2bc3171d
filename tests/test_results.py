"""Tests for the rendering helpers behind the TUI screens."""

from unittest.mock import patch

from sbom_inspector.app import describe_error
from sbom_inspector.errors import DecodeFailed, NotFound, RateLimited, RequestFailed
from sbom_inspector.models import LicenseInfo, RiskAssessment
from sbom_inspector.orchestrator import fallback_assessment
from sbom_inspector.screens.results import (
    node_label,
    render_node_markdown,
    render_overview_markdown,
)
from sbom_inspector.tree import build_root


def child(**update):
    from sbom_inspector.models import DependencyRecord, DiscoverySource

    root = build_root(
        "acme/firmware",
        "https://github.com/acme/firmware",
        [DependencyRecord(name="LibA", source_url="https://github.com/acme/LibA",
                          discovery_source=DiscoverySource.build_manifest)],
    )
    return root.children[0].model_copy(update=update)


class TestNodeLabel:
    def test_plain(self):
        assert node_label(child()) == "LibA  (Build Manifest)"

    def test_with_assessment(self):
        label = node_label(child(assessment=fallback_assessment()))
        assert label.endswith("🔴 Critical")

    def test_loading(self):
        assert "⏳" in node_label(child(is_loading=True))


class TestRenderNode:
    def test_unanalyzed(self):
        md = render_node_markdown(child())
        assert md.startswith("## LibA")
        assert "Press **a**" in md

    def test_findings(self, sample_assessment):
        md = render_node_markdown(
            child(assessment=RiskAssessment.model_validate(sample_assessment))
        )
        assert "**Risk: High**" in md
        assert "CWE-787: Out-of-bounds Write" in md
        assert "`CVE-2025-0001`" in md
        assert "`MIT`" in md

    def test_no_findings(self):
        md = render_node_markdown(child(assessment=fallback_assessment()))
        assert "No relevant CVEs" in md


class TestRenderOverview:
    def test_unknown_toolchain(self):
        md = render_overview_markdown(None, None)
        assert "Not determined." in md
        assert "Root License" not in md

    def test_with_license(self):
        md = render_overview_markdown(
            "PlatformIO", LicenseInfo(spdx_id="GPL-3.0-only", compliance_summary="Copyleft.")
        )
        assert "PlatformIO" in md
        assert "`GPL-3.0-only`" in md


class TestDescribeError:
    def test_not_found(self):
        assert "not found" in describe_error(NotFound("/repos/a/b"))

    def test_rate_limited_hint(self):
        with patch.dict("os.environ", {}, clear=True):
            msg = describe_error(RateLimited(120))
        assert "rate limit" in msg
        assert "GITHUB_TOKEN" in msg

    def test_rate_limited_with_token(self):
        with patch.dict("os.environ", {"GITHUB_TOKEN": "t"}, clear=True):
            assert "Set GITHUB_TOKEN" not in describe_error(RateLimited(120))

    def test_transport(self):
        assert "internet" in describe_error(RequestFailed(None, "/repos/a/b", "timeout"))

    def test_auth(self):
        assert "Authentication" in describe_error(RequestFailed(401, "/repos/a/b"))

    def test_other_fetch_error(self):
        assert "README.md" in describe_error(DecodeFailed("README.md", "none"))

    def test_unexpected(self):
        assert describe_error(RuntimeError("boom")).startswith("Unexpected error")
