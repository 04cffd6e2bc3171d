"""Results screen — dependency tree with per-node risk detail."""

from typing import Optional

from textual import on, work
from textual.app import ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.screen import Screen
from textual.widgets import Footer, Header, Label, Markdown, Static, Tree
from textual.widgets.tree import TreeNode

from sbom_inspector.analyzer import Analyzer
from sbom_inspector.errors import FetchError, InvalidRepositoryUrl
from sbom_inspector.models import DependencyNode, LicenseInfo, RiskLevel

RISK_ICONS = {
    RiskLevel.low: "🟢",
    RiskLevel.medium: "🟡",
    RiskLevel.high: "🟠",
    RiskLevel.critical: "🔴",
}


def node_label(node: DependencyNode) -> str:
    label = f"{node.name}  ({node.discovery_source.value})"
    if node.assessment:
        level = node.assessment.risk_level
        label += f"  {RISK_ICONS[level]} {level.value}"
    if node.is_loading:
        label += "  ⏳"
    return label


def render_overview_markdown(
    toolchain: Optional[str], license_info: Optional[LicenseInfo]
) -> str:
    md = f"### Toolchain & Build Environment\n\n{toolchain or 'Not determined.'}\n"
    if license_info:
        md += (
            f"\n### Root License\n\n`{license_info.spdx_id}`\n\n"
            f"{license_info.compliance_summary}\n"
        )
    return md


def render_node_markdown(node: DependencyNode) -> str:
    """Markdown for the detail panel of one node."""
    md = f"## {node.name}\n\n{node.url}\n\n_Found via: {node.discovery_source.value}_\n"
    a = node.assessment
    if a is None:
        return md + "\nPress **a** to analyze this dependency.\n"

    md += (
        f"\n**Risk: {a.risk_level.value}** — {a.risk_summary}\n\n"
        f"### Maintainers\n\n{a.maintainer_analysis}\n\n"
        f"### Code Security\n\n{a.code_security_analysis}\n\n"
        f"### License\n\n`{a.license_analysis.spdx_id}` — "
        f"{a.license_analysis.compliance_summary}\n\n"
        "### Vulnerabilities\n\n"
    )
    if not a.vulnerability_analysis:
        md += "No relevant CVEs found after the compilation date.\n"
    for finding in a.vulnerability_analysis:
        md += f"- **{finding.cwe_id}: {finding.title}** — {finding.risk_summary}\n"
        for cve in finding.cves:
            md += f"  - `{cve.id}`: {cve.summary}\n"
    return md


class ResultsScreen(Screen):
    """Interactive dependency tree."""

    CSS = """
    #results-header {
        height: 3;
        background: $primary;
        text-align: center;
        padding: 1 2;
        text-style: bold;
    }
    #dep-tree {
        width: 1fr;
        border: round $primary-lighten-2;
    }
    #detail {
        width: 1fr;
        padding: 0 1;
    }
    #status-line {
        height: 1;
        color: $text-muted;
        padding: 0 2;
    }
    """

    BINDINGS = [
        ("q", "quit", "Quit"),
        ("b", "go_back", "Back"),
        ("d", "discover_children", "Discover deps"),
        ("a", "analyze", "Analyze"),
        ("e", "toggle_expand", "Expand/Collapse"),
    ]

    def __init__(self, analyzer: Analyzer, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(**kwargs)
        self.analyzer = analyzer
        self._selected_path: Optional[str] = None

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        root = self.analyzer.tree.root
        yield Static(f"  📦  {root.name if root else ''}  ", id="results-header")
        with Horizontal():
            yield Tree("dependencies", id="dep-tree")
            with VerticalScroll(id="detail"):
                yield Markdown(
                    render_overview_markdown(
                        self.analyzer.toolchain_info, self.analyzer.root_license
                    ),
                    id="overview",
                )
                yield Markdown("", id="node-detail")
        yield Label("", id="status-line")
        yield Footer()

    def on_mount(self) -> None:
        self.refresh_tree()

    # ── Rendering ─────────────────────────────────────────────────────────

    def refresh_tree(self) -> None:
        widget = self.query_one("#dep-tree", Tree)
        widget.clear()
        widget.show_root = False
        for root in self.analyzer.tree.roots:
            self._add_node(widget.root, root)
        widget.root.expand()
        self._show_detail()

    def _add_node(self, parent: TreeNode, node: DependencyNode) -> None:
        item = parent.add(node_label(node), data=node.path, expand=node.is_expanded)
        if not node.children:
            item.allow_expand = False
        for child in node.children:
            self._add_node(item, child)

    def _show_detail(self) -> None:
        detail = self.query_one("#node-detail", Markdown)
        node = self.analyzer.tree.get(self._selected_path) if self._selected_path else None
        detail.update(render_node_markdown(node) if node else "")

    def set_status(self, message: str) -> None:
        self.query_one("#status-line", Label).update(message)

    def _selected(self) -> Optional[DependencyNode]:
        if self._selected_path is None:
            return None
        return self.analyzer.tree.get(self._selected_path)

    # ── Events ────────────────────────────────────────────────────────────

    @on(Tree.NodeHighlighted, "#dep-tree")
    def on_highlight(self, event: Tree.NodeHighlighted) -> None:
        self._selected_path = event.node.data
        self._show_detail()

    @on(Tree.NodeExpanded, "#dep-tree")
    def on_expanded(self, event: Tree.NodeExpanded) -> None:
        self._sync_expanded(event.node)

    @on(Tree.NodeCollapsed, "#dep-tree")
    def on_collapsed(self, event: Tree.NodeCollapsed) -> None:
        self._sync_expanded(event.node)

    def _sync_expanded(self, item: TreeNode) -> None:
        node = self.analyzer.tree.get(item.data) if item.data else None
        if node and node.is_expanded != item.is_expanded:
            self.analyzer.toggle_expand(node)

    # ── Actions ───────────────────────────────────────────────────────────

    def action_go_back(self) -> None:
        self.app.pop_screen()

    def action_toggle_expand(self) -> None:
        node = self._selected()
        if node:
            self.analyzer.toggle_expand(node)
            self.refresh_tree()

    def action_discover_children(self) -> None:
        node = self._selected()
        if node and not node.is_loading and node.level > 0:
            self._discover(node)

    def action_analyze(self) -> None:
        node = self._selected()
        if node and not node.is_loading:
            self._analyze(node)

    @work(exclusive=False)
    async def _discover(self, node: DependencyNode) -> None:
        self.set_status(f"Discovering dependencies of {node.name} …")
        try:
            await self.analyzer.discover_children(node)
            self.set_status("")
        except (FetchError, InvalidRepositoryUrl) as e:
            self.set_status(f"❌ Failed to discover dependencies for {node.name}: {e}")
        self.refresh_tree()

    @work(exclusive=False)
    async def _analyze(self, node: DependencyNode) -> None:
        self.set_status(f"Analyzing {node.name} …")
        await self.analyzer.analyze_node(node)
        self.set_status("")
        self.refresh_tree()
