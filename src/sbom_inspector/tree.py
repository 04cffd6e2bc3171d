"""Path-addressed, copy-on-write dependency tree."""

import logging
from typing import Callable, Iterable, Optional, Sequence, Union

from sbom_inspector.models import DependencyNode, DependencyRecord, DiscoverySource

logger = logging.getLogger(__name__)

Path = Union[str, Sequence[int]]
Mutator = Callable[[DependencyNode], DependencyNode]


def parse_path(path: Path) -> list[int]:
    """``"0-1-2"`` (or ``"0.1.2"``, or ``[0, 1, 2]``) -> ``[0, 1, 2]``."""
    if isinstance(path, str):
        parts = path.replace(".", "-").split("-")
        return [int(p) for p in parts if p != ""]
    return [int(i) for i in path]


def child_path(parent_path: str, index: int) -> str:
    return f"{parent_path}-{index}"


def build_root(
    name: str, url: str, records: Iterable[DependencyRecord]
) -> DependencyNode:
    """Root node (path ``0``) with one child per discovered record."""
    root = DependencyNode(
        name=name,
        url=url,
        discovery_source=DiscoverySource.root_repository,
        path="0",
        level=0,
        is_expanded=True,
    )
    return with_children(root, records)


def with_children(
    node: DependencyNode, records: Iterable[DependencyRecord]
) -> DependencyNode:
    """Append children for ``records`` after any existing children.

    Existing children keep their paths. Records whose name already appears
    among the children are skipped.
    """
    existing = {c.name.strip().lower() for c in node.children}
    new_children = list(node.children)
    for record in records:
        if record.key in existing:
            continue
        existing.add(record.key)
        new_children.append(
            DependencyNode(
                name=record.name,
                url=record.source_url,
                discovery_source=record.discovery_source,
                path=child_path(node.path, len(new_children)),
                level=node.level + 1,
            )
        )
    return node.model_copy(update={"children": tuple(new_children)})


class DependencyTree:
    """An immutable snapshot of the dependency forest.

    ``update_at`` never mutates the snapshot it is called on: it returns a new
    tree in which only the nodes along the path are copied and every sibling
    subtree is the very same object as before.
    """

    def __init__(self, roots: Sequence[DependencyNode] = ()) -> None:
        self._roots: tuple[DependencyNode, ...] = tuple(roots)

    @property
    def roots(self) -> tuple[DependencyNode, ...]:
        return self._roots

    @property
    def root(self) -> Optional[DependencyNode]:
        return self._roots[0] if self._roots else None

    def get(self, path: Path) -> Optional[DependencyNode]:
        try:
            indices = parse_path(path)
        except ValueError:
            return None
        level: Sequence[DependencyNode] = self._roots
        node: Optional[DependencyNode] = None
        for index in indices:
            if not 0 <= index < len(level):
                return None
            node = level[index]
            level = node.children
        return node

    def update_at(self, path: Path, mutator: Mutator) -> "DependencyTree":
        """Replace the node at ``path`` with ``mutator(node)``.

        A path that does not resolve (e.g. one made stale by a concurrent
        change) leaves the tree untouched and returns ``self``.
        """
        try:
            indices = parse_path(path)
        except ValueError:
            logger.debug("Ignoring update at malformed path %r", path)
            return self
        if not indices:
            return self
        new_roots = self._replace(self._roots, indices, mutator)
        if new_roots is None:
            logger.debug("Ignoring update at stale path %r", path)
            return self
        return DependencyTree(new_roots)

    def _replace(
        self,
        siblings: tuple[DependencyNode, ...],
        indices: list[int],
        mutator: Mutator,
    ) -> Optional[tuple[DependencyNode, ...]]:
        index, rest = indices[0], indices[1:]
        if not 0 <= index < len(siblings):
            return None
        old = siblings[index]
        if rest:
            children = self._replace(old.children, rest, mutator)
            if children is None:
                return None
            new = old.model_copy(update={"children": children})
        else:
            new = mutator(old)
            # Path and level are identity; a mutator may not move a node.
            if new.path != old.path or new.level != old.level:
                new = new.model_copy(update={"path": old.path, "level": old.level})
        return siblings[:index] + (new,) + siblings[index + 1:]

    def walk(self) -> Iterable[DependencyNode]:
        """Depth-first, pre-order traversal."""
        stack = list(reversed(self._roots))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())
