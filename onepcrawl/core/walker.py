"""Traversal of an already-built resource tree.

All functions here are breadth-first: every node at depth N is produced
before any node at depth N+1, and siblings come in their stored order.
Consumers rely on this to process one depth level at a time.
"""

from collections import deque
from typing import Callable, Iterator, List, Optional, Tuple

from .node import ResourceNode


def iter_tree(tree: ResourceNode) -> Iterator[Tuple[ResourceNode, int, Optional[str]]]:
    """Iterate a tree breadth-first.

    Args:
        tree: Root node

    Yields:
        Tuples of (node, depth, parent_id); parent_id is None for the root
    """
    # Queue stores (node, depth, parent_id) tuples
    queue = deque([(tree, 0, None)])

    while queue:
        node, depth, parent_id = queue.popleft()
        yield node, depth, parent_id

        for child in node.children or ():
            queue.append((child, depth + 1, node.id))


def walk(
    tree: ResourceNode,
    visit: Callable[[ResourceNode, int, Optional[str]], None]
) -> None:
    """Call visit(node, depth, parent_id) once for every node, level by level.

    Args:
        tree: Root node
        visit: Callback; receives parent_id=None for the root
    """
    for node, depth, parent_id in iter_tree(tree):
        visit(node, depth, parent_id)


def walk_by_level(tree: ResourceNode) -> Iterator[Tuple[int, List[ResourceNode]]]:
    """Yield all nodes at each depth as one batch.

    Yields:
        Tuples of (depth, [nodes at that depth])
    """
    current_level = [tree]
    current_depth = 0

    while current_level:
        yield current_depth, current_level

        next_level = []
        for node in current_level:
            next_level.extend(node.children or ())

        current_level = next_level
        current_depth += 1


def count_nodes(tree: ResourceNode) -> int:
    return sum(1 for _ in iter_tree(tree))


def render_tree(tree: ResourceNode, indent: str = "  ") -> List[str]:
    """Render a tree as indented text lines, depth-first.

    Non-client kinds are shown in parentheses and a failed node's status
    is appended, e.g. ``"  1234abcd (dataport)"`` or
    ``"  5678ef01 status: locked"``.

    Args:
        tree: Root node
        indent: Indentation added per depth level

    Returns:
        One line per node
    """
    lines = []
    stack = [(tree, 0)]

    while stack:
        node, depth = stack.pop()
        line = f"{indent * depth}{node.id}"
        if not node.kind.is_container:
            line += f" ({node.kind.value})"
        if node.status is not None:
            line += f" status: {node.status}"
        lines.append(line)

        # Reverse so the first child is rendered first
        for child in reversed(node.children or ()):
            stack.append((child, depth + 1))

    return lines
