import weakref
from typing import Iterable, Iterator, Optional, Dict, Any, List

from lsi.vdf_errors import VdfDocumentClosedError


class VdfNode:
    """
    A single element of a parsed VDF document.

    Leaf nodes carry a key and a value, section nodes carry a key and
    children, and the root carries neither. Children are kept as a singly
    linked list headed by ``first_child``, newest first: the last parsed
    child is the head and ``next_sibling`` points at the one parsed before it.
    """

    __slots__ = ("key", "value", "first_child", "next_sibling", "_parent", "__weakref__")

    def __init__(self, key: Optional[str] = None, value: Optional[str] = None,
                 parent: Optional["VdfNode"] = None):
        self.key = key
        self.value = value
        self.first_child: Optional[VdfNode] = None
        self.next_sibling: Optional[VdfNode] = None
        self._parent = weakref.ref(parent) if parent is not None else None

    @property
    def parent(self) -> Optional["VdfNode"]:
        # Back reference only, the parent owns us and not the other way round
        if self._parent is None:
            return None
        return self._parent()

    @property
    def is_root(self) -> bool:
        return self._parent is None and self.key is None

    @property
    def is_leaf(self) -> bool:
        return self.value is not None

    @property
    def is_section(self) -> bool:
        return self.key is not None and self.value is None

    def prepend_child(self, node: "VdfNode"):
        """Links ``node`` in as the new head of this node's children."""
        node.next_sibling = self.first_child
        self.first_child = node

    def children(self) -> Iterator["VdfNode"]:
        """Iterates direct children in storage order (reverse parse order)."""
        node = self.first_child
        while node is not None:
            yield node
            node = node.next_sibling

    def child(self, name: Optional[str]) -> Optional["VdfNode"]:
        return child_of(self, name)

    def get(self, *names: str) -> Optional["VdfNode"]:
        return lookup_path(self, names)

    def walk(self) -> Iterator["VdfNode"]:
        """Depth first traversal of every descendant, storage order."""
        stack = list(reversed(list(self.children())))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(list(node.children())))

    def to_dict(self) -> Dict[str, Any]:
        """
        Debug view of this node's children as nested dicts.
        Keys repeated within a section keep the value parsed last.
        """
        result: Dict[str, Any] = {}
        # (section, dict to fill) work list, nesting depth is unbounded
        pending = [(self, result)]
        while pending:
            section, target = pending.pop()
            for node in reversed(list(section.children())):
                if node.is_leaf:
                    target[node.key] = node.value
                else:
                    target[node.key] = {}
                    pending.append((node, target[node.key]))
        return result

    def __repr__(self):
        if self.key is None:
            return "<VdfNode root>"
        if self.is_leaf:
            return f"<VdfNode {self.key!r}={self.value!r}>"
        return f"<VdfNode {self.key!r} {{...}}>"


def child_of(node: Optional[VdfNode], name: Optional[str]) -> Optional[VdfNode]:
    """
    Returns the first child of ``node`` whose key is exactly ``name``,
    scanning in storage order.
    """
    if node is None or name is None:
        return None
    for candidate in node.children():
        if candidate.key == name:
            return candidate
    return None


def lookup_path(node: Optional[VdfNode], names: Iterable[str]) -> Optional[VdfNode]:
    """
    Resolves ``names`` one level at a time starting from ``node``.
    An empty path returns ``node`` itself.
    """
    current = node
    for name in names:
        current = child_of(current, name)
        if current is None:
            return None
    return current


class VdfDocument:
    """
    Owns the tree produced by a successful parse.
    Closing the document releases every node, after which ``root`` raises.
    """

    def __init__(self, root: Optional[VdfNode] = None, path: Optional[str] = None):
        self._root = root if root is not None else VdfNode()
        self.path = path

    @property
    def root(self) -> VdfNode:
        if self._root is None:
            raise VdfDocumentClosedError(self.path)
        return self._root

    @property
    def closed(self) -> bool:
        return self._root is None

    def get(self, *names: str) -> Optional[VdfNode]:
        return lookup_path(self.root, names)

    def close(self):
        """
        Unlinks every node of the tree. Uses an explicit work list so very
        long sibling chains or deep nesting cannot exhaust the call stack.
        """
        if self._root is None:
            return
        pending: List[VdfNode] = [self._root]
        self._root = None
        while pending:
            node = pending.pop()
            if node.first_child is not None:
                pending.append(node.first_child)
            if node.next_sibling is not None:
                pending.append(node.next_sibling)
            node.first_child = None
            node.next_sibling = None
            node._parent = None
            node.key = None
            node.value = None

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False

    def __repr__(self):
        state = "closed" if self.closed else "open"
        return f"<VdfDocument {self.path or '<buffer>'} {state}>"
