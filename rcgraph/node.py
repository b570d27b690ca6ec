from __future__ import annotations
from typing import Iterator, List, Optional
from dataclasses import dataclass
from canoser import Int32
from rcgraph.errors import CycleError
from rcgraph.rc import Drop, Rc, Weak
from rcgraph.ref_cell import RefCell
import logging

logger = logging.getLogger(__name__)

# A tree of nodes sharing ownership through Rc.
#
# A node owns its children through strong handles and observes its parent through a weak
# handle. Since the parent link can only ever hold a Weak, parent and children never keep each
# other alive: dropping the last handle to a subtree root destroys the whole subtree.
# Both links sit in RefCells so they can be rewired through a shared, read-only Rc<Node>.


# The parent cell of a node. Only holds weak handles.
class ParentLink(RefCell):

    def __init__(self, weak: Weak = None):
        if weak is None:
            weak = Weak.new()
        super().__init__(weak)

    @classmethod
    def check_value(cls, value):
        if not isinstance(value, Weak):
            raise TypeError(f"parent link only holds Weak, got {type(value).__name__}")


@dataclass(eq=False)
class Node(Drop):
    value: int
    parent: ParentLink
    children: RefCell  # RefCell[List[Rc[Node]]]

    @classmethod
    def new(cls, value: int) -> Node:
        Int32.check_value(value)
        return cls(value, ParentLink(), RefCell([]))

    def drop(self):
        self.parent.take(Weak.new()).drop()
        children = self.children.take([])
        for child in children:
            child.drop()


def create_node(value: int) -> Rc:
    return Rc.new(Node.new(value))


def resolve_parent(node: Rc) -> Optional[Rc]:
    with node.value.parent.borrow() as weak:
        return weak.upgrade()


def attach_child(parent: Rc, child: Rc):
    """Make `child` a child of `parent`.

    The parent keeps a strong handle to the child, the child a weak handle to the parent.
    A node can be owned by several parents, so the check follows the strong children edges
    rather than the parent link: if `child` already owns `parent`, directly or through its
    descendants, the attach would make the two own each other and CycleError is raised.
    """
    if _owns(child, parent):
        raise CycleError(f"node {child.value.value} is or already owns node {parent.value.value}")

    # Both cells are borrowed before either is touched, so a refused borrow changes nothing.
    with parent.value.children.borrow_mut() as children, child.value.parent.borrow_mut() as link:
        children.v0.append(child.clone())
        old = link.v0
        link.set(parent.downgrade())
    old.drop()
    logger.debug("[node] attached %d to %d", child.value.value, parent.value.value)


def detach_child(parent: Rc, child: Rc) -> bool:
    """Remove one occurrence of `child` from the children of `parent`.

    The child's parent link is cleared if it pointed at `parent`. Returns False when
    `child` was not a child of `parent`.
    """
    removed = None
    with parent.value.children.borrow_mut() as children:
        for idx, item in enumerate(children.v0):
            if item.ptr_eq(child):
                removed = children.v0.pop(idx)
                break
    if removed is None:
        return False

    with child.value.parent.borrow_mut() as link:
        if link.v0.points_to(parent):
            link.v0.drop()
            link.set(Weak.new())
    # Released after the borrows above: this may destroy the child.
    removed.drop()
    logger.debug("[node] detached %d from %d", child.value.value, parent.value.value)
    return True


def children_of(node: Rc) -> List[Rc]:
    with node.value.children.borrow() as children:
        return [child.clone() for child in children]


# Yields the node's own child handles while holding a read borrow on its children, so any
# attempt to rewire those children before the generator finishes raises BorrowConflict.
def iter_children(node: Rc) -> Iterator[Rc]:
    with node.value.children.borrow() as children:
        for child in children:
            yield child


def walk(node: Rc) -> Iterator[Rc]:
    """Pre-order traversal of the subtree rooted at `node`, without recursion.

    Each yielded handle is dropped once the caller asks for the next one; clone it to keep it.
    """
    stack = [node.clone()]
    try:
        while stack:
            current = stack.pop()
            try:
                yield current
                stack.extend(reversed(children_of(current)))
            finally:
                current.drop()
    finally:
        for pending in stack:
            pending.drop()


def root_of(node: Rc) -> Rc:
    current = node.clone()
    while True:
        parent = resolve_parent(current)
        if parent is None:
            return current
        current.drop()
        current = parent


def depth_of(node: Rc) -> int:
    depth = 0
    current = resolve_parent(node)
    while current is not None:
        depth += 1
        parent = resolve_parent(current)
        current.drop()
        current = parent
    return depth


def _owns(owner: Rc, node: Rc) -> bool:
    target = node.record
    stack = [owner.record]
    seen = set()
    while stack:
        record = stack.pop()
        if record is target:
            return True
        if id(record) in seen:
            continue
        seen.add(id(record))
        with record.value.children.borrow() as children:
            stack.extend(child.record for child in children)
    return False
