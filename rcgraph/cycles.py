from __future__ import annotations
from dataclasses import fields, is_dataclass
from typing import Iterable, List, Optional
from pygraph.classes.digraph import digraph
from pygraph.algorithms.accessibility import mutual_accessibility
from pygraph.algorithms.cycles import find_cycle
from rcgraph import registry
from rcgraph.rc import Rc, RcBox, Weak
from rcgraph.ref_cell import RefCell
import logging

logger = logging.getLogger(__name__)

# Detects reference cycles made only of strong handles.
#
# Such a cycle keeps every member's strong count above zero forever, so none of its values is
# ever dropped. The checker builds a directed graph whose nodes are allocation records and
# whose edges are the strong handles a live value holds, then looks for cycles in it.
# Weak handles never contribute an edge, which is why a Node tree is always cycle free.


def strong_refs_of(value) -> List[RcBox]:
    """Records that `value` holds strong handles to.

    Looks through RefCells, lists, tuples, sets, dict values and dataclass fields, without
    following the handles themselves.
    """
    found = []
    seen = set()
    stack = [value]
    while stack:
        item = stack.pop()
        if id(item) in seen:
            continue
        seen.add(id(item))
        if isinstance(item, Rc):
            if not item.is_dropped():
                found.append(item.record)
        elif isinstance(item, Weak):
            continue
        elif isinstance(item, RefCell):
            stack.append(item.v0)
        elif isinstance(item, (list, tuple, set, frozenset)):
            stack.extend(item)
        elif isinstance(item, dict):
            stack.extend(item.values())
        elif is_dataclass(item) and not isinstance(item, type):
            stack.extend(getattr(item, f.name) for f in fields(item))
    return found


class StrongRefGraphBuilder:

    def __init__(self, records: Optional[Iterable[RcBox]] = None):
        if records is None:
            records = registry.live_allocations()
        self.records = [r for r in records if r.is_alive()]

    def build(self) -> digraph:
        graph = digraph()
        stack = list(self.records)
        while stack:
            record = stack.pop()
            if graph.has_node(record):
                continue
            graph.add_node(record)
            stack.extend(strong_refs_of(record.value))

        for record in graph.nodes():
            for target in strong_refs_of(record.value):
                if not graph.has_edge((record, target)):
                    graph.add_edge((record, target))
        return graph


def find_strong_cycle(records: Optional[Iterable[RcBox]] = None) -> List[RcBox]:
    """One strong cycle among `records` (default: every live tracked record), or []."""
    graph = StrongRefGraphBuilder(records).build()
    return find_cycle(graph)


def find_strong_cycles(records: Optional[Iterable[RcBox]] = None) -> List[List[RcBox]]:
    """Every group of records that keep each other alive through strong handles.

    A group is a strongly connected component of more than one record, or a single record
    holding a strong handle to itself.
    """
    graph = StrongRefGraphBuilder(records).build()
    components = mutual_accessibility(graph)
    ret = []
    seen = set()
    for record, members in components.items():
        if id(record) in seen:
            continue
        seen.update(id(m) for m in members)
        if len(members) > 1 or graph.has_edge((record, record)):
            ret.append(sorted(members))
    ret.sort()
    for members in ret:
        logger.warning("[rc] strong reference cycle of %d allocations", len(members))
    return ret


def has_strong_cycle(records: Optional[Iterable[RcBox]] = None) -> bool:
    return bool(find_strong_cycle(records))
