#!/usr/bin/env python3
"""Table dependency graph built from foreign references, and its insertion order"""
from collections import namedtuple

from schema_model import ForeignRefField, format_field_path, walk_fields
from seed_errors import CycleError
from seed_utils import debug_print

# edges: referenced table -> tables that reference it (parents point at children)
DependencyGraph = namedtuple("DependencyGraph", ["nodes", "edges", "external_refs", "self_refs"])
ExternalReference = namedtuple("ExternalReference", ["owner", "field", "target"])
SelfReference = namedtuple("SelfReference", ["owner", "field"])

_UNVISITED, _IN_PROGRESS, _FINISHED = 0, 1, 2


def build_dependency_graph(schemas):
    """
    Collect foreign references from every schema, at any nesting depth.

    An edge ``A -> B`` means B stores keys of A, so A must be populated first.
    References to tables outside ``schemas`` are kept in ``external_refs`` and
    add no edge; a table referencing itself is kept in ``self_refs``.

    Args:
        schemas: sequence of TableSchema

    Returns: DependencyGraph
    """
    nodes = [s.identity for s in schemas]
    known = set(nodes)
    edges = {n: [] for n in nodes}
    external_refs, self_refs = [], []

    for schema in schemas:
        owner = schema.identity
        for path, field in walk_fields(schema.fields):
            if not isinstance(field, ForeignRefField):
                continue
            if field.target == owner:
                self_refs.append(SelfReference(owner, format_field_path(path)))
            elif field.target in known:
                if owner not in edges[field.target]:
                    edges[field.target].append(owner)
            else:
                external_refs.append(ExternalReference(owner, format_field_path(path), field.target))

    debug_print("Adjacency list: {0}".format([(n, edges[n]) for n in nodes]))
    if external_refs:
        debug_print("External references: {0}".format(
            ["{0}.{1} -> {2}".format(r.owner, r.field, r.target) for r in external_refs]))
    return DependencyGraph(nodes, edges, external_refs, self_refs)


def topo_sort(graph):
    """
    Depth-first topological sort with cycle detection.

    Nodes are finished after all their dependents; the insertion order is the
    reverse of finish order. Roots and neighbours are visited in reverse input
    order so unconstrained tables keep their input order in the result.

    Raises:
        CycleError: a table (transitively) depends on itself
    """
    state = {n: _UNVISITED for n in graph.nodes}
    finished = []

    for root in reversed(graph.nodes):
        if state[root] != _UNVISITED:
            continue
        state[root] = _IN_PROGRESS
        path = [root]
        stack = [(root, iter(reversed(graph.edges.get(root, []))))]
        while stack:
            node, children = stack[-1]
            for child in children:
                if state[child] == _IN_PROGRESS:
                    raise CycleError(path[path.index(child):] + [child])
                if state[child] == _UNVISITED:
                    state[child] = _IN_PROGRESS
                    path.append(child)
                    stack.append((child, iter(reversed(graph.edges.get(child, [])))))
                    break
            else:
                stack.pop()
                path.pop()
                state[node] = _FINISHED
                finished.append(node)

    order = finished[::-1]
    debug_print("Topologically sorted tables: {0}".format(order))
    return order


def table_dependencies(graph):
    """Invert the edges: table -> tables it references (external targets included)."""
    deps = {n: [] for n in graph.nodes}
    for parent in graph.nodes:
        for child in graph.edges.get(parent, []):
            deps[child].append(parent)
    for ref in graph.external_refs:
        deps.setdefault(ref.target, [])
        if ref.target not in deps[ref.owner]:
            deps[ref.owner].append(ref.target)
    return deps


def build_dependency_tree(graph):
    """
    Nested view of the graph for inspection.

    Roots are tables nothing depends on; each node lists the tables it
    references. A table already shown under a root is not expanded again.

    Returns: dict of root table -> {"table": ..., "dependencies": [...]}
    """
    deps = table_dependencies(graph)
    has_dependents = set()
    for table, referenced in deps.items():
        has_dependents.update(referenced)

    def build(table, visited):
        if table in visited:
            return None
        visited.add(table)
        node = {"table": table, "dependencies": []}
        for dep in deps.get(table, []):
            child = build(dep, visited)
            if child:
                node["dependencies"].append(child)
        return node

    tree = {}
    for table in deps:
        if table not in has_dependents:
            tree[table] = build(table, set())
    return tree
