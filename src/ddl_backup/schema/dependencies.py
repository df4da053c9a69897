"""Dependency ordering for functions, types, tables and views.

Objects reference each other by schema-qualified name strings.  The
resolver builds a graph from those names and emits a creation order in
which every object follows everything it depends on.  Ties are broken
by sort category (shell types, base types, other types, functions,
tables, views) and then by name, so the order is deterministic.

A cycle through a base or composite type is broken by emitting a shell
type (``CREATE TYPE name;``) first and the full definition later.  Any
other cycle raises ``DependencyCycleError``.

Usage:
    from ddl_backup.schema.dependencies import sort_functions_and_types_and_tables

    ordered = sort_functions_and_types_and_tables(functions, types, tables)
    for obj in ordered:
        ...  # ShellType placeholders appear where cycles were broken
"""

import heapq
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from ddl_backup.schema.models import Function, Relation, Type, View

logger = logging.getLogger(__name__)


class DependencyCycleError(Exception):
    """Raised when a dependency cycle cannot be broken with a shell type.

    Attributes:
        names: Sorted FQNs of the objects caught in the cycle.
    """

    def __init__(self, names: list[str]):
        self.names = sorted(names)
        super().__init__(f"Unresolvable dependency cycle between: {', '.join(self.names)}")


class Sortable(Protocol):
    def fqn(self) -> str: ...

    def dependencies(self) -> list[str]: ...


class TypeState(Enum):
    """Creation state of a type while the order is being built."""

    PENDING = "pending"
    SHELLED = "shelled"
    DEFINED = "defined"


@dataclass
class ShellType:
    """Forward declaration of a type whose full definition comes later."""

    type: Type

    def fqn(self) -> str:
        return self.type.fqn()

    def dependencies(self) -> list[str]:
        return []


# ------------------------------------------------------------------
# Sort categories
# ------------------------------------------------------------------

CATEGORY_SHELL = 0
CATEGORY_BASE = 1
CATEGORY_OTHER_TYPE = 2
CATEGORY_FUNCTION = 3
CATEGORY_TABLE = 4
CATEGORY_VIEW = 5

SHELLABLE_TYPES = ("b", "c")


def sort_category(obj) -> int:
    """Tie-break rank of an object; lower ranks are created first."""
    if isinstance(obj, ShellType):
        return CATEGORY_SHELL
    if isinstance(obj, Type):
        if obj.type == "p":
            return CATEGORY_SHELL
        if obj.type == "b":
            return CATEGORY_BASE
        return CATEGORY_OTHER_TYPE
    if isinstance(obj, Function):
        return CATEGORY_FUNCTION
    if isinstance(obj, View):
        return CATEGORY_VIEW
    return CATEGORY_TABLE


def _is_shellable(obj) -> bool:
    return isinstance(obj, Type) and obj.type in SHELLABLE_TYPES


# ------------------------------------------------------------------
# Strongly connected components
# ------------------------------------------------------------------


def _strongly_connected_components(nodes: list[int], edges: dict[int, list[int]]) -> list[list[int]]:
    """Tarjan's algorithm, iterative so deep chains do not hit the recursion limit."""
    index_of: dict[int, int] = {}
    lowlink: dict[int, int] = {}
    on_stack: set[int] = set()
    stack: list[int] = []
    components: list[list[int]] = []
    counter = 0

    for root in nodes:
        if root in index_of:
            continue
        work = [(root, iter(edges.get(root, [])))]
        index_of[root] = lowlink[root] = counter
        counter += 1
        stack.append(root)
        on_stack.add(root)

        while work:
            node, children = work[-1]
            advanced = False
            for child in children:
                if child not in index_of:
                    index_of[child] = lowlink[child] = counter
                    counter += 1
                    stack.append(child)
                    on_stack.add(child)
                    work.append((child, iter(edges.get(child, []))))
                    advanced = True
                    break
                if child in on_stack:
                    lowlink[node] = min(lowlink[node], index_of[child])
            if advanced:
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                lowlink[parent] = min(lowlink[parent], lowlink[node])
            if lowlink[node] == index_of[node]:
                component = []
                while True:
                    member = stack.pop()
                    on_stack.discard(member)
                    component.append(member)
                    if member == node:
                        break
                components.append(component)

    return components


# ------------------------------------------------------------------
# Topological sort
# ------------------------------------------------------------------


def topological_sort(entities: Sequence[Sortable]) -> list:
    """Order objects so each one follows all of its dependencies.

    Uses Kahn's algorithm with a priority queue keyed on
    ``(sort_category, fqn)``.  Dependency names that match no object in
    ``entities`` and self references are ignored.

    Args:
        entities: Objects exposing ``fqn()`` and ``dependencies()``.

    Returns:
        The same objects in creation order, with ``ShellType``
        placeholders inserted ahead of any type whose definition had to
        be deferred to break a cycle.

    Raises:
        DependencyCycleError: If a cycle contains no base or composite type.

    Example:
        >>> [obj.fqn() for obj in topological_sort([table, func])]
        ['public.f()', 'public.t']
    """
    count = len(entities)
    keys = [(sort_category(obj), obj.fqn()) for obj in entities]

    by_fqn: dict[str, int] = {}
    for index, (_, fqn) in enumerate(keys):
        by_fqn.setdefault(fqn, index)

    depends_on: list[set[int]] = []
    dependents: list[list[int]] = [[] for _ in range(count)]
    for index, obj in enumerate(entities):
        targets = {
            by_fqn[name]
            for name in obj.dependencies()
            if name in by_fqn and by_fqn[name] != index
        }
        depends_on.append(targets)
        for target in targets:
            dependents[target].append(index)

    in_degree = [len(targets) for targets in depends_on]
    emitted = [False] * count
    released = [False] * count
    type_states: dict[int, TypeState] = {
        index: TypeState.PENDING for index, obj in enumerate(entities) if isinstance(obj, Type)
    }

    ready = [(*keys[index], index) for index in range(count) if in_degree[index] == 0]
    heapq.heapify(ready)

    def release(index: int) -> None:
        released[index] = True
        for dependent in dependents[index]:
            in_degree[dependent] -= 1
            if in_degree[dependent] == 0:
                heapq.heappush(ready, (*keys[dependent], dependent))

    ordered: list = []
    emitted_count = 0
    while emitted_count < count:
        if ready:
            _, _, index = heapq.heappop(ready)
            ordered.append(entities[index])
            emitted[index] = True
            emitted_count += 1
            if type_states.get(index) is TypeState.SHELLED:
                logger.debug("Full definition follows shell type %s", keys[index][1])
            if index in type_states:
                type_states[index] = TypeState.DEFINED
            if not released[index]:
                release(index)
            continue

        shell_index = _choose_shell(entities, keys, depends_on, emitted, released, type_states)
        type_states[shell_index] = TypeState.SHELLED
        logger.warning(
            "Breaking dependency cycle with shell type %s", keys[shell_index][1]
        )
        ordered.append(ShellType(type=entities[shell_index]))
        release(shell_index)

    return ordered


def _choose_shell(
    entities: Sequence[Sortable],
    keys: list[tuple[int, str]],
    depends_on: list[set[int]],
    emitted: list[bool],
    released: list[bool],
    type_states: dict[int, TypeState],
) -> int:
    """Pick the type to forward-declare when no object is ready.

    Only edges to objects that are neither emitted nor released count;
    a shelled type already satisfies its dependents.  A type is shelled
    at most once; only types still pending are candidates.
    """
    remaining = [index for index in range(len(entities)) if not emitted[index]]
    edges = {
        index: [
            target
            for target in depends_on[index]
            if not emitted[target] and not released[target]
        ]
        for index in remaining
    }
    cyclic = [
        member
        for component in _strongly_connected_components(remaining, edges)
        if len(component) > 1
        for member in component
    ]
    candidates = [
        index
        for index in cyclic
        if _is_shellable(entities[index]) and type_states.get(index) is TypeState.PENDING
    ]
    if not candidates:
        raise DependencyCycleError([keys[index][1] for index in cyclic])
    return min(candidates, key=lambda index: keys[index])


def sort_functions_and_types_and_tables(
    functions: Sequence[Function],
    types: Sequence[Type],
    tables: Sequence[Relation],
) -> list:
    """Resolve one creation order across functions, types and tables."""
    return topological_sort([*functions, *types, *tables])


def sort_views(views: Sequence[View]) -> list[View]:
    """Order views so a view is created after the views it selects from."""
    return topological_sort(views)
