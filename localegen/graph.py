"""Declaration graph and translatable-family resolution."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Iterable, Mapping, Sequence, Set

from .logging import get_logger
from .models import DeclarationNode
from .parsing import ParsedUnit

logger = get_logger("graph")


class DeclarationGraphBuilder:
    """Builds a name-keyed adjacency map from parsed units.

    The graph is purely name based: declarations that share a simple name in
    different files are merged into one node and their parent lists combined.
    """

    def build(self, units: Iterable[ParsedUnit]) -> Dict[str, DeclarationNode]:
        graph: Dict[str, DeclarationNode] = {}
        for unit in units:
            for declaration in unit.declarations:
                existing = graph.get(declaration.name)
                if existing is None:
                    graph[declaration.name] = DeclarationNode(
                        name=declaration.name,
                        kind=declaration.kind,
                        parents=tuple(declaration.parents),
                    )
                    continue
                logger.debug(
                    "Declaration %s appears more than once (%s); merging parents",
                    declaration.name,
                    unit.path,
                )
                merged = list(existing.parents)
                merged.extend(p for p in declaration.parents if p not in merged)
                graph[declaration.name] = DeclarationNode(
                    name=existing.name, kind=existing.kind, parents=tuple(merged)
                )
        return graph


class _Mark(Enum):
    UNVISITED = 0
    IN_PROGRESS = 1
    RESOLVED = 2


class FamilyResolver:
    """Computes every declaration that reaches the base marker through its parents."""

    def __init__(self, base: str) -> None:
        self.base = base

    def resolve(self, graph: Mapping[str, DeclarationNode]) -> Set[str]:
        adjacency = {name: node.parents for name, node in graph.items()}
        members: Set[str] = {self.base}
        for name in adjacency:
            self._is_member(name, adjacency, members)
        return members - {self.base}

    def _is_member(
        self,
        name: str,
        adjacency: Mapping[str, Sequence[str]],
        members: Set[str],
    ) -> bool:
        # Marks are per query; only positive answers are memoised across queries.
        marks: Dict[str, _Mark] = {}

        def visit(current: str) -> bool:
            if current in members:
                return True
            if marks.get(current, _Mark.UNVISITED) is not _Mark.UNVISITED:
                return False
            marks[current] = _Mark.IN_PROGRESS
            for parent in adjacency.get(current, ()):
                if visit(parent):
                    members.add(current)
                    marks[current] = _Mark.RESOLVED
                    return True
            marks[current] = _Mark.RESOLVED
            return False

        return visit(name)


def family_of(units: Sequence[ParsedUnit], base: str) -> Set[str]:
    """Convenience wrapper: graph then family for the given units."""
    graph = DeclarationGraphBuilder().build(units)
    family = FamilyResolver(base).resolve(graph)
    logger.debug("Family of %s: %s", base, ", ".join(sorted(family)) or "(empty)")
    return family


__all__ = ["DeclarationGraphBuilder", "FamilyResolver", "family_of"]
