"""Functional dependency resolver for permission actions.

``"Update": ["View"]`` reads "Update functionally depends on View": a UI
or API that allows Update should also allow View. Closures are used for
configuration validation and UI consistency only. They are never an
alternate grant path.
"""

import logging
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Set

from ....config.constants import FUNCTIONAL_DEPENDENCIES
from ....core.exceptions import CycleInDependencyConfig

logger = logging.getLogger(__name__)

_WHITE, _GREY, _BLACK = 0, 1, 2


class DependencyResolver:
    """Expands actions into their functional-dependency closure.
    
    The table is static, so every closure is computed once at construction.
    A cycle in the table is a fatal configuration error raised here rather
    than at request time.
    """
    
    def __init__(self, dependencies: Optional[Mapping[str, Iterable[str]]] = None):
        table = FUNCTIONAL_DEPENDENCIES if dependencies is None else dependencies
        self._graph: Dict[str, FrozenSet[str]] = {
            action: frozenset(required) for action, required in table.items()
        }
        # Actions only ever named as dependencies are leaves
        for required in list(self._graph.values()):
            for action in required:
                self._graph.setdefault(action, frozenset())
        
        self._check_acyclic()
        self._closures: Dict[str, FrozenSet[str]] = {
            action: self._closure(action) for action in self._graph
        }
        logger.debug(f"Dependency resolver initialized with {len(self._graph)} actions")
    
    def _check_acyclic(self) -> None:
        color: Dict[str, int] = {action: _WHITE for action in self._graph}
        
        for root in sorted(self._graph):
            if color[root] != _WHITE:
                continue
            # Iterative DFS keeping the current path for cycle reporting
            path: List[str] = [root]
            stack = [iter(sorted(self._graph[root]))]
            color[root] = _GREY
            while stack:
                child = next(stack[-1], None)
                if child is None:
                    color[path.pop()] = _BLACK
                    stack.pop()
                    continue
                if color[child] == _GREY:
                    cycle = path[path.index(child):] + [child]
                    raise CycleInDependencyConfig(cycle)
                if color[child] == _WHITE:
                    color[child] = _GREY
                    path.append(child)
                    stack.append(iter(sorted(self._graph[child])))
    
    def _closure(self, action: str) -> FrozenSet[str]:
        seen: Set[str] = {action}
        frontier = [action]
        while frontier:
            current = frontier.pop()
            for required in self._graph.get(current, ()):
                if required not in seen:
                    seen.add(required)
                    frontier.append(required)
        return frozenset(seen)
    
    def expand(self, action: str) -> FrozenSet[str]:
        """Return ``{action}`` together with everything it transitively requires."""
        closure = self._closures.get(action)
        if closure is None:
            return frozenset({action})
        return closure
    
    def requires(self, action: str) -> FrozenSet[str]:
        """Return the transitive dependencies of ``action`` excluding itself."""
        return self.expand(action) - {action}
    
    def missing_dependencies(self, actions: Iterable[str]) -> Dict[str, FrozenSet[str]]:
        """Map each action to the dependencies absent from ``actions``."""
        present = set(actions)
        missing: Dict[str, FrozenSet[str]] = {}
        for action in sorted(present):
            absent = self.requires(action) - present
            if absent:
                missing[action] = frozenset(absent)
        return missing
    
    def consistent_actions(self, actions: Iterable[str]) -> FrozenSet[str]:
        """Return the actions whose dependencies are all present.
        
        UI layers use this to avoid inconsistent states such as showing an
        edit control without the matching view control.
        """
        present = frozenset(actions)
        return frozenset(action for action in present if self.requires(action) <= present)
    
    @property
    def actions(self) -> FrozenSet[str]:
        return frozenset(self._graph)
