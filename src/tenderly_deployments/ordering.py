"""Library dependency ordering for tenderly-deployments library."""

import heapq
from typing import Dict, Iterable, List, Mapping

from .exceptions import CyclicLinkError


def sort_by_dependencies(dependencies: Mapping[str, Iterable[str]]) -> List[str]:
    """
    Order contract names so every library precedes the contracts linking it.

    Stable topological sort (Kahn's algorithm); among names that are ready at
    the same time the alphabetically smallest goes first, so the result does
    not depend on input order. Dependencies outside the mapping are ignored.

    Args:
        dependencies: Maps contract name -> names of libraries it links against

    Returns:
        Contract names, libraries first

    Raises:
        CyclicLinkError: If the dependency graph has a cycle (self-links included)
    """
    pending: Dict[str, int] = {}
    dependents: Dict[str, List[str]] = {name: [] for name in dependencies}

    for name, libraries in dependencies.items():
        known = {library for library in libraries if library in dependencies}
        pending[name] = len(known)
        for library in known:
            dependents[library].append(name)

    ready = [name for name, count in pending.items() if count == 0]
    heapq.heapify(ready)

    ordered: List[str] = []
    while ready:
        name = heapq.heappop(ready)
        ordered.append(name)
        for dependent in dependents[name]:
            pending[dependent] -= 1
            if pending[dependent] == 0:
                heapq.heappush(ready, dependent)

    if len(ordered) != len(pending):
        cyclic = sorted(name for name, count in pending.items() if count > 0)
        raise CyclicLinkError(
            f"Library links form a cycle; unresolvable contracts: {', '.join(cyclic)}"
        )

    return ordered
