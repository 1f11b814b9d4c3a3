"""
Graph introspection - plain-data views of a built module graph.

Used by `minipack --graph` and by verbose builds to report import cycles.
"""


def describe_graph(graph):
    """
    Describe every module in a graph as a JSON-serializable dict.

    Returns:
        List of {"id", "path", "dependencies", "mapping"} in graph order
    """
    return [
        {
            "id": asset.id,
            "path": asset.path,
            "dependencies": list(asset.dependencies),
            "mapping": dict(asset.mapping),
        }
        for asset in graph
    ]


def find_cycles(graph):
    """
    Find the elementary import cycles in a graph.

    Each cycle is a list of module ids, rotated to start at its smallest id,
    and reported once.

    Returns:
        List of cycles sorted by their ids
    """
    edges = {}
    for asset in graph:
        targets = []
        for specifier in asset.dependencies:
            target = asset.mapping.get(specifier)
            if target is not None and target not in targets:
                targets.append(target)
        edges[asset.id] = targets

    cycles = set()
    for start in sorted(edges):
        # Only walk through ids >= start so each cycle is found from its smallest member
        stack = [(start, [start])]
        while stack:
            node, path = stack.pop()
            for target in edges.get(node, []):
                if target == start:
                    cycles.add(tuple(path))
                elif target > start and target not in path:
                    stack.append((target, path + [target]))

    return [list(cycle) for cycle in sorted(cycles)]
