"""
Dependency graph construction.

Starting from an entry file, every import specifier is resolved to a path
next to the importing file, each distinct path becomes exactly one Asset, and
each Asset records which id every one of its specifiers resolved to.
"""
import os
from collections import deque

from packcore.asset import AssetBuilder, BuildContext
from packcore.errors import GraphError, ModuleReadError, UnresolvedDependencyError
from packcore.log import debug_log
from packcore.transpiler import parse_module

RELATIVE_PREFIXES = ('./', '../', '/')


def resolve_specifier(importer_path, specifier):
    """
    Resolve a specifier against the directory of the importing file.

    This is a purely syntactic join: no extension inference, no index files,
    no package lookup.
    """
    if not specifier.startswith(RELATIVE_PREFIXES):
        raise UnresolvedDependencyError(
            specifier,
            importer_path,
            suggestion="Only relative specifiers ('./x.js', '../x.js') are supported; packages can't be looked up",
        )
    return os.path.normpath(os.path.join(os.path.dirname(importer_path), specifier))


def validate_graph(graph):
    """Check the graph invariants; raise GraphError on the first violation."""
    if not graph:
        raise GraphError("Module graph is empty")
    if graph[0].id != 0:
        raise GraphError(f"Entry module must have id 0, found {graph[0].id}", file_path=graph[0].path)

    ids = set()
    for index, asset in enumerate(graph):
        if asset.id != index:
            raise GraphError(f"Module ids must be contiguous: position {index} has id {asset.id}",
                             file_path=asset.path)
        ids.add(asset.id)

    for asset in graph:
        missing = set(asset.dependencies) - set(asset.mapping)
        if missing:
            raise GraphError(f"Unmapped specifiers: {', '.join(sorted(missing))}", file_path=asset.path)
        for specifier, target in asset.mapping.items():
            if target not in ids:
                raise GraphError(f"'{specifier}' maps to unknown module id {target}", file_path=asset.path)
    return graph


class GraphBuilder:
    """Builds the ordered, deduplicated module list reachable from an entry file."""

    def __init__(self, transpiler=parse_module, loaders=None):
        self.transpiler = transpiler
        self.loaders = loaders or []

    def build(self, entry_path):
        """
        Build the module graph.

        Args:
            entry_path: Entry file, absolute or relative to the working directory

        Returns:
            List of Asset in breadth-first discovery order; graph[i].id == i

        Raises:
            ModuleReadError: If the entry (or any module) can't be read
            ModuleSyntaxError: If any module can't be parsed
            UnresolvedDependencyError: If a specifier doesn't resolve to a file
        """
        context = BuildContext()
        builder = AssetBuilder(context, transpiler=self.transpiler, loaders=self.loaders)

        entry_path = os.path.abspath(entry_path)
        if not os.path.isfile(entry_path):
            raise ModuleReadError("Entry file not found", file_path=entry_path)

        entry = builder.build(entry_path)
        context.remember(entry)
        debug_log(f"Entry module {entry.id}: {entry.path}")

        graph = [entry]
        queue = deque([entry])
        while queue:
            asset = queue.popleft()
            for specifier in asset.dependencies:
                child_path = resolve_specifier(asset.path, specifier)
                child = context.lookup(child_path)
                if child is None:
                    if not os.path.isfile(child_path):
                        raise UnresolvedDependencyError(specifier, asset.path, resolved_path=child_path)
                    child = builder.build(child_path)
                    context.remember(child)
                    graph.append(child)
                    queue.append(child)
                    debug_log(f"Module {child.id}: {child.path} (from '{specifier}' in {asset.id})")
                else:
                    debug_log(f"Reusing module {child.id} for '{specifier}' in {asset.id}")
                asset.mapping[specifier] = child.id

        return validate_graph(graph)


def build_graph(entry_path, transpiler=parse_module, loaders=None):
    """Convenience wrapper around GraphBuilder(...).build(entry_path)."""
    return GraphBuilder(transpiler=transpiler, loaders=loaders).build(entry_path)
