import os

# Import from the core package
from packcore.bundler import Bundler
from packcore.config import BuildConfig
from packcore.graph import GraphBuilder
from packcore.introspection import find_cycles
from packcore.log import debug_log, is_verbose, set_verbose
from packcore.transpiler import parse_module

__all__ = ['build_module_graph', 'compile_bundle', 'set_verbose', 'debug_log']


def build_module_graph(entry_path, config=None, transpiler=parse_module):
    """Resolve every module reachable from entry_path into an ordered graph."""
    config = config or BuildConfig()

    # STEP 1: DISCOVER MODULES
    debug_log(f"Building module graph from: {entry_path}")
    graph = GraphBuilder(transpiler=transpiler, loaders=config.loaders).build(entry_path)
    debug_log(f"Discovered {len(graph)} module(s)")

    # STEP 2: REPORT CYCLES
    if is_verbose():
        for cycle in find_cycles(graph):
            names = [os.path.basename(graph[i].path) for i in cycle]
            debug_log("Circular import: " + " -> ".join(names + names[:1]))

    return graph


def compile_bundle(entry_path=None, config=None, transpiler=parse_module):
    """
    Build the bundle for an entry file.

    Args:
        entry_path: Entry file; falls back to config.entry
        config: BuildConfig, defaults apply when omitted
        transpiler: parse(source, path) -> TranspileResult

    Returns:
        The bundle text

    Raises:
        ModuleReadError, ModuleSyntaxError, UnresolvedDependencyError: the build aborts
        and nothing is emitted
    """
    config = config or BuildConfig()
    entry_path = entry_path or config.entry
    if not entry_path:
        raise ValueError("No entry file given")

    graph = build_module_graph(entry_path, config=config, transpiler=transpiler)

    # STEP 3: EMIT
    debug_log(f"Emitting bundle (format={config.format})")
    return Bundler(format=config.format, banner=config.banner).emit(graph)
