# minipack - Core Bundler Components
"""
Core modules for the minipack bundler:
- errors: Build error types and hint detection
- log: stderr logging helpers
- grammar: Lark grammar for ES module declarations
- transformer: Parse tree to loader-contract code
- transpiler: The default parse(source, path) implementation
- loaders: Source-to-source hooks chosen by path
- asset: Asset model and AssetBuilder
- graph: GraphBuilder and graph invariants
- bundler: Bundle emission
- runtime: The JavaScript loader embedded in every bundle
- introspection: Graph descriptions and cycle detection
- config: Build configuration
"""

from .errors import (
    MinipackError,
    ModuleReadError,
    ModuleSyntaxError,
    UnresolvedDependencyError,
    GraphError,
    ConfigError,
)
from .transpiler import TranspileResult, parse_module
from .asset import Asset, AssetBuilder, BuildContext
from .graph import GraphBuilder, build_graph, validate_graph
from .bundler import Bundler, bundle
from .introspection import describe_graph, find_cycles
from .config import BuildConfig, LoaderRule, load_config

__all__ = [
    'MinipackError',
    'ModuleReadError',
    'ModuleSyntaxError',
    'UnresolvedDependencyError',
    'GraphError',
    'ConfigError',
    'TranspileResult',
    'parse_module',
    'Asset',
    'AssetBuilder',
    'BuildContext',
    'GraphBuilder',
    'build_graph',
    'validate_graph',
    'Bundler',
    'bundle',
    'describe_graph',
    'find_cycles',
    'BuildConfig',
    'LoaderRule',
    'load_config',
]
