"""
Assets: one source file after dependency extraction and transformation.
"""
import os
from typing import Dict, List

from pydantic import BaseModel, Field

from packcore.errors import ModuleReadError
from packcore.loaders import apply_loaders
from packcore.transpiler import parse_module


class Asset(BaseModel):
    """A processed module: its identity, where it lives, what it needs and its code."""
    id: int = Field(ge=0)
    path: str
    dependencies: List[str] = Field(default_factory=list)
    code: str
    mapping: Dict[str, int] = Field(default_factory=dict)


class BuildContext:
    """
    State owned by a single build invocation.

    Holds the id counter and the absolute path -> Asset cache. A fresh context
    is created for every graph build, so repeated builds never share ids.
    """

    def __init__(self):
        self._next_id = 0
        self.assets_by_path = {}

    def next_id(self):
        asset_id = self._next_id
        self._next_id += 1
        return asset_id

    def lookup(self, path):
        return self.assets_by_path.get(path)

    def remember(self, asset):
        self.assets_by_path[asset.path] = asset


class AssetBuilder:
    """Reads a file, runs loaders and the transpiler, and assigns an identity."""

    def __init__(self, context, transpiler=parse_module, loaders=None):
        self.context = context
        self.transpiler = transpiler
        self.loaders = loaders or []

    def read(self, path):
        try:
            with open(path, 'r', encoding='utf-8') as f:
                return f.read()
        except FileNotFoundError as e:
            raise ModuleReadError("Module not found", file_path=path) from e
        except IsADirectoryError as e:
            raise ModuleReadError(
                "Module path is a directory",
                file_path=path,
                suggestion="Import the file itself, e.g. './lib/index.js'",
            ) from e
        except UnicodeDecodeError as e:
            raise ModuleReadError(f"Module is not valid UTF-8: {e.reason}", file_path=path) from e
        except OSError as e:
            raise ModuleReadError(f"Cannot read module: {e.strerror or e}", file_path=path) from e

    def build(self, path):
        """
        Build the asset for one file.

        Args:
            path: Absolute path of the module

        Returns:
            Asset with an empty mapping; GraphBuilder fills it in

        Raises:
            ModuleReadError: If the file is missing or unreadable
            ModuleSyntaxError: If the transpiler rejects the file
        """
        path = os.path.abspath(path)
        source = apply_loaders(path, self.read(path), self.loaders)
        result = self.transpiler(source, path)
        return Asset(
            id=self.context.next_id(),
            path=path,
            dependencies=list(result.dependencies),
            code=result.code,
        )
