"""
Bundler: serializes a module graph into one self-executing script.

The output is the runtime loader applied to a table of
`"id": [module function, mapping]` pairs and the entry id 0.
"""
import json
import os

from packcore.errors import GraphError
from packcore.literals import js_string
from packcore.log import warn
from packcore.runtime import get_runtime
from packcore.transpiler import is_well_formed

FORMATS = ('function', 'string')
MODULE_PARAMS = ('require', 'module', 'exports')


class Bundler:
    """
    Emits the bundle text for a graph.

    format="function" wraps each module's code in a real function. Code that
    could close that function early (unbalanced brackets, an unterminated
    literal) is embedded as a string instead. format="string" embeds every
    module as an escaped string passed to `new Function`.
    """

    def __init__(self, format='function', banner=True):
        if format not in FORMATS:
            raise ValueError(f"Unknown bundle format '{format}' (expected one of: {', '.join(FORMATS)})")
        self.format = format
        self.banner = banner

    def module_function(self, asset):
        """Render one module body as a JS function taking (require, module, exports)."""
        code = asset.code if asset.code.endswith('\n') else asset.code + '\n'
        if self.format == 'function':
            if is_well_formed(code):
                return f"function ({', '.join(MODULE_PARAMS)}) {{\n{code}}}"
            warn(f"Module {asset.id} can't be wrapped safely, embedding it as a string: {asset.path}")
        params = ', '.join(js_string(name) for name in MODULE_PARAMS)
        return f"new Function({params}, {js_string(code)})"

    def emit(self, graph):
        """
        Build the bundle.

        Args:
            graph: List of Asset as produced by GraphBuilder; graph[0] is the entry

        Returns:
            The bundle as a string; evaluating it returns the entry's exports
        """
        if not graph:
            raise GraphError("Cannot bundle an empty module graph")

        entries = []
        for asset in graph:
            mapping = json.dumps(asset.mapping, ensure_ascii=True, sort_keys=False).replace("</", "<\\/")
            entries.append(f"{js_string(str(asset.id))}: [{self.module_function(asset)}, {mapping}]")

        parts = []
        if self.banner:
            entry_name = os.path.basename(graph[0].path).replace('*/', '* /')
            count = len(graph)
            parts.append(f"/* minipack bundle: {count} module{'s' if count != 1 else ''}, entry {entry_name} */\n")
        parts.append(get_runtime())
        parts.append("({\n")
        parts.append(",\n".join(entries))
        parts.append("\n}, 0);\n")
        return "".join(parts)


def bundle(graph, format='function', banner=True):
    """Serialize a module graph into a single executable script."""
    return Bundler(format=format, banner=banner).emit(graph)
