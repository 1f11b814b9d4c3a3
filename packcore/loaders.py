"""
Loaders: source-to-source hooks applied to a file before it is transpiled.

A loader rule pairs a regex, searched against the module's absolute path,
with the name of a registered loader. Every matching rule runs, in order.
"""
import json
import re

from packcore.errors import ModuleSyntaxError
from packcore.literals import js_string


def json_loader(path, source):
    """Turn a JSON document into a module whose default export is the data."""
    try:
        json.loads(source)
    except json.JSONDecodeError as e:
        raise ModuleSyntaxError(
            f"Invalid JSON: {e.msg}",
            file_path=path,
            line_number=e.lineno,
            column=e.colno,
            suggestion="JSON modules must contain a single valid JSON document",
        ) from e
    return f"export default {source.strip()};\n"


def text_loader(path, source):
    """Turn any file into a module whose default export is its text."""
    return f"export default {js_string(source)};\n"


LOADERS = {
    'json': json_loader,
    'text': text_loader,
}


def register_loader(name, loader):
    """Register a loader callable `(path, source) -> source` under a name."""
    if not callable(loader):
        raise TypeError(f"Loader '{name}' must be callable")
    LOADERS[name] = loader


def get_loader(name):
    try:
        return LOADERS[name]
    except KeyError:
        raise KeyError(f"Unknown loader '{name}' (available: {', '.join(sorted(LOADERS))})") from None


def apply_loaders(path, source, rules):
    """Run every rule whose test matches path over source, in order."""
    for rule in rules or []:
        if re.search(rule.test, path):
            source = get_loader(rule.use)(path, source)
    return source
