# minipack Runtime Components
"""
Runtime code that gets embedded into every bundle.

The loader is a real JavaScript file so it can be read, linted and tested as
JavaScript, but it is inlined as text at bundle time to keep the output
self-contained.
"""

import os

RUNTIME_FILES = [
    'loader.js',  # require(), module cache, localRequire(specifier)
]


def get_runtime():
    """
    Read and concatenate the runtime files into one string.

    The result is a function expression taking (modules, entry); the bundler
    appends the call with the module table.
    """
    runtime_dir = os.path.dirname(__file__)

    parts = []
    for name in RUNTIME_FILES:
        path = os.path.join(runtime_dir, name)
        with open(path, 'r', encoding='utf-8') as f:
            parts.append(f.read().strip())

    return '\n'.join(parts)
