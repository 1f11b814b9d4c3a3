"""
Shared fixtures for the minipack tests.
"""
import json
import os
import shutil
import subprocess
import sys
import tempfile

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from packcore.log import set_verbose


class Project:
    """A throwaway directory of module files."""

    def __init__(self, root):
        self.root = root

    def path(self, name):
        return os.path.join(self.root, name)

    def write(self, name, content):
        path = self.path(name)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            f.write(content)
        return path

    def write_all(self, files):
        return {name: self.write(name, content) for name, content in files.items()}


@pytest.fixture
def project():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Project(os.path.realpath(tmpdir))


@pytest.fixture(autouse=True)
def quiet():
    """Every test starts with verbose logging off."""
    set_verbose(False)
    yield
    set_verbose(False)


NODE = shutil.which("node")

requires_node = pytest.mark.skipif(NODE is None, reason="node is not installed")


def run_bundle(bundle_text):
    """Evaluate a bundle with node and return the entry's exports as JSON data."""
    script = (
        "var __exports = " + bundle_text.rstrip().rstrip(';') + ";\n"
        "process.stdout.write(JSON.stringify(__exports));\n"
    )
    with tempfile.TemporaryDirectory() as tmpdir:
        script_path = os.path.join(tmpdir, 'bundle_check.js')
        with open(script_path, 'w', encoding='utf-8') as f:
            f.write(script)
        completed = subprocess.run([NODE, script_path], capture_output=True, text=True, timeout=30)
    if completed.returncode != 0:
        raise AssertionError(f"node failed:\n{completed.stderr}")
    return json.loads(completed.stdout)
