"""
Runtime tests: bundles are executed with node and the entry's exports inspected.
"""
import pytest
from conftest import requires_node, run_bundle
from compiler import compile_bundle
from packcore.config import BuildConfig
from packcore.runtime import get_runtime

pytestmark = requires_node


@pytest.fixture(params=['function', 'string'])
def build(request):
    """Bundle and evaluate an entry in each embedding format."""
    def run(entry):
        return run_bundle(compile_bundle(entry, config=BuildConfig(format=request.param)))
    return run


class TestExports:
    """Values flow from dependencies to the entry's exports."""

    def test_no_imports(self, project, build):
        entry = project.write('main.js', 'export const answer = 42;\n')
        assert build(entry) == {'answer': 42}

    def test_named_default_and_namespace(self, project, build):
        paths = project.write_all({
            'main.js': (
                'import add, { sub as minus } from "./math.js";\n'
                'import * as math from "./math.js";\n'
                'export const results = [add(2, 3), minus(5, 1), math.sub(9, 4), typeof math["default"]];\n'
            ),
            'math.js': (
                'export default function add(a, b) { return a + b; }\n'
                'export function sub(a, b) { return a - b; }\n'
            ),
        })
        assert build(paths['main.js']) == {'results': [5, 4, 5, 'function']}

    def test_default_expression(self, project, build):
        paths = project.write_all({
            'main.js': 'import config from "./config.js";\nexport const port = config.port;\n',
            'config.js': 'export default { port: 8080 };\n',
        })
        assert build(paths['main.js']) == {'port': 8080}

    def test_commonjs_dependency(self, project, build):
        paths = project.write_all({
            'main.js': 'import legacy from "./legacy.js";\nexport const flag = legacy.enabled;\n',
            'legacy.js': 'module.exports = { enabled: true };\n',
        })
        assert build(paths['main.js']) == {'flag': True}

    def test_reexports(self, project, build):
        paths = project.write_all({
            'main.js': 'export * from "./a.js";\nexport { b as renamed } from "./b.js";\n',
            'a.js': 'export const one = 1;\nexport default "hidden";\n',
            'b.js': 'export const b = 2;\n',
        })
        assert build(paths['main.js']) == {'one': 1, 'renamed': 2}

    def test_json_import(self, project, build):
        paths = project.write_all({
            'main.js': 'import data from "./data.json";\nexport const names = data.items.map(i => i.name);\n',
            'data.json': '{"items": [{"name": "a"}, {"name": "b"}]}',
        })
        assert build(paths['main.js']) == {'names': ['a', 'b']}

    def test_live_export_getter(self, project, build):
        paths = project.write_all({
            'main.js': 'import * as counter from "./counter.js";\ncounter.bump();\nexport const seen = counter.count;\n',
            'counter.js': 'export let count = 0;\nexport function bump() { count += 1; }\n',
        })
        assert build(paths['main.js']) == {'seen': 1}

    def test_named_import_sees_updates(self, project, build):
        paths = project.write_all({
            'main.js': 'import { count, bump } from "./counter.js";\nbump();\nexport const seen = count;\n',
            'counter.js': 'export let count = 0;\nexport function bump() { count += 1; }\n',
        })
        assert build(paths['main.js']) == {'seen': 1}


class TestModuleIdentity:
    """Each module body runs once per bundle."""

    def test_diamond_singleton(self, project, build):
        paths = project.write_all({
            'main.js': (
                'import { state as fromB } from "./b.js";\n'
                'import { state as fromC } from "./c.js";\n'
                'export const count = fromB.count;\n'
                'export const same = fromB === fromC;\n'
            ),
            'b.js': 'import { state } from "./d.js";\nstate.count += 1;\nexport { state };\n',
            'c.js': 'import { state } from "./d.js";\nstate.count += 1;\nexport { state };\n',
            'd.js': 'export const state = { count: 0 };\n',
        })
        assert build(paths['main.js']) == {'count': 2, 'same': True}

    def test_cycle_with_hoisted_functions(self, project, build):
        paths = project.write_all({
            'a.js': (
                'import { b } from "./b.js";\n'
                'export function a() { return "a"; }\n'
                'export const fromB = b();\n'
            ),
            'b.js': (
                'import { a, fromB } from "./a.js";\n'
                'export function b() { return "b:" + typeof a + ":" + typeof fromB; }\n'
            ),
        })
        assert build(paths['a.js']) == {'fromB': 'b:function:undefined'}

    def test_cycle_reads_binding_after_initialisation(self, project, build):
        paths = project.write_all({
            'a.js': (
                'import { getB } from "./b.js";\n'
                'export const value = 42;\n'
                'export const fromB = getB();\n'
            ),
            'b.js': 'import { value } from "./a.js";\nexport function getB() { return value; }\n',
        })
        assert build(paths['a.js']) == {'value': 42, 'fromB': 42}

    def test_self_import(self, project, build):
        entry = project.write('self.js', 'import * as me from "./self.js";\nexport const x = 1;\nexport const y = me.x + 1;\n')
        assert build(entry) == {'x': 1, 'y': 2}

    def test_shared_module_through_different_specifiers(self, project, build):
        paths = project.write_all({
            'main.js': (
                'import { id as first } from "./lib/id.js";\n'
                'import { id as second } from "./lib/../lib/id.js";\n'
                'export const same = first === second;\n'
            ),
            'lib/id.js': 'export const id = {};\n',
        })
        assert build(paths['main.js']) == {'same': True}


class TestLoaderErrors:
    """Errors thrown by the runtime loader itself."""

    def test_unknown_specifier(self):
        script = (
            get_runtime()
            + '({"0": [function (require, module, exports) { exports.err = (function () {'
            + ' try { require("./missing.js"); } catch (e) { return e.message; } })(); }, {}]}, 0)'
        )
        assert run_bundle(script) == {'err': "minipack: cannot find module './missing.js' from module 0"}
