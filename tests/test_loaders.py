"""
Unit tests for source loaders.
"""
import pytest
from packcore.config import LoaderRule
from packcore.errors import ModuleSyntaxError
from packcore.loaders import LOADERS, apply_loaders, get_loader, json_loader, register_loader, text_loader


@pytest.fixture
def scratch_loader():
    """Register a loader for one test and remove it afterwards."""
    names = []

    def register(name, fn):
        names.append(name)
        register_loader(name, fn)

    yield register
    for name in names:
        LOADERS.pop(name, None)


class TestBuiltinLoaders:
    """Tests for the json and text loaders."""

    def test_json_becomes_default_export(self):
        assert json_loader('/app/data.json', '{"a": [1, 2]}\n') == 'export default {"a": [1, 2]};\n'

    def test_invalid_json(self):
        with pytest.raises(ModuleSyntaxError) as exc:
            json_loader('/app/bad.json', '{\n  "a": 1\n  "b": 2\n}')
        error = exc.value
        assert error.file_path == '/app/bad.json'
        assert error.line_number == 3
        assert error.message.startswith('Invalid JSON')

    def test_text_is_escaped(self):
        source = 'Hello "world"\n</script>'
        assert text_loader('/app/page.html', source) == 'export default "Hello \\"world\\"\\n<\\/script>";\n'


class TestApplyLoaders:
    """Tests for rule matching."""

    def test_no_rules(self):
        assert apply_loaders('/app/a.js', 'x', []) == 'x'
        assert apply_loaders('/app/a.js', 'x', None) == 'x'

    def test_only_matching_rules_run(self):
        rules = [LoaderRule(test=r'\.json$', use='json')]
        assert apply_loaders('/app/a.js', '{}', rules) == '{}'
        assert apply_loaders('/app/a.json', '{}', rules) == 'export default {};\n'

    def test_rules_run_in_order(self, scratch_loader):
        scratch_loader('upper', lambda path, source: source.upper())
        scratch_loader('exclaim', lambda path, source: source + '!')
        rules = [LoaderRule(test=r'\.txt$', use='upper'), LoaderRule(test=r'\.txt$', use='exclaim')]
        assert apply_loaders('/app/a.txt', 'hi', rules) == 'HI!'


class TestRegistry:
    """Tests for register_loader() and get_loader()."""

    def test_register_and_get(self, scratch_loader):
        def strip(path, source):
            return source.strip()

        scratch_loader('strip', strip)
        assert get_loader('strip') is strip

    def test_register_requires_callable(self):
        with pytest.raises(TypeError):
            register_loader('broken', 'not a function')
        assert 'broken' not in LOADERS

    def test_unknown_loader(self):
        with pytest.raises(KeyError) as exc:
            get_loader('yaml')
        assert 'json' in str(exc.value)
