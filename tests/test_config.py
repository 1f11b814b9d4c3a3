"""
Unit tests for the build configuration.
"""
import json
import os
import pytest
from pydantic import ValidationError
from packcore.config import CONFIG_FILE, BuildConfig, LoaderRule, load_config
from packcore.errors import ConfigError


def write_config(project, data, name=CONFIG_FILE):
    return project.write(name, json.dumps(data) if not isinstance(data, str) else data)


class TestBuildConfig:
    """Tests for the BuildConfig model."""

    def test_defaults(self):
        config = BuildConfig()
        assert config.entry is None
        assert config.output is None
        assert config.format == 'function'
        assert config.banner is True
        assert [(rule.test, rule.use) for rule in config.loaders] == [(r'\.json$', 'json')]

    def test_defaults_are_not_shared(self):
        first, second = BuildConfig(), BuildConfig()
        first.loaders.append(LoaderRule(test=r'\.txt$', use='text'))
        assert len(second.loaders) == 1

    def test_unknown_key(self):
        with pytest.raises(ValidationError):
            BuildConfig(entry='main.js', minify=True)

    def test_bad_format(self):
        with pytest.raises(ValidationError):
            BuildConfig(format='esm')


class TestLoaderRule:
    """Tests for LoaderRule validation."""

    def test_valid(self):
        rule = LoaderRule(test=r'\.txt$', use='text')
        assert rule.use == 'text'

    def test_bad_regex(self):
        with pytest.raises(ValidationError):
            LoaderRule(test='(unclosed', use='text')

    def test_unknown_loader(self):
        with pytest.raises(ValidationError) as exc:
            LoaderRule(test=r'\.yaml$', use='yaml')
        assert 'unknown loader' in str(exc.value)


class TestLoadConfig:
    """Tests for load_config()."""

    def test_no_file_gives_defaults(self, project, monkeypatch):
        monkeypatch.chdir(project.root)
        assert load_config() == BuildConfig()

    def test_default_file_in_working_directory(self, project, monkeypatch):
        write_config(project, {'entry': 'src/main.js', 'banner': False})
        monkeypatch.chdir(project.root)
        config = load_config()
        assert config.entry == project.path('src/main.js')
        assert config.banner is False

    def test_paths_relative_to_config_file(self, project):
        path = write_config(project, {'entry': 'main.js', 'output': 'dist/bundle.js'}, name='conf/build.json')
        config = load_config(path)
        assert config.entry == os.path.join(project.root, 'conf', 'main.js')
        assert config.output == os.path.join(project.root, 'conf', 'dist', 'bundle.js')

    def test_absolute_paths_kept(self, project):
        path = write_config(project, {'entry': '/srv/app/main.js'})
        assert load_config(path).entry == '/srv/app/main.js'

    def test_loaders(self, project):
        path = write_config(project, {'loaders': [{'test': r'\.html$', 'use': 'text'}]})
        config = load_config(path)
        assert [(rule.test, rule.use) for rule in config.loaders] == [(r'\.html$', 'text')]

    def test_explicit_missing_file(self, project):
        with pytest.raises(ConfigError) as exc:
            load_config(project.path('absent.json'))
        assert 'not found' in exc.value.message

    def test_invalid_json(self, project):
        path = write_config(project, '{"entry": ')
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert exc.value.message.startswith('Cannot read config')
        assert exc.value.file_path == path

    def test_unknown_key(self, project):
        path = write_config(project, {'entry': 'main.js', 'minify': True})
        with pytest.raises(ConfigError) as exc:
            load_config(path)
        assert 'Allowed keys' in exc.value.suggestion

    def test_unknown_loader_name(self, project):
        path = write_config(project, {'loaders': [{'test': 'x', 'use': 'coffee'}]})
        with pytest.raises(ConfigError):
            load_config(path)
