"""
Tests for loader rules and the preset registry
"""

import re

import pytest

from ..config import ApplicationIntent
from ..errors import ConfigurationError
from ..loaders import PRESET_NAMES, LoaderRule, build_registry, normalize_loader, resolve_presets


class TestPresetRegistry:

    def setup_method(self):
        """Setup a posix registry for each test"""
        self.app = ApplicationIntent(src="src", dest="dist")
        self.registry = build_registry(self.app, sep="/")

    def test_registration_order(self):
        assert list(self.registry) == ["babel", "jsx", "jade", "html", "json", "yaml"]
        assert list(PRESET_NAMES) == list(self.registry)

    def test_preset_loaders(self):
        """Test every preset carries its transform and options"""
        assert self.registry["babel"].loader == "babel"
        assert self.registry["babel"].query == {"presets": ["es2015", "stage-0"]}
        assert self.registry["jsx"].query == {"presets": ["react", "es2015", "stage-0"]}
        assert self.registry["jade"].loader == "jade"
        assert self.registry["jade"].query is None
        assert self.registry["html"].loader == "html"
        assert self.registry["json"].loader == "json"
        assert self.registry["yaml"].loader == "json!yaml"

    def test_presets_are_anchored_to_source_root(self):
        babel = self.registry["babel"]

        assert babel.matches("src/app.js")
        assert not babel.matches("other/app.js")

    def test_vendored_directories_are_excluded(self):
        """Test node_modules and bower_components never reach a loader"""
        babel = self.registry["babel"]

        assert babel.test.search("src/node_modules/lib/index.js")
        assert not babel.matches("src/node_modules/lib/index.js")
        assert not babel.matches("src/bower_components/lib/index.js")

    def test_yaml_preset_extension(self):
        yaml = self.registry["yaml"]

        assert yaml.matches("src/config/settings.yml")
        assert not yaml.matches("src/app.js")

    def test_registries_do_not_share_options(self):
        other = build_registry(self.app, sep="/")
        assert other["babel"].query == self.registry["babel"].query
        assert other["babel"].query is not self.registry["babel"].query


class TestResolvePresets:

    def setup_method(self):
        self.registry = build_registry(ApplicationIntent(src="src", dest="dist"), sep="/")

    def test_resolves_in_requested_order(self):
        loaders = resolve_presets(["babel", "yaml"], self.registry)

        assert len(loaders) == 2
        assert loaders[0] is self.registry["babel"]
        assert loaders[1] is self.registry["yaml"]

    def test_unknown_preset(self):
        """Test unknown names fail with the full list of valid names"""
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_presets(["nope"], self.registry)

        error = exc_info.value
        assert error.name == "nope"
        assert error.available == ["babel", "jsx", "jade", "html", "json", "yaml"]
        assert "babel, jsx, jade, html, json, yaml" in str(error)

    def test_fails_on_first_unknown_name(self):
        with pytest.raises(ConfigurationError) as exc_info:
            resolve_presets(["babel", "nope", "also-bad"], self.registry)

        assert exc_info.value.name == "nope"

    def test_empty_request(self):
        assert resolve_presets([], self.registry) == []


class TestNormalizeLoader:

    def test_returns_normalized_copy(self):
        """Test custom rules are copied, never changed in place"""
        rule = LoaderRule(test=re.compile(r"lib/.+\.coffee$"), loader="coffee")

        normalized = normalize_loader(rule, sep="/")

        assert normalized is not rule
        assert rule.test.pattern == r"lib/.+\.coffee$"
        assert normalized.test.pattern == r"lib\/.+\.coffee$"
        assert normalized.loader == "coffee"

    def test_to_native(self):
        rule = LoaderRule(
            test=re.compile(r"\.ts$"),
            exclude=re.compile("node_modules"),
            loader="ts",
            query={"transpileOnly": True},
        )

        assert rule.to_native() == {
            "test": r"\.ts$",
            "exclude": "node_modules",
            "loader": "ts",
            "query": {"transpileOnly": True},
        }

    def test_matches_without_exclude(self):
        rule = LoaderRule(test=re.compile(r"\.ts$"), loader="ts")

        assert rule.matches("src/node_modules/a.ts")
        assert rule.to_native() == {"test": r"\.ts$", "loader": "ts"}
