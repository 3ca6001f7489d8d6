"""
Tests for configuration generation
"""

import os
import re

import pytest

from ..config import (
    ApplicationIntent, BuildIntent, StaticBundle,
    entry_key, generate, generate_config, generate_server_config,
)
from ..constants import DEFAULT_DEV_HOST, DEFAULT_DEV_PORT
from ..errors import ConfigurationError, PatternError
from ..loaders import LoaderRule
from ..plugins import MinifyPlugin, Plugin, ProvidePlugin


class TestEntryKey:

    def test_strips_js_suffix(self):
        assert entry_key("dist/app.js") == "dist/app"

    def test_bare_file_name(self):
        assert entry_key("app.js") == "./app"

    def test_only_final_suffix_is_stripped(self):
        assert entry_key("dist/vendor/app.min.js") == "dist/vendor/app.min"

    def test_non_js_destination_is_kept(self):
        assert entry_key("dist/app.bundle") == "dist/app.bundle"


class TestGenerateConfig:

    def setup_method(self):
        """Setup intents shared by each test"""
        self.app = ApplicationIntent(src="src", dest="dist")
        self.bundle = StaticBundle("dist/app.js", ("./src/index.js",))

    def make_build(self, **kwargs) -> BuildIntent:
        return BuildIntent(bundle=self.bundle, **kwargs)

    def test_minimal_config(self):
        """Test the layout of a config with no optional inputs"""
        config = generate_config(self.make_build(), self.app, sep="/")

        assert config["bail"] is False
        assert config["devtool"] is None
        assert config["debug"] is None
        assert config["output"] == {
            "path": os.path.abspath("dist"),
            "filename": "[name].js",
            "chunk_filename": "[name].js",
            "pathinfo": True,
        }
        assert config["resolve"] == {"modules_directories": [], "alias": {}}
        assert config["entry"] == {"dist/app": ["./src/index.js"]}
        assert config["plugins"] == []
        assert config["module"] == {"loaders": []}

    def test_resolve_is_copied_verbatim(self):
        build = self.make_build(
            resolve=("node_modules", "src/vendor"),
            alias={"utils": "src/utils"},
            devtool="source-map",
            debug=True,
            bail=True,
        )

        config = generate_config(build, self.app, sep="/")

        assert config["resolve"] == {
            "modules_directories": ["node_modules", "src/vendor"],
            "alias": {"utils": "src/utils"},
        }
        assert config["devtool"] == "source-map"
        assert config["debug"] is True
        assert config["bail"] is True

    def test_presets_then_custom_loaders(self):
        """Test custom loaders are appended after presets, normalized"""
        custom = LoaderRule(test=re.compile(r"src/.+\.coffee$"), loader="coffee")
        build = self.make_build(loader_presets=["jsx", "babel"], loaders=[custom])

        loaders = generate_config(build, self.app, sep="/")["module"]["loaders"]

        assert [loader.loader for loader in loaders] == ["babel", "babel", "coffee"]
        assert loaders[0].query["presets"][0] == "react"
        assert loaders[2].test.pattern == r"src\/.+\.coffee$"
        assert custom.test.pattern == r"src/.+\.coffee$"

    def test_custom_loaders_are_not_deduplicated(self):
        custom = LoaderRule(test=re.compile(r"\.js$"), loader="babel")
        build = self.make_build(loader_presets=["babel"], loaders=[custom, custom])

        loaders = generate_config(build, self.app, sep="/")["module"]["loaders"]

        assert len(loaders) == 3

    def test_unknown_preset_fails(self):
        with pytest.raises(ConfigurationError):
            generate_config(self.make_build(loader_presets=["babel", "coffee"]), self.app)

    def test_malformed_custom_pattern_fails(self):
        custom = LoaderRule(test="src/(broken", loader="broken")  # type: ignore[arg-type]

        with pytest.raises(PatternError):
            generate_config(self.make_build(loaders=[custom]), self.app, sep="/")

    def test_optimize_adds_quiet_minifier(self):
        config = generate_config(self.make_build(optimize=True), self.app)

        assert len(config["plugins"]) == 1
        minifier = config["plugins"][0]
        assert isinstance(minifier, MinifyPlugin)
        assert minifier.options == {"compress": {"warnings": False}}

    def test_shim_adds_provide_plugin(self):
        config = generate_config(self.make_build(shim={"$": "jquery"}), self.app)

        provider = config["plugins"][0]
        assert isinstance(provider, ProvidePlugin)
        assert provider.definitions == {"$": "jquery"}

    def test_plugin_order(self):
        """Test minifier, provider, then caller plugins"""
        custom = Plugin({"flag": 1})
        build = self.make_build(optimize=True, shim={"_": "lodash"}, plugins=[custom])

        plugins = generate_config(build, self.app)["plugins"]

        assert [type(plugin) for plugin in plugins] == [MinifyPlugin, ProvidePlugin, Plugin]
        assert plugins[2] is custom

    def test_generation_is_deterministic(self):
        build = self.make_build(loader_presets=["babel", "yaml"], optimize=True)

        first = generate_config(build, self.app, sep="/")
        second = generate_config(build, self.app, sep="/")

        assert list(first["entry"]) == list(second["entry"])
        assert [l.test.pattern for l in first["module"]["loaders"]] == \
            [l.test.pattern for l in second["module"]["loaders"]]
        assert len(first["plugins"]) == len(second["plugins"])
        assert first["module"]["loaders"] == second["module"]["loaders"]


class TestGenerateServerConfig:

    def setup_method(self):
        self.app = ApplicationIntent(src="src", dest="dist")
        self.bundle = StaticBundle("dist/app.js")

    def test_defaults(self):
        """Test fixed operational defaults of the dev server"""
        options = generate_server_config(BuildIntent(bundle=self.bundle), self.app)

        assert options == {
            "host": DEFAULT_DEV_HOST,
            "port": DEFAULT_DEV_PORT,
            "history_api_fallback": True,
            "content_base": "dist",
            "quiet": True,
            "no_info": True,
            "lazy": False,
            "watch_options": {"aggregate_timeout": 300, "poll": 1000},
            "headers": {"X-Custom-Header": "yes"},
            "stats": {"colors": True},
        }

    def test_address_override(self):
        build = BuildIntent(bundle=self.bundle, port=8080, host="0.0.0.0")

        config, options = generate(build, self.app)

        assert (options["host"], options["port"]) == ("0.0.0.0", 8080)
        assert config["entry"] == {"dist/app": []}


class TestBuildIntentFromMapping:

    def test_camel_case_presets(self):
        bundle = StaticBundle("dist/app.js")

        build = BuildIntent.from_mapping(bundle, {
            "loadersPresets": ["babel", "json"],
            "optimize": True,
            "shim": {"$": "jquery"},
            "port": "9100",
            "resolve": ["node_modules"],
        })

        assert build.loader_presets == ("babel", "json")
        assert build.optimize is True
        assert build.port == 9100
        assert build.host == DEFAULT_DEV_HOST
        assert build.resolve == ("node_modules",)
        assert build.bundle is bundle

    def test_missing_keys_use_defaults(self):
        build = BuildIntent.from_mapping(StaticBundle("dist/app.js"), {})

        assert build.loader_presets is None
        assert build.loaders is None
        assert build.bail is False
        assert build.port == DEFAULT_DEV_PORT

    def test_loader_mappings_become_rules(self):
        """Test plain loader mappings are converted and normalized"""
        build = BuildIntent.from_mapping(StaticBundle("dist/app.js"), {
            "loaders": [
                {"test": r"lib/.+\.coffee$", "loader": "coffee", "query": {"bare": True}},
                LoaderRule(test=re.compile(r"\.ts$"), loader="ts"),
            ],
        })

        loaders = generate_config(build, ApplicationIntent(src="src", dest="dist"), sep="/")["module"]["loaders"]

        assert all(isinstance(loader, LoaderRule) for loader in loaders)
        assert loaders[0].test.pattern == r"lib\/.+\.coffee$"
        assert loaders[0].query == {"bare": True}
        assert loaders[1].loader == "ts"

    def test_malformed_exclude_mapping(self):
        with pytest.raises(PatternError):
            BuildIntent.from_mapping(StaticBundle("dist/app.js"), {
                "loaders": [{"test": r"\.ts$", "exclude": "(node_modules", "loader": "ts"}],
            })
