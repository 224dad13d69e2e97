"""
Tests for the build-info snapshot and history writer.
"""

import json

from conftest import android_main

import config as cfg
from hooks.build_info import (
    CONFIG_FILE,
    HISTORY_FILE,
    LOADER_SRC,
    append_history,
    inject_build_info,
    load_history,
)


def _read(path):
    return json.loads(path.read_text(encoding="utf-8"))


def _www(root):
    return android_main(root) / "assets" / "www"


class TestHistory:
    def test_capped_at_limit(self):
        history = [{"buildId": f"build_{i}"} for i in range(50)]
        document = append_history(history, {"buildId": "build_new"}, 50)
        assert document["count"] == 50
        assert document["history"][0]["buildId"] == "build_1"
        assert document["history"][-1]["buildId"] == "build_new"

    def test_zero_limit_keeps_nothing(self):
        assert append_history([{"a": 1}], {"b": 2}, 0)["history"] == []

    def test_load_missing_or_corrupt(self, tmp_path):
        assert load_history(tmp_path / "missing.json") == []
        corrupt = tmp_path / "history.json"
        corrupt.write_text("{not json", encoding="utf-8")
        assert load_history(corrupt) == []
        corrupt.write_text('{"history": "nope"}', encoding="utf-8")
        assert load_history(corrupt) == []


class TestInjectBuildInfo:
    def test_writes_all_locations(self, android_project, make_config, context):
        make_config({"APP_NAME": "Shop", "VERSION_NUMBER": "2.1.0", "API_HOSTNAME": "shop.example.com"})
        result = inject_build_info(context(android_project, "android"))

        assert result.success
        www = _www(android_project)
        locations = (
            www / cfg.APP_DATA_DIRNAME / CONFIG_FILE,
            android_project / "www" / cfg.APP_DATA_DIRNAME / CONFIG_FILE,
            www / CONFIG_FILE,
        )
        for path in locations:
            document = _read(path)
            assert document["version"] == "1.0"
            assert document["config"]["appName"] == "Shop"
            assert document["config"]["appVersion"] == "2.1.0"
            assert document["config"]["appId"] == "com.example.demo"
            assert document["config"]["platform"] == "android"
            assert document["config"]["environment"] == "production"
            assert document["config"]["apiHostname"] == "shop.example.com"
            assert document["config"]["cordovaVersion"] == "unknown"

        history = _read(www / cfg.APP_DATA_DIRNAME / HISTORY_FILE)
        assert history["count"] == 1
        assert history["history"][0]["success"] is True
        assert history["history"][0]["buildId"].startswith("build_")

    def test_environment_overrides_preferences(self, android_project, make_config, context, monkeypatch):
        make_config({"APP_NAME": "Shop", "ENVIRONMENT": "staging"})
        monkeypatch.setenv("APP_NAME", "Env Shop")
        inject_build_info(context(android_project, "android"))

        config = _read(_www(android_project) / CONFIG_FILE)["config"]
        assert config["appName"] == "Env Shop"
        assert config["environment"] == "staging"

    def test_cordova_version_is_recorded(self, android_project, make_config, context):
        make_config()
        ctx = context(android_project, "android")
        ctx.cordova_version = "12.0.0"
        inject_build_info(ctx)
        assert _read(_www(android_project) / CONFIG_FILE)["config"]["cordovaVersion"] == "12.0.0"

    def test_history_grows_and_is_capped(self, android_project, make_config, context):
        make_config()
        history_path = _www(android_project) / cfg.APP_DATA_DIRNAME / HISTORY_FILE
        history_path.parent.mkdir(parents=True)
        seeded = [{"buildId": f"build_{i}"} for i in range(cfg.HISTORY_LIMIT)]
        history_path.write_text(json.dumps({"history": seeded}), encoding="utf-8")

        inject_build_info(context(android_project, "android"))
        history = _read(history_path)
        assert history["count"] == cfg.HISTORY_LIMIT
        assert history["history"][0]["buildId"] == "build_1"
        assert history["history"][-1]["appName"] == "Demo"

    def test_loader_scripts_and_tag(self, android_project, make_config, context):
        make_config()
        plugin_js = android_project / "plugins" / cfg.PLUGIN_ID / "www" / "js"
        plugin_js.mkdir(parents=True)
        (plugin_js / "config-loader-mobile.js").write_text("// loader", encoding="utf-8")

        result = inject_build_info(context(android_project, "android"))
        www = _www(android_project)
        assert (www / "js" / "config-loader-mobile.js").read_text() == "// loader"
        assert www / "index.html" in result.changed
        index = (www / "index.html").read_text()
        assert index.count(f'src="{LOADER_SRC}"') == 1
        assert index.index(LOADER_SRC) < index.index("cordova.js")

        inject_build_info(context(android_project, "android"))
        assert (www / "index.html").read_text().count(f'src="{LOADER_SRC}"') == 1

    def test_missing_www_is_tolerated(self, project, make_config, context):
        make_config()
        result = inject_build_info(context(project, "ios"))
        assert result.success
        assert result.changed == []
