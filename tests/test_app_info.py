"""
Tests for the app name / version hooks.
"""

import json
import plistlib

from conftest import android_main, read_plist

from hooks.app_info import (
    AppInfo,
    backup_app_info,
    change_app_info,
    read_android_info,
    read_ios_info,
    remove_conflicting_strings_xml,
    requested_app_info,
)
from hooks.preferences import ConfigXml
from hooks.resources import ANDROID, XmlResource

CDV_STRINGS = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <string name="app_name">Demo</string>
</resources>
"""


def _snapshot(root):
    return {
        path: path.read_bytes()
        for path in sorted(root.rglob("*"))
        if path.is_file() and ".cordova-build-backup" not in path.parts
    }


class TestRequestedAppInfo:
    def test_pair_rule_drops_lonely_version(self, make_config):
        prefs = ConfigXml.load(make_config({"APP_NAME": "Shop", "VERSION_NUMBER": "2.0.0"}))
        info = requested_app_info(prefs)
        assert info == AppInfo(app_name="Shop")

    def test_pair_is_kept(self, make_config):
        prefs = ConfigXml.load(make_config({"VERSION_NUMBER": "2.0.0", "VERSION_CODE": "20"}))
        info = requested_app_info(prefs)
        assert (info.version_number, info.version_code) == ("2.0.0", "20")
        assert info.app_name is None
        assert not info.is_empty()


class TestReaders:
    def test_read_android_info(self, android_project):
        info = read_android_info(android_project)
        assert info == AppInfo(app_name="Demo", version_number="1.0.0", version_code="1")

    def test_read_ios_info(self, ios_project):
        info = read_ios_info(ios_project)
        assert info == AppInfo(app_name="Demo", version_number="1.0.0", version_code="1")

    def test_missing_platform_is_empty(self, project):
        assert read_ios_info(project).is_empty()


class TestChangeAppInfo:
    def test_android(self, android_project, make_config, context):
        make_config({"APP_NAME": "Shop", "VERSION_NUMBER": "2.1.0", "VERSION_CODE": "21"})
        result = change_app_info(context(android_project, "android"))

        assert result.success and not result.skipped
        main = android_main(android_project)
        strings = XmlResource.load(main / "res" / "values" / "strings.xml")
        assert strings.get_value("string", "app_name") == "Shop"
        assert strings.get_value("string", "launcher_name") == "@string/app_name"
        manifest = XmlResource.load(main / "AndroidManifest.xml").root
        assert manifest.get(f"{ANDROID}versionName") == "2.1.0"
        assert manifest.get(f"{ANDROID}versionCode") == "21"
        assert manifest.get("package") == "com.example.demo"

    def test_android_keeps_comments(self, android_project, make_config, context):
        make_config({"APP_NAME": "Shop"})
        change_app_info(context(android_project, "android"))
        text = (android_main(android_project) / "res" / "values" / "strings.xml").read_text()
        assert "<!-- generated by cordova -->" in text

    def test_android_updates_cdv_strings_when_defined(self, android_project, make_config, context):
        cdv = android_main(android_project) / "res" / "values" / "cdv_strings.xml"
        cdv.write_text(CDV_STRINGS, encoding="utf-8")
        make_config({"APP_NAME": "Shop"})

        result = change_app_info(context(android_project, "android"))
        assert cdv in result.changed
        assert XmlResource.load(cdv).get_value("string", "app_name") == "Shop"

    def test_android_creates_strings_xml(self, android_project, make_config, context):
        strings = android_main(android_project) / "res" / "values" / "strings.xml"
        strings.unlink()
        make_config({"APP_NAME": "Shop"})

        change_app_info(context(android_project, "android"))
        assert XmlResource.load(strings).get_value("string", "app_name") == "Shop"

    def test_ios(self, ios_project, make_config, context):
        make_config({"APP_NAME": "Shop", "VERSION_NUMBER": "2.1.0", "VERSION_CODE": "21"})
        result = change_app_info(context(ios_project, "ios"))

        assert result.success
        plist = read_plist(ios_project / "platforms" / "ios" / "Demo" / "Demo-Info.plist")
        assert plist["CFBundleDisplayName"] == "Shop"
        assert plist["CFBundleName"] == "Shop"
        assert plist["CFBundleShortVersionString"] == "2.1.0"
        assert plist["CFBundleVersion"] == "21"
        assert plist["CFBundleIdentifier"] == "com.example.demo"

    def test_ios_does_not_add_missing_version_keys(self, ios_project, make_config, context):
        plist_path = ios_project / "platforms" / "ios" / "Demo" / "Demo-Info.plist"
        with open(plist_path, "wb") as fh:
            plistlib.dump({"CFBundleDisplayName": "Demo"}, fh)
        make_config({"VERSION_NUMBER": "2.1.0", "VERSION_CODE": "21"})

        result = change_app_info(context(ios_project, "ios"))
        assert result.changed == []
        assert "CFBundleShortVersionString" not in read_plist(plist_path)

    def test_empty_config_changes_nothing(self, android_project, ios_project, make_config, context):
        make_config()
        before = _snapshot(android_project)
        result = change_app_info(context(android_project, "android", "ios"))
        assert result.skipped
        assert _snapshot(android_project) == before

    def test_package_name_is_not_applied(self, android_project, make_config, context):
        make_config({"PACKAGE_NAME": "io.other.app", "APP_NAME": "Shop"})
        change_app_info(context(android_project, "android"))
        manifest = XmlResource.load(android_main(android_project) / "AndroidManifest.xml").root
        assert manifest.get("package") == "com.example.demo"


class TestBackupAppInfo:
    def test_writes_snapshot(self, android_project, ios_project, context):
        result = backup_app_info(context(android_project, "android", "ios"))

        backup = android_project / ".cordova-build-backup" / "app-info-backup.json"
        assert result.changed == [backup]
        data = json.loads(backup.read_text(encoding="utf-8"))
        assert data["platforms"]["android"]["appName"] == "Demo"
        assert data["platforms"]["ios"]["versionCode"] == "1"
        assert "timestamp" in data


class TestRemoveConflictingStringsXml:
    def test_duplicate_is_removed(self, android_project, context):
        values = android_main(android_project) / "res" / "values"
        (values / "cdv_strings.xml").write_text(CDV_STRINGS, encoding="utf-8")

        result = remove_conflicting_strings_xml(context(android_project, "android"))
        assert result.success and not result.skipped
        strings = XmlResource.load(values / "strings.xml")
        assert strings.get_value("string", "app_name") is None
        assert strings.get_value("string", "launcher_name") == "@string/app_name"

    def test_no_pair_is_skipped(self, android_project, context):
        result = remove_conflicting_strings_xml(context(android_project, "android"))
        assert result.skipped

    def test_other_platforms_are_skipped(self, ios_project, context):
        assert remove_conflicting_strings_xml(context(ios_project, "ios")).skipped
