"""
Shared fixtures: a throw-away Cordova project tree under ``tmp_path``.
"""

import plistlib
from pathlib import Path

import pytest

from hooks.hooks import HookContext

# Environment variables read by the hooks; cleared so the host shell never leaks in
HOOK_ENV_VARS = (
    "CORDOVA_HOOK", "CORDOVA_PLATFORMS", "CORDOVA_VERSION",
    "APP_NAME", "VERSION_NUMBER", "VERSION_CODE", "APP_DESCRIPTION",
    "AUTHOR", "API_HOSTNAME", "ENVIRONMENT", "CDN_ICON",
)

STRINGS_XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <!-- generated by cordova -->
    <string name="app_name">Demo</string>
    <string name="launcher_name">@string/app_name</string>
</resources>
"""

COLORS_XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <color name="splash_background">#ffffff</color>
    <color name="accent">#123456</color>
    <color name="window_default">#0366d6</color>
</resources>
"""

STYLES_XML = """<?xml version="1.0" encoding="utf-8"?>
<resources>
    <style name="AppTheme.Launcher" parent="Theme.AppCompat.NoActionBar">
        <item name="android:windowBackground">#ffffff</item>
        <item name="android:statusBarColor">#ffffff</item>
    </style>
</resources>
"""

SPLASH_DRAWABLE = """<?xml version="1.0" encoding="utf-8"?>
<shape xmlns:android="http://schemas.android.com/apk/res/android">
    <solid android:color="#ffffff" />
</shape>
"""

MANIFEST = """<?xml version="1.0" encoding="utf-8"?>
<manifest xmlns:android="http://schemas.android.com/apk/res/android"
    package="com.example.demo" android:versionCode="1" android:versionName="1.0.0">
    <application android:label="@string/app_name" />
</manifest>
"""

MAIN_ACTIVITY = """package com.example.demo;

import android.os.Bundle;
import org.apache.cordova.*;

public class MainActivity extends CordovaActivity
{
    @Override
    public void onCreate(Bundle savedInstanceState)
    {
        super.onCreate(savedInstanceState);
        loadUrl(launchUrl);
    }
}
"""

INDEX_HTML = """<!DOCTYPE html>
<html>
<head>
    <meta charset="utf-8">
    <title>Demo</title>
</head>
<body>
    <script src="cordova.js"></script>
    <script src="js/index.js"></script>
</body>
</html>
"""

STORYBOARD = """<?xml version="1.0" encoding="UTF-8"?>
<document type="com.apple.InterfaceBuilder3.CocoaTouch.Storyboard.XIB" version="3.0">
    <scenes>
        <scene sceneID="EHf-IW-A2E">
            <objects>
                <viewController id="01J-lp-oVM" sceneMemberID="viewController">
                    <view key="view" contentMode="scaleToFill" id="Ze5-6b-2t3">
                        <color key="backgroundColor" white="1" alpha="1" colorSpace="custom" customColorSpace="genericGamma22GrayColorSpace"/>
                    </view>
                </viewController>
            </objects>
        </scene>
    </scenes>
</document>
"""

PBXPROJ = """// !$*UTF8*$!
{
\tobjects = {
\t\t1D6058940D05DD3E006BFB54 /* Debug */ = {
\t\t\tisa = XCBuildConfiguration;
\t\t\tbuildSettings = {
\t\t\t\tINFOPLIST_FILE = "Demo/Demo-Info.plist";
\t\t\t\tPRODUCT_NAME = Demo;
\t\t\t};
\t\t\tname = Debug;
\t\t};
\t\t1D6058950D05DD3E006BFB54 /* Release */ = {
\t\t\tisa = XCBuildConfiguration;
\t\t\tbuildSettings = {
\t\t\t\tASSETCATALOG_COMPILER_APPICON_NAME = OldIcon;
\t\t\t\tINFOPLIST_FILE = "Demo/Demo-Info.plist";
\t\t\t};
\t\t\tname = Release;
\t\t};
\t};
}
"""


def write_config(
    root: Path,
    prefs: dict = None,
    *,
    name: str = "Demo",
    version: str = "1.0.0",
    app_id: str = "com.example.demo",
    platform_prefs: dict = None,
) -> Path:
    """Write a minimal ``config.xml`` holding *prefs* as ``<preference>`` entries."""
    lines = [
        '<?xml version="1.0" encoding="utf-8"?>',
        f'<widget id="{app_id}" version="{version}" xmlns="http://www.w3.org/ns/widgets">',
        f"    <name>{name}</name>",
    ]
    for key, value in (prefs or {}).items():
        lines.append(f'    <preference name="{key}" value="{value}" />')
    for platform, scoped in (platform_prefs or {}).items():
        lines.append(f'    <platform name="{platform}">')
        for key, value in scoped.items():
            lines.append(f'        <preference name="{key}" value="{value}" />')
        lines.append("    </platform>")
    lines.append("</widget>")
    path = root / "config.xml"
    path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return path


def _write(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in HOOK_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def project(tmp_path):
    """Project root with a root ``www/index.html`` and no platforms."""
    _write(tmp_path / "www" / "index.html", INDEX_HTML)
    return tmp_path


@pytest.fixture
def make_config(project):
    def _make(prefs=None, **kwargs):
        return write_config(project, prefs, **kwargs)
    return _make


@pytest.fixture
def android_project(project):
    main = project / "platforms" / "android" / "app" / "src" / "main"
    _write(main / "AndroidManifest.xml", MANIFEST)
    _write(main / "res" / "values" / "strings.xml", STRINGS_XML)
    _write(main / "res" / "values" / "colors.xml", COLORS_XML)
    _write(main / "res" / "values" / "styles.xml", STYLES_XML)
    _write(main / "res" / "drawable" / "splash.xml", SPLASH_DRAWABLE)
    _write(main / "assets" / "www" / "index.html", INDEX_HTML)
    _write(main / "java" / "com" / "example" / "demo" / "MainActivity.java", MAIN_ACTIVITY)
    return project


@pytest.fixture
def ios_project(project):
    ios = project / "platforms" / "ios"
    app = ios / "Demo"
    app.mkdir(parents=True)
    with open(app / "Demo-Info.plist", "wb") as fh:
        plistlib.dump({
            "CFBundleDisplayName": "Demo",
            "CFBundleName": "Demo",
            "CFBundleShortVersionString": "1.0.0",
            "CFBundleVersion": "1",
            "CFBundleIdentifier": "com.example.demo",
        }, fh)
    _write(app / "CDVLaunchScreen.storyboard", STORYBOARD)
    (app / "Images.xcassets" / "AppIcon.appiconset").mkdir(parents=True)
    _write(ios / "Demo.xcodeproj" / "project.pbxproj", PBXPROJ)
    _write(ios / "www" / "index.html", INDEX_HTML)
    (ios / "CordovaLib").mkdir()
    return project


@pytest.fixture
def context():
    """Factory for a ``HookContext`` rooted at a fixture project."""
    def _make(root: Path, *platforms: str, stage: str = "") -> HookContext:
        return HookContext(project_root=root, platforms=list(platforms), stage=stage)
    return _make


def android_main(root: Path) -> Path:
    return root / "platforms" / "android" / "app" / "src" / "main"


def read_plist(path: Path) -> dict:
    with open(path, "rb") as fh:
        return plistlib.load(fh)
