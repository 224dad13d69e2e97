"""
Splash-screen and webview background colors.

Only splash-related resources are touched; status-bar and theme accent
colors are left alone.  Preferences::

    SplashScreenBackgroundColor / AndroidWindowSplashScreenBackground[Color] /
    SPLASH_BACKGROUND_COLOR / BackgroundColor     splash color (first set wins)
    WEBVIEW_BACKGROUND_COLOR / WebviewBackgroundColor   webview color
"""
from __future__ import annotations

import plistlib
import re
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Optional

import config as cfg
import fs
import logger as log
from hooks import colors
from hooks.hooks import HookContext, HookResult
from hooks.preferences import ConfigXml, load_preferences
from hooks.resources import ANDROID, XmlResource

SPLASH_PREFS = (
    "SplashScreenBackgroundColor",
    "AndroidWindowSplashScreenBackground",
    "AndroidWindowSplashScreenBackgroundColor",
    "SPLASH_BACKGROUND_COLOR",
    "BackgroundColor",
)
WEBVIEW_PREFS = ("WEBVIEW_BACKGROUND_COLOR", "WebviewBackgroundColor")

SPLASH_COLOR_NAMES = (
    "splash_background",
    "splashColor",
    "splash_color",
    "splashscreen_color",
    "splashBackground",
)

# Stock MABS splash backgrounds; any other literal is a deliberate app color
KNOWN_SPLASH_DEFAULTS = frozenset(
    colors.normalize_hex_color(c) for c in (
        "#0366d6", "#003D66", "#2E5090", "#ffffff",
        "#f0f0f0", "#eeeeee", "#e8e8e8", "#fafafa",
    )
)

STORYBOARD_NAMES = ("LaunchScreen.storyboard", "CDVLaunchScreen.storyboard")


class InvalidColorPreference(ValueError):
    pass


def _color_pref(prefs: ConfigXml, names, platform: Optional[str] = None) -> Optional[str]:
    raw = prefs.first(*names, platform=platform)
    if not raw:
        return None
    normalized = colors.normalize_hex_color(raw)
    if normalized is None:
        raise InvalidColorPreference(f"invalid hex color '{raw}' in {'/'.join(names)}")
    return normalized


def splash_color(prefs: ConfigXml, platform: Optional[str] = None) -> Optional[str]:
    return _color_pref(prefs, SPLASH_PREFS, platform)


def webview_color(prefs: ConfigXml, platform: Optional[str] = None) -> Optional[str]:
    return _color_pref(prefs, WEBVIEW_PREFS, platform)


def is_known_splash_default(value: Optional[str]) -> bool:
    return colors.normalize_hex_color(value) in KNOWN_SPLASH_DEFAULTS


# ══════════════════════════════════════════════════════════════════════════════
# Android resources
# ══════════════════════════════════════════════════════════════════════════════

def update_colors_xml(path: Path, splash: Optional[str], webview: Optional[str]) -> bool:
    """Named splash colors, known defaults and ``webview_background``."""
    if not path.exists():
        return False
    res = XmlResource.load(path)

    if splash:
        for name in SPLASH_COLOR_NAMES:
            if res.named("color", name) and res.set_value("color", name, splash):
                log.info(f"   colors.xml {name} → {splash}")
        if not res.named("color", "splash_background"):
            res.set_value("color", "splash_background", splash)
            log.info("   colors.xml splash_background added")
        for element in res.root.findall("color"):
            value = (element.text or "").strip()
            if element.get("name") != "webview_background" and is_known_splash_default(value):
                element.text = splash
                res.modified = True
                log.info(f"   colors.xml {element.get('name')}: {value} → {splash}")

    if webview and res.set_value("color", "webview_background", webview):
        log.info(f"   colors.xml webview_background → {webview}")

    return res.save()


def update_styles_xml(path: Path, splash: str) -> bool:
    """``AppTheme.Launcher`` window background, only over a stock default."""
    if not path.exists():
        return False
    res = XmlResource.load(path)
    for style in res.named("style", "AppTheme.Launcher"):
        for item in style.findall("item"):
            if item.get("name") != "android:windowBackground":
                continue
            current = (item.text or "").strip()
            if is_known_splash_default(current):
                item.text = splash
                res.modified = True
                log.info(f"   styles.xml AppTheme.Launcher windowBackground → {splash}")
    return res.save()


def update_splash_drawable(path: Path, splash: str) -> bool:
    if not path.exists():
        return False
    res = XmlResource.load(path)
    for solid in res.root.iter("solid"):
        res.set_attr(solid, f"{ANDROID}color", splash)
    return res.save()


def _customize_android(root: Path, splash: Optional[str], webview: Optional[str]) -> list[Path]:
    res_dir = cfg.android_res_dir(root)
    changed: list[Path] = []

    colors_xml = res_dir / "values" / "colors.xml"
    if update_colors_xml(colors_xml, splash, webview):
        changed.append(colors_xml)
    if splash:
        styles_xml = res_dir / "values" / "styles.xml"
        if update_styles_xml(styles_xml, splash):
            changed.append(styles_xml)
        drawable = res_dir / "drawable" / "splash.xml"
        if update_splash_drawable(drawable, splash):
            changed.append(drawable)
            log.info(f"   drawable/splash.xml → {splash}")
    return changed


# ══════════════════════════════════════════════════════════════════════════════
# iOS resources
# ══════════════════════════════════════════════════════════════════════════════

def update_storyboard(path: Path, splash: str) -> bool:
    """
    Set every ``<color key="backgroundColor">`` to *splash*; a storyboard
    with none gets one added to each ``<view>``.
    """
    res = XmlResource.load(path)
    attrs = colors.storyboard_color_attrs(splash)

    found = [c for c in res.root.iter("color") if c.get("key") == "backgroundColor"]
    if found:
        for element in found:
            if dict(element.attrib) != attrs:
                element.attrib.clear()
                element.attrib.update(attrs)
                res.modified = True
    else:
        for view in res.root.iter("view"):
            ET.SubElement(view, "color", attrs)
            res.modified = True
    return res.save()


def update_launch_plist(root: Path, splash: str) -> bool:
    """``UILaunchStoryboardBackgroundColor`` in the app's Info.plist."""
    plist_path = cfg.ios_info_plist(root)
    if plist_path is None or not plist_path.exists():
        return False
    with open(plist_path, "rb") as fh:
        plist = plistlib.load(fh)
    if plist.get("UILaunchStoryboardBackgroundColor") == splash:
        return False
    plist["UILaunchStoryboardBackgroundColor"] = splash
    fs.write_bytes(plist_path, plistlib.dumps(plist, sort_keys=False))
    return True


def _customize_ios(root: Path, splash: Optional[str]) -> list[Path]:
    if not splash:
        return []
    ios = cfg.ios_dir(root)
    if not ios.is_dir():
        log.warn("   iOS platform folder not found")
        return []
    changed: list[Path] = []
    for storyboard in fs.find_all_files(ios, STORYBOARD_NAMES, max_depth=4, match="exact"):
        if update_storyboard(storyboard, splash):
            changed.append(storyboard)
            log.info(f"   {storyboard.name} background → {splash}")
    if update_launch_plist(root, splash):
        plist_path = cfg.ios_info_plist(root)
        changed.append(plist_path)
        log.info(f"   {plist_path.name} UILaunchStoryboardBackgroundColor → {splash}")
    return changed


# ══════════════════════════════════════════════════════════════════════════════
# customize_colors  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def customize_colors(ctx: HookContext) -> HookResult:
    """Splash and webview colors for every targeted platform."""
    prefs = load_preferences(ctx)
    try:
        splash = splash_color(prefs)
        webview = webview_color(prefs)
    except InvalidColorPreference as exc:
        return HookResult.fail(str(exc))
    if not splash and not webview:
        return HookResult.skip("no splash / webview color configured")

    log.section("Customize colors (splash + webview)")
    if splash:
        log.info(f"Splash:  {splash}")
    if webview:
        log.info(f"Webview: {webview}")

    changed: list[Path] = []
    errors: list[str] = []
    for platform in ctx.platforms:
        try:
            if platform == "android":
                changed += _customize_android(ctx.project_root, splash, webview)
            elif platform == "ios":
                changed += _customize_ios(ctx.project_root, splash)
        except (OSError, ET.ParseError, plistlib.InvalidFileException) as exc:
            log.error(f"   {platform}: {exc}")
            errors.append(platform)

    if errors:
        return HookResult.fail(f"colors not applied for {', '.join(errors)}", changed)
    return HookResult(changed=changed, message=f"splash colors applied ({len(changed)} file(s))")


# ══════════════════════════════════════════════════════════════════════════════
# update_splash_theme_color  (before_compile, Android)
# ══════════════════════════════════════════════════════════════════════════════

THEME_COLOR_PREFS = ("WEBVIEW_BACKGROUND_COLOR", "BackgroundColor", "SplashScreenBackgroundColor")


def update_splash_theme_color(ctx: HookContext) -> HookResult:
    """``cordova_splash_background`` in values / values-night."""
    if not ctx.has_platform("android"):
        return HookResult.skip("android platform not targeted")
    prefs = load_preferences(ctx)
    try:
        color = _color_pref(prefs, THEME_COLOR_PREFS, platform="android")
    except InvalidColorPreference as exc:
        return HookResult.fail(str(exc))
    if not color:
        return HookResult.skip("no background color configured")

    log.section("Update splash theme color")
    res_dir = cfg.android_res_dir(ctx.project_root)
    changed: list[Path] = []
    for values in ("values", "values-night"):
        path = res_dir / values / "cordova_splash_colors.xml"
        if not path.exists():
            log.info(f"   {values}/cordova_splash_colors.xml not present yet")
            continue
        try:
            res = XmlResource.load(path)
            if not res.named("color", "cordova_splash_background"):
                log.info(f"   {values}: cordova_splash_background not defined")
                continue
            res.set_value("color", "cordova_splash_background", color)
            if res.save():
                changed.append(path)
                log.info(f"   {values}/cordova_splash_colors.xml → {color}")
        except (OSError, ET.ParseError) as exc:
            return HookResult.fail(f"cannot update {path}: {exc}", changed)
    return HookResult(changed=changed, message=f"splash theme color {color}")


# ══════════════════════════════════════════════════════════════════════════════
# inject_native_background  (before_compile)
# ══════════════════════════════════════════════════════════════════════════════

BLOCK_BEGIN = "apphooks:native-background begin"
BLOCK_END   = "apphooks:native-background end"

_JAVA_IMPORTS = ("import android.graphics.Color;", "import android.graphics.drawable.ColorDrawable;")


def strip_marked_block(text: str) -> str:
    """Remove a previously injected block (markers included)."""
    pattern = re.compile(
        rf"\n[ \t]*// {re.escape(BLOCK_BEGIN)}\n.*?// {re.escape(BLOCK_END)}[ \t]*(?=\n)",
        re.DOTALL,
    )
    return pattern.sub("", text)


def _marked(lines: list[str], indent: str) -> str:
    body = "\n".join(f"{indent}{line}" if line else "" for line in lines)
    return f"\n{indent}// {BLOCK_BEGIN}\n{body}\n{indent}// {BLOCK_END}"


def patch_main_activity(text: str, color: str) -> tuple[str, bool]:
    """Window background right after ``super.onCreate(...)``."""
    text = strip_marked_block(text)
    anchor = re.search(r"super\.onCreate\([^)]*\);", text)
    if anchor is None:
        return text, False

    block = _marked([
        "try {",
        f'    int bgColor = Color.parseColor("{color}");',
        "    getWindow().setBackgroundDrawable(new ColorDrawable(bgColor));",
        "    getWindow().getDecorView().setBackgroundColor(bgColor);",
        "} catch (IllegalArgumentException e) {",
        '    android.util.Log.e("AppHooks", "Invalid background color", e);',
        "}",
    ], "        ")
    text = text[:anchor.end()] + block + text[anchor.end():]

    missing = [imp for imp in _JAVA_IMPORTS if imp not in text]
    if missing:
        text = re.sub(r"(package [^;]+;)", lambda m: m.group(1) + "\n\n" + "\n".join(missing),
                      text, count=1)
    return text, True


def patch_app_delegate_swift(text: str, color: str) -> tuple[str, bool]:
    text = strip_marked_block(text)
    anchor = re.search(r"didFinishLaunchingWithOptions[^{]*\{", text)
    if anchor is None:
        return text, False
    block = _marked([f"window?.backgroundColor = {colors.uicolor_swift(color)}"], "        ")
    return text[:anchor.end()] + block + text[anchor.end():], True


def patch_main_view_controller(text: str, color: str) -> tuple[str, bool]:
    text = strip_marked_block(text)
    block = _marked([f"self.view.backgroundColor = {colors.uicolor_objc(color)};"], "    ")
    anchor = re.search(r"\[super viewDidLoad\];", text)
    if anchor is not None:
        return text[:anchor.end()] + block + text[anchor.end():], True
    impl = re.search(r"@implementation\s+MainViewController[^\n]*", text)
    if impl is None:
        return text, False
    method = "\n\n- (void)viewDidLoad\n{\n    [super viewDidLoad];" + block + "\n}\n"
    return text[:impl.end()] + method + text[impl.end():], True


def _patch_source(path: Path, patch, color: str) -> bool:
    original = fs.read_text(path)
    if original is None:
        return False
    updated, applied = patch(original, color)
    if not applied:
        log.warn(f"   {path.name}: injection point not found")
        return False
    return fs.write_if_changed(path, original, updated)


def inject_native_background(ctx: HookContext) -> HookResult:
    """Native window background so no stock color flashes before the webview paints."""
    prefs = load_preferences(ctx)
    try:
        color = splash_color(prefs) or webview_color(prefs)
    except InvalidColorPreference as exc:
        return HookResult.fail(str(exc))
    if not color:
        return HookResult.skip("no background color configured")

    log.section("Inject native background color")
    changed: list[Path] = []
    try:
        if ctx.has_platform("android"):
            activity = fs.find_file(cfg.android_main_dir(ctx.project_root) / "java",
                                    ["MainActivity.java"], max_depth=8)
            if activity and _patch_source(activity, patch_main_activity, color):
                changed.append(activity)
                log.info(f"   {activity.name} background → {color}")

        if ctx.has_platform("ios"):
            ios = cfg.ios_dir(ctx.project_root)
            target = fs.find_file(ios, ["AppDelegate.swift"], max_depth=3)
            patch = patch_app_delegate_swift
            if target is None:
                target = fs.find_file(ios, ["MainViewController.m"], max_depth=3)
                patch = patch_main_view_controller
            if target and _patch_source(target, patch, color):
                changed.append(target)
                log.info(f"   {target.name} background → {color}")
    except OSError as exc:
        return HookResult.fail(f"native background not injected: {exc}", changed)

    if not changed:
        return HookResult(message="native background already up to date")
    return HookResult(changed=changed, message=f"native background {color} injected")
