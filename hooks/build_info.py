"""
Build-info snapshot writer.

Every prepared platform gets a ``build-config.json`` describing the build
(written to three redundant locations so the runtime loader finds at least
one) and an append-only ``build-history.json`` capped at the last
``config.HISTORY_LIMIT`` entries.  Values come from the environment first
(build services inject them as env vars), then ``config.xml``.
"""
from __future__ import annotations

import datetime
import time
from pathlib import Path

import config as cfg
import fs
import logger as log
from hooks.hooks import HookContext, HookError, HookResult
from hooks.html import inject_script_tag
from hooks.preferences import ConfigXml, load_preferences

CONFIG_FILE  = "build-config.json"
HISTORY_FILE = "build-history.json"
LOADER_SCRIPTS = ("config-loader.js", "config-loader-mobile.js")
LOADER_SRC = "js/config-loader-mobile.js"


def utc_timestamp() -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def collect_build_info(prefs: ConfigXml, platform: str, cordova_version: str = "") -> dict:
    return {
        "appName":        prefs.resolve("APP_NAME", "APP_NAME", prefs.name() or "Unknown"),
        "versionNumber":  prefs.resolve("VERSION_NUMBER", "VERSION_NUMBER", prefs.version() or "0.0.0"),
        "versionCode":    prefs.resolve("VERSION_CODE", "VERSION_CODE", "0"),
        "packageName":    prefs.package_name() or "unknown",
        "appDescription": prefs.resolve("APP_DESCRIPTION", "APP_DESCRIPTION"),
        "author":         prefs.resolve("AUTHOR", "AUTHOR"),
        "platform":       platform,
        "buildTime":      utc_timestamp(),
        "buildTimestamp": int(time.time() * 1000),
        "apiHostname":    prefs.resolve("API_HOSTNAME", "API_HOSTNAME"),
        "environment":    prefs.resolve("ENVIRONMENT", "ENVIRONMENT", "production"),
        "cdnIcon":        prefs.resolve("CDN_ICON", "CDN_ICON"),
        "cordovaVersion": cordova_version or "unknown",
    }


def build_config_document(info: dict) -> dict:
    return {
        "timestamp": utc_timestamp(),
        "version":   "1.0",
        "config": {
            "appName":        info["appName"],
            "appId":          info["packageName"],
            "appVersion":     info["versionNumber"],
            "appDescription": info["appDescription"],
            "platform":       info["platform"],
            "author":         info["author"],
            "buildDate":      info["buildTime"],
            "buildTimestamp": info["buildTimestamp"],
            "environment":    info["environment"] or "production",
            "apiHostname":    info["apiHostname"],
            "cdnIcon":        info["cdnIcon"],
            "cordovaVersion": info["cordovaVersion"],
        },
    }


def history_entry(info: dict) -> dict:
    return {
        "timestamp":   utc_timestamp(),
        "buildId":     f"build_{info['buildTimestamp']}",
        "platform":    info["platform"],
        "appVersion":  info["versionNumber"],
        "appName":     info["appName"],
        "environment": info["environment"] or "production",
        "success":     True,
    }


def load_history(path: Path) -> list[dict]:
    """Existing history entries; a missing or unreadable file starts fresh."""
    if not path.exists():
        return []
    try:
        data = fs.read_json(path)
    except (OSError, ValueError) as exc:
        log.warn(f"   {path.name} unreadable, starting a new history: {exc}")
        return []
    history = data.get("history") if isinstance(data, dict) else None
    return history if isinstance(history, list) else []


def append_history(history: list[dict], entry: dict, limit: int) -> dict:
    """History document with *entry* appended, keeping the last *limit* items."""
    history = (history + [entry])[-limit:] if limit > 0 else []
    return {
        "version":     "1.0",
        "count":       len(history),
        "lastUpdated": utc_timestamp(),
        "history":     history,
    }


def _write(path: Path, data: dict, label: str) -> bool:
    try:
        size = fs.write_json(path, data)
    except OSError as exc:
        log.error(f"   {label}: cannot write {path}: {exc}")
        return False
    log.info(f"   {label}: {size} bytes")
    return True


def copy_config_loaders(root: Path, www: Path) -> list[Path]:
    plugin_js = root / "plugins" / cfg.PLUGIN_ID / "www" / "js"
    copied: list[Path] = []
    for name in LOADER_SCRIPTS:
        source = plugin_js / name
        if not source.exists():
            log.warn(f"   {name} not found in {cfg.PLUGIN_ID}")
            continue
        target = www / "js" / name
        fs.write_bytes(target, source.read_bytes())
        copied.append(target)
    return copied


def write_platform_build_info(
    root: Path, platform: str, prefs: ConfigXml, cordova_version: str = "",
) -> list[Path]:
    """Snapshot + history + loader scripts for one platform's prepared www."""
    www = cfg.platform_www_dir(root, platform)
    if www is None or not www.is_dir():
        log.warn(f"   {platform}: prepared www not found")
        return []

    info = collect_build_info(prefs, platform, cordova_version)
    document = build_config_document(info)
    data_dir = www / cfg.APP_DATA_DIRNAME
    root_data_dir = root / "www" / cfg.APP_DATA_DIRNAME

    changed: list[Path] = []
    for path, label in (
        (data_dir / CONFIG_FILE,      f"{CONFIG_FILE} ({platform})"),
        (root_data_dir / CONFIG_FILE, f"{CONFIG_FILE} (root www)"),
        (www / CONFIG_FILE,           f"{CONFIG_FILE} ({platform} www)"),
    ):
        if _write(path, document, label):
            changed.append(path)
    if not changed:
        raise HookError(f"{CONFIG_FILE} could not be written for {platform}")

    history_path = data_dir / HISTORY_FILE
    history = append_history(load_history(history_path), history_entry(info), cfg.HISTORY_LIMIT)
    for path, label in (
        (history_path,                 f"{HISTORY_FILE} ({history['count']} entries)"),
        (root_data_dir / HISTORY_FILE, f"{HISTORY_FILE} (root www)"),
    ):
        if _write(path, history, label):
            changed.append(path)

    changed += copy_config_loaders(root, www)
    index = www / "index.html"
    if inject_script_tag(index, LOADER_SRC):
        changed.append(index)
    return changed


def inject_build_info(ctx: HookContext) -> HookResult:
    prefs = load_preferences(ctx)
    log.section("Inject build info")

    changed: list[Path] = []
    for platform in ctx.platforms:
        if cfg.platform_www_dir(ctx.project_root, platform) is None:
            continue
        try:
            changed += write_platform_build_info(ctx.project_root, platform, prefs, ctx.cordova_version)
        except OSError as exc:
            return HookResult.fail(f"{platform}: {exc}", changed)
    return HookResult(changed=changed, message=f"build info written ({len(changed)} file(s))")
