"""
Application metadata hooks: display name, version name and version code.

Preferences (root ``config.xml``)::

    APP_NAME        display name on the home screen / launcher
    VERSION_NUMBER  user-visible version ("1.4.2")
    VERSION_CODE    build number ("142")

``VERSION_NUMBER`` and ``VERSION_CODE`` are applied as a pair; when only one
of them is set both are ignored.  ``PACKAGE_NAME`` is reported but never
applied: changing the bundle id breaks iOS provisioning profiles.
"""
from __future__ import annotations

import datetime
import plistlib
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import config as cfg
import fs
import logger as log
from hooks.hooks import HookContext, HookResult
from hooks.preferences import ConfigXml, load_preferences
from hooks.resources import ANDROID, XmlResource

BACKUP_FILE = "app-info-backup.json"


@dataclass
class AppInfo:
    app_name:       Optional[str] = None
    version_number: Optional[str] = None
    version_code:   Optional[str] = None

    def is_empty(self) -> bool:
        return not (self.app_name or self.version_number or self.version_code)

    def as_backup(self, platform: str) -> dict:
        return {
            "platform":      platform,
            "appName":       self.app_name,
            "versionNumber": self.version_number,
            "versionCode":   self.version_code,
        }


def requested_app_info(prefs: ConfigXml) -> AppInfo:
    """Read the requested metadata, enforcing the version pair rule."""
    app_name = prefs.get("APP_NAME") or None
    number   = prefs.get("VERSION_NUMBER") or None
    code     = prefs.get("VERSION_CODE") or None
    if bool(number) != bool(code):
        log.warn("VERSION_NUMBER and VERSION_CODE must be set together, ignoring both")
        log.warn(f"   VERSION_NUMBER: {number or '(unset)'}")
        log.warn(f"   VERSION_CODE:   {code or '(unset)'}")
        number = code = None
    return AppInfo(app_name=app_name, version_number=number, version_code=code)


def _strings_xml(root: Path) -> Path:
    return cfg.android_res_dir(root) / "values" / "strings.xml"


def _cdv_strings_xml(root: Path) -> Path:
    return cfg.android_res_dir(root) / "values" / "cdv_strings.xml"


# ══════════════════════════════════════════════════════════════════════════════
# Readers
# ══════════════════════════════════════════════════════════════════════════════

def read_android_info(root: Path) -> AppInfo:
    info = AppInfo()
    manifest = cfg.android_manifest(root)
    if manifest.exists():
        element = XmlResource.load(manifest).root
        info.version_number = element.get(f"{ANDROID}versionName")
        info.version_code   = element.get(f"{ANDROID}versionCode")
    for strings in (_strings_xml(root), _cdv_strings_xml(root)):
        if strings.exists():
            info.app_name = XmlResource.load(strings).get_value("string", "app_name")
            if info.app_name:
                break
    return info


def read_ios_info(root: Path) -> AppInfo:
    plist_path = cfg.ios_info_plist(root)
    if plist_path is None or not plist_path.exists():
        return AppInfo()
    with open(plist_path, "rb") as fh:
        plist = plistlib.load(fh)
    return AppInfo(
        app_name       = plist.get("CFBundleDisplayName"),
        version_number = plist.get("CFBundleShortVersionString"),
        version_code   = plist.get("CFBundleVersion"),
    )


_READERS = {"android": read_android_info, "ios": read_ios_info}


# ══════════════════════════════════════════════════════════════════════════════
# backup_app_info  (before_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def backup_app_info(ctx: HookContext) -> HookResult:
    """Snapshot the current platform metadata before it is changed."""
    log.section("Backup app info")
    backup = {
        "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        "platforms": {},
    }
    for platform in ctx.platforms:
        reader = _READERS.get(platform)
        if reader is None:
            continue
        try:
            info = reader(ctx.project_root)
        except (OSError, ET.ParseError, plistlib.InvalidFileException) as exc:
            log.warn(f"   {platform}: could not read current app info: {exc}")
            info = AppInfo()
        backup["platforms"][platform] = info.as_backup(platform)
        log.info(f"   {platform}: {info.app_name or 'N/A'} "
                 f"{info.version_number or 'N/A'} ({info.version_code or 'N/A'})")

    target = ctx.project_root / cfg.BACKUP_DIRNAME / BACKUP_FILE
    try:
        fs.write_json(target, backup)
    except OSError as exc:
        return HookResult.fail(f"cannot write {target}: {exc}")
    return HookResult(changed=[target], message=f"app info backed up to {target.name}")


# ══════════════════════════════════════════════════════════════════════════════
# change_app_info  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def _apply_android(root: Path, info: AppInfo) -> list[Path]:
    changed: list[Path] = []

    if info.app_name:
        strings_path = _strings_xml(root)
        strings = XmlResource.load_or_create(strings_path)
        strings.set_value("string", "app_name", info.app_name)
        if strings.save():
            changed.append(strings_path)
            log.info(f"   strings.xml app_name → {info.app_name}")

        # cdv_strings.xml wins at merge time when it defines app_name too
        cdv_path = _cdv_strings_xml(root)
        if cdv_path.exists():
            cdv = XmlResource.load(cdv_path)
            if cdv.named("string", "app_name"):
                cdv.set_value("string", "app_name", info.app_name)
                if cdv.save():
                    changed.append(cdv_path)
                    log.info(f"   cdv_strings.xml app_name → {info.app_name}")

    if info.version_number:
        manifest_path = cfg.android_manifest(root)
        if not manifest_path.exists():
            log.warn(f"   AndroidManifest.xml not found: {manifest_path}")
        else:
            manifest = XmlResource.load(manifest_path)
            manifest.set_attr(manifest.root, f"{ANDROID}versionName", info.version_number)
            manifest.set_attr(manifest.root, f"{ANDROID}versionCode", info.version_code)
            if manifest.save():
                changed.append(manifest_path)
                log.info(f"   AndroidManifest.xml version → "
                         f"{info.version_number} ({info.version_code})")
    return changed


def _apply_ios(root: Path, info: AppInfo) -> list[Path]:
    plist_path = cfg.ios_info_plist(root)
    if plist_path is None or not plist_path.exists():
        log.warn("   iOS Info.plist not found")
        return []

    with open(plist_path, "rb") as fh:
        plist = plistlib.load(fh)
    before = dict(plist)

    if info.app_name:
        # CFBundleName is the process name shown in the app switcher
        plist["CFBundleDisplayName"] = info.app_name
        plist["CFBundleName"] = info.app_name
    if info.version_number and "CFBundleShortVersionString" in plist:
        plist["CFBundleShortVersionString"] = info.version_number
    if info.version_code and "CFBundleVersion" in plist:
        plist["CFBundleVersion"] = info.version_code

    if plist == before:
        log.info(f"   {plist_path.name} already up to date")
        return []
    fs.write_bytes(plist_path, plistlib.dumps(plist, sort_keys=False))
    log.info(f"   {plist_path.name} updated")
    return [plist_path]


_APPLIERS = {"android": _apply_android, "ios": _apply_ios}


def change_app_info(ctx: HookContext) -> HookResult:
    """Apply APP_NAME / VERSION_NUMBER / VERSION_CODE to the platform files."""
    log.section("Change app info")
    prefs = load_preferences(ctx)

    package = prefs.get("PACKAGE_NAME")
    if package and package != prefs.package_name():
        log.warn(f"PACKAGE_NAME '{package}' is not applied (bundle id stays "
                 f"'{prefs.package_name()}')")

    info = requested_app_info(prefs)
    if info.is_empty():
        return HookResult.skip("no APP_NAME / VERSION_NUMBER / VERSION_CODE set")

    log.info(f"App name: {info.app_name or 'unchanged'}")
    log.info(f"Version:  {info.version_number or 'unchanged'} "
             f"({info.version_code or 'unchanged'})")

    changed: list[Path] = []
    errors: list[str] = []
    for platform in ctx.platforms:
        apply = _APPLIERS.get(platform)
        if apply is None:
            continue
        try:
            changed += apply(ctx.project_root, info)
        except (OSError, ET.ParseError, plistlib.InvalidFileException) as exc:
            log.error(f"   {platform}: {exc}")
            errors.append(platform)

    if errors:
        return HookResult.fail(f"app info not applied for {', '.join(errors)}", changed)
    return HookResult(changed=changed, message=f"app info applied ({len(changed)} file(s))")


# ══════════════════════════════════════════════════════════════════════════════
# remove_conflicting_strings_xml  (after_prepare, Android)
# ══════════════════════════════════════════════════════════════════════════════

def remove_conflicting_strings_xml(ctx: HookContext) -> HookResult:
    """
    Drop ``app_name`` from ``strings.xml`` when ``cdv_strings.xml`` also
    defines it; the resource merger rejects duplicate names.
    """
    if not ctx.has_platform("android"):
        return HookResult.skip("android platform not targeted")
    log.section("Remove conflicting strings.xml entries")

    strings_path = _strings_xml(ctx.project_root)
    cdv_path = _cdv_strings_xml(ctx.project_root)
    if not (strings_path.exists() and cdv_path.exists()):
        return HookResult.skip("no strings.xml / cdv_strings.xml pair")

    try:
        strings = XmlResource.load(strings_path)
        cdv = XmlResource.load(cdv_path)
        if not (strings.named("string", "app_name") and cdv.named("string", "app_name")):
            return HookResult.skip("no duplicate app_name")
        removed = strings.remove_named("string", "app_name")
        strings.save()
    except (OSError, ET.ParseError) as exc:
        return HookResult.fail(f"cannot clean {strings_path.name}: {exc}")
    return HookResult(changed=[strings_path],
                      message=f"removed {removed} duplicate app_name from strings.xml")
