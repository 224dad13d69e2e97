"""
Central configuration for the Cordova app-customisation hooks.
All platform paths are resolved relative to the Cordova project root.
The iOS app folder is discovered dynamically – its name follows the
project's <name> in config.xml and is never hardcoded.
"""
import os
from pathlib import Path
from typing import Optional

# ── Network ───────────────────────────────────────────────────────────────────
# Socket timeout (seconds) for every CDN download and API call.
HTTP_TIMEOUT = float(os.environ.get("APPHOOKS_HTTP_TIMEOUT", "30"))

# User-Agent sent with CDN downloads; some CDNs reject urllib's default.
USER_AGENT = os.environ.get("APPHOOKS_USER_AGENT", "cordova-app-hooks/1.0")

# ── Colors ────────────────────────────────────────────────────────────────────
# Cordova's stock splash color, replaced when OLD_COLOR is not configured.
DEFAULT_OLD_COLOR = os.environ.get("APPHOOKS_DEFAULT_OLD_COLOR", "#1E1464")
# Target color when no splash preference is configured.
DEFAULT_NEW_COLOR = os.environ.get("APPHOOKS_DEFAULT_NEW_COLOR", "#001833")

# Directory depth limit for the platform-wide color scan.
SCAN_MAX_DEPTH = int(os.environ.get("APPHOOKS_SCAN_MAX_DEPTH", "10"))

# ── Icons ─────────────────────────────────────────────────────────────────────
# An iOS icon set younger than this (minutes) is not regenerated.
ICON_REGEN_WINDOW_MIN = float(os.environ.get("APPHOOKS_ICON_REGEN_WINDOW", "5"))

# ── Build info ────────────────────────────────────────────────────────────────
HISTORY_LIMIT = int(os.environ.get("APPHOOKS_HISTORY_LIMIT", "50"))
APP_DATA_DIRNAME = ".cordova-app-data"
BACKUP_DIRNAME = ".cordova-build-backup"

# Plugin that ships the runtime config-loader scripts copied into www/js.
PLUGIN_ID = os.environ.get("APPHOOKS_PLUGIN_ID", "cordova-plugin-change-app-info")

# ── Directories that are never an iOS app folder ──────────────────────────────
_IOS_SKIP_DIRS = {"CordovaLib", "www", "cordova", "build", "DerivedData", "Pods"}


# ── Android layout ────────────────────────────────────────────────────────────

def android_dir(root: Path) -> Path:
    return root / "platforms" / "android"


def android_main_dir(root: Path) -> Path:
    return android_dir(root) / "app" / "src" / "main"


def android_res_dir(root: Path) -> Path:
    return android_main_dir(root) / "res"


def android_manifest(root: Path) -> Path:
    return android_main_dir(root) / "AndroidManifest.xml"


def android_www_dir(root: Path) -> Path:
    return android_main_dir(root) / "assets" / "www"


# ── iOS layout ────────────────────────────────────────────────────────────────

def ios_dir(root: Path) -> Path:
    return root / "platforms" / "ios"


def ios_www_dir(root: Path) -> Path:
    return ios_dir(root) / "www"


def ios_app_folder(root: Path) -> Optional[str]:
    """
    Return the name of the iOS app folder under ``platforms/ios`` (the one
    holding ``<name>-Info.plist``), or ``None`` when the platform is missing.

    Folders with an ``-Info.plist`` named after themselves win; otherwise the
    first non-infrastructure directory in sorted order is used.
    """
    base = ios_dir(root)
    if not base.is_dir():
        return None
    candidates = [
        entry for entry in sorted(base.iterdir())
        if entry.is_dir()
        and entry.name not in _IOS_SKIP_DIRS
        and not entry.name.startswith(".")
        and not entry.name.endswith((".xcodeproj", ".xcworkspace"))
    ]
    for entry in candidates:
        if (entry / f"{entry.name}-Info.plist").exists():
            return entry.name
    return candidates[0].name if candidates else None


def ios_info_plist(root: Path) -> Optional[Path]:
    folder = ios_app_folder(root)
    if folder is None:
        return None
    return ios_dir(root) / folder / f"{folder}-Info.plist"


def ios_asset_catalog(root: Path) -> Optional[Path]:
    """
    The app's asset catalog: ``Assets.xcassets`` (cordova-ios 7+) when it
    exists, else ``Images.xcassets``.  ``None`` without an app folder.
    """
    folder = ios_app_folder(root)
    if folder is None:
        return None
    app = ios_dir(root) / folder
    for name in ("Assets.xcassets", "Images.xcassets"):
        if (app / name).is_dir():
            return app / name
    return app / "Images.xcassets"


def platform_www_dir(root: Path, platform: str) -> Optional[Path]:
    """Prepared ``www`` directory of *platform*, ``None`` for unknown platforms."""
    if platform == "android":
        return android_www_dir(root)
    if platform == "ios":
        return ios_www_dir(root)
    return None
