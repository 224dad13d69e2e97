"""
App icon generation from a single CDN master image.

``CDN_ICON`` (or ``cdnIcon``) is downloaded once and resized with a
center-crop "cover" fit into every Android launcher density and every
entry of the iOS ``AppIcon.appiconset``.
"""
from __future__ import annotations

import io
import re
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from PIL import Image, ImageOps, UnidentifiedImageError

import config as cfg
import fs
import logger as log
from hooks.cdn import DownloadError, download_bytes
from hooks.hooks import HookContext, HookResult
from hooks.ios_cache import remove_build_dirs
from hooks.preferences import load_preferences

ANDROID_MIPMAPS: tuple[tuple[str, int], ...] = (
    ("mipmap-mdpi",    48),
    ("mipmap-hdpi",    72),
    ("mipmap-xhdpi",   96),
    ("mipmap-xxhdpi",  144),
    ("mipmap-xxxhdpi", 192),
)

ANDROID_SMALL_ICON_DPIS = ("ldpi", "mdpi", "hdpi", "xhdpi", "xxhdpi", "xxxhdpi")


@dataclass(frozen=True)
class IosIcon:
    size:  float       # points
    idiom: str
    scale: int

    @property
    def pixels(self) -> int:
        return int(round(self.size * self.scale))

    @property
    def filename(self) -> str:
        suffix = "" if self.scale == 1 else f"@{self.scale}x"
        return f"icon-{self.size:g}{suffix}.png"

    def contents_entry(self) -> dict:
        return {
            "idiom":    self.idiom,
            "size":     f"{self.size:g}x{self.size:g}",
            "scale":    f"{self.scale}x",
            "filename": self.filename,
        }


def _icons(size: float, idiom: str, *scales: int) -> list[IosIcon]:
    return [IosIcon(size, idiom, scale) for scale in scales]


IOS_ICONS: tuple[IosIcon, ...] = tuple(
    _icons(20, "iphone", 2, 3)
    + _icons(29, "iphone", 2, 3)
    + _icons(40, "iphone", 2, 3)
    + _icons(60, "iphone", 2, 3)
    + _icons(20, "ipad", 1, 2)
    + _icons(29, "ipad", 1, 2)
    + _icons(40, "ipad", 1, 2)
    + _icons(76, "ipad", 1, 2)
    + _icons(83.5, "ipad", 2)
    + _icons(1024, "ios-marketing", 1)
)


# ══════════════════════════════════════════════════════════════════════════════
# Image helpers
# ══════════════════════════════════════════════════════════════════════════════

def load_master(data: bytes) -> Image.Image:
    """Decode the downloaded master icon. Raises ``ValueError`` if not an image."""
    try:
        image = Image.open(io.BytesIO(data))
        image.load()
    except (UnidentifiedImageError, OSError) as exc:
        raise ValueError(f"downloaded icon is not a readable image: {exc}") from exc
    return image.convert("RGBA")


def render_icon(master: Image.Image, pixels: int) -> bytes:
    """Center-crop *master* to a square and resize it to *pixels* × *pixels* PNG."""
    icon = ImageOps.fit(master, (pixels, pixels), Image.Resampling.LANCZOS, centering=(0.5, 0.5))
    buf = io.BytesIO()
    icon.save(buf, format="PNG", optimize=True)
    return buf.getvalue()


# ══════════════════════════════════════════════════════════════════════════════
# Android
# ══════════════════════════════════════════════════════════════════════════════

def generate_android_icons(root: Path, master: Image.Image) -> list[Path]:
    res_dir = cfg.android_res_dir(root)
    written: list[Path] = []
    for folder, pixels in ANDROID_MIPMAPS:
        target = res_dir / folder / "ic_launcher.png"
        fs.write_bytes(target, render_icon(master, pixels))
        written.append(target)
        log.info(f"   {folder}/ic_launcher.png  {pixels}×{pixels}")
    return written


# ══════════════════════════════════════════════════════════════════════════════
# iOS
# ══════════════════════════════════════════════════════════════════════════════

def appiconset_dir(root: Path) -> Optional[Path]:
    catalog = cfg.ios_asset_catalog(root)
    return None if catalog is None else catalog / "AppIcon.appiconset"


def recently_generated(iconset: Path, window_min: Optional[float] = None) -> bool:
    """True if the icon set was (re)generated within the last *window_min* minutes."""
    window = cfg.ICON_REGEN_WINDOW_MIN if window_min is None else window_min
    marker = iconset / "icon-1024.png"
    if not (iconset / "Contents.json").exists() or not marker.exists():
        return False
    age_min = (time.time() - marker.stat().st_mtime) / 60.0
    return age_min < window


def generate_ios_icons(iconset: Path, master: Image.Image) -> list[Path]:
    """Write every icon of ``IOS_ICONS`` plus a matching ``Contents.json``."""
    written: list[Path] = []
    rendered = set()
    for icon in IOS_ICONS:
        if icon.filename in rendered:
            continue
        target = iconset / icon.filename
        fs.write_bytes(target, render_icon(master, icon.pixels))
        rendered.add(icon.filename)
        written.append(target)
    contents = {
        "images": [icon.contents_entry() for icon in IOS_ICONS],
        "info":   {"version": 1, "author": "xcode"},
    }
    contents_path = iconset / "Contents.json"
    fs.write_json(contents_path, contents)
    written.append(contents_path)
    log.info(f"   {len(rendered)} icon file(s) + Contents.json in {iconset.name}")
    return written


def verify_icon_set(iconset: Path) -> list[str]:
    """Return the filenames listed in ``Contents.json`` that do not exist."""
    contents_path = iconset / "Contents.json"
    if not contents_path.exists():
        return ["Contents.json"]
    contents = fs.read_json(contents_path)
    return [
        image["filename"]
        for image in contents.get("images", [])
        if image.get("filename") and not (iconset / image["filename"]).exists()
    ]


_APPICON_SETTING = re.compile(r"(ASSETCATALOG_COMPILER_APPICON_NAME = )[^;]*;")
_BUILD_SETTINGS = re.compile(r"(buildSettings = \{)(.*?)(\n(\t+)\};)", re.S)


def set_appicon_name(pbxproj: str, name: str = "AppIcon") -> str:
    """
    Point every target build configuration at the *name* icon set.  Blocks
    that set ``INFOPLIST_FILE`` but no icon name get one added.
    """
    text = _APPICON_SETTING.sub(rf"\g<1>{name};", pbxproj)

    def _add(match: "re.Match[str]") -> str:
        body = match.group(2)
        if "INFOPLIST_FILE" not in body or "ASSETCATALOG_COMPILER_APPICON_NAME" in body:
            return match.group(0)
        indent = match.group(4) + "\t"
        return f"{match.group(1)}\n{indent}ASSETCATALOG_COMPILER_APPICON_NAME = {name};{body}{match.group(3)}"

    return _BUILD_SETTINGS.sub(_add, text)


def update_pbxproj(root: Path) -> Optional[Path]:
    folder = cfg.ios_app_folder(root)
    if folder is None:
        return None
    pbx = cfg.ios_dir(root) / f"{folder}.xcodeproj" / "project.pbxproj"
    original = fs.read_text(pbx)
    if original is None:
        log.warn(f"   {pbx.name} not found, AppIcon setting unchanged")
        return None
    if fs.write_if_changed(pbx, original, set_appicon_name(original)):
        log.info("   project.pbxproj → ASSETCATALOG_COMPILER_APPICON_NAME = AppIcon")
        return pbx
    return None


# ══════════════════════════════════════════════════════════════════════════════
# generate_icons  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def generate_icons(ctx: HookContext) -> HookResult:
    prefs = load_preferences(ctx)
    url = prefs.first("CDN_ICON", "cdnIcon")
    if not url:
        return HookResult.skip("CDN_ICON not set")
    targets = [p for p in ctx.platforms if p in ("android", "ios")]
    if not targets:
        return HookResult.skip("no android / ios platform targeted")

    log.section("Generate app icons")
    iconset = appiconset_dir(ctx.project_root) if "ios" in targets else None
    if iconset is not None and recently_generated(iconset):
        log.info("   iOS icons generated less than "
                 f"{cfg.ICON_REGEN_WINDOW_MIN:g} min ago, skipping iOS")
        targets.remove("ios")
        if not targets:
            return HookResult.skip("icons are fresh")

    log.info(f"Downloading {url}")
    try:
        master = load_master(download_bytes(url))
    except (DownloadError, ValueError) as exc:
        return HookResult.fail(f"icon not generated: {exc}")
    log.info(f"   master icon {master.width}×{master.height}")

    changed: list[Path] = []
    errors: list[str] = []
    for platform in targets:
        try:
            if platform == "android":
                changed += generate_android_icons(ctx.project_root, master)
            elif iconset is None:
                log.warn("   no iOS app folder found")
            else:
                remove_build_dirs(ctx.project_root)
                changed += generate_ios_icons(iconset, master)
                missing = verify_icon_set(iconset)
                if missing:
                    log.error(f"   missing icons: {', '.join(missing)}")
                    errors.append(platform)
                pbx = update_pbxproj(ctx.project_root)
                if pbx is not None:
                    changed.append(pbx)
        except OSError as exc:
            log.error(f"   {platform}: {exc}")
            errors.append(platform)

    if errors:
        return HookResult.fail(f"icons incomplete for {', '.join(errors)}", changed)
    return HookResult(changed=changed, message=f"{len(changed)} icon file(s) written")


# ══════════════════════════════════════════════════════════════════════════════
# update_android_small_icon  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def update_android_small_icon(ctx: HookContext) -> HookResult:
    """Copy the project's ``drawable-<dpi>/icon.png`` files over ``ic_launcher.png``."""
    if not ctx.has_platform("android"):
        return HookResult.skip("android platform not targeted")

    root = ctx.project_root
    res_dir = cfg.android_res_dir(root)
    copies = []
    for dpi in ANDROID_SMALL_ICON_DPIS:
        candidates = (
            root / "res" / "android" / f"drawable-{dpi}" / "icon.png",
            root / "source" / "res" / "android" / f"drawable-{dpi}" / "icon.png",
        )
        source = next((c for c in candidates if c.exists()), None)
        if source is not None:
            copies.append((source, res_dir / f"drawable-{dpi}" / "ic_launcher.png"))
    if not copies:
        return HookResult.skip("no res/android/drawable-*/icon.png found")

    log.section("Update Android small icon")
    changed: list[Path] = []
    for source, target in copies:
        try:
            fs.write_bytes(target, source.read_bytes())
        except OSError as exc:
            return HookResult.fail(f"cannot copy {source} → {target}: {exc}", changed)
        changed.append(target)
        log.info(f"   {source.relative_to(root)} → {target.relative_to(root)}")
    return HookResult(changed=changed, message=f"{len(changed)} small icon(s) copied")
