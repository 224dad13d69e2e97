"""
Platform-wide old → new color replacement.

Generated platform files keep stale theme colors cached by the build
service.  ``OLD_COLOR`` (default ``#1E1464``) is replaced everywhere by the
splash color (default ``#001833``) in every textual encoding handled by
:mod:`hooks.colors`.  With neither preference set the hook does nothing;
the defaults only complete a half-configured pair.
"""
from __future__ import annotations

from pathlib import Path

import config as cfg
import fs
import logger as log
from hooks import colors
from hooks.hooks import HookContext, HookResult
from hooks.preferences import load_preferences
from hooks.splash import SPLASH_PREFS

ANDROID_EXTS = (".xml", ".java", ".kt", ".gradle", ".properties")
IOS_EXTS     = (".xml", ".swift", ".m", ".plist", ".storyboard", ".json")
WWW_EXTS     = (".html", ".css")

_PLATFORM_EXTS = {"android": ANDROID_EXTS, "ios": IOS_EXTS}


def scan_targets(root: Path, platforms: list[str]) -> list[tuple[Path, tuple[str, ...]]]:
    targets = []
    for platform in platforms:
        exts = _PLATFORM_EXTS.get(platform)
        if exts is None:
            continue
        targets.append((root / "platforms" / platform, exts))
        www = cfg.platform_www_dir(root, platform)
        if www is not None:
            targets.append((www, WWW_EXTS))
    return targets


def replace_in_tree(base: Path, exts, variations) -> dict[Path, int]:
    """Replace in every matching file under *base*; returns ``{path: count}``."""
    counts: dict[Path, int] = {}
    for path in fs.find_all_files(base, exts, max_depth=cfg.SCAN_MAX_DEPTH):
        count = colors.replace_colors_in_file(path, variations)
        if count:
            counts[path] = count
    return counts


def replace_old_color(ctx: HookContext) -> HookResult:
    prefs = load_preferences(ctx)
    old_pref = prefs.get("OLD_COLOR")
    new_pref = prefs.first(*SPLASH_PREFS)
    if not old_pref and not new_pref:
        return HookResult.skip("OLD_COLOR and splash color not set")

    # defaults only fill in the side that is not configured
    old = colors.normalize_hex_color(old_pref, cfg.DEFAULT_OLD_COLOR)
    new = colors.normalize_hex_color(new_pref, cfg.DEFAULT_NEW_COLOR)

    variations = colors.generate_color_variations(old, new)
    if not variations:
        return HookResult.skip(f"old and new color are both {new}")

    log.section(f"Replace {old} → {new}")
    for variation in variations:
        log.info(f"   {variation.kind:<13} {variation.old} → {variation.new}")

    changed: list[Path] = []
    failed = 0
    total = 0
    for base, exts in scan_targets(ctx.project_root, ctx.platforms):
        if not base.is_dir():
            continue
        for path, count in replace_in_tree(base, exts, variations).items():
            if count < 0:
                failed += 1
                continue
            total += count
            changed.append(path)
            log.info(f"   {count:>4}× {path.relative_to(ctx.project_root)}")

    message = f"{total} replacement(s) in {len(changed)} file(s)"
    if failed:
        return HookResult.fail(f"{message}, {failed} file(s) could not be processed", changed)
    return HookResult(changed=changed, message=message)
