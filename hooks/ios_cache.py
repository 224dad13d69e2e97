"""
iOS build-cache cleaning.

Xcode keeps compiled storyboards and asset catalogs between builds, so a
renamed app or a new icon can survive a rebuild.  Only caches inside the
project's ``platforms/ios`` tree are removed; the user's global Xcode
caches are left alone.
"""
from __future__ import annotations

from pathlib import Path

import config as cfg
import fs
import logger as log
from hooks.hooks import HookContext, HookResult

BUILD_DIRS = ("build", "DerivedData")


def remove_build_dirs(root: Path) -> list[Path]:
    """Delete ``platforms/ios/build`` and ``platforms/ios/DerivedData``."""
    removed: list[Path] = []
    for name in BUILD_DIRS:
        path = cfg.ios_dir(root) / name
        try:
            if fs.remove_path(path):
                removed.append(path)
                log.info(f"   removed {name}/")
        except OSError as exc:
            log.warn(f"   cannot remove {path}: {exc}")
    return removed


def compiled_artifacts(ios: Path) -> list[Path]:
    """``*.storyboardc`` / ``*.xcarchive`` directories and ``Assets.car`` files."""
    found: list[Path] = []
    for path in sorted(ios.rglob("*")):
        if any(parent in found for parent in path.parents):
            continue
        if path.is_dir() and path.suffix in (".storyboardc", ".xcarchive"):
            found.append(path)
        elif path.is_file() and path.name == "Assets.car":
            found.append(path)
    return found


def clean_ios_build_cache(ctx: HookContext) -> HookResult:
    if not ctx.has_platform("ios"):
        return HookResult.skip("ios platform not targeted")
    ios = cfg.ios_dir(ctx.project_root)
    if not ios.is_dir():
        return HookResult.skip("platforms/ios not found")

    log.section("Clean iOS build cache")
    removed = remove_build_dirs(ctx.project_root)
    for artifact in compiled_artifacts(ios):
        try:
            fs.remove_path(artifact)
        except OSError as exc:
            log.warn(f"   cannot remove {artifact}: {exc}")
            continue
        removed.append(artifact)
        log.info(f"   removed {artifact.relative_to(ios)}")

    if not removed:
        return HookResult(message="iOS build cache already clean")
    return HookResult(changed=removed, message=f"{len(removed)} cache entr{'y' if len(removed) == 1 else 'ies'} removed")
