"""
Stage → hook registry.

Each lifecycle stage runs its hooks in the order listed here.  Every hook
is also reachable by name (``apphooks hook <name>``) through
:data:`NAMED_HOOKS`.
"""
from __future__ import annotations

from typing import Optional

from hooks.app_info import backup_app_info, change_app_info, remove_conflicting_strings_xml
from hooks.build_info import inject_build_info
from hooks.cdn import download_cdn_resources, replace_assets_from_cdn
from hooks.color_scan import replace_old_color
from hooks.hooks import STAGES, Hook, HookContext, RunSummary, hook_name, normalize_stage, run_hooks
from hooks.gradient import generate_gradient_splash
from hooks.html import inject_app_ready_manager, inject_index_css
from hooks.icons import generate_icons, update_android_small_icon
from hooks.ios_cache import clean_ios_build_cache
from hooks.notify import send_build_success
from hooks.splash import customize_colors, inject_native_background, update_splash_theme_color

STAGE_HOOKS: dict[str, list[Hook]] = {
    "before_prepare": [
        clean_ios_build_cache,
        backup_app_info,
    ],
    "after_prepare": [
        change_app_info,
        remove_conflicting_strings_xml,
        customize_colors,
        replace_old_color,
        generate_icons,
        update_android_small_icon,
        replace_assets_from_cdn,
        download_cdn_resources,
        inject_app_ready_manager,
        inject_index_css,
        inject_build_info,
    ],
    "before_compile": [
        update_splash_theme_color,
        generate_gradient_splash,
        inject_native_background,
    ],
    "after_compile": [
        send_build_success,
    ],
}

NAMED_HOOKS: dict[str, Hook] = {
    hook_name(hook): hook
    for stage in STAGES
    for hook in STAGE_HOOKS[stage]
}


def stage_of(name: str) -> Optional[str]:
    """The stage a named hook is registered for."""
    for stage in STAGES:
        if any(hook_name(hook) == name for hook in STAGE_HOOKS[stage]):
            return stage
    return None


def run_stage(stage: str, ctx: HookContext, only: Optional[list[str]] = None) -> RunSummary:
    """
    Run the hooks registered for *stage* (aliases accepted).  *only*
    restricts the run to the named hooks, keeping registry order.
    Raises ``ValueError`` for an unknown stage or hook name.
    """
    stage = normalize_stage(stage)
    hooks = STAGE_HOOKS[stage]
    if only:
        unknown = [name for name in only if name not in NAMED_HOOKS]
        if unknown:
            raise ValueError(f"unknown hook(s): {', '.join(unknown)}")
        hooks = [hook for hook in hooks if hook_name(hook) in only]
    ctx.stage = stage
    return run_hooks(stage, hooks, ctx)


def run_named(name: str, ctx: HookContext) -> RunSummary:
    hook = NAMED_HOOKS.get(name)
    if hook is None:
        raise ValueError(f"unknown hook '{name}'")
    ctx.stage = stage_of(name) or ""
    return run_hooks(ctx.stage or name, [hook], ctx)
