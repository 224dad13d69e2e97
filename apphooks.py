#!/usr/bin/env python3
"""
Cordova App Hooks CLI
=====================

Cordova runs non-JavaScript hook scripts from the project root with
``CORDOVA_HOOK``, ``CORDOVA_PLATFORMS`` and ``CORDOVA_VERSION`` set, so a
``config.xml`` entry like::

    <hook type="after_prepare" src="scripts/apphooks.sh" />

only needs ``apphooks run`` (the stage is taken from ``CORDOVA_HOOK``).

Usage examples
--------------
  apphooks run after_prepare                          # every after_prepare hook
  apphooks run                                        # stage from $CORDOVA_HOOK
  apphooks run after_prepare --platform android       # restrict to one platform
  apphooks run after_prepare --only generate_icons    # a subset of the stage
  apphooks run post_compile                           # alias of after_compile
  apphooks hook customize_colors --project-root ./app # a single hook by name
  apphooks list                                       # stages and their hooks
  apphooks prefs                                      # recognised preferences + values
  apphooks color 0xFF1E1464                           # every encoding of a color

Cosmetic hooks never fail the host build: ``run`` and ``hook`` exit 0 even
when a hook fails.  Usage errors (unknown stage or hook, missing project
root) exit 2.
"""

import argparse
import os
import sys
from pathlib import Path

from rich.table import Table

# ── make sure local modules are importable when run as a script ──────────────
sys.path.insert(0, os.path.dirname(__file__))

import hooks as hooksmod
import logger as log
from hooks import colors
from hooks.preferences import PreferenceError, load_preferences

EXIT_USAGE = 2

# Preferences read by the hooks, with the hook(s) that use them
KNOWN_PREFERENCES = (
    ("APP_NAME",                                 "change_app_info, inject_build_info, send_build_success"),
    ("VERSION_NUMBER",                           "change_app_info, inject_build_info, send_build_success"),
    ("VERSION_CODE",                             "change_app_info, inject_build_info"),
    ("PACKAGE_NAME",                             "reported only"),
    ("SplashScreenBackgroundColor",              "customize_colors, replace_old_color"),
    ("AndroidWindowSplashScreenBackground",      "customize_colors, replace_old_color"),
    ("AndroidWindowSplashScreenBackgroundColor", "customize_colors, replace_old_color"),
    ("SPLASH_BACKGROUND_COLOR",                  "customize_colors, replace_old_color"),
    ("BackgroundColor",                          "customize_colors, replace_old_color, update_splash_theme_color"),
    ("WEBVIEW_BACKGROUND_COLOR",                 "customize_colors, inject_index_css"),
    ("WebviewBackgroundColor",                   "customize_colors, inject_index_css"),
    ("OLD_COLOR",                                "replace_old_color"),
    ("SPLASH_GRADIENT",                          "generate_gradient_splash"),
    ("CDN_ICON",                                 "generate_icons, inject_build_info"),
    ("cdnIcon",                                  "generate_icons"),
    ("CDN_RESOURCE",                             "download_cdn_resources"),
    ("CDN_ASSETS",                               "replace_assets_from_cdn"),
    ("CdnAssets",                                "replace_assets_from_cdn"),
    ("APP_DESCRIPTION",                          "inject_build_info"),
    ("AUTHOR",                                   "inject_build_info"),
    ("API_HOSTNAME",                             "inject_build_info, send_build_success"),
    ("ENVIRONMENT",                              "inject_build_info"),
    ("ENABLE_BUILD_NOTIFICATION",                "send_build_success"),
    ("BUILD_SUCCESS_API_URL",                    "send_build_success"),
    ("BUILD_API_BEARER_TOKEN",                   "send_build_success"),
)

# Preferences that may also come from the environment (inject_build_info)
_ENV_OVERRIDABLE = {
    "APP_NAME", "VERSION_NUMBER", "VERSION_CODE", "APP_DESCRIPTION",
    "AUTHOR", "API_HOSTNAME", "ENVIRONMENT", "CDN_ICON",
}


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _project_root(args: argparse.Namespace):
    root = Path(args.project_root or os.getcwd())
    if not root.is_dir():
        log.error(f"Project root does not exist: {root}")
        return None
    if not (root / "config.xml").exists():
        log.warn(f"No config.xml in {root}; every preference will use its default")
    return root


def _context(args: argparse.Namespace, root: Path) -> "hooksmod.HookContext":
    return hooksmod.build_hook_context(root, platforms=args.platform or None)


def _mask(name: str, value: str) -> str:
    if value and "TOKEN" in name.upper():
        return value[:4] + "…" if len(value) > 4 else "…"
    return value


# ─────────────────────────────────────────────────────────────────────────────
# Sub-command implementations
# ─────────────────────────────────────────────────────────────────────────────

def cmd_run(args: argparse.Namespace) -> int:
    """Run every hook registered for a lifecycle stage."""
    stage = args.stage or os.environ.get("CORDOVA_HOOK", "")
    if not stage:
        log.error("No stage given and CORDOVA_HOOK is not set")
        return EXIT_USAGE
    try:
        stage = hooksmod.normalize_stage(stage)
    except ValueError as exc:
        log.error(str(exc))
        return EXIT_USAGE

    root = _project_root(args)
    if root is None:
        return EXIT_USAGE
    ctx = _context(args, root)
    log.banner(f"Cordova hooks · {stage}",
               f"{root}  ·  platforms: {', '.join(ctx.platforms) or 'none'}")
    try:
        hooksmod.run_stage(stage, ctx, only=args.only)
    except ValueError as exc:
        log.error(str(exc))
        return EXIT_USAGE
    return 0


def cmd_hook(args: argparse.Namespace) -> int:
    """Run a single hook by name."""
    if args.name not in hooksmod.NAMED_HOOKS:
        log.error(f"Unknown hook '{args.name}'. Run 'apphooks list' for the available hooks.")
        return EXIT_USAGE
    root = _project_root(args)
    if root is None:
        return EXIT_USAGE
    ctx = _context(args, root)
    log.banner(f"Cordova hook · {args.name}", str(root))
    hooksmod.run_named(args.name, ctx)
    return 0


def cmd_list(args: argparse.Namespace) -> int:
    """Show the stages and their hooks, in run order."""
    table = Table(title="Registered hooks", show_lines=True)
    table.add_column("Stage", style="bold cyan", no_wrap=True)
    table.add_column("#",     justify="right", style="dim")
    table.add_column("Hook",  style="bold", no_wrap=True)
    table.add_column("Description", style="dim", overflow="fold")
    for stage in hooksmod.STAGES:
        for index, hook in enumerate(hooksmod.STAGE_HOOKS[stage], 1):
            doc = (hook.__doc__ or "").strip().splitlines()
            table.add_row(stage if index == 1 else "", str(index), hook.__name__,
                          doc[0] if doc else "")
    log.print_table(table)
    aliases = ", ".join(f"{a} → {s}" for a, s in hooksmod.STAGE_ALIASES.items())
    log.info(f"Stage aliases: {aliases}")
    return 0


def cmd_prefs(args: argparse.Namespace) -> int:
    """Show the recognised preferences and their resolved values."""
    root = _project_root(args)
    if root is None:
        return EXIT_USAGE
    ctx = hooksmod.build_hook_context(root)
    try:
        prefs = load_preferences(ctx)
    except PreferenceError as exc:
        log.error(str(exc))
        return 1

    log.banner("config.xml preferences", str(prefs.path))
    log.info(f"   {'name':<10} {prefs.name() or '—'}")
    log.info(f"   {'id':<10} {prefs.package_name() or '—'}")
    log.info(f"   {'version':<10} {prefs.version() or '—'}")

    table = Table(show_lines=False)
    table.add_column("Preference", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    table.add_column("Source", style="dim")
    table.add_column("Used by", style="dim", overflow="fold")
    for name, used_by in KNOWN_PREFERENCES:
        env_value = os.environ.get(name, "").strip() if name in _ENV_OVERRIDABLE else ""
        if env_value:
            value, source = env_value, "env"
        else:
            value = prefs.get(name)
            source = "config.xml" if value else ""
        table.add_row(name, _mask(name, value) or "[dim]—[/dim]", source, used_by)
    log.print_table(table)
    return 0


def cmd_color(args: argparse.Namespace) -> int:
    """Print every encoding of a color value."""
    normalized = colors.normalize_hex_color(args.value)
    if normalized is None:
        log.error(f"Not a hex color: {args.value}")
        return EXIT_USAGE

    r, g, b = colors.hex_to_rgb(normalized)
    table = Table(title=normalized, show_header=False)
    table.add_column("Encoding", style="bold cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("hex",              normalized)
    table.add_row("rgb",              f"rgb({colors.rgb_string(normalized)})")
    table.add_row("argb decimal",     str(colors.hex_to_argb(normalized)))
    table.add_row("android argb",     f"#FF{normalized[1:]}")
    table.add_row("float rgb",        " / ".join(f"{c:.3f}" for c in colors.hex_to_rgb_float(normalized)))
    table.add_row("UIColor (Swift)",  colors.uicolor_swift(normalized))
    table.add_row("UIColor (ObjC)",   colors.uicolor_objc(normalized))
    table.add_row("swatch",           f"[on #{r:02x}{g:02x}{b:02x}]        [/]")
    log.print_table(table)
    return 0


# ─────────────────────────────────────────────────────────────────────────────
# Argument parser
# ─────────────────────────────────────────────────────────────────────────────

def _add_project_args(p: argparse.ArgumentParser, *, platforms: bool = True) -> None:
    p.add_argument(
        "--project-root",
        metavar="DIR",
        help="Cordova project root holding config.xml (default: current directory).",
    )
    if platforms:
        p.add_argument(
            "--platform",
            action="append",
            metavar="NAME",
            help=(
                "Target platform (repeatable). Default: $CORDOVA_PLATFORMS, "
                "else the directories under platforms/."
            ),
        )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="apphooks",
        description="Cordova app-customisation hooks",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--version", action="version", version="cordova-app-hooks 1.0.0")

    sub = parser.add_subparsers(dest="command", metavar="<command>")
    sub.required = True

    # ── run ───────────────────────────────────────────────────────────────────
    p_run = sub.add_parser(
        "run",
        help="Run the hooks of a lifecycle stage",
        description=(
            "Run every hook registered for STAGE. Without STAGE the "
            "CORDOVA_HOOK environment variable is used."
        ),
    )
    p_run.add_argument(
        "stage",
        nargs="?",
        help=f"One of {', '.join(hooksmod.STAGES)} (or post_compile).",
    )
    _add_project_args(p_run)
    p_run.add_argument(
        "--only",
        action="append",
        metavar="HOOK",
        help="Run only the named hook(s) of the stage (repeatable).",
    )
    p_run.set_defaults(func=cmd_run)

    # ── hook ──────────────────────────────────────────────────────────────────
    p_hook = sub.add_parser("hook", help="Run a single hook by name")
    p_hook.add_argument("name", help="Hook name (see 'apphooks list').")
    _add_project_args(p_hook)
    p_hook.set_defaults(func=cmd_hook)

    # ── list ──────────────────────────────────────────────────────────────────
    p_list = sub.add_parser("list", help="Show the stages and their hooks")
    p_list.set_defaults(func=cmd_list)

    # ── prefs ─────────────────────────────────────────────────────────────────
    p_prefs = sub.add_parser("prefs", help="Show recognised config.xml preferences")
    _add_project_args(p_prefs, platforms=False)
    p_prefs.set_defaults(func=cmd_prefs)

    # ── color ─────────────────────────────────────────────────────────────────
    p_color = sub.add_parser("color", help="Show every encoding of a color value")
    p_color.add_argument("value", help="Hex color: #RRGGBB, RRGGBB, #RGB, #AARRGGBB, 0xAARRGGBB")
    p_color.set_defaults(func=cmd_color)

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    sys.exit(args.func(args))


if __name__ == "__main__":
    main()
