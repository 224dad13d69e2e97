"""
``index.html`` injection helpers.

The prepared ``www/index.html`` is edited as text: a ``<script>`` tag is
placed by the first strategy whose anchor exists, an inline ``<style>``
block is delimited by an HTML comment marker so it can be replaced on the
next run instead of duplicated.
"""
from __future__ import annotations

import re
from pathlib import Path
from typing import Optional

import config as cfg
import fs
import logger as log
from hooks.hooks import HookContext, HookResult
from hooks.preferences import load_preferences
from hooks.splash import InvalidColorPreference, splash_color, webview_color

WEBVIEW_STYLE_ID = "cordova-plugin-webview-bg"

# (name, pattern, insert before the match?)
_SCRIPT_STRATEGIES = (
    ("before cordova.js", re.compile(r"<script[^>]*\bsrc=[\"'][^\"']*cordova\.js[\"'][^>]*>", re.I), True),
    ("after <head>",      re.compile(r"<head(?:\s[^>]*)?>", re.I),                                   False),
    ("before </head>",    re.compile(r"</head\s*>", re.I),                                           True),
    ("start of <body>",   re.compile(r"<body(?:\s[^>]*)?>", re.I),                                   False),
    ("before </body>",    re.compile(r"</body\s*>", re.I),                                           True),
)


def index_html_paths(root: Path, platforms: list[str]) -> list[Path]:
    paths = []
    for platform in platforms:
        www = cfg.platform_www_dir(root, platform)
        if www is not None:
            paths.append(www / "index.html")
    return paths


# ══════════════════════════════════════════════════════════════════════════════
# Text transforms
# ══════════════════════════════════════════════════════════════════════════════

def has_script_tag(html: str, src: str) -> bool:
    return re.search(rf"<script[^>]*\bsrc=[\"']{re.escape(src)}[\"']", html, re.I) is not None


def add_script_tag(html: str, src: str) -> tuple[str, Optional[str]]:
    """
    Insert ``<script src="src">``.  Returns ``(html, strategy)``; strategy is
    ``None`` when the tag is already present or no anchor was found.
    """
    if has_script_tag(html, src):
        return html, None
    tag = f'<script src="{src}"></script>'
    for name, pattern, before in _SCRIPT_STRATEGIES:
        match = pattern.search(html)
        if match is None:
            continue
        if before:
            return html[:match.start()] + tag + "\n    " + html[match.start():], name
        return html[:match.end()] + "\n    " + tag + html[match.end():], name
    return html, None


def add_inline_css(html: str, css: str, marker: str) -> tuple[str, bool]:
    """
    Place ``<!-- marker -->`` + ``<style>css</style>`` before ``</head>``,
    replacing the block from a previous run.  Returns ``(html, changed)``.
    """
    block = f"<!-- {marker} -->\n<style>\n{css.strip()}\n</style>\n"
    existing = re.compile(rf"<!-- {re.escape(marker)} -->\s*<style>.*?</style>\s*", re.S)
    if existing.search(html):
        updated = existing.sub(lambda _: block, html, count=1)
        return updated, updated != html
    head_end = re.search(r"</head\s*>", html, re.I)
    if head_end is None:
        return html, False
    return html[:head_end.start()] + block + html[head_end.start():], True


def webview_style_block(color: str) -> str:
    return (
        f'<style id="{WEBVIEW_STYLE_ID}">\n'
        "        html, body {\n"
        f"            background-color: {color} !important;\n"
        "            margin: 0;\n"
        "            padding: 0;\n"
        "        }\n"
        "    </style>"
    )


def add_webview_style(html: str, color: str) -> tuple[str, bool]:
    block = webview_style_block(color)
    existing = re.compile(rf"<style id=\"{WEBVIEW_STYLE_ID}\">.*?</style>", re.S)
    if existing.search(html):
        updated = existing.sub(lambda _: block, html, count=1)
        return updated, updated != html
    head_end = re.search(r"</head\s*>", html, re.I)
    if head_end is None:
        return html, False
    return html[:head_end.start()] + "    " + block + "\n" + html[head_end.start():], True


# ══════════════════════════════════════════════════════════════════════════════
# File wrappers
# ══════════════════════════════════════════════════════════════════════════════

def inject_script_tag(index: Path, src: str) -> bool:
    """Add a script tag to *index*. Returns True if the file was written."""
    original = fs.read_text(index)
    if original is None:
        log.warn(f"   index.html not found: {index}")
        return False
    if has_script_tag(original, src):
        log.info(f"   {src} already referenced in {index.name}")
        return False
    updated, strategy = add_script_tag(original, src)
    if strategy is None:
        log.warn(f"   no insertion point for {src} in {index}")
        return False
    fs.write_text(index, updated)
    log.info(f"   {src} injected {strategy}")
    return True


def inject_inline_css(index: Path, css: str, marker: str) -> bool:
    original = fs.read_text(index)
    if original is None:
        return False
    updated, changed = add_inline_css(original, css, marker)
    if not changed:
        return False
    fs.write_text(index, updated)
    return True


# ══════════════════════════════════════════════════════════════════════════════
# inject_index_css  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def inject_index_css(ctx: HookContext) -> HookResult:
    """Paint ``html, body`` with the background color before the page loads."""
    prefs = load_preferences(ctx)
    try:
        color = webview_color(prefs) or splash_color(prefs)
    except InvalidColorPreference as exc:
        return HookResult.fail(str(exc))
    if not color:
        return HookResult.skip("no background color configured")

    log.section("Inject index.html background CSS")
    changed: list[Path] = []
    for index in index_html_paths(ctx.project_root, ctx.platforms):
        original = fs.read_text(index)
        if original is None:
            continue
        updated, did_change = add_webview_style(original, color)
        if not did_change:
            if WEBVIEW_STYLE_ID not in original:
                log.warn(f"   no </head> in {index}")
            continue
        fs.write_text(index, updated)
        changed.append(index)
        log.info(f"   {index.relative_to(ctx.project_root)} background → {color}")
    return HookResult(changed=changed, message=f"webview CSS in {len(changed)} index.html file(s)")


# ══════════════════════════════════════════════════════════════════════════════
# inject_app_ready_manager  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

APP_READY_SRC = "js/AppReadyManager.js"


def copy_app_ready_script(root: Path, www: Path) -> Optional[Path]:
    """
    Copy the plugin's script into *www* when the prepared www lacks it.
    Returns the copied file, ``None`` when nothing was copied.
    """
    target = www / APP_READY_SRC
    source = root / "plugins" / cfg.PLUGIN_ID / "www" / APP_READY_SRC
    if target.exists() or not source.exists():
        return None
    fs.write_bytes(target, source.read_bytes())
    log.info(f"   {APP_READY_SRC} copied from {cfg.PLUGIN_ID}")
    return target


def inject_app_ready_manager(ctx: HookContext) -> HookResult:
    """
    Load ``AppReadyManager.js`` ahead of ``cordova.js`` so the native splash
    stays up until the page calls ``window.appReady()``.
    """
    plugin_copy = ctx.project_root / "plugins" / cfg.PLUGIN_ID / "www" / APP_READY_SRC
    wwws = [
        www for www in (cfg.platform_www_dir(ctx.project_root, p) for p in ctx.platforms)
        if www is not None and (www / "index.html").exists()
    ]
    if not plugin_copy.exists() and not any((www / APP_READY_SRC).exists() for www in wwws):
        return HookResult.skip(f"{APP_READY_SRC} not installed")

    log.section("Inject AppReadyManager")
    changed: list[Path] = []
    for www in wwws:
        copied = copy_app_ready_script(ctx.project_root, www)
        if copied is not None:
            changed.append(copied)
        elif not (www / APP_READY_SRC).exists():
            log.warn(f"   {APP_READY_SRC} missing in {www.relative_to(ctx.project_root)}")
            continue
        index = www / "index.html"
        if inject_script_tag(index, APP_READY_SRC):
            changed.append(index)
    return HookResult(changed=changed, message=f"AppReadyManager: {len(changed)} file(s) changed")
