"""
CDN fetchers: plain HTTP(S) GET helpers plus the two hooks that pull
styles and asset overrides from a CDN at prepare time.

Redirects are followed by ``urllib``; anything but a final ``200`` raises
:class:`DownloadError`.  Every request uses ``config.HTTP_TIMEOUT``.
"""
from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from pathlib import Path
from typing import Optional

import config as cfg
import fs
import logger as log
from hooks.hooks import HookContext, HookError, HookResult
from hooks.html import inject_inline_css
from hooks.preferences import load_preferences

CDN_STYLES_MARKER = "CDN Styles"


class DownloadError(HookError):
    """A CDN resource could not be fetched."""


def is_http_url(value: str) -> bool:
    parsed = urllib.parse.urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def download_bytes(url: str, timeout: Optional[float] = None) -> bytes:
    """GET *url* and return the body. Raises ``DownloadError``."""
    if not is_http_url(url):
        raise DownloadError(f"not an http(s) URL: {url!r}")
    req = urllib.request.Request(url, headers={"User-Agent": cfg.USER_AGENT})
    try:
        with urllib.request.urlopen(req, timeout=timeout or cfg.HTTP_TIMEOUT) as resp:
            status = resp.status
            if status != 200:
                raise DownloadError(f"HTTP {status} for {url}")
            return resp.read()
    except urllib.error.HTTPError as exc:
        raise DownloadError(f"HTTP {exc.code} {exc.reason} for {url}") from exc
    except urllib.error.URLError as exc:
        raise DownloadError(f"cannot reach {url}: {exc.reason}") from exc
    except OSError as exc:
        # socket timeouts and resets surface as plain OSError
        raise DownloadError(f"download of {url} failed: {exc}") from exc


def download_text(url: str, timeout: Optional[float] = None) -> str:
    return download_bytes(url, timeout).decode("utf-8")


# ══════════════════════════════════════════════════════════════════════════════
# download_cdn_resources  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def download_cdn_resources(ctx: HookContext) -> HookResult:
    """Inline the ``CDN_RESOURCE`` stylesheet into every ``index.html``."""
    prefs = load_preferences(ctx)
    url = prefs.get("CDN_RESOURCE")
    if not url:
        return HookResult.skip("CDN_RESOURCE not set")
    if not is_http_url(url):
        return HookResult.fail(f"CDN_RESOURCE is not a valid URL: {url}")

    log.section("Download CDN resources")
    log.info(f"Fetching {url}")
    try:
        css = download_text(url)
    except (DownloadError, UnicodeDecodeError) as exc:
        return HookResult.fail(str(exc))
    log.info(f"   {len(css)} characters downloaded")

    targets = [ctx.project_root / "www" / "index.html"]
    for platform in ctx.platforms:
        www = cfg.platform_www_dir(ctx.project_root, platform)
        if www is not None:
            targets.append(www / "index.html")

    changed: list[Path] = []
    for index in targets:
        if not index.exists():
            continue
        if inject_inline_css(index, css, CDN_STYLES_MARKER):
            changed.append(index)
            log.info(f"   inlined into {index.relative_to(ctx.project_root)}")
    return HookResult(changed=changed, message=f"CDN styles inlined into {len(changed)} file(s)")


# ══════════════════════════════════════════════════════════════════════════════
# replace_assets_from_cdn  (after_prepare)
# ══════════════════════════════════════════════════════════════════════════════

def asset_target(root: Path, platform: str, local_file: str) -> Optional[Path]:
    """
    Map a ``www/``-relative asset path onto the platform's prepared www.
    Raises ``ValueError`` when the path resolves outside that directory.
    """
    www = cfg.platform_www_dir(root, platform)
    if www is None:
        return None
    clean = local_file.lstrip("/")
    if clean.startswith("www/"):
        clean = clean[len("www/"):]
    target = www / clean
    if not target.resolve().is_relative_to(www.resolve()):
        raise ValueError(f"{local_file!r} points outside {platform} www")
    return target


def _first_str(entry: dict, *keys: str) -> str:
    for key in keys:
        value = entry.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return ""


def parse_asset_list(text: str) -> list[dict]:
    """
    ``[{"localFile": "www/css/app.css", "cdn": "https://…"}, …]``; the
    aliases ``local``/``file`` and ``url``/``cdnUrl`` are accepted.
    Entries missing either side, or carrying non-string values, are dropped.
    """
    data = json.loads(text)
    if not isinstance(data, list):
        raise ValueError("CDN asset config must be a JSON array")
    assets = []
    for entry in data:
        if not isinstance(entry, dict):
            continue
        local = _first_str(entry, "localFile", "local", "file")
        remote = _first_str(entry, "cdn", "url", "cdnUrl")
        if local and remote:
            assets.append({"local": local, "url": remote})
    return assets


def replace_assets_from_cdn(ctx: HookContext) -> HookResult:
    """Overwrite prepared www files with the CDN copies listed in ``CDN_ASSETS``."""
    prefs = load_preferences(ctx)
    config_url = prefs.first("CDN_ASSETS", "CdnAssets")
    if not config_url:
        return HookResult.skip("CDN_ASSETS not set")

    log.section("Replace assets from CDN")
    try:
        assets = parse_asset_list(download_text(config_url))
    except (DownloadError, UnicodeDecodeError, ValueError) as exc:
        return HookResult.fail(f"cannot load CDN asset list: {exc}")
    log.info(f"{len(assets)} asset(s) listed")

    changed: list[Path] = []
    failed = 0
    for asset in assets:
        for platform in ctx.platforms:
            try:
                target = asset_target(ctx.project_root, platform, asset["local"])
            except ValueError as exc:
                log.error(f"   {platform}: rejected {exc}")
                failed += 1
                continue
            if target is None:
                continue
            if not target.exists():
                log.warn(f"   {platform}: {asset['local']} not found, skipped")
                continue
            try:
                content = download_text(asset["url"])
                fs.backup_once(target)
                fs.write_text(target, content)
            except (DownloadError, UnicodeDecodeError, OSError) as exc:
                log.error(f"   {platform}: {asset['local']}: {exc}")
                failed += 1
                continue
            changed.append(target)
            log.info(f"   {platform}: {asset['local']} ← {asset['url']}")

    message = f"{len(changed)} asset(s) replaced"
    if failed:
        return HookResult.fail(f"{message}, {failed} failed", changed)
    return HookResult(changed=changed, message=message)
