"""
Build-success notifier.

After a successful compile, one JSON ``POST`` per platform is sent to
``<BUILD_SUCCESS_API_URL>/<version>``.  The notifier is opt-in
(``ENABLE_BUILD_NOTIFICATION``), makes a single attempt per platform and
never raises: a down API must not fail the build.
"""
from __future__ import annotations

import json
import urllib.error
import urllib.parse
import urllib.request
from typing import Optional

import config as cfg
import logger as log
from hooks.hooks import HookContext, HookResult
from hooks.preferences import ConfigXml, load_preferences


def notification_url(base_url: str, version: str) -> str:
    # same character set as JavaScript's encodeURIComponent
    quoted = urllib.parse.quote(version, safe="!~*'()")
    return f"{base_url.rstrip('/')}/{quoted}"


def build_payload(prefs: ConfigXml, platform: str) -> dict:
    return {
        "app_name":       prefs.get("APP_NAME") or prefs.name() or "Unknown App",
        "app_domain":     prefs.get("API_HOSTNAME"),
        "app_platform":   platform,
        "config_version": prefs.get("VERSION_NUMBER") or prefs.version() or "0.0.0",
    }


def post_json(url: str, payload: dict, token: Optional[str] = None) -> int:
    """POST *payload*; returns the HTTP status. Raises ``urllib.error.URLError`` / ``OSError``."""
    body = json.dumps(payload).encode()
    headers = {"Content-Type": "application/json", "User-Agent": cfg.USER_AGENT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    req = urllib.request.Request(url, data=body, headers=headers, method="POST")
    with urllib.request.urlopen(req, timeout=cfg.HTTP_TIMEOUT) as resp:
        resp.read()
        return resp.status


def send_build_success(ctx: HookContext) -> HookResult:
    prefs = load_preferences(ctx)
    if not prefs.flag("ENABLE_BUILD_NOTIFICATION"):
        return HookResult.skip("build notification disabled")
    base_url = prefs.get("BUILD_SUCCESS_API_URL")
    if not base_url:
        return HookResult.skip("BUILD_SUCCESS_API_URL not set")

    log.section("Send build success notification")
    token = prefs.get("BUILD_API_BEARER_TOKEN")
    if not token:
        log.warn("BUILD_API_BEARER_TOKEN not set, sending without Authorization")

    sent = failed = 0
    for platform in ctx.platforms:
        payload = build_payload(prefs, platform)
        url = notification_url(base_url, payload["config_version"])
        log.info(f"   {platform}: POST {url}")
        try:
            status = post_json(url, payload, token)
        except urllib.error.HTTPError as exc:
            log.error(f"   {platform}: API returned {exc.code} {exc.reason}")
            failed += 1
            continue
        except (urllib.error.URLError, OSError) as exc:
            log.error(f"   {platform}: network error: {exc}")
            failed += 1
            continue
        if 200 <= status < 300:
            log.success(f"   {platform}: notified ({status})")
            sent += 1
        else:
            log.error(f"   {platform}: API returned {status}")
            failed += 1

    message = f"{sent} notification(s) sent, {failed} failed"
    if failed:
        return HookResult.fail(message)
    return HookResult(message=message)
