"""
``config.xml`` preference reader.

Cordova's ``config.xml`` declares build settings as::

    <widget id="com.example.app" version="1.2.0" xmlns="http://www.w3.org/ns/widgets">
      <name>Example</name>
      <preference name="SplashScreenBackgroundColor" value="#001833" />
      <platform name="android">
        <preference name="BackgroundColor" value="#000000" />
      </platform>
    </widget>

Platform-scoped preferences override global ones for that platform.  Names
are matched case-insensitively and empty values count as absent, so a
missing preference always falls back to the caller's default.
"""
from __future__ import annotations

import os
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import logger as log
from hooks.hooks import HookContext, HookError

_TRUTHY = {"true", "1", "yes", "on"}


class PreferenceError(HookError):
    """config.xml exists but cannot be parsed."""


def _local(tag: str) -> str:
    """Strip the ``{namespace}`` prefix from an ElementTree tag."""
    return tag.rsplit("}", 1)[-1]


@dataclass
class ConfigXml:
    """
    In-memory view of a project's ``config.xml``.

    path        – file the values came from (may not exist)
    widget      – attributes of the root ``<widget>`` element
    app_name    – text of ``<name>``
    preferences – global preferences, keyed by lower-cased name
    platform_preferences – ``{platform: {lower-name: value}}``
    """
    path:        Path
    widget:      dict[str, str]            = field(default_factory=dict)
    app_name:    str                       = ""
    preferences: dict[str, str]            = field(default_factory=dict)
    platform_preferences: dict[str, dict[str, str]] = field(default_factory=dict)

    # ── factories ──────────────────────────────────────────────────────────

    @classmethod
    def load(cls, path: Path) -> "ConfigXml":
        """
        Parse *path*.  A missing file yields an empty config (every lookup
        returns its default).  Raises ``PreferenceError`` on malformed XML.
        """
        if not path.exists():
            log.warn(f"config.xml not found: {path}")
            return cls(path=path)
        try:
            root = ET.parse(str(path)).getroot()
        except ET.ParseError as exc:
            raise PreferenceError(f"Malformed {path}: {exc}") from exc

        cfg = cls(path=path, widget=dict(root.attrib))
        for child in root:
            tag = _local(child.tag)
            if tag == "name":
                cfg.app_name = (child.text or "").strip()
            elif tag == "preference":
                cls._add_pref(cfg.preferences, child)
            elif tag == "platform":
                platform = child.get("name", "")
                scoped = cfg.platform_preferences.setdefault(platform, {})
                for pref in child:
                    if _local(pref.tag) == "preference":
                        cls._add_pref(scoped, pref)
        return cfg

    @staticmethod
    def _add_pref(target: dict[str, str], element: ET.Element) -> None:
        name = (element.get("name") or "").strip()
        if name:
            target[name.lower()] = (element.get("value") or "").strip()

    # ── lookups ────────────────────────────────────────────────────────────

    def get(self, name: str, default: str = "", platform: Optional[str] = None) -> str:
        """Return the preference *name*, or *default* if unset or blank."""
        key = name.lower()
        if platform:
            value = self.platform_preferences.get(platform, {}).get(key, "")
            if value:
                return value
        return self.preferences.get(key, "") or default

    def first(self, *names: str, platform: Optional[str] = None) -> str:
        """Return the first non-empty value among *names* ("" if none)."""
        for name in names:
            value = self.get(name, platform=platform)
            if value:
                return value
        return ""

    def flag(self, name: str, platform: Optional[str] = None) -> bool:
        return self.get(name, platform=platform).lower() in _TRUTHY

    def resolve(self, env_name: str, pref_name: str, default: str = "") -> str:
        """
        Look *env_name* up in the environment first (MABS injects build
        settings as env vars), then the preference, then *default*.
        """
        env_value = os.environ.get(env_name, "").strip()
        if env_value:
            log.info(f"   {pref_name} from env: {env_value}")
            return env_value
        pref_value = self.get(pref_name)
        if pref_value:
            log.info(f"   {pref_name} from preference: {pref_value}")
            return pref_value
        if default:
            log.warn(f"   {pref_name} not found, using default: {default}")
        else:
            log.warn(f"   {pref_name} not found, using empty string")
        return default

    # ── widget metadata ────────────────────────────────────────────────────

    def name(self) -> str:
        return self.app_name

    def version(self) -> str:
        return self.widget.get("version", "")

    def package_name(self) -> str:
        return self.widget.get("id", "")

    def __repr__(self) -> str:
        return f"ConfigXml({self.path}  prefs={len(self.preferences)})"


def load_preferences(ctx: HookContext) -> ConfigXml:
    """Load the root ``config.xml`` of the hook context's project."""
    return ConfigXml.load(ctx.project_root / "config.xml")
