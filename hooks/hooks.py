"""
Hook system core for the Cordova app-customisation hooks.

────────────────────────────────────────────────────────────────────────────
Invocation
────────────────────────────────────────────────────────────────────────────
Cordova runs a non-JavaScript hook script from the project root and exports
the build state as environment variables::

    CORDOVA_HOOK       after_prepare
    CORDOVA_PLATFORMS  android,ios
    CORDOVA_VERSION    12.0.0

:func:`build_hook_context` turns that into a :class:`HookContext`; the CLI
(``apphooks run <stage>``) then hands it to :func:`run_hooks` together with
the hooks registered for the stage in :mod:`hooks.registry`.

────────────────────────────────────────────────────────────────────────────
Hook contract
────────────────────────────────────────────────────────────────────────────
A **Hook** is any callable ``(HookContext) -> HookResult``.

Hooks are cosmetic, best-effort patches: a failing hook is logged and the
run carries on with the next one.  Nothing is rolled back and the host
build is never aborted by a hook.  A hook whose preferences are not set
returns ``HookResult(skipped=True)`` without touching any file.
"""
from __future__ import annotations

import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

import logger as log

# Lifecycle stages, in the order Cordova fires them
STAGES = ("before_prepare", "after_prepare", "before_compile", "after_compile")

# Alternative spellings accepted on the command line
STAGE_ALIASES = {"post_compile": "after_compile"}

KNOWN_PLATFORMS = ("android", "ios")


class HookError(Exception):
    """Base class for expected, loggable hook failures."""


# ══════════════════════════════════════════════════════════════════════════════
# Public data types
# ══════════════════════════════════════════════════════════════════════════════

@dataclass
class HookContext:
    """
    Runtime context passed to every hook invocation.

    project_root    – absolute Path of the Cordova project (holds config.xml)
    platforms       – target platforms for this build ("android", "ios")
    cordova_version – host Cordova CLI version ("" when unknown)
    stage           – lifecycle stage being run
    """
    project_root:    Path
    platforms:       list[str]      = field(default_factory=list)
    cordova_version: str            = ""
    stage:           str            = ""

    def has_platform(self, platform: str) -> bool:
        return platform in self.platforms


@dataclass
class HookResult:
    """
    Return value from a hook callable.

    success  – False → the customisation was not applied (logged, run continues)
    changed  – files written or removed by the hook
    message  – human-readable status (logged automatically)
    skipped  – hook had nothing to do (preference unset, platform absent)
    """
    success:  bool        = True
    changed:  list[Path]  = field(default_factory=list)
    message:  str         = ""
    skipped:  bool        = False

    @classmethod
    def skip(cls, message: str) -> "HookResult":
        return cls(success=True, skipped=True, message=message)

    @classmethod
    def fail(cls, message: str, changed: Optional[list[Path]] = None) -> "HookResult":
        return cls(success=False, message=message, changed=list(changed or []))

    @property
    def status(self) -> str:
        if not self.success:
            return "failed"
        return "skipped" if self.skipped else "ok"


Hook = Callable[[HookContext], HookResult]


@dataclass
class RunSummary:
    """Aggregate outcome of one :func:`run_hooks` call."""
    stage:    str
    ok:       list[str]   = field(default_factory=list)
    failed:   list[str]   = field(default_factory=list)
    skipped:  list[str]   = field(default_factory=list)
    changed:  list[Path]  = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.ok) + len(self.failed) + len(self.skipped)


# ══════════════════════════════════════════════════════════════════════════════
# Hook runner
# ══════════════════════════════════════════════════════════════════════════════

def hook_name(hook: Hook) -> str:
    return getattr(hook, "__name__", repr(hook))


def run_hooks(stage: str, hooks: list[Hook], ctx: HookContext) -> RunSummary:
    """
    Execute *hooks* for *stage* in order.

    Exceptions escaping a hook are logged as failures; they never stop the
    remaining hooks from running.  ``HookError`` subclasses are expected
    (bad config.xml, failed download) and logged without the type name.
    """
    summary = RunSummary(stage=stage)
    total = len(hooks)
    started = time.time()

    for index, hook in enumerate(hooks, 1):
        name = hook_name(hook)
        log.step(index, total, f"{stage} → {name}")
        try:
            result = hook(ctx)
        except HookError as exc:
            log.outcome("failed", str(exc))
            summary.failed.append(name)
            continue
        except Exception as exc:
            log.outcome("failed", f"{type(exc).__name__}: {exc}")
            summary.failed.append(name)
            continue

        if result.message:
            log.outcome(result.status, result.message)

        summary.changed.extend(result.changed)
        if not result.success:
            summary.failed.append(name)
        elif result.skipped:
            summary.skipped.append(name)
        else:
            summary.ok.append(name)

    elapsed = time.time() - started
    line = (
        f"{stage}: {len(summary.ok)} applied, {len(summary.skipped)} skipped, "
        f"{len(summary.failed)} failed, {len(summary.changed)} file(s) changed "
        f"in {log.duration(elapsed)}"
    )
    (log.warn if summary.failed else log.success)(line)
    return summary


# ── Context factory ────────────────────────────────────────────────────────

def normalize_stage(stage: str) -> str:
    """Map aliases onto canonical stage names; raises ValueError if unknown."""
    stage = STAGE_ALIASES.get(stage, stage)
    if stage not in STAGES:
        raise ValueError(f"unknown stage '{stage}' (expected one of {', '.join(STAGES)})")
    return stage


def _discover_platforms(project_root: Path) -> list[str]:
    platforms_dir = project_root / "platforms"
    if not platforms_dir.is_dir():
        return []
    return [p for p in KNOWN_PLATFORMS if (platforms_dir / p).is_dir()]


def build_hook_context(
    project_root: Path,
    *,
    platforms: Optional[list[str]] = None,
    stage: str = "",
    cordova_version: Optional[str] = None,
) -> HookContext:
    """
    Build a ``HookContext``.

    Platforms come from *platforms*, else ``CORDOVA_PLATFORMS``, else the
    platform directories present under ``platforms/``.  The Cordova version
    comes from *cordova_version*, else ``CORDOVA_VERSION``.
    """
    if not platforms:
        env_platforms = os.environ.get("CORDOVA_PLATFORMS", "")
        platforms = [p.strip() for p in env_platforms.split(",") if p.strip()]
    if not platforms:
        platforms = _discover_platforms(project_root)
    if cordova_version is None:
        cordova_version = os.environ.get("CORDOVA_VERSION", "")
    return HookContext(
        project_root    = project_root.resolve(),
        platforms       = list(platforms),
        cordova_version = cordova_version,
        stage           = stage,
    )
