# Re-export the public API so that `from hooks import X` and
# `import hooks as hooksmod` work without knowing the submodule layout.
from hooks.hooks import (
    HookContext,
    HookResult,
    HookError,
    Hook,
    RunSummary,
    STAGES,
    STAGE_ALIASES,
    run_hooks,
    build_hook_context,
    normalize_stage,
)
from hooks.registry import (
    STAGE_HOOKS,
    NAMED_HOOKS,
    run_stage,
    run_named,
)

__all__ = [
    "HookContext",
    "HookResult",
    "HookError",
    "Hook",
    "RunSummary",
    "STAGES",
    "STAGE_ALIASES",
    "run_hooks",
    "build_hook_context",
    "normalize_stage",
    "STAGE_HOOKS",
    "NAMED_HOOKS",
    "run_stage",
    "run_named",
]
