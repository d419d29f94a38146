from __future__ import annotations

import argparse
import logging
import platform
import sys
from typing import Any, Dict, Optional

from .config import ChrootConfig, load_config
from .lib.chroot import mount_chroot_binds, umount_chroot_binds
from .logging_utils import DEFAULT_LOG_PATH, ERROR_MARKER, configure_logging
from .pipeline import run_pipeline
from .state_store import ensure_defaults, load_state, save_state
from .steps import (
    GenerateUInitrdStep,
    InstallDebsStep,
    InstallDependenciesStep,
    InstallHookStep,
    PrepareEnvironmentStep,
)

logger = logging.getLogger(__name__)


def build_steps():
    return [
        PrepareEnvironmentStep(),
        InstallDependenciesStep(),
        InstallDebsStep(),
        InstallHookStep(),
        GenerateUInitrdStep(),
    ]


def run(
    cfg: ChrootConfig,
    *,
    state_path: Optional[str] = None,
    log_path: str = DEFAULT_LOG_PATH,
    start_at: Optional[str] = None,
    stop_after: Optional[str] = None,
    force: bool = False,
) -> Dict[str, Any]:
    """Run the chroot pipeline.

    State is only persisted (and therefore resumable) when ``state_path`` is set.
    """

    actual_log_path = configure_logging(log_path=log_path, root=cfg.root)
    logger.info("Current system architecture: %s", platform.machine())

    state = ensure_defaults(load_state(state_path) if state_path else {})
    state["config"].update(
        {
            "root": cfg.root,
            "platform": cfg.platform,
            "dry_run": cfg.dry_run,
            "log_path_actual": actual_log_path,
        }
    )

    mounted = False
    try:
        if not cfg.in_chroot:
            mount_chroot_binds(cfg)
            mounted = True
        result = run_pipeline(
            state=state,
            cfg=cfg,
            steps=build_steps(),
            start_at=start_at,
            stop_after=stop_after,
            force=force,
        )
        state = result.state
        state["execution"]["summary"] = {
            "ran_steps": result.ran_steps,
            "skipped_steps": result.skipped_steps,
        }
        logger.info("Chroot task finished.")
        return state
    except Exception as e:
        state.setdefault("execution", {}).setdefault("errors", []).append(
            {
                "step": (state.get("execution") or {}).get("current_step"),
                "error": str(e),
            }
        )
        raise
    finally:
        if mounted:
            umount_chroot_binds(cfg)
        if state_path:
            save_state(state_path, state)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fnnas-chroot",
        description="Prepare an fnnas image chroot: dependencies, kernel .debs, u-boot hook and uInitrd.",
    )
    p.add_argument(
        "debs_platform",
        nargs="?",
        default=None,
        help="Install staged kernel .debs for this platform (amlogic|allwinner|rockchip)",
    )
    p.add_argument("--root", default=None, help="Chroot directory (default: / when already inside it)")
    p.add_argument("--config", default=None, help="Optional YAML config overriding paths/packages")
    p.add_argument("--state", default=None, help="Persist run state here (json|yaml) to allow resuming")
    p.add_argument("--log", default=DEFAULT_LOG_PATH, help="Log file, as a path inside the chroot")
    p.add_argument("--start-at", default=None, help="Start at step_id (e.g. 40_install_hook)")
    p.add_argument("--stop-after", default=None, help="Stop after step_id")
    p.add_argument("--force", action="store_true", help="Re-run steps even if marked completed")
    p.add_argument("--dry-run", action="store_true", help="Log commands and file changes without applying them")
    return p


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        cfg = load_config(args.config) if args.config else ChrootConfig()
        cfg = cfg.with_overrides(
            root=args.root,
            platform=args.debs_platform,
            dry_run=True if args.dry_run else None,
        )
        run(
            cfg,
            state_path=args.state,
            log_path=args.log,
            start_at=args.start_at,
            stop_after=args.stop_after,
            force=args.force,
        )
    except (RuntimeError, OSError, ValueError) as e:
        logger.error("%s", e)
        print(f" {ERROR_MARKER} {e}", file=sys.stderr)
        return 1
    return 0
