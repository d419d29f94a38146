from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import ChrootConfig
from ..lib.assets import ensure_dir

logger = logging.getLogger(__name__)

STICKY_TMP_MODE = 0o1777


class PrepareEnvironmentStep:
    """Create the directories apt/dpkg expect before anything else runs."""

    step_id = "10_prepare_env"

    def run(self, state: Dict[str, Any], cfg: ChrootConfig) -> Dict[str, Any]:
        paths = cfg.paths

        ensure_dir(cfg.path(paths.tmp_dir), mode=STICKY_TMP_MODE, dry_run=cfg.dry_run)
        ensure_dir(cfg.path(paths.apt_log_dir), dry_run=cfg.dry_run)
        ensure_dir(cfg.path(paths.dpkg_dir), dry_run=cfg.dry_run)

        dpkg_log = cfg.path(paths.dpkg_log)
        if not cfg.dry_run:
            dpkg_log.parent.mkdir(parents=True, exist_ok=True)
            dpkg_log.touch(exist_ok=True)

        logger.info("Prepared chroot environment under %s", cfg.root)
        return state
