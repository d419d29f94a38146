from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import ChrootConfig
from ..lib.assets import clear_dir, ensure_dir
from ..lib.pkg import apt_cleanup, apt_install, apt_update
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class InstallDependenciesStep:
    step_id = "20_install_dependencies"

    def run(self, state: Dict[str, Any], cfg: ChrootConfig) -> Dict[str, Any]:
        ensure_dir(cfg.path(cfg.paths.apt_lists_partial), dry_run=cfg.dry_run)

        # Packages may already be in the local cache, so a failed update is not fatal.
        updated = apt_update(cfg)
        if not updated:
            logger.warning("apt-get update failed, attempting installation regardless...")
        record_decision(state, "apt_index_updated", updated)

        packages = list(cfg.packages)
        logger.info("Installing: %s", " ".join(packages))
        try:
            apt_install(cfg, packages)
        except RuntimeError as e:
            raise RuntimeError(f"Failed to install required dependencies: {e}") from e

        apt_cleanup(cfg)
        clear_dir(cfg.path(cfg.paths.man_cache_dir), dry_run=cfg.dry_run)

        logger.info("Dependencies installed (%d packages)", len(packages))
        return state
