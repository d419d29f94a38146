from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import ChrootConfig
from ..lib.assets import BOOT_ARTIFACT_PATTERNS, copy_tree, is_hidden, remove_matching
from ..lib.detect import latest_by_version, sort_by_version
from ..lib.pkg import dpkg_install
from ..state_store import record_decision

logger = logging.getLogger(__name__)


class InstallDebsStep:
    """Replace the kernel with staged .deb packages for a known platform."""

    step_id = "30_install_debs"

    def run(self, state: Dict[str, Any], cfg: ChrootConfig) -> Dict[str, Any]:
        platform = cfg.platform
        if not cfg.wants_debs:
            logger.info("No recognised platform requested (%r); skipping .deb installation", platform)
            record_decision(state, "debs_installed", False)
            return state

        debs_dir = cfg.path(cfg.paths.debs_dir)
        debs = sort_by_version(p for p in debs_dir.glob("*.deb") if not is_hidden(p)) if debs_dir.is_dir() else []
        if not debs:
            logger.warning("Install flag set but no .deb files found in %s.", cfg.paths.debs_dir)
            record_decision(state, "debs_installed", False)
            return state

        logger.info("Installing additional DEBs for platform: %s", platform)
        remove_matching(cfg.path(cfg.paths.boot_dir), BOOT_ARTIFACT_PATTERNS, dry_run=cfg.dry_run)

        try:
            dpkg_install(cfg, debs)
        except RuntimeError as e:
            raise RuntimeError(f"Failed to install .deb packages: {e}") from e

        kernel_lib = cfg.path(cfg.paths.kernel_lib_glob)
        latest = latest_by_version(
            p for p in kernel_lib.parent.glob(kernel_lib.name) if p.is_dir() and not is_hidden(p)
        )
        if latest is None and cfg.dry_run:
            # dpkg did not run, so the new kernel is not unpacked yet
            logger.info("Would select latest %s and copy its %s DTBs", cfg.paths.kernel_lib_glob, platform)
            record_decision(state, "debs_installed", False)
            return state
        if latest is None:
            raise RuntimeError("Cannot find installed kernel DTB directory.")

        target = cfg.path(cfg.paths.dtb_dir) / platform
        logger.info("Copying DTB files from %s to %s", str(latest / platform), str(target))
        copy_tree(latest / platform, target, dry_run=cfg.dry_run)

        record_decision(state, "debs_installed", True)
        record_decision(state, "debs", [p.name for p in debs])
        record_decision(state, "dtb_source", "/" + str(latest.relative_to(cfg.root)))
        logger.info("Kernel packages installed.")
        return state
