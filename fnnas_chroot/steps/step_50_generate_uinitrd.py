from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import ChrootConfig
from ..lib.command import run_cmd
from ..lib.initramfs import boot_files_for, create_initramfs, enable_update_initramfs, uinitrd_path

logger = logging.getLogger(__name__)


class GenerateUInitrdStep:
    step_id = "50_generate_uinitrd"

    def run(self, state: Dict[str, Any], cfg: ChrootConfig) -> Dict[str, Any]:
        kernel_version = (state.get("detection") or {}).get("kernel_version")
        if not kernel_version:
            raise RuntimeError("detection.kernel_version missing; run 40_install_hook first")

        enable_update_initramfs(cfg.path(cfg.paths.initramfs_conf), dry_run=cfg.dry_run)

        # The 99-uboot hook turns the fresh initrd into uInitrd-<version>.
        logger.info("Running update-initramfs for %s", kernel_version)
        create_initramfs(cfg, kernel_version)

        expected = uinitrd_path(cfg, kernel_version)
        if cfg.dry_run:
            logger.info("Would verify %s", str(expected))
            return state
        if not expected.is_file():
            raise RuntimeError(f"Failed to generate uInitrd: {expected} not found.")

        run_cmd(["sync"])
        logger.info("uInitrd generated successfully: %s", str(expected))
        for p in boot_files_for(cfg, kernel_version):
            logger.info("  %s (%d bytes)", p.name, p.lstat().st_size)
        return state
