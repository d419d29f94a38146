from __future__ import annotations

import logging
from typing import Any, Dict

from ..config import ChrootConfig
from ..lib.detect import detect_kernel_info, write_handoff
from ..lib.hooks import install_uboot_hook

logger = logging.getLogger(__name__)


class InstallHookStep:
    """Install the u-boot hook, then detect and hand off kernel/platform.

    Runs after the .deb step so detection sees the replacement kernel.
    """

    step_id = "40_install_hook"

    def run(self, state: Dict[str, Any], cfg: ChrootConfig) -> Dict[str, Any]:
        install_uboot_hook(cfg.path(cfg.paths.hook_path), dry_run=cfg.dry_run)

        info = detect_kernel_info(
            cfg.path(cfg.paths.boot_dir),
            cfg.path(cfg.paths.dtb_dir),
            requested_platform=cfg.platform,
            known_platforms=cfg.platforms,
        )
        write_handoff(cfg.path(cfg.paths.handoff_path), info, dry_run=cfg.dry_run)

        state["detection"] = info.as_dict()
        return state
