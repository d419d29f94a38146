from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import List

from ..config import ChrootConfig
from .chroot import chroot_cmd

logger = logging.getLogger(__name__)

_UPDATE_LINE = re.compile(r"^update_initramfs=.*$", re.MULTILINE)


def enable_update_initramfs(conf: Path, *, dry_run: bool = False) -> bool:
    """Force ``update_initramfs=yes``; returns False when the file is absent."""

    if not conf.is_file():
        return False

    text = conf.read_text(encoding="utf-8")
    new_text = _UPDATE_LINE.sub("update_initramfs=yes", text)
    if new_text != text and not dry_run:
        conf.write_text(new_text, encoding="utf-8")
    logger.info("Enabled update_initramfs in %s", str(conf))
    return True


def create_initramfs(cfg: ChrootConfig, kernel_version: str) -> bool:
    """Run update-initramfs; the exit status alone is not treated as fatal.

    Hooks other than 99-uboot may fail while uInitrd is still produced, so the
    caller checks for the output file instead.
    """

    r = chroot_cmd(
        cfg,
        ["update-initramfs", "-c", "-k", kernel_version],
        check=False,
        cwd=cfg.paths.boot_dir,
    )
    if not r.ok:
        logger.warning("update-initramfs exited with %d for %s", r.returncode, kernel_version)
    return r.ok


def uinitrd_path(cfg: ChrootConfig, kernel_version: str) -> Path:
    return cfg.path(cfg.paths.boot_dir) / f"uInitrd-{kernel_version}"


def boot_files_for(cfg: ChrootConfig, kernel_version: str) -> List[Path]:
    boot = cfg.path(cfg.paths.boot_dir)
    if not boot.is_dir():
        return []
    return sorted(p for p in boot.iterdir() if p.name.endswith(kernel_version))
