from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

HOOK_MODE = 0o755

# Called by update-initramfs as: 99-uboot <kernel_version> <initrd_path>
UBOOT_HOOK = """#!/bin/bash
# Generate uInitrd
# $1 = kernel version
# $2 = initrd path

tempname="/boot/uInitrd-$1"
echo "update-initramfs: fnnas: Converting to u-boot format: ${tempname}..." >&2
mkimage -A arm64 -O linux -T ramdisk -C none -n uInitrd -d "$2" "$tempname" >/dev/null 2>&1
ln -sfv $(basename "$tempname") /boot/uInitrd >/dev/null 2>&1 || cp -fv "$tempname" /boot/uInitrd

echo "update-initramfs: fnnas: done." >&2
exit 0
"""


def install_uboot_hook(path: Path, *, dry_run: bool = False) -> None:
    """(Over)write the u-boot post-update hook and mark it executable."""

    if dry_run:
        logger.info("Would write hook %s", str(path))
        return

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(UBOOT_HOOK, encoding="utf-8")
    path.chmod(HOOK_MODE)
    logger.info("Installed u-boot hook: %s", str(path))
