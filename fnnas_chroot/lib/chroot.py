from __future__ import annotations

import logging
from typing import Sequence

from ..config import ChrootConfig
from .command import CmdResult, run_cmd

logger = logging.getLogger(__name__)

BIND_MOUNTS = ("/dev", "/proc", "/sys")


def chroot_cmd(
    cfg: ChrootConfig,
    argv: Sequence[str],
    *,
    check: bool = True,
    cwd: str | None = None,
) -> CmdResult:
    """Run a command inside the configured root.

    When we are already inside the chroot the command runs directly; otherwise
    it is wrapped with ``chroot <root>`` and ``cwd`` is applied via ``env -C``.
    """

    if cfg.in_chroot:
        return run_cmd(argv, check=check, env=cfg.env, cwd=cwd, dry_run=cfg.dry_run)

    prefix = ["chroot", cfg.root]
    if cwd:
        prefix += ["env", "-C", cwd]
    return run_cmd([*prefix, *argv], check=check, env=cfg.env, dry_run=cfg.dry_run)


def mount_chroot_binds(cfg: ChrootConfig) -> None:
    """Bind-mount the host pseudo filesystems; on failure undo the ones already made."""

    # apt, dpkg and update-initramfs all need these
    mounted: list[str] = []
    try:
        for src in BIND_MOUNTS:
            run_cmd(["mount", "--bind", src, str(cfg.path(src))], dry_run=cfg.dry_run)
            mounted.append(src)
    except RuntimeError:
        umount_chroot_binds(cfg, mounted)
        raise


def umount_chroot_binds(cfg: ChrootConfig, sources: Sequence[str] = BIND_MOUNTS) -> None:
    for src in reversed(list(sources)):
        run_cmd(["umount", "-lf", str(cfg.path(src))], check=False, dry_run=cfg.dry_run)
