from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from ..config import ChrootConfig
from .chroot import chroot_cmd

logger = logging.getLogger(__name__)

# Chroot clocks and mirror snapshots are often out of sync.
APT_UPDATE_OPTIONS = [
    "-o",
    "Acquire::Check-Valid-Until=false",
    "-o",
    "Acquire::Check-Date=false",
]


def apt_update(cfg: ChrootConfig) -> bool:
    """Refresh the package index; returns False instead of raising on failure."""

    r = chroot_cmd(cfg, ["apt-get", "update", *APT_UPDATE_OPTIONS], check=False)
    return r.ok


def apt_install(cfg: ChrootConfig, packages: Sequence[str]) -> None:
    if not packages:
        return
    chroot_cmd(cfg, ["apt-get", "install", "-y", *packages])


def apt_cleanup(cfg: ChrootConfig) -> None:
    chroot_cmd(cfg, ["apt-get", "--purge", "autoremove", "-y"])
    chroot_cmd(cfg, ["apt-get", "clean", "-y"])


def dpkg_install(cfg: ChrootConfig, debs: Sequence[Path]) -> None:
    """Force-install local .deb files given as host-side paths under ``cfg.root``."""

    if not debs:
        return
    root = Path(cfg.root)
    # dpkg sees chroot paths, not host paths
    in_chroot = ["/" + str(p.relative_to(root)) for p in debs]
    chroot_cmd(cfg, ["dpkg", "-i", "--force-all", *in_chroot])
