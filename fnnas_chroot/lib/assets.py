from __future__ import annotations

import logging
import shutil
from pathlib import Path
from typing import Iterable, List

logger = logging.getLogger(__name__)

# Stale kernel artefacts that FAT boot partitions refuse to overwrite in place.
BOOT_ARTIFACT_PATTERNS = ("vmlinuz*", "System.map*", "config*", "initrd*", "uInitrd*")


def is_hidden(path: Path) -> bool:
    return path.name.startswith(".")


def copy_tree(src: Path, dst: Path, *, dry_run: bool = False) -> None:
    """Copy the contents of ``src`` into ``dst``, overwriting existing files."""

    if not src.is_dir():
        raise FileNotFoundError(str(src))

    if dry_run:
        logger.info("Would copy tree %s -> %s", str(src), str(dst))
        return

    dst.mkdir(parents=True, exist_ok=True)
    for item in src.rglob("*"):
        rel = item.relative_to(src)
        # `cp -r src/* dst/` skips top-level dot-entries only
        if rel.parts[0].startswith("."):
            continue
        out = dst / rel
        if item.is_dir():
            out.mkdir(parents=True, exist_ok=True)
        else:
            out.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(item, out)


def remove_matching(directory: Path, patterns: Iterable[str], *, dry_run: bool = False) -> List[Path]:
    removed: List[Path] = []
    if not directory.is_dir():
        return removed

    for pattern in patterns:
        for p in sorted(directory.glob(pattern)):
            if p.is_dir() and not p.is_symlink():
                continue
            if not dry_run:
                p.unlink()
            removed.append(p)

    logger.info("Removed %d stale boot file(s) from %s", len(removed), str(directory))
    return removed


def ensure_dir(path: Path, *, mode: int | None = None, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would ensure directory %s", str(path))
        return
    path.mkdir(parents=True, exist_ok=True)
    if mode is not None:
        path.chmod(mode)


def clear_dir(path: Path, *, dry_run: bool = False) -> None:
    """Remove everything inside ``path`` but keep the directory itself."""

    if not path.is_dir() or dry_run:
        return
    for p in path.iterdir():
        if p.is_dir() and not p.is_symlink():
            shutil.rmtree(p)
        else:
            p.unlink()
