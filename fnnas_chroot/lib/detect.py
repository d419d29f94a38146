"""Kernel version / platform discovery and the host handoff record.

The host-side build script sources the handoff file after the chroot run, so
the on-disk format stays shell-assignable::

    kernel_version='6.1.63-rk35xx'
    platform_name='rockchip'

Version detection deliberately takes the *first* ``config-*`` in plain lexical
order, while package/DTB selection (``latest_by_version``) takes the *last*
entry of a version sort.  Both orderings are kept as they behave today.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

CONFIG_PREFIX = "config-"
HANDOFF_KEYS = ("kernel_version", "platform_name")

_HANDOFF_LINE = re.compile(r"^(?P<key>[a-z_]+)='(?P<value>[^'\n]*)'$")
_DIGITS = re.compile(r"(\d+)")


@dataclass(frozen=True)
class KernelInfo:
    kernel_version: str
    platform_name: str

    def __post_init__(self) -> None:
        for key in HANDOFF_KEYS:
            value = getattr(self, key)
            if not value:
                raise ValueError(f"{key} must not be empty")
            if "'" in value or "\n" in value:
                raise ValueError(f"{key} is not shell-safe: {value!r}")

    def as_dict(self) -> Dict[str, str]:
        return {key: getattr(self, key) for key in HANDOFF_KEYS}

    def to_shell(self) -> str:
        return "".join(f"{key}='{getattr(self, key)}'\n" for key in HANDOFF_KEYS)

    @classmethod
    def from_shell(cls, text: str) -> "KernelInfo":
        values: Dict[str, str] = {}
        for lineno, line in enumerate(text.splitlines(), start=1):
            if not line.strip():
                continue
            m = _HANDOFF_LINE.match(line.strip())
            if not m:
                raise ValueError(f"Malformed handoff line {lineno}: {line!r}")
            key = m.group("key")
            if key not in HANDOFF_KEYS:
                raise ValueError(f"Unknown handoff key {key!r} on line {lineno}")
            if key in values:
                raise ValueError(f"Duplicate handoff key {key!r} on line {lineno}")
            values[key] = m.group("value")

        missing = [k for k in HANDOFF_KEYS if k not in values]
        if missing:
            raise ValueError(f"Handoff is missing: {', '.join(missing)}")
        return cls(**values)


def version_sort_key(name: str) -> List[Tuple[int, int, str]]:
    """Sort key that orders numeric runs numerically, like ``sort -V``."""

    key: List[Tuple[int, int, str]] = []
    for i, part in enumerate(_DIGITS.split(name)):
        if i % 2:
            key.append((1, int(part), ""))
        else:
            key.append((0, 0, part))
    return key


def sort_by_version(paths: Iterable[Path]) -> List[Path]:
    return sorted(paths, key=lambda p: version_sort_key(p.name))


def latest_by_version(paths: Iterable[Path]) -> Optional[Path]:
    ordered = sort_by_version(paths)
    return ordered[-1] if ordered else None


def detect_kernel_version(boot_dir: Path) -> str:
    configs = sorted(p.name for p in boot_dir.glob(f"{CONFIG_PREFIX}*")) if boot_dir.is_dir() else []
    version = configs[0][len(CONFIG_PREFIX):] if configs else ""
    if not version:
        raise RuntimeError(f"Cannot detect the kernel version (no {boot_dir}/{CONFIG_PREFIX}* found).")
    logger.info("Detected kernel version: %s", version)
    return version


def detect_platform_name(dtb_dir: Path, requested: Optional[str], known: Sequence[str]) -> str:
    if requested and requested in known:
        logger.info("Detected platform name: %s (from requested platform)", requested)
        return requested

    subdirs: List[str] = []
    if dtb_dir.is_dir():
        # like `ls -d dtb/*/`: no dot-directories
        subdirs = sorted(p.name for p in dtb_dir.iterdir() if p.is_dir() and not p.name.startswith("."))
    if not subdirs:
        raise RuntimeError(f"Cannot detect platform name from dtb folder {dtb_dir}.")
    logger.info("Detected platform name: %s", subdirs[0])
    return subdirs[0]


def detect_kernel_info(
    boot_dir: Path,
    dtb_dir: Path,
    *,
    requested_platform: Optional[str],
    known_platforms: Sequence[str],
) -> KernelInfo:
    return KernelInfo(
        kernel_version=detect_kernel_version(boot_dir),
        platform_name=detect_platform_name(dtb_dir, requested_platform, known_platforms),
    )


def write_handoff(path: Path, info: KernelInfo, *, dry_run: bool = False) -> None:
    if dry_run:
        logger.info("Would write kernel handoff %s", str(path))
        return
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(info.to_shell(), encoding="utf-8")
    logger.info("Wrote kernel handoff: %s", str(path))


def read_handoff(path: Path) -> KernelInfo:
    if not path.exists():
        raise FileNotFoundError(str(path))
    return KernelInfo.from_shell(path.read_text(encoding="utf-8"))
