from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

DEFAULT_PACKAGES: Tuple[str, ...] = (
    "xz-utils",
    "zstd",
    "gzip",
    "zip",
    "tar",
    "git",
    "u-boot-tools",
    "initramfs-tools",
    "grub2-common",
)

# Platforms whose kernel packages ship with the image build.
KNOWN_PLATFORMS: Tuple[str, ...] = ("amlogic", "allwinner", "rockchip")

DEFAULT_ENV: Dict[str, str] = {
    "LC_ALL": "C",
    "DEBIAN_FRONTEND": "noninteractive",
}


@dataclass(frozen=True)
class Paths:
    """Absolute paths as seen from inside the chroot."""

    boot_dir: str = "/boot"
    dtb_dir: str = "/boot/dtb"
    debs_dir: str = "/root"
    kernel_lib_glob: str = "/usr/lib/linux-image-*"
    hook_path: str = "/etc/initramfs/post-update.d/99-uboot"
    handoff_path: str = "/var/tmp/kernel_version_output"
    initramfs_conf: str = "/etc/initramfs-tools/update-initramfs.conf"
    tmp_dir: str = "/var/tmp"
    apt_log_dir: str = "/var/log/apt"
    dpkg_dir: str = "/var/lib/dpkg"
    dpkg_log: str = "/var/log/dpkg.log"
    apt_lists_partial: str = "/var/lib/apt/lists/partial"
    man_cache_dir: str = "/var/cache/man"


@dataclass(frozen=True)
class ChrootConfig:
    root: str = "/"
    platform: Optional[str] = None
    packages: Tuple[str, ...] = DEFAULT_PACKAGES
    platforms: Tuple[str, ...] = KNOWN_PLATFORMS
    paths: Paths = field(default_factory=Paths)
    env: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_ENV))
    dry_run: bool = False

    @property
    def in_chroot(self) -> bool:
        """True when commands run directly (we already are the chroot)."""
        return str(Path(self.root).resolve()) == "/"

    @property
    def wants_debs(self) -> bool:
        return self.platform in self.platforms

    def path(self, chroot_path: str) -> Path:
        """Resolve an absolute in-chroot path against ``root``."""
        return Path(self.root) / chroot_path.lstrip("/")

    def with_overrides(self, **kwargs: Any) -> "ChrootConfig":
        return replace(self, **{k: v for k, v in kwargs.items() if v is not None})


def _str_list(raw: Mapping[str, Any], key: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    value = raw.get(key)
    if value is None:
        return default
    # A lone scalar means a one-item list; never iterate a string.
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) and v for v in value):
        raise ValueError(f"{key} must be a list of strings, got {value!r}")
    return tuple(value) or default


def _mapping(raw: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    value = raw.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError(f"{key} must be a mapping, got {type(value).__name__}")
    return value


def config_from_mapping(raw: Mapping[str, Any], base: Optional[ChrootConfig] = None) -> ChrootConfig:
    cfg = base or ChrootConfig()
    raw_paths = _mapping(raw, "paths")

    unknown_paths = set(raw_paths.keys()) - set(Paths.__dataclass_fields__)
    if unknown_paths:
        raise ValueError(f"Unknown paths in config: {', '.join(sorted(map(str, unknown_paths)))}")

    paths = replace(cfg.paths, **{str(k): str(v) for k, v in raw_paths.items()})
    if raw.get("debs_dir"):
        paths = replace(paths, debs_dir=str(raw["debs_dir"]))

    env = dict(cfg.env)
    env.update({str(k): str(v) for k, v in _mapping(raw, "env").items()})

    return replace(
        cfg,
        root=str(raw.get("root") or cfg.root),
        packages=_str_list(raw, "packages", cfg.packages),
        platforms=_str_list(raw, "platforms", cfg.platforms),
        paths=paths,
        env=env,
        dry_run=bool(raw.get("dry_run", cfg.dry_run)),
    )


def load_config(path: str) -> ChrootConfig:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(path)

    if p.suffix.lower() not in {".yaml", ".yml"}:
        raise ValueError("chroot config must be YAML")

    try:
        import yaml  # type: ignore
    except Exception as e:
        raise RuntimeError("PyYAML is required to read the chroot config") from e

    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in {path}: {e}") from e
    if not isinstance(raw, dict):
        raise ValueError(f"{path} must contain a mapping/object")

    return config_from_mapping(raw)
