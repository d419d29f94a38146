import tempfile
import unittest
from pathlib import Path

from fnnas_chroot.config import KNOWN_PLATFORMS
from fnnas_chroot.lib.detect import (
    KernelInfo,
    detect_kernel_info,
    detect_kernel_version,
    detect_platform_name,
    latest_by_version,
    read_handoff,
    sort_by_version,
    write_handoff,
)


class DetectKernelVersionTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.boot = Path(self._tmp.name) / "boot"
        self.boot.mkdir()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_single_config_yields_suffix(self) -> None:
        (self.boot / "config-5.10.0-rc1").write_text("", encoding="utf-8")

        self.assertEqual("5.10.0-rc1", detect_kernel_version(self.boot))

    def test_empty_boot_dir_fails(self) -> None:
        with self.assertRaises(RuntimeError):
            detect_kernel_version(self.boot)

    def test_missing_boot_dir_fails(self) -> None:
        with self.assertRaises(RuntimeError):
            detect_kernel_version(self.boot / "nope")

    def test_bare_prefix_is_not_a_version(self) -> None:
        (self.boot / "config-").write_text("", encoding="utf-8")

        with self.assertRaises(RuntimeError):
            detect_kernel_version(self.boot)

    def test_first_lexical_match_wins(self) -> None:
        # Lexical, not version order: 6.1.10 sorts before 6.1.9.
        for name in ("config-6.1.9", "config-6.1.10"):
            (self.boot / name).write_text("", encoding="utf-8")

        self.assertEqual("6.1.10", detect_kernel_version(self.boot))

    def test_unrelated_files_ignored(self) -> None:
        (self.boot / "vmlinuz-6.6.0").write_text("", encoding="utf-8")
        (self.boot / "config-6.6.0").write_text("", encoding="utf-8")

        self.assertEqual("6.6.0", detect_kernel_version(self.boot))


class DetectPlatformNameTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.dtb = Path(self._tmp.name) / "boot" / "dtb"
        self.dtb.mkdir(parents=True)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_known_platform_overrides_dtb_contents(self) -> None:
        (self.dtb / "amlogic").mkdir()

        self.assertEqual("rockchip", detect_platform_name(self.dtb, "rockchip", KNOWN_PLATFORMS))

    def test_known_platform_without_dtb_dir(self) -> None:
        self.assertEqual("rockchip", detect_platform_name(self.dtb / "missing", "rockchip", KNOWN_PLATFORMS))

    def test_unknown_platform_falls_back_to_first_subdir(self) -> None:
        (self.dtb / "rockchip").mkdir()
        (self.dtb / "allwinner").mkdir()
        (self.dtb / "readme.txt").write_text("", encoding="utf-8")

        self.assertEqual("allwinner", detect_platform_name(self.dtb, "qualcomm", KNOWN_PLATFORMS))

    def test_dot_directories_are_not_platforms(self) -> None:
        (self.dtb / ".git").mkdir()
        (self.dtb / "amlogic").mkdir()

        self.assertEqual("amlogic", detect_platform_name(self.dtb, None, KNOWN_PLATFORMS))

    def test_only_dot_directories_fails(self) -> None:
        (self.dtb / ".cache").mkdir()

        with self.assertRaises(RuntimeError):
            detect_platform_name(self.dtb, None, KNOWN_PLATFORMS)

    def test_no_platform_and_no_subdirs_fails(self) -> None:
        with self.assertRaises(RuntimeError):
            detect_platform_name(self.dtb, None, KNOWN_PLATFORMS)


class VersionSortTests(unittest.TestCase):
    def test_numeric_runs_sort_numerically(self) -> None:
        paths = [Path("/usr/lib/linux-image-6.1.10"), Path("/usr/lib/linux-image-6.1.9"), Path("/usr/lib/linux-image-5.15.120")]

        ordered = [p.name for p in sort_by_version(paths)]

        self.assertEqual(["linux-image-5.15.120", "linux-image-6.1.9", "linux-image-6.1.10"], ordered)

    def test_latest_by_version(self) -> None:
        paths = [Path("linux-image-6.1.9"), Path("linux-image-6.1.10")]

        self.assertEqual(Path("linux-image-6.1.10"), latest_by_version(paths))
        self.assertIsNone(latest_by_version([]))


class HandoffTests(unittest.TestCase):
    def test_to_shell_has_two_assignments(self) -> None:
        info = KernelInfo(kernel_version="5.10.0-rc1", platform_name="amlogic")

        self.assertEqual("kernel_version='5.10.0-rc1'\nplatform_name='amlogic'\n", info.to_shell())

    def test_write_and_read_handoff(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "var" / "tmp" / "kernel_version_output"
            info = KernelInfo(kernel_version="6.1.63-rk35xx", platform_name="rockchip")

            write_handoff(path, info)

            self.assertEqual(info, read_handoff(path))

    def test_dry_run_does_not_write(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "kernel_version_output"

            write_handoff(path, KernelInfo("6.6.0", "amlogic"), dry_run=True)

            self.assertFalse(path.exists())

    def test_decoder_rejects_malformed_input(self) -> None:
        bad_inputs = [
            "kernel_version=6.6.0\nplatform_name='amlogic'\n",
            "kernel_version='6.6.0'\n",
            "kernel_version='6.6.0'\nplatform_name='amlogic'\nextra='x'\n",
            "kernel_version='6.6.0'\nkernel_version='6.6.1'\nplatform_name='amlogic'\n",
            "kernel_version=''\nplatform_name='amlogic'\n",
        ]
        for text in bad_inputs:
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    KernelInfo.from_shell(text)

    def test_record_rejects_unsafe_values(self) -> None:
        with self.assertRaises(ValueError):
            KernelInfo(kernel_version="6.6'; rm -rf /", platform_name="amlogic")


class DetectKernelInfoTests(unittest.TestCase):
    def test_combines_both_detections(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            boot = Path(tmp) / "boot"
            (boot / "dtb" / "allwinner").mkdir(parents=True)
            (boot / "config-6.6.8-ophub").write_text("", encoding="utf-8")

            info = detect_kernel_info(
                boot, boot / "dtb", requested_platform=None, known_platforms=KNOWN_PLATFORMS
            )

        self.assertEqual({"kernel_version": "6.6.8-ophub", "platform_name": "allwinner"}, info.as_dict())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
