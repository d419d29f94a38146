import os
import stat
import tempfile
import unittest
from pathlib import Path

from fnnas_chroot.lib.hooks import UBOOT_HOOK, install_uboot_hook


class InstallUbootHookTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.hook = Path(self._tmp.name) / "etc" / "initramfs" / "post-update.d" / "99-uboot"

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_install_is_idempotent(self) -> None:
        install_uboot_hook(self.hook)
        first = self.hook.read_bytes()
        install_uboot_hook(self.hook)

        self.assertEqual(first, self.hook.read_bytes())
        self.assertTrue(os.access(self.hook, os.X_OK))

    def test_overwrites_modified_hook(self) -> None:
        self.hook.parent.mkdir(parents=True)
        self.hook.write_text("#!/bin/sh\nexit 1\n", encoding="utf-8")
        self.hook.chmod(0o644)

        install_uboot_hook(self.hook)

        self.assertEqual(UBOOT_HOOK, self.hook.read_text(encoding="utf-8"))
        self.assertEqual(0o755, stat.S_IMODE(self.hook.stat().st_mode))

    def test_hook_wraps_initrd_for_uboot(self) -> None:
        self.assertTrue(UBOOT_HOOK.startswith("#!/bin/bash\n"))
        self.assertIn("mkimage -A arm64 -O linux -T ramdisk -C none -n uInitrd", UBOOT_HOOK)
        self.assertIn("|| cp -fv", UBOOT_HOOK)

    def test_dry_run_writes_nothing(self) -> None:
        install_uboot_hook(self.hook, dry_run=True)

        self.assertFalse(self.hook.exists())


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
