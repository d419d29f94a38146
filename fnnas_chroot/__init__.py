"""fnnas chroot preparation (Python-first, step-driven).

Runs inside the image chroot during firmware creation:
- Prepare apt/dpkg directories
- Install build dependencies
- Optionally swap in staged kernel .debs and their DTBs
- Install the u-boot initramfs hook and hand kernel/platform to the host
- Regenerate uInitrd
"""

__all__ = []
