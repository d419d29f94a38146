from __future__ import annotations

from fnnas_chroot.main import main

if __name__ == "__main__":
    raise SystemExit(main())
