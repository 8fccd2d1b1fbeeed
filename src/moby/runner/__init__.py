"""
Moby Runner - Hands the built image over to the boot script
"""

from moby.runner.boot import BootLauncher

__all__ = [
    "BootLauncher",
]
