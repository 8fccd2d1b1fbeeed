"""
Moby - Builds bootable VM images (bzImage + initrd.img) from containers.
"""

__version__ = "0.1.0"
