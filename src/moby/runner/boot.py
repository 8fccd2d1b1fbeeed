"""
Moby Runner - Boot script launch
"""

import os
import subprocess
import sys
from pathlib import Path
from typing import NoReturn, Optional

from moby.core.errors import RunError
from moby.core.logger import MobyLogger, log as default_log


class BootLauncher:
    """
    Replaces the current process with the boot script.

    The script gets the full current environment and no arguments. On
    success control never comes back.
    """

    def __init__(self, script: Path, log: Optional[MobyLogger] = None):
        self.script = script
        self.log = log or default_log

    def launch(self) -> NoReturn:
        env = dict(os.environ)
        script = str(self.script)
        self.log.debug(f"exec {script}")

        if os.name == "posix":
            try:
                os.execve(script, [script], env)
            except OSError as e:
                raise RunError(f"Could not run {script}: {e}")

        # No exec on this platform: run it and mirror its exit status.
        try:
            completed = subprocess.run([script], env=env)
        except OSError as e:
            raise RunError(f"Could not run {script}: {e}")
        sys.exit(completed.returncode)
