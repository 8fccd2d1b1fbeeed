"""
Moby Build - Component archives via the container backend
"""

import asyncio
import shutil
import time
from dataclasses import dataclass, field
from typing import Optional

from moby.build.manifest import Manifest, ServiceSpec
from moby.core.config import MobyConfig
from moby.core.errors import BuildError
from moby.core.logger import MobyLogger, log as default_log


@dataclass
class Invocation:
    """One backend call for one manifest component."""
    component: str
    args: list[str]


@dataclass
class ComponentResult:
    """Outcome of one backend call."""
    success: bool
    component: str
    stdout: bytes = b""
    stderr: str = ""
    exit_code: Optional[int] = None
    duration_ms: int = 0
    error: Optional[str] = None

    def raise_for_status(self) -> None:
        if self.success:
            return
        raise BuildError(
            self.error or "Failed to build component archive",
            component=self.component,
            exit_code=self.exit_code,
            stderr=self.stderr,
        )


@dataclass
class ComponentStreams:
    """Captured archives, in manifest order."""
    kernel: bytes
    init: bytes
    services: list[bytes] = field(default_factory=list)


class ComponentBuilder:
    """
    Turns each manifest component into an archive byte stream.

    Every component is a separate backend process whose stdout is the
    archive. Invocations happen in manifest order: kernel, init, then each
    system service. With ``build.parallel`` they run concurrently, but the
    results still come back in that order.
    """

    KERNEL = "kernel"
    INIT = "init"

    def __init__(self, config: MobyConfig, log: Optional[MobyLogger] = None):
        self.config = config
        self.log = log or default_log

    # ========================================================================
    # Command lines
    # ========================================================================

    def _socket_mount(self) -> list[str]:
        socket = self.config.backend.socket
        return ["-v", f"{socket}:{socket}"]

    def kernel_args(self, manifest: Manifest) -> list[str]:
        """Run the kernel image and tar up the kernel binary and its modules archive."""
        kernel = self.config.kernel
        return ["run", "--rm", manifest.kernel, "tar", "cf", "-", kernel.binary, kernel.archive]

    def init_args(self, manifest: Manifest) -> list[str]:
        """Flatten the init image into a filesystem tarball."""
        return ["run", "--rm", *self._socket_mount(), self.config.backend.docker2tar, manifest.init]

    def service_args(self, service: ServiceSpec) -> list[str]:
        """Export a service image as an OCI bundle rooted at /containers/<name>."""
        args = [
            "run", "--rm", *self._socket_mount(),
            self.config.backend.riddler, service.image, service.root,
        ]
        for cap in service.cap_drop:
            args.extend(["--cap-drop", cap])
        for cap in service.cap_add:
            args.extend(["--cap-add", cap])
        if service.oom_score_adj:
            args.extend(["--oom-score-adj", str(service.oom_score_adj)])
        args.append(service.image)
        args.extend(service.command)
        return args

    def plan(self, manifest: Manifest) -> list[Invocation]:
        """All invocations for a manifest, in build order."""
        invocations = [
            Invocation(self.KERNEL, self.kernel_args(manifest)),
            Invocation(self.INIT, self.init_args(manifest)),
        ]
        for service in manifest.system:
            invocations.append(Invocation(f"system/{service.name}", self.service_args(service)))
        return invocations

    # ========================================================================
    # Execution
    # ========================================================================

    def resolve_backend(self) -> str:
        """Locate the backend executable."""
        command = self.config.backend.command
        backend = shutil.which(command)
        if backend is None:
            raise BuildError(f"{command} does not seem to be installed", component="backend")
        return backend

    async def run(self, backend: str, invocation: Invocation) -> ComponentResult:
        """Run one invocation and capture its whole stdout."""
        component = invocation.component
        self.log.debug(f"{component}: {backend} {' '.join(invocation.args)}")
        start_time = time.time()

        try:
            process = await asyncio.create_subprocess_exec(
                backend,
                *invocation.args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return ComponentResult(
                success=False,
                component=component,
                error=f"Could not start {backend}: {e}",
            )

        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=self.config.timeout,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return ComponentResult(
                success=False,
                component=component,
                duration_ms=int((time.time() - start_time) * 1000),
                error=f"Timed out after {self.config.timeout}s",
            )

        duration_ms = int((time.time() - start_time) * 1000)
        success = process.returncode == 0

        if success:
            self.log.component(component, f"{len(stdout):,} bytes ({duration_ms}ms)")
        else:
            self.log.component(component, f"failed with exit code {process.returncode}", success=False)

        return ComponentResult(
            success=success,
            component=component,
            stdout=stdout if success else b"",
            stderr=stderr.decode("utf-8", errors="replace"),
            exit_code=process.returncode,
            duration_ms=duration_ms,
            error=None if success else "Failed to build component archive",
        )

    async def run_all(self, invocations: list[Invocation]) -> list[ComponentResult]:
        """
        Run invocations and return their results in the same order.

        Sequential mode stops at the first failure. Parallel mode waits for
        every invocation; the caller still fails on the first failed slot.
        """
        backend = self.resolve_backend()

        if self.config.build.parallel:
            return list(await asyncio.gather(*(self.run(backend, inv) for inv in invocations)))

        results = []
        for invocation in invocations:
            result = await self.run(backend, invocation)
            results.append(result)
            if not result.success:
                break
        return results

    async def build(self, manifest: Manifest) -> ComponentStreams:
        """Build every component of the manifest; raises BuildError on the first failure."""
        invocations = self.plan(manifest)
        mode = "parallel" if self.config.build.parallel else "sequential"
        self.log.info(f"📦 Building {len(invocations)} components ({mode})...")

        results = await self.run_all(invocations)
        for result in results:
            result.raise_for_status()

        kernel, init, *services = [r.stdout for r in results]
        return ComponentStreams(kernel=kernel, init=init, services=services)
