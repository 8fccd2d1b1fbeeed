import asyncio
import io
import tarfile

import pytest

from moby.build import orchestrator
from moby.core.config import DOCKER2TAR_IMAGE, RIDDLER_IMAGE, MobyConfig

KERNEL_BINARY = b"\x00" * 0x202 + b"HdrS" + b"kernel-code"
COMPANION = b"kernel-modules-archive"
INIT = b"init-filesystem-archive"


def make_tar(entries):
    """Build an in-memory tar from (name, content) pairs."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w") as tar:
        for name, content in entries:
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tar.addfile(info, io.BytesIO(content))
    return buf.getvalue()


def service_archive(name):
    return f"archive-of-{name}".encode()


class FakeProcess:
    def __init__(self, stdout=b"", stderr=b"", returncode=0, hang=False):
        self.stdout = stdout
        self.stderr = stderr
        self.returncode = returncode
        self.hang = hang
        self.killed = False

    async def communicate(self):
        if self.hang:
            await asyncio.sleep(3600)
        return self.stdout, self.stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        return self.returncode


class FakeBackend:
    """Stands in for the docker CLI; answers by inspecting the arguments."""

    def __init__(self):
        self.calls = []
        self.processes = []
        self.kernel_tar = make_tar([("bzImage", KERNEL_BINARY), ("kernel.tar", COMPANION)])
        self.overrides = {}

    def component_of(self, args):
        if "tar" in args:
            return "kernel"
        if DOCKER2TAR_IMAGE in args:
            return "init"
        if RIDDLER_IMAGE in args:
            root = args[args.index(RIDDLER_IMAGE) + 2]
            return root.rsplit("/", 1)[-1]
        return "unknown"

    def respond(self, component):
        if component in self.overrides:
            return self.overrides[component]
        if component == "kernel":
            return FakeProcess(stdout=self.kernel_tar)
        if component == "init":
            return FakeProcess(stdout=INIT)
        return FakeProcess(stdout=service_archive(component))

    async def __call__(self, program, *args, **kwargs):
        self.calls.append([program, *args])
        process = self.respond(self.component_of(list(args)))
        self.processes.append(process)
        return process


@pytest.fixture
def fake_backend(monkeypatch):
    backend = FakeBackend()
    monkeypatch.setattr(asyncio, "create_subprocess_exec", backend)
    monkeypatch.setattr(orchestrator.shutil, "which", lambda command: f"/usr/bin/{command}")
    return backend


@pytest.fixture
def config(tmp_path):
    return MobyConfig(workdir=tmp_path)


MANIFEST = """\
kernel: "k:v"
init: "i:v"
system:
  - name: svc
    image: "s:v"
    command: ["/bin/true"]
"""


@pytest.fixture
def manifest_file(tmp_path):
    path = tmp_path / "moby.yaml"
    path.write_text(MANIFEST, encoding="utf-8")
    return path
