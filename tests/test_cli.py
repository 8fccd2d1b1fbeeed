import hashlib
import logging
import os

import pytest
from typer.testing import CliRunner

from moby.build.pipeline import ImagePipeline
from moby.cli import app
from moby.runner import boot

from conftest import COMPANION, INIT, KERNEL_BINARY, service_archive

runner = CliRunner()


class Exec(Exception):
    pass


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_no_arguments_builds(workdir, fake_backend, manifest_file):
    result = runner.invoke(app, [])

    assert result.exit_code == 0, result.output
    assert (workdir / "bzImage").stat().st_size > 0
    initrd = (workdir / "initrd.img").read_bytes()
    assert initrd == COMPANION + INIT + service_archive("svc")
    assert hashlib.sha256(KERNEL_BINARY).hexdigest()[:16] in result.output


def test_build_failure_exits_nonzero(workdir, fake_backend):
    result = runner.invoke(app, [])

    assert result.exit_code == 1
    assert "config failed" in result.output
    assert not (workdir / "initrd.img").exists()


def test_run_execs_boot_script_without_building(workdir, monkeypatch):
    seen = {}

    def fake_execve(path, args, env):
        seen.update(path=path, args=args, env=env)
        raise Exec()

    async def no_build(self, manifest_path=None):
        raise AssertionError("build must not run")

    monkeypatch.setattr(boot.os, "execve", fake_execve)
    monkeypatch.setattr(ImagePipeline, "run", no_build)
    monkeypatch.setenv("MOBY_TEST_VAR", "1")

    result = runner.invoke(app, ["run"])

    assert isinstance(result.exception, Exec)
    assert seen["path"] == str(workdir.resolve() / "hyperkit.sh")
    assert seen["args"] == [seen["path"]]
    assert seen["env"]["MOBY_TEST_VAR"] == "1"
    assert seen["env"] == dict(os.environ)


def test_run_reports_exec_failure(workdir):
    result = runner.invoke(app, ["run"])

    assert result.exit_code == 1
    assert "boot failed" in result.output


def test_env_lists_components(workdir, fake_backend, manifest_file):
    result = runner.invoke(app, ["env"])

    assert result.exit_code == 0, result.output
    assert "system/svc" in result.output


def test_version():
    result = runner.invoke(app, ["version"])
    assert "Moby v" in result.output


def test_debug_level_survives_command_setup(workdir, fake_backend, manifest_file):
    result = runner.invoke(app, ["-v", "--debug", "env"])

    assert result.exit_code == 0, result.output
    assert logging.getLogger().level == logging.DEBUG
