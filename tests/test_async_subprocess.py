import os
import sys

import pytest

from locator_loader.async_subprocess import AsyncSubprocessManager


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_async_captures_output():
    mgr = AsyncSubprocessManager(timeout=30)
    result = await mgr.run_async([sys.executable, "-c", "import sys; print('hi'); sys.stderr.write('err')"])
    assert result.ok is True
    assert result.code == 0
    assert result.stdout.strip() == "hi"
    assert result.stderr == "err"
    assert mgr.get_stats()["completed"] == 1
    assert mgr.get_stats()["active_processes"] == 0


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_async_reports_nonzero_exit(tmp_path):
    mgr = AsyncSubprocessManager(timeout=30)
    result = await mgr.run_async([sys.executable, "-c", "import os; print(os.getcwd()); raise SystemExit(3)"],
                                 cwd=str(tmp_path))
    assert result.ok is False
    assert result.code == 3
    assert os.path.realpath(result.stdout.strip()) == os.path.realpath(tmp_path)
    assert mgr.get_stats()["failed"] == 1


@pytest.mark.integration
@pytest.mark.asyncio
async def test_run_async_times_out():
    async with AsyncSubprocessManager(timeout=0.5) as mgr:
        result = await mgr.run_async([sys.executable, "-c", "import time; time.sleep(30)"])
    assert result.ok is False
    assert result.timed_out is True
    assert mgr.get_stats()["timeout"] == 1


@pytest.mark.unit
@pytest.mark.asyncio
async def test_missing_executable_is_a_failed_result(tmp_path):
    mgr = AsyncSubprocessManager(timeout=5)
    result = await mgr.run_async([str(tmp_path / "no-such-compiler")])
    assert result.ok is False
    assert result.code == -1
    assert result.stderr
    assert mgr.get_stats()["failed"] == 1
