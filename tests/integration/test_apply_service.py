import logging
import shlex
import sys
import time

import pytest

from monoweave.app import ApplyService, OperationStatus, UnknownOperationError, run_apply
from monoweave.config import MonoweaveConfig
from monoweave.engine import CancellationError, NotFoundError

SLOW_INSTALL = f"{shlex.quote(sys.executable)} -c {shlex.quote('import time; time.sleep(30)')}"


def wait_for(predicate, timeout=10.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return
        time.sleep(0.05)
    raise AssertionError("condition not met in time")


def test_run_apply_propagates_errors(tmp_path, plan_factory):
    plan_path = plan_factory.with_source("ghost", create=False).build()

    with pytest.raises(NotFoundError):
        run_apply(plan_path, out=tmp_path / "monorepo")


def test_submit_and_collect_result(tmp_path, two_source_plan, caplog):
    plan_path = two_source_plan.build()
    service = ApplyService(config=MonoweaveConfig())

    with caplog.at_level(logging.INFO, logger="monoweave.app.service"):
        op_id = service.submit(plan_path, out=tmp_path / "monorepo")
        result = service.result(op_id, timeout=30)

    assert service.status(op_id) is OperationStatus.SUCCEEDED
    assert result.package_count == 2
    assert (tmp_path / "monorepo" / "packages" / "beta").is_dir()
    messages = [e["message"] for e in service.events(op_id)]
    assert "Starting transactional apply..." in messages
    assert any(op_id in record.getMessage() for record in caplog.records)


def test_failure_is_stored_and_reraised(tmp_path, plan_factory):
    plan_path = plan_factory.with_source("ghost", create=False).build()
    service = ApplyService(config=MonoweaveConfig())

    op_id = service.submit(plan_path, out=tmp_path / "monorepo")

    with pytest.raises(NotFoundError, match="ghost"):
        service.result(op_id, timeout=30)
    assert service.status(op_id) is OperationStatus.FAILED


def test_cancel_running_operation(tmp_path, two_source_plan):
    plan_path = two_source_plan.with_install().build()
    service = ApplyService(config=MonoweaveConfig(install_command=SLOW_INSTALL))

    op_id = service.submit(plan_path, out=tmp_path / "monorepo")
    wait_for(
        lambda: any(
            e["message"].startswith("Installing dependencies") for e in service.events(op_id)
        )
    )
    assert service.cancel(op_id) is True

    with pytest.raises(CancellationError):
        service.result(op_id, timeout=30)
    assert service.status(op_id) is OperationStatus.CANCELLED
    assert service.cancel(op_id) is False
    assert any(".staging-" in p.name for p in tmp_path.iterdir())


def test_resume_through_service(tmp_path, two_source_plan):
    plan_path = two_source_plan.with_install().build()
    slow = ApplyService(config=MonoweaveConfig(install_command=SLOW_INSTALL))
    op_id = slow.submit(plan_path, out=tmp_path / "monorepo")
    wait_for(lambda: any("Installing" in e["message"] for e in slow.events(op_id)))
    slow.cancel(op_id)
    slow.wait(op_id, timeout=30)

    quick = ApplyService(config=MonoweaveConfig(install_command=f"{shlex.quote(sys.executable)} -c pass"))
    result = quick.result(quick.submit(plan_path, out=tmp_path / "monorepo", resume=True), timeout=30)

    assert result.executed_steps == ["install"]


def test_unknown_operation(tmp_path):
    service = ApplyService(config=MonoweaveConfig())

    with pytest.raises(UnknownOperationError):
        service.status("nope")
    with pytest.raises(UnknownOperationError):
        service.cancel("nope")


def test_forget_drops_finished_operation(tmp_path, two_source_plan):
    service = ApplyService(config=MonoweaveConfig())
    op_id = service.submit(two_source_plan.build(), out=tmp_path / "monorepo")
    service.result(op_id, timeout=30)

    assert service.forget(op_id) is True

    with pytest.raises(UnknownOperationError):
        service.events(op_id)


def test_forget_keeps_running_operation(tmp_path, two_source_plan):
    plan_path = two_source_plan.with_install().build()
    service = ApplyService(config=MonoweaveConfig(install_command=SLOW_INSTALL))
    op_id = service.submit(plan_path, out=tmp_path / "monorepo")
    try:
        assert service.forget(op_id) is False
        assert service.status(op_id) in (OperationStatus.PENDING, OperationStatus.RUNNING)
    finally:
        service.cancel(op_id)
        service.wait(op_id, timeout=30)


def test_finished_operations_expire_after_retention(tmp_path, plan_factory):
    service = ApplyService(config=MonoweaveConfig(), retention=60)
    plan_path = plan_factory.with_source("ghost", create=False).build()

    op_id = service.submit(plan_path, out=tmp_path / "monorepo")
    operation = service.wait(op_id, timeout=30)
    assert service.status(op_id) is OperationStatus.FAILED

    # Age the finished operation past the retention window.
    operation.finished_at -= 61

    with pytest.raises(UnknownOperationError):
        service.status(op_id)
