"""Tests for operation tracing decorators and run IDs."""

import logging
import pytest

from excel_sheet_csv.utils.logging_decorators import log_operation, operation_context
from excel_sheet_csv.utils.metrics import get_metrics_collector
from excel_sheet_csv.utils.run_context import RunContext


@pytest.fixture(autouse=True)
def clean_metrics():
    get_metrics_collector().clear()
    yield
    get_metrics_collector().clear()


class TestRunContext:
    """Test cases for RunContext."""

    def test_binds_and_restores(self):
        outer = RunContext.get_run_id()

        with RunContext("run-1") as run_id:
            assert run_id == "run-1"
            assert RunContext.get_run_id() == "run-1"
            with RunContext() as inner:
                assert RunContext.get_run_id() == inner
                assert inner != "run-1"
            assert RunContext.get_run_id() == "run-1"

        assert RunContext.get_run_id() == outer

    def test_new_run_id_format(self):
        run_id = RunContext.new_run_id()

        assert len(run_id) == 12
        int(run_id, 16)

    def test_ensure_run_id_reuses_active(self):
        with RunContext("active"):
            assert RunContext.ensure_run_id() == "active"


class TestLogOperation:
    """Test cases for log_operation."""

    def test_success_recorded(self, caplog):
        caplog.set_level(logging.DEBUG)

        @log_operation("double")
        def double(x):
            return x * 2

        with RunContext("traced"):
            assert double(4) == 8

        record = get_metrics_collector().records()[-1]
        assert record.name == "double"
        assert record.run_id == "traced"
        assert not record.failed
        started = [r for r in caplog.records if r.getMessage() == "Operation started"]
        assert started[-1].structured["args"] == {"arg_0": "4"}

    def test_failure_reraised(self, caplog):
        caplog.set_level(logging.DEBUG)

        @log_operation("explode", log_args=False)
        def explode():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            explode()

        record = get_metrics_collector().records()[-1]
        assert record.failed
        assert record.error_type == "RuntimeError"
        failed = [r for r in caplog.records if r.levelno == logging.ERROR]
        assert failed[-1].structured["error_message"] == "boom"

    def test_preserves_function_name(self):
        @log_operation("named")
        def some_function():
            return None

        assert some_function.__name__ == "some_function"


class TestOperationContext:
    """Test cases for operation_context."""

    def test_metadata_recorded(self):
        with operation_context("block", file_path="a.xlsx") as record:
            record.add_metadata("rows", 3)

        recorded = get_metrics_collector().records()[-1]
        assert recorded.metadata == {"file_path": "a.xlsx", "rows": 3}
        assert not recorded.failed
        assert recorded.duration_ms is not None

    def test_failure_recorded(self):
        with pytest.raises(KeyError):
            with operation_context("failing"):
                raise KeyError("missing")

        [row] = get_metrics_collector().stats()
        assert row.name == "failing"
        assert row.failures == 1
        assert row.errors == {"KeyError": 1}

    def test_records_share_run_id(self):
        with RunContext("batch"):
            with operation_context("outer"):
                with operation_context("inner"):
                    pass

        assert {r.run_id for r in get_metrics_collector().records()} == {"batch"}
        assert get_metrics_collector().latest_run_id() == "batch"
