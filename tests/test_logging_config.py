"""Tests for structured logging and calculation tracing."""

import json
import logging
import sys
import time

import pytest

from src.logging_config.config import LogFormat, LoggingConfig, LogLevel
from src.logging_config.context import (
    CalculationContext,
    CalculationContextFilter,
    current_scope,
    generate_calculation_id,
    get_calculation_id,
    get_calculator,
    get_context_dict,
    tag_calculation,
)
from src.logging_config.performance import PerformanceTimer, log_performance
from src.logging_config.setup import (
    ConsoleFormatter,
    StructuredFormatter,
    configure_logging,
)


def _record(msg="test", level=logging.INFO, name="test", lineno=1, exc_info=None):
    return logging.LogRecord(
        name=name, level=level, pathname="test.py",
        lineno=lineno, msg=msg, args=(), exc_info=exc_info,
    )


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


class TestLoggingConfig:
    """Tests for logging configuration dataclasses."""

    def test_default_config_values(self):
        config = LoggingConfig()
        assert config.level == LogLevel.INFO
        assert config.format == LogFormat.JSON
        assert config.include_caller is True
        assert config.slow_threshold_ms == 50.0
        assert config.service_name == "futures-calculator"

    def test_custom_config(self):
        config = LoggingConfig(
            level=LogLevel.DEBUG,
            format=LogFormat.CONSOLE,
            slow_threshold_ms=5.0,
            service_name="test",
        )
        assert config.level == LogLevel.DEBUG
        assert config.format == LogFormat.CONSOLE
        assert config.slow_threshold_ms == 5.0

    def test_log_level_enum_values(self):
        assert LogLevel.DEBUG.value == "DEBUG"
        assert LogLevel.WARNING.value == "WARNING"
        assert LogLevel.CRITICAL.value == "CRITICAL"

    def test_log_format_enum_values(self):
        assert LogFormat.JSON.value == "json"
        assert LogFormat.CONSOLE.value == "console"


class TestCalculationContext:
    """Tests for calculation context management."""

    def test_generate_calculation_id_unique(self):
        ids = {generate_calculation_id() for _ in range(100)}
        assert len(ids) == 100

    def test_calculation_id_is_uuid_format(self):
        assert len(generate_calculation_id().split("-")) == 5

    def test_context_sets_calculation_id(self):
        with CalculationContext(calculation_id="calc-123"):
            assert get_calculation_id() == "calc-123"
        assert get_calculation_id() == ""

    def test_context_sets_calculator(self):
        with CalculationContext(calculator="pnl"):
            assert get_calculator() == "pnl"
        assert get_calculator() == ""

    def test_auto_generates_calculation_id(self):
        with CalculationContext() as ctx:
            assert ctx.calculation_id != ""
            assert get_calculation_id() == ctx.calculation_id

    def test_get_context_dict(self):
        with CalculationContext(calculator="kelly", calculation_id="c1"):
            ctx = get_context_dict()
            assert ctx["calculation_id"] == "c1"
            assert ctx["calculator"] == "kelly"

    def test_context_dict_empty_outside(self):
        assert get_context_dict() == {}

    def test_bind_extra_context(self):
        with CalculationContext(calculator="pyramid") as ctx:
            ctx.bind(symbol="BTCUSDT", layers=5)
            d = get_context_dict()
            assert d["symbol"] == "BTCUSDT"
            assert d["layers"] == 5
        assert get_context_dict() == {}

    def test_elapsed_ms(self):
        with CalculationContext() as ctx:
            time.sleep(0.01)
            assert ctx.elapsed_ms >= 10

    def test_nested_contexts_restore_outer(self):
        with CalculationContext(calculator="outer"):
            with CalculationContext(calculator="inner"):
                assert get_calculator() == "inner"
            assert get_calculator() == "outer"

    def test_tag_calculation_merges_tags(self):
        with CalculationContext(calculator="pyramid"):
            tag_calculation(symbol="BTCUSDT", side="long")
            tag_calculation(layers=3, symbol=None)
            assert current_scope().tag_dict() == {"symbol": "BTCUSDT", "side": "long", "layers": 3}
        assert current_scope() is None

    def test_tag_calculation_outside_is_noop(self):
        tag_calculation(symbol="ETHUSDT")
        assert current_scope() is None

    def test_tags_do_not_leak_to_outer_scope(self):
        with CalculationContext(calculator="outer"):
            with CalculationContext(calculator="inner"):
                tag_calculation(symbol="BTCUSDT")
            assert current_scope().tags == ()


class TestCalculationContextFilter:
    """Tests for stamping calculation scope onto log records."""

    def test_stamps_active_scope(self):
        record = _record()
        with CalculationContext(calculator="pnl", calculation_id="c-9", tags={"symbol": "BTCUSDT"}):
            assert CalculationContextFilter().filter(record) is True
        assert record.calculator == "pnl"
        assert record.calculation_id == "c-9"
        assert record.calculation_tags == {"symbol": "BTCUSDT"}

    def test_stamps_empty_values_outside(self):
        record = _record()
        CalculationContextFilter().filter(record)
        assert record.calculator == ""
        assert record.calculation_id == ""
        assert record.calculation_tags == {}


class TestStructuredFormatter:
    """Tests for JSON structured log formatting."""

    def test_formats_as_json(self):
        parsed = json.loads(StructuredFormatter().format(_record("hello world")))
        assert parsed["message"] == "hello world"
        assert parsed["level"] == "INFO"
        assert parsed["logger"] == "test"
        assert "timestamp" in parsed

    def test_default_service_name(self):
        parsed = json.loads(StructuredFormatter().format(_record()))
        assert parsed["service"] == "futures-calculator"

    def test_calculation_fields_null_outside_calculation(self):
        parsed = json.loads(StructuredFormatter().format(_record()))
        assert parsed["calculator"] is None
        assert parsed["calculation_id"] is None
        assert "tags" not in parsed

    def test_includes_caller_info(self):
        parsed = json.loads(StructuredFormatter(include_caller=True).format(_record(lineno=42)))
        assert parsed["caller"].endswith(":42")

    def test_excludes_caller_when_disabled(self):
        parsed = json.loads(StructuredFormatter(include_caller=False).format(_record(lineno=42)))
        assert "caller" not in parsed

    def test_includes_calculation_context(self):
        formatter = StructuredFormatter()
        with CalculationContext(calculator="liquidation", calculation_id="ctx-test"):
            parsed = json.loads(formatter.format(_record()))
        assert parsed["calculation_id"] == "ctx-test"
        assert parsed["calculator"] == "liquidation"

    def test_tags_nested_not_merged(self):
        formatter = StructuredFormatter()
        with CalculationContext(calculator="pyramid", tags={"symbol": "BTCUSDT", "layers": 4}):
            parsed = json.loads(formatter.format(_record()))
        assert parsed["tags"] == {"symbol": "BTCUSDT", "layers": 4}
        assert "symbol" not in parsed

    def test_formats_exception(self):
        formatter = StructuredFormatter()
        try:
            raise ValueError("test error")
        except ValueError:
            parsed = json.loads(formatter.format(
                _record("failed", level=logging.ERROR, exc_info=sys.exc_info())
            ))
        assert parsed["exception"]["type"] == "ValueError"
        assert "test error" in parsed["exception"]["message"]

    def test_includes_duration_and_rejection(self):
        record = _record()
        record.duration_ms = 4.25
        record.error_type = "ValidationError"
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["duration_ms"] == 4.25
        assert parsed["error_type"] == "ValidationError"

    def test_uses_filter_stamp_when_present(self):
        record = _record()
        with CalculationContext(calculator="kelly", calculation_id="k-1"):
            CalculationContextFilter().filter(record)
        parsed = json.loads(StructuredFormatter().format(record))
        assert parsed["calculator"] == "kelly"
        assert parsed["calculation_id"] == "k-1"


class TestConsoleFormatter:
    """Tests for colored console log formatting."""

    def test_formats_readable_output(self):
        output = ConsoleFormatter().format(_record("hello", name="test.module"))
        assert "test.module" in output
        assert "hello" in output

    def test_includes_level_name(self):
        assert "WARNING" in ConsoleFormatter().format(_record(level=logging.WARNING))

    def test_prefixes_calculator_and_short_id(self):
        with CalculationContext(calculator="pnl", calculation_id="1a2b3c4d-0000"):
            output = ConsoleFormatter().format(_record())
        assert "[pnl:1a2b3c4d] " in output

    def test_no_prefix_outside_calculation(self):
        output = ConsoleFormatter().format(_record()).replace("\033[", "")
        assert "[" not in output

    def test_appends_duration_and_tags(self):
        record = _record("done")
        record.duration_ms = 0.4
        with CalculationContext(calculator="pyramid", tags={"symbol": "BTCUSDT"}):
            output = ConsoleFormatter().format(record)
        assert output.endswith("done (0.4ms) symbol=BTCUSDT")

    def test_has_color_codes(self):
        assert "\033[31m" in ConsoleFormatter().format(_record(level=logging.ERROR))


class TestConfigureLogging:
    """Tests for the configure_logging setup function."""

    def test_configures_root_logger(self, restore_root_logger):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        assert len(restore_root_logger.handlers) == 1

    def test_json_format(self, restore_root_logger):
        configure_logging(LoggingConfig(format=LogFormat.JSON))
        assert isinstance(restore_root_logger.handlers[0].formatter, StructuredFormatter)

    def test_console_format(self, restore_root_logger):
        configure_logging(LoggingConfig(format=LogFormat.CONSOLE))
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_sets_log_level(self, restore_root_logger):
        configure_logging(LoggingConfig(level=LogLevel.DEBUG))
        assert restore_root_logger.level == logging.DEBUG

    def test_env_var_override_level(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("FUTURES_CALC_LOG_LEVEL", "debug")
        configure_logging(LoggingConfig(level=LogLevel.ERROR))
        assert restore_root_logger.level == logging.DEBUG

    def test_env_var_override_format(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("FUTURES_CALC_LOG_FORMAT", "CONSOLE")
        configure_logging(LoggingConfig(format=LogFormat.JSON))
        assert isinstance(restore_root_logger.handlers[0].formatter, ConsoleFormatter)

    def test_invalid_env_var_ignored(self, monkeypatch, restore_root_logger):
        monkeypatch.setenv("FUTURES_CALC_LOG_LEVEL", "LOUD")
        configure_logging(LoggingConfig(level=LogLevel.WARNING))
        assert restore_root_logger.level == logging.WARNING

    def test_handler_carries_context_filter(self, restore_root_logger):
        configure_logging()
        filters = restore_root_logger.handlers[0].filters
        assert any(isinstance(f, CalculationContextFilter) for f in filters)

    def test_calculator_lines_carry_scope(self, capsys, restore_root_logger):
        configure_logging(LoggingConfig(level=LogLevel.INFO, format=LogFormat.JSON))

        @log_performance(calculator="pyramid")
        def plan():
            tag_calculation(symbol="BTCUSDT")
            logging.getLogger("src.futures_calculator.pyramid").info("planned")

        plan()
        lines = [json.loads(line) for line in capsys.readouterr().out.splitlines()]
        planned = [entry for entry in lines if entry["message"] == "planned"]
        assert len(planned) == 1
        assert planned[0]["calculator"] == "pyramid"
        assert planned[0]["calculation_id"]
        assert planned[0]["tags"] == {"symbol": "BTCUSDT"}


class TestPerformanceLogging:
    """Tests for performance timing decorator and context manager."""

    def test_log_performance_returns_result(self):
        @log_performance(threshold_ms=10000)
        def fast_func():
            return 42

        assert fast_func() == 42

    def test_log_performance_preserves_name(self):
        @log_performance()
        def my_function():
            """My docstring."""

        assert my_function.__name__ == "my_function"
        assert my_function.__doc__ == "My docstring."

    def test_log_performance_reraises(self):
        @log_performance(threshold_ms=10000)
        def failing_func():
            raise ValueError("test error")

        with pytest.raises(ValueError, match="test error"):
            failing_func()

    def test_log_performance_binds_calculator(self):
        @log_performance(calculator="entry_price")
        def inside():
            return get_calculator(), get_calculation_id()

        calculator, calc_id = inside()
        assert calculator == "entry_price"
        assert calc_id != ""
        assert get_calculator() == ""

    def test_slow_call_logged_as_warning(self, caplog):
        @log_performance(threshold_ms=0)
        def slow():
            return 1

        with caplog.at_level(logging.WARNING):
            slow()
        assert any("Slow operation" in r.getMessage() for r in caplog.records)

    def test_failure_logged_once(self, caplog):
        @log_performance(threshold_ms=0)
        def failing():
            raise RuntimeError("boom")

        with caplog.at_level(logging.DEBUG):
            with pytest.raises(RuntimeError):
                failing()
        messages = [r.getMessage() for r in caplog.records]
        assert len([m for m in messages if "failing" in m]) == 1
        assert "rejected after" in messages[-1]

    def test_log_performance_with_args(self, caplog):
        @log_performance(threshold_ms=0, include_args=True)
        def func_with_args(a, b, c=None):
            return a + b

        with caplog.at_level(logging.WARNING):
            assert func_with_args(1, 2, c=3) == 3
        assert caplog.records[-1].call_args == "1, 2, c=3"

    def test_performance_timer_records_duration(self):
        with PerformanceTimer("fast_op", threshold_ms=10000) as timer:
            time.sleep(0.01)
        assert timer.duration_ms >= 10

    def test_performance_timer_with_exception(self):
        with pytest.raises(ValueError):
            with PerformanceTimer("failing_op") as timer:
                raise ValueError("oops")
        assert timer.duration_ms >= 0
