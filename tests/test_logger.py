import pytest
from loguru import logger

from trafficrunner.models.enums import LogLevel
from trafficrunner.utils.logger import configure_logging, format_traceback, get_logger


@pytest.fixture
def records():
    captured = []
    sink_id = logger.add(lambda message: captured.append(message.record), level="TRACE")
    yield captured
    logger.remove(sink_id)


def test_get_logger_binds_module_name(records):
    get_logger("trafficrunner.runner.harness").info("Planned 3 hosts")

    (record,) = records
    assert record["extra"]["name"] == "trafficrunner.runner.harness"
    assert record["message"] == "Planned 3 hosts"
    assert record["level"].name == "INFO"


def test_unbound_records_fall_back_to_root_name(records):
    logger.info("plain")
    assert records[0]["extra"]["name"] == "trafficrunner"


def test_braces_in_messages_are_kept_verbatim(records):
    get_logger("trafficrunner.netns.naming").info("template ns-{index}")
    assert records[0]["message"] == "template ns-{index}"


def test_configure_logging_replaces_sinks():
    first = configure_logging(LogLevel.DEBUG)
    second = configure_logging(LogLevel.WARNING)

    assert first != second
    # The first sink is gone after reconfiguring
    with pytest.raises(ValueError):
        logger.remove(first)
    logger.remove(second)


def test_format_traceback_includes_message():
    try:
        raise RuntimeError("kaboom")
    except RuntimeError as e:
        text = format_traceback(e)

    assert "Traceback" in text
    assert "RuntimeError: kaboom" in text
