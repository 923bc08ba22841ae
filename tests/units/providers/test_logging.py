import logging

from welfare_fund.providers.logging import ContextualFilter, LoggingProvider, _log_context


def test_contextual_filter_with_correlation_id() -> None:
    """
    Tests that the filter adds the correlation_id to the record when it's set.
    """
    filter = ContextualFilter()
    record = logging.LogRecord("test", logging.INFO, "", 0, "", (), None)

    with LoggingProvider().set_correlation_id("APP-20250301-0000ABCD"):
        filter.filter(record)

    assert record.correlation_id == "APP-20250301-0000ABCD"


def test_contextual_filter_without_correlation_id() -> None:
    """
    Tests that the filter adds a default value when correlation_id is not set.
    """
    if hasattr(_log_context, "correlation_id"):
        del _log_context.correlation_id

    filter = ContextualFilter()
    record = logging.LogRecord("test", logging.INFO, "", 0, "", (), None)

    filter.filter(record)

    assert record.correlation_id == "-"


def test_nested_correlation_ids_restore_the_outer_one() -> None:
    """
    Tests that leaving a nested context restores the outer correlation id.
    """
    provider = LoggingProvider()

    with provider.set_correlation_id("outer"):
        with provider.set_correlation_id("inner"):
            assert _log_context.correlation_id == "inner"
        assert _log_context.correlation_id == "outer"

    assert _log_context.correlation_id is None


def test_logging_provider_is_a_singleton() -> None:
    """
    Tests that the provider and its logger are shared.
    """
    assert LoggingProvider() is LoggingProvider()
    assert LoggingProvider().get_logger() is LoggingProvider().get_logger()
    assert LoggingProvider().get_logger().name == "welfare_fund"


def test_level_override_adjusts_configured_logger() -> None:
    """
    Tests that a later level override changes the level of the existing logger.
    """
    logger = LoggingProvider().get_logger()
    original = logger.level
    try:
        LoggingProvider().get_logger(level_override="ERROR")
        assert logger.level == logging.ERROR
    finally:
        logger.setLevel(original)
