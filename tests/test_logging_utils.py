import logging
import unittest

from utils import logging_utils
from utils.logging_utils import MaxLevelFilter, build_logging_config, get_tagged_logger


class _ListHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        self.records.append(record)


def _record(level: int, name: str = "swellwatch.test") -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


class TestLoggingConfig(unittest.TestCase):
    def test_split_handlers_and_default_job(self):
        cfg = build_logging_config()
        self.assertEqual(cfg["handlers"]["stderr"]["level"], "WARNING")
        self.assertIn("stdout_max_info", cfg["handlers"]["stdout"]["filters"])
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "swellwatch")
        self.assertEqual(cfg["root"]["handlers"], ["stdout", "stderr"])

    def test_custom_job_name_and_level(self):
        cfg = build_logging_config(level="DEBUG", job_name="batch-refresh")
        self.assertEqual(cfg["filters"]["job_name"]["job_name"], "batch-refresh")
        self.assertEqual(cfg["root"]["level"], "DEBUG")

    def test_max_level_filter(self):
        f = MaxLevelFilter(logging.INFO)
        self.assertTrue(f.filter(_record(logging.INFO)))
        self.assertFalse(f.filter(_record(logging.WARNING)))

    def test_ensure_tag_falls_back_to_logger_name(self):
        record = _record(logging.INFO, name="urllib3.connectionpool")
        logging_utils.EnsureTagFilter().filter(record)
        self.assertEqual(record.tag, "connectionpool")


class TestTaggedLogger(unittest.TestCase):
    def _capture(self, adapter):
        handler = _ListHandler()
        base_logger = adapter.logger
        base_logger.setLevel(logging.DEBUG)
        base_logger.addHandler(handler)
        base_logger.propagate = False
        self.addCleanup(base_logger.removeHandler, handler)
        self.addCleanup(setattr, base_logger, "propagate", True)
        return handler

    def test_explicit_tag(self):
        logger = get_tagged_logger("swellwatch.tests.explicit", tag="spots")
        handler = self._capture(logger)
        logger.info("updating spots")
        self.assertEqual(handler.records[-1].tag, "spots")

    def test_default_tag_is_last_name_segment(self):
        logger = get_tagged_logger("swellwatch.tests.conditions_client")
        handler = self._capture(logger)
        logger.warning("marine unavailable")
        self.assertEqual(handler.records[-1].tag, "conditions_client")


class TestSetupLogging(unittest.TestCase):
    def setUp(self):
        self.root = logging.getLogger()
        self.orig_handlers = self.root.handlers[:]
        self.orig_level = self.root.level

    def tearDown(self):
        self.root.handlers = self.orig_handlers
        self.root.setLevel(self.orig_level)
        logging_utils._CONFIGURED = False  # reset for other tests

    def test_override_applies_job_filter(self):
        logging_utils.setup_logging(level="INFO", job_name="jobtest", override_existing=True)
        self.assertTrue(
            any(
                any(isinstance(f, logging_utils.JobNameFilter) for f in h.filters)
                for h in self.root.handlers
            )
        )

    def test_second_call_is_a_no_op(self):
        logging_utils.setup_logging(level="INFO", override_existing=True)
        handlers = self.root.handlers[:]
        logging_utils.setup_logging(level="DEBUG")
        self.assertEqual(self.root.handlers, handlers)
        self.assertEqual(self.root.level, logging.INFO)


if __name__ == "__main__":
    unittest.main()
