import logging
import sys

from pythonjsonlogger import jsonlogger


def setup_logging(level: int = logging.INFO) -> logging.Logger:
    """
    Configures structured JSON logging for the service.

    Installs a single stdout handler on the root logger with a JSON formatter
    that includes timestamp, level, logger name, message, trace_id and span_id
    (the latter two are filled in by ddtrace log injection). Existing root
    handlers are replaced so repeated calls do not duplicate output.

    Returns:
        logging.Logger: The configured root logger instance.
    """
    formatter = jsonlogger.JsonFormatter(
        "%(asctime)s %(levelname)s %(name)s %(message)s %(trace_id)s %(span_id)s"
    )
    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers = []
    root_logger.addHandler(stream_handler)

    # pika is chatty at INFO about connection internals
    logging.getLogger("pika").setLevel(logging.WARNING)

    return root_logger
