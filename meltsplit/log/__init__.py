"""Utility functionality for logging.
"""
import os
import sys

import logbook

from meltsplit import utils

LOG_NAME = "meltsplit"

logger = logbook.Logger(LOG_NAME)
logger_cl = logbook.Logger(LOG_NAME + "-commands")
logger_stdout = logbook.Logger(LOG_NAME + "-stdout")

def _is_cl(record, _):
    return record.channel == LOG_NAME + "-commands"

def _is_stdout(record, _):
    return record.channel == LOG_NAME + "-stdout"

def _not_cl(record, handler):
    return not _is_cl(record, handler) and not _is_stdout(record, handler)

class CloseableNestedSetup(logbook.NestedSetup):
    def close(self):
        for obj in self.objects:
            if hasattr(obj, "close"):
                obj.close()

def _create_log_handler(log_dir=None, include_time=True, debug=False):
    logbook.set_datetime_format("utc")
    handlers = [logbook.NullHandler()]
    format_str = "".join(["[{record.time:%Y-%m-%dT%H:%MZ}] " if include_time else "",
                          "{record.message}"])
    if log_dir:
        utils.safe_makedir(log_dir)
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s.log" % LOG_NAME),
                                            format_string=format_str, level="INFO",
                                            filter=_not_cl))
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s-debug.log" % LOG_NAME),
                                            format_string=format_str, level="DEBUG", bubble=True,
                                            filter=_not_cl))
        handlers.append(logbook.FileHandler(os.path.join(log_dir, "%s-commands.log" % LOG_NAME),
                                            format_string=format_str, level="DEBUG",
                                            filter=_is_cl))
    handlers.append(logbook.StreamHandler(sys.stdout, format_string="{record.message}",
                                          level="DEBUG", filter=_is_stdout))
    handlers.append(logbook.StreamHandler(sys.stderr, format_string=format_str, bubble=True,
                                          level="DEBUG" if debug else "INFO",
                                          filter=_not_cl))
    return CloseableNestedSetup(handlers)

def setup_local_logging(log_dir=None, debug=False):
    """Setup logging for a local run, directing messages to stderr and log files.

    The log directory gets a general log, a debug log and a log of every
    external command issued. Dry run submissions go to stdout.
    """
    handler = _create_log_handler(log_dir, debug=debug)
    handler.push_thread()
    return handler
