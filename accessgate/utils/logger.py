import logging

ROOT_LOGGER = "accessgate"
LOG_FORMAT = "%(levelname)s : %(asctime)s | %(name)s  | %(message)s"


class Logger:
    """Named logger under the `accessgate` root.

    Modules create one at import time with `Logger(__name__)`. The stream
    handler lives on the root only, so every module shares its format and
    level (see `set_root_level`).
    """

    def __init__(self, name: str = ROOT_LOGGER):
        self.name = name
        self.logger = logging.getLogger(name)

        root = logging.getLogger(ROOT_LOGGER)
        if not root.handlers:
            handler = logging.StreamHandler()
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            root.addHandler(handler)
            root.setLevel(logging.INFO)

    def info(self, message, **kwargs):
        """Log info message with optional parameters"""
        self.logger.info(message, **kwargs)

    def error(self, message, **kwargs):
        """Log error message with optional parameters like exc_info"""
        self.logger.error(message, **kwargs)

    def debug(self, message, **kwargs):
        self.logger.debug(message, **kwargs)

    def warning(self, message, **kwargs):
        self.logger.warning(message, **kwargs)


def set_root_level(debug: bool) -> None:
    """Registry skips and audit writes log at debug; show them only in debug mode"""
    logging.getLogger(ROOT_LOGGER).setLevel(logging.DEBUG if debug else logging.INFO)
