# hurley/logging_config.py
import logging
import sys

# Third-party loggers that are chatty at INFO
NOISY_LOGGERS = ("aiohttp.access", "aiohttp.client", "asyncio")


def level_from_flags(debug: bool = False, verbose: bool = False) -> str:
    if debug:
        return "DEBUG"
    return "INFO" if verbose else "WARNING"


def setup_logging(level: str = "WARNING", log_file: str | None = None) -> logging.Logger:
    """
    Configure logging to print to stderr, so stdout carries only response
    bodies and reports. If log_file is provided, also log to that file.
    """
    logger = logging.getLogger()
    logger.setLevel(level.upper())

    if logger.hasHandlers():
        logger.handlers.clear()

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)-8s | %(name)-20s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
        logger.info(f"Logging to file: {log_file}")

    if logger.level > logging.DEBUG:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    def handle_exception(exc_type, exc_value, exc_traceback):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_traceback)
            return
        logger.error("Uncaught exception", exc_info=(exc_type, exc_value, exc_traceback))

    sys.excepthook = handle_exception

    return logger
