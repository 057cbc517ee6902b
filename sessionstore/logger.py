"""Logging setup for applications serving the session store.

The package itself only attaches a NullHandler (see sessionstore/__init__.py)
so it stays silent until the host application configures logging.
"""
import logging
import sys


def setup_logger(name: str = "sessionstore", level: str = "INFO") -> logging.Logger:
    """Configure a session store logger for an application.

    When the root logger already has handlers, the host application owns
    output: only the level is set and records propagate to root. Otherwise a
    stdout handler is attached and propagation is turned off so records are
    not printed twice once the root logger is configured later.

    Args:
        name: Logger name, "sessionstore" covers every module of the package
        level: Log level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL),
               falls back to INFO if invalid

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    log_level = logging.getLevelName(level.upper())
    if not isinstance(log_level, int):
        log_level = logging.INFO
        print(f"Warning: Invalid log level '{level}', defaulting to INFO", file=sys.stderr)

    logger.setLevel(log_level)

    own_handlers = [h for h in logger.handlers if not isinstance(h, logging.NullHandler)]
    if logging.getLogger().handlers and not own_handlers:
        logger.propagate = True
        return logger

    if own_handlers:
        for handler in own_handlers:
            handler.setLevel(log_level)
        return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(handler)
    logger.propagate = False

    return logger
