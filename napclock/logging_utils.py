import logging

from napclock.logging_handlers import build_handlers

def setup_logger(name, debug=False, verbose=True):
    """
    Setup unified logger for a napclock module.

    One logger per module (__name__), configured once. Handlers come from
    config.LOG_OUTPUTS; records do not propagate to the root logger.

    Args:
        name: Logger name (typically __name__)
        debug: Enable debug level logging
        verbose: Enable console/file output

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    if logger.handlers:
        if debug:
            logger.setLevel(logging.DEBUG)
        return logger

    level = logging.DEBUG if debug else logging.INFO
    logger.setLevel(level)
    # Prevent double logging via root logger
    logger.propagate = False

    handlers = build_handlers(verbose=verbose, debug=debug)
    if handlers:
        formatter = logging.Formatter(
            fmt='%(asctime)s [%(levelname)-8s] %(name)s: %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        for handler in handlers:
            handler.setFormatter(formatter)
            logger.addHandler(handler)

    return logger

def log_info(logger, message):
    """Consistent info logging"""
    logger.info(f"ℹ️  {message}")

def log_success(logger, message):
    """Consistent success logging"""
    logger.info(f"✅ {message}")

def log_warning(logger, message):
    """Consistent warning logging"""
    logger.warning(f"⚠️  {message}")

def log_error(logger, message):
    """Consistent error logging"""
    logger.error(f"❌ {message}")

def log_debug(logger, message):
    """Consistent debug logging"""
    logger.debug(f"🔍 {message}")

def log_timer(logger, message):
    """Consistent timer state-transition logging"""
    logger.info(f"⏲️  {message}")
