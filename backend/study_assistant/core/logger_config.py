import logging


LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s"


def setup_logging(level: str = "INFO") -> None:
    """Configure the package logger once; later calls only adjust the level."""
    logger = logging.getLogger("study_assistant")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if logger.handlers:
        return

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
