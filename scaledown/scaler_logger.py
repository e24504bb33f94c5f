import logging

LOG_FORMAT = '%(asctime)s %(name)-12s - %(levelname)6s - %(message)s'


class ScalerLogger:
    def __init__(self, name: str, level: int = logging.INFO):
        logging.basicConfig(level=level, format=LOG_FORMAT)
        self.logger = logging.getLogger(name)


def configure_logging(level: int | str = logging.INFO, log_file: str | None = None) -> None:
    """Reset root handlers to stderr plus an optional log file."""
    sh = logging.StreamHandler()
    sh.setLevel(level)
    handlers: list[logging.Handler] = [sh]
    if log_file:
        fh = logging.FileHandler(log_file)
        fh.setLevel(level)
        handlers.append(fh)
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=handlers, force=True)
