"""Logging configuration and utilities."""

import logging
from pathlib import Path
from absl import logging as absl_logging

class CustomFormatter(logging.Formatter):
    def __init__(self):
        super().__init__()
        # Format for DEBUG, WARNING, and ERROR
        self.detailed_fmt = '%(asctime)s [%(pathname)s:%(lineno)d] %(levelname)s: %(message)s'
        self.detailed_formatter = logging.Formatter(self.detailed_fmt, datefmt='%H:%M:%S')

        # Simpler format for INFO
        self.info_fmt = '%(asctime)s %(message)s'
        self.info_formatter = logging.Formatter(self.info_fmt, datefmt='%H:%M:%S')

    def format(self, record):
        if record.levelno == logging.INFO:
            return self.info_formatter.format(record)
        return self.detailed_formatter.format(record)

def configure_logging(development: bool = True, log_file: Path = Path("vstab.log")) -> None:
    """Configure logging to write to a file.

    The app logger ``vstab`` logs at DEBUG in development and INFO otherwise;
    everything else (third-party libraries, warnings) reaches the file only
    at WARNING and above.
    """
    log_file = Path(log_file).expanduser()
    log_file.parent.mkdir(parents=True, exist_ok=True)

    absl_logging.set_stderrthreshold('FATAL')
    absl_logging.use_absl_handler()

    file_handler = logging.FileHandler(log_file)
    file_handler.setFormatter(CustomFormatter())

    # Configure root logger to catch everything
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.WARNING)
    root_logger.handlers.clear()
    root_logger.addHandler(file_handler)

    # Configure app-specific logger
    app_logger = logging.getLogger('vstab')
    app_logger.setLevel(logging.DEBUG if development else logging.INFO)
    app_logger.propagate = False
    app_logger.handlers.clear()
    app_logger.addHandler(file_handler)

    # Capture warnings
    logging.captureWarnings(True)
    warnings_logger = logging.getLogger('py.warnings')
    warnings_logger.handlers.clear()
    warnings_logger.addHandler(file_handler)

    # Add session start markers
    app_logger.info("=" * 80)
    app_logger.info("Starting new logging session")
    app_logger.info("=" * 80)

def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    # If the name starts with '__main__', replace it with 'vstab.main'
    if name == '__main__':
        return logging.getLogger('vstab.main')
    # Otherwise prepend 'vstab.' if it's not already there
    if name != 'vstab' and not name.startswith('vstab.'):
        name = f'vstab.{name}'
    return logging.getLogger(name)
