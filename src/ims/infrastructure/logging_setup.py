import logging
import sys


def setup_logging(level: str = "INFO") -> None:
    """Single stderr handler on the root logger, leaving stdout to command output.

    Existing handlers are removed so repeated calls do not duplicate output.
    SQL statement logging is only shown at DEBUG.
    """
    root = logging.getLogger()
    root.setLevel(level.upper())

    for h in list(root.handlers):
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    fmt = "%(asctime)s %(levelname)s %(name)s %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.INFO if level.upper() == "DEBUG" else logging.WARNING
    )
