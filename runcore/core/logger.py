"""loguru sinks for runcore. Service lines carry a bracketed tag ([STREAK], [PR], ...)."""

import sys
from pathlib import Path
from typing import List, Optional

from loguru import logger

CONSOLE_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> <cyan>{name}</cyan> {message}"
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} {level: <7} {name}:{line} {message}"


def setup_logger(
    level: str = "INFO",
    log_file: Optional[str] = None,
    json_file: bool = False,
    rotation: str = "10 MB",
    retention: int = 5,
) -> List[int]:
    """
    Replace loguru's default sink with a compact console sink and, when
    `log_file` is set, a rotating file sink (JSON lines if `json_file`).

    Returns the ids of the sinks added, in that order.
    """
    logger.remove()
    sink_ids = [logger.add(sys.stderr, format=CONSOLE_FORMAT, level=level, colorize=True)]

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        sink_ids.append(
            logger.add(
                path,
                format=FILE_FORMAT,
                level=level,
                rotation=rotation,
                retention=retention,
                serialize=json_file,
            )
        )

    logger.debug(f"Logging at {level} to {len(sink_ids)} sink(s)")
    return sink_ids
