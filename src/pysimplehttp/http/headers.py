"""Header file parsing utilities.

Supports simple key-value header file format.
"""

import logging
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)


def load_headers_from_file(header_file: str) -> Dict[str, str]:
    """Load extra request headers from file.

    One ``Name: value`` pair per line; blank lines and ``#`` comments are
    ignored. A later line overrides an earlier one with the same name.

    Args:
        header_file: Path to header file

    Returns:
        Dictionary of header name to value, empty if the file is missing

    Example file format:
        Accept: text/html
        Referer: https://example.com/
    """
    headers = {}
    header_path = Path(header_file)

    if not header_path.exists():
        logger.warning(f"Header file not found: {header_file}")
        return headers

    with open(header_path, 'r') as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith('#'):
                continue

            if ':' not in line:
                logger.debug(f"Skipping malformed header line: {line!r}")
                continue

            name, value = line.split(':', 1)
            headers[name.strip()] = value.strip()

    return headers
