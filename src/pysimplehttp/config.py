"""Configuration management for pysimplehttp."""

from dataclasses import dataclass
from typing import Optional

from pysimplehttp import __version__

DEFAULT_TIMEOUT = 30
DEFAULT_AGENT = f"pysimplehttp/{__version__}"


def validate_timeout(timeout: int) -> int:
    """Check a timeout in seconds.

    Args:
        timeout: Timeout in seconds, 0 disables it

    Returns:
        The timeout unchanged

    Raises:
        TypeError: If timeout is not an integer
        ValueError: If timeout is negative
    """
    if isinstance(timeout, bool) or not isinstance(timeout, int):
        raise TypeError(f"Timeout must be an integer, got {timeout!r}")
    if timeout < 0:
        raise ValueError(f"Timeout must not be negative: {timeout}")
    return timeout


@dataclass
class Config:
    """Configuration for a pysimplehttp client session.

    Only the HTTP settings a session needs: request timeout, User-Agent,
    optional cookie and header files, and TLS verification.
    """

    # HTTP settings
    timeout: int = DEFAULT_TIMEOUT  # seconds
    user_agent: str = DEFAULT_AGENT
    verify_ssl: bool = True

    # Session state loaded at startup
    cookie_file: Optional[str] = None  # Netscape format
    header_file: Optional[str] = None  # "Name: value" per line

    def __post_init__(self):
        """Validate configuration."""
        validate_timeout(self.timeout)
