"""Cookie utilities.

Re-splits folded ``Set-Cookie`` values and reads Netscape cookie files
used by browsers and tools like curl.
"""

import logging
from http.cookiejar import Cookie
from pathlib import Path
from typing import List

logger = logging.getLogger(__name__)


def split_set_cookie(set_cookie: str) -> List[str]:
    """Split a folded ``Set-Cookie`` value back into individual cookies.

    The transport joins repeated ``Set-Cookie`` headers with ``", "``, but a
    cookie's own ``Expires=Wed, 09 Jun 2025 ...`` attribute contains a comma
    as well. Splitting on every comma therefore yields two fragments per
    cookie, which are glued back together pairwise.

    This assumes every cookie carries exactly one comma (its ``Expires``
    date). Cookies without ``Expires`` break the pairing; an unpaired
    trailing fragment is returned on its own.

    Args:
        set_cookie: Folded header value

    Returns:
        List of cookie strings in their original order

    Example:
        >>> split_set_cookie("a=1; Expires=Wed, 09 Jun 2035 10:18:14 GMT, "
        ...                  "b=2; Expires=Wed, 09 Jun 2035 10:18:14 GMT")
        ['a=1; Expires=Wed, 09 Jun 2035 10:18:14 GMT', 'b=2; Expires=Wed, 09 Jun 2035 10:18:14 GMT']
    """
    fragments = set_cookie.split(',')
    if len(fragments) % 2:
        logger.debug(f"Odd number of Set-Cookie fragments ({len(fragments)}): {set_cookie!r}")

    cookies = []
    while fragments:
        first = fragments.pop(0)
        if fragments:
            second = fragments.pop(0)
            cookies.append(f"{first},{second}".strip())
        else:
            cookies.append(first.strip())

    return cookies


def load_cookies_from_file(cookie_file: str) -> List[Cookie]:
    """Load cookies from Netscape cookie file format.

    The Netscape cookie format is:
    # domain flag path secure expiration name value

    Args:
        cookie_file: Path to cookie file

    Returns:
        List of Cookie objects

    Example file format:
        # Netscape HTTP Cookie File
        .example.com    TRUE    /    FALSE    1735689600    sessionid    abc123
    """
    cookies = []
    cookie_path = Path(cookie_file)

    if not cookie_path.exists():
        logger.warning(f"Cookie file not found: {cookie_file}")
        return cookies

    with open(cookie_path, 'r') as f:
        for line in f:
            line = line.strip()

            # curl marks HttpOnly cookies with this prefix
            if line.startswith('#HttpOnly_'):
                line = line[len('#HttpOnly_'):]
            elif not line or line.startswith('#'):
                continue

            parts = line.split('\t')
            if len(parts) < 7:
                logger.debug(f"Skipping malformed cookie line: {line!r}")
                continue

            domain, flag, path, secure, expiration, name, value = parts[:7]

            try:
                expires = int(expiration) or None
            except ValueError:
                expires = None

            cookies.append(Cookie(
                version=0,
                name=name,
                value=value,
                port=None,
                port_specified=False,
                domain=domain,
                domain_specified=flag.upper() == 'TRUE',
                domain_initial_dot=domain.startswith('.'),
                path=path,
                path_specified=True,
                secure=secure.upper() == 'TRUE',
                expires=expires,
                discard=expires is None,
                comment=None,
                comment_url=None,
                rest={},
                rfc2109=False,
            ))

    logger.debug(f"Loaded {len(cookies)} cookies from {cookie_file}")
    return cookies
