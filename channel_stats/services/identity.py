"""Channel identity resolution.

Turns user input into the identifier used for the upstream channel lookup.
Pure functions, no I/O.

Accepted input:
    @handle                                    -> "@handle"
    https://www.youtube.com/@handle            -> "@handle"
    https://www.youtube.com/c/CustomName       -> "CustomName"
    https://www.youtube.com/user/LegacyName    -> "LegacyName"
    https://www.youtube.com/channel/UC...      -> "UC..." (channel ID)
    https://www.youtube.com/SomeName           -> "SomeName"

URL path parts are matched as ASCII word characters only.
"""

import re

HANDLE_PREFIX = "@"

CHANNEL_URL_PATTERN = re.compile(
    r"^https?://(?:www\.)?youtube\.com/"
    r"(?:channel/(?P<channel_id>UC[\w-]{21}[AQgw])"
    r"|(?:c|user)/(?P<name>[\w@-]+)"
    r"|(?P<segment>[\w@-]+))"
    r"/?$",
    re.ASCII,
)


def extract_handle(raw: str) -> str | None:
    """Resolve raw input to a channel handle or channel ID.

    Args:
        raw: Handle or channel URL as typed by the user.

    Returns:
        The handle unchanged when it already starts with "@", the identifier
        embedded in a recognized channel URL, or None when nothing matches.

    Example:
        >>> extract_handle("@foo")
        '@foo'
        >>> extract_handle("https://youtube.com/c/Bar")
        'Bar'
        >>> extract_handle("https://example.com/x") is None
        True
    """
    value = raw.strip()
    if value.startswith(HANDLE_PREFIX):
        return value

    match = CHANNEL_URL_PATTERN.match(value)
    if match is None:
        return None
    return match.group("channel_id") or match.group("name") or match.group("segment")
