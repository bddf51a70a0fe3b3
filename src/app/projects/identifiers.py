"""Project identifier derivation from URL-shaped strings.

Both the XML source and the CRM lead custom field carry a project URL such as
``https://example.com/projects/123456/2``. The shared join key is the first
digit group of the first ``/<digits>/<digits>`` run in the path.
"""

from __future__ import annotations

import re

_PROJECT_ID_RE = re.compile(r"/(\d+)/(\d+)/?")


def extract_id(url: str | None) -> str | None:
    """Return the project identifier embedded in ``url``, or None.

    >>> extract_id("https://example.com/project/123/456")
    '123'
    >>> extract_id("https://example.com/project/abc") is None
    True
    """
    if not url or not isinstance(url, str):
        return None
    match = _PROJECT_ID_RE.search(url)
    if match is None:
        return None
    return match.group(1)
