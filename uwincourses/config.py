"""
Static configuration: portal endpoints, request shapes and index settings.

Values that differ per deployment (index location, worker count) are read
through small functions so tests and the CLI can override them.
"""

from __future__ import annotations

import os
from pathlib import Path


# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------

PACKAGE_DIR = Path(__file__).resolve().parent


def index_dir() -> Path:
    """
    Return the on-disk index directory.

    $UWIN_INDEX_DIR wins over the default location inside the package.
    """
    env = os.environ.get("UWIN_INDEX_DIR", "").strip()
    if env:
        return Path(env)
    return PACKAGE_DIR / "data" / "index"


def max_workers() -> int:
    """
    Number of parallel workers for basic course scrapes.

    Defaults to the available hardware parallelism.
    """
    env = os.environ.get("UWIN_MAX_WORKERS", "").strip()
    if env.isdigit() and int(env) > 0:
        return int(env)
    return os.cpu_count() or 1


# ---------------------------------------------------------------------------
# Portal
# ---------------------------------------------------------------------------

# Endpoint URL for the course search portlet.
SEARCH_URL = "https://my.uwindsor.ca/web/uw/course-search"
# Instructor profile page, followed by the local part of the e-mail address.
DIRECTORY_SERVICES = "http://apps.uwindsor.ca/uwincpb/jsp/DirectoryServicesProfile.jsp?q="

PORTLET = "uwinregistrationcoursesearch_WAR_uwinregistrationtoolsportlet"
# Every portlet parameter and element id carries this prefix
NS = f"_{PORTLET}_"

# Sent with every request
BASE_QUERY: dict[str, str] = {
    "p_p_id": PORTLET,
    "p_p_lifecycle": "0",
    "p_p_state": "exclusive",
    "p_p_mode": "view",
    "p_p_col_id": "column-1",
    "p_p_col_count": "1",
    f"{NS}struts.portlet.mode": "view",
}

REQUEST_TIMEOUT = 30

# Fall 2018
DEFAULT_TERM = "20185"


# ---------------------------------------------------------------------------
# Index
# ---------------------------------------------------------------------------

QUERY_LIMIT = 10
NGRAM_SIZE = 3
MAX_TOKEN_LENGTH = 40
