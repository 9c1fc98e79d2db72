"""Check the release feed for a newer tcpingx version."""

from __future__ import annotations

import re
from typing import Optional

import requests

from ._exceptions import UpdateCheckError
from ._printers import Printer
from ._tcping import logger

OWNER = "tcpingx"
REPO = "tcpingx"
LATEST_RELEASE_URL = "https://api.github.com/repos/{owner}/{repo}/releases/latest"
RELEASE_TAG_URL = "https://github.com/{owner}/{repo}/releases/tag/{tag}"
VERSION_PATTERN = re.compile(r"^v?(\d+\.\d+\.\d+)$")
REQUEST_TIMEOUT = 10


def _fetch_latest_release(http: requests.Session) -> object:
    url = LATEST_RELEASE_URL.format(owner=OWNER, repo=REPO)
    try:
        # Unauthenticated requests are limited to 60 per hour per IP.
        response = http.get(
            url,
            headers={"Accept": "application/vnd.github+json"},
            timeout=REQUEST_TIMEOUT,
        )
        response.raise_for_status()
        return response.json()
    except (requests.RequestException, ValueError) as exc:
        raise UpdateCheckError(f"Failed to check for updates: {exc}") from exc


def latest_release_tag(session: Optional[requests.Session] = None) -> str:
    """Tag name of the latest published release."""
    if session is None:
        with requests.Session() as http:
            payload = _fetch_latest_release(http)
    else:
        payload = _fetch_latest_release(session)

    tag = payload.get("tag_name") if isinstance(payload, dict) else None
    if not isinstance(tag, str):
        raise UpdateCheckError("Failed to check for updates: release has no tag name")
    return tag


def check_latest_version(
    printer: Printer, current_version: str, session: Optional[requests.Session] = None
) -> bool:
    """Report whether a newer release exists. Returns ``True`` if one does."""
    tag = latest_release_tag(session)
    match = VERSION_PATTERN.match(tag)
    if match is None:
        raise UpdateCheckError(
            f"Failed to check for updates. The version name does not match the rule: {tag}"
        )

    latest = match.group(1)
    logger.debug("Latest release tag %s, running %s", tag, current_version)
    if latest != current_version:
        printer.print_info(f"Found newer version {latest}")
        printer.print_info("Please update TCPING from the URL below:")
        printer.print_info(RELEASE_TAG_URL.format(owner=OWNER, repo=REPO, tag=tag))
        return True

    printer.print_info(f"Newer version not found. {current_version} is the latest version.")
    return False
