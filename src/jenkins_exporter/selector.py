# selector.py
from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from .errors import NoBuildsFound

if TYPE_CHECKING:
    from .model import Build


def select_last_build(
    successful: Build,
    unsuccessful: Build,
    stable: Build,
    unstable: Build,
    failed: Build,
    *,
    path: Optional[Union[str, Path]] = None,
) -> Build:
    """
    Pick the most recent build out of the five category pointers.

    Candidates are scanned in the fixed order
    successful, stable, unsuccessful, unstable, failed and only replace
    the running maximum when strictly greater, so on equal numbers the
    earlier category wins.

    Args:
        successful..failed: category builds, zero-value Build() when absent
        path: job location, only used in the error message

    Returns:
        The selected Build.

    Raises:
        NoBuildsFound: if every candidate is the zero-value build.
    """
    last = None
    highest = 0

    for candidate in (successful, stable, unsuccessful, unstable, failed):
        if candidate.number > highest:
            last = candidate
            highest = candidate.number

    if last is None:
        raise NoBuildsFound(path if path is not None else "<unknown>", "no builds found")

    return last
