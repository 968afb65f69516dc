"""Progress reporting for the partition and shuffle phases."""

import sys

from tqdm import tqdm


def progress_bar(total: int, unit: str, desc: str, enabled: bool = True) -> tqdm:
    """Create a stderr progress bar; a disabled bar still accepts updates."""
    return tqdm(
        total=total,
        unit=unit,
        desc=desc,
        disable=not enabled,
        file=sys.stderr,
        dynamic_ncols=True,
        mininterval=0.5,
        leave=False,
    )
