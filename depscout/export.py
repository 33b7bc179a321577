"""CSV export of contributor records.

The artifact is written all-or-nothing: rows go to a temporary file beside
the destination, which is then swapped into place with os.replace().
"""

from __future__ import annotations

import csv
import logging
import os
import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from depscout.github.models import EXPORT_FIELDS, ContributorRecord

logger = logging.getLogger(__name__)

NO_RECORDS_MESSAGE = "No contributor details found."


def records_to_rows(
    records: Sequence[ContributorRecord],
) -> list[dict[str, Any]]:
    """Flatten records into rows keyed by export column name."""
    return [
        record.model_dump(by_alias=True) for record in records
    ]


def export_csv(records: Sequence[ContributorRecord], path: Path) -> bool:
    """Write records to a CSV file.

    Args:
        records: Records to export, in output order.
        path: Destination file.

    Returns:
        True if the file was written, False if there was nothing to write.

    Raises:
        OSError: If the file can't be written. The destination is left
            untouched in that case.
    """
    if not records:
        logger.info(NO_RECORDS_MESSAGE)
        return False

    path = Path(path)
    rows = records_to_rows(records)

    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
    )
    try:
        with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(
                f, fieldnames=EXPORT_FIELDS, extrasaction="ignore"
            )
            writer.writeheader()
            writer.writerows(rows)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise

    logger.info(
        f"Wrote {len(rows)} contributor records to {path}",
        extra={"path": str(path), "rows": len(rows)},
    )
    return True
