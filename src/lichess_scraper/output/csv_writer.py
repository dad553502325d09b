"""CSV export of the daily rating grid."""

import csv
import io
from datetime import UTC, datetime
from pathlib import Path
from typing import Callable, List, Optional, Sequence

from ..lichess_logging import get_logger

logger = get_logger(__name__)

FILENAME_PREFIX = "chess-ratings"


def ensure_dir(path: Path) -> None:
    """Ensure directory exists, creating parent directories as needed."""
    path.mkdir(parents=True, exist_ok=True)
    logger.debug("Directory ensured", path=str(path))


def build_csv_path(output_dir: Path, now: Optional[datetime] = None) -> Path:
    """``<output_dir>/chess-ratings-<timestamp>.csv`` with a filesystem-safe UTC timestamp."""
    now = now or datetime.now(UTC)
    timestamp = now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
    timestamp = timestamp.replace(":", "-").replace(".", "-")
    return output_dir / f"{FILENAME_PREFIX}-{timestamp}.csv"


def render_csv(rows: Sequence[Sequence[str]]) -> str:
    """Render rows as CSV text with ``\\n`` line endings."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerows(rows)
    return buffer.getvalue()


def write_csv(rows: Sequence[Sequence[str]], output_dir: Path, now: Optional[datetime] = None) -> Path:
    """Write rows (header first) to a new timestamped file.

    Returns:
        Path of the written file
    """
    ensure_dir(output_dir)
    path = build_csv_path(output_dir, now)
    path.write_text(render_csv(rows), encoding="utf-8")
    logger.info("CSV written", path=str(path), players=max(len(rows) - 1, 0))
    return path


def write_csv_or_echo(
    rows: Sequence[Sequence[str]],
    output_dir: Path,
    echo: Callable[[str], None] = print,
    now: Optional[datetime] = None,
) -> Optional[Path]:
    """Write the CSV; if the filesystem refuses, echo the rows instead.

    Returns:
        Path of the written file, or None when the fallback was used
    """
    try:
        return write_csv(rows, output_dir, now)
    except OSError as e:
        logger.error("Failed to write CSV file", output_dir=str(output_dir), error=str(e))
        echo("Fallback - CSV Output:")
        lines: List[str] = render_csv(rows).splitlines()
        for line in lines:
            echo(line)
        return None
