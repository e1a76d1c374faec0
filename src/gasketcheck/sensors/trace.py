"""
Recorded pressure traces.

A trace is a CSV file with a header row and the columns ``time_ns``,
``pressure_hpa`` and, optionally, ``motion_ok`` (1/0, true/false). Replaying
a trace through the detector reproduces the live result exactly because the
core only uses sample timestamps.

Accelerometer recordings use the columns ``time_ns``, ``ax``, ``ay``, ``az``.
"""

import csv
import logging

from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path

from gasketcheck.analysis.types import PressureSample
from gasketcheck.sensors.streams import MotionSample

logger = logging.getLogger(__name__)

TRACE_COLUMNS = ("time_ns", "pressure_hpa", "motion_ok")
MOTION_COLUMNS = ("time_ns", "ax", "ay", "az")
_TRUE_VALUES = {"1", "true", "yes", "y", "t"}
_FALSE_VALUES = {"0", "false", "no", "n", "f"}


class TraceFormatError(ValueError):
    """Raised when a trace file cannot be parsed."""


def _parse_bool(raw: str, line: int) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise TraceFormatError(f"Line {line}: invalid motion_ok value {raw!r}")


@contextmanager
def _csv_reader(path: Path) -> Iterator[csv.DictReader]:
    with open(path, newline="", encoding="utf-8") as f:
        try:
            yield csv.DictReader(f)
        except UnicodeDecodeError as e:
            raise TraceFormatError(
                f"{path}: not a UTF-8 text file ({e.reason})"
            ) from e


def load_trace(path: str | Path) -> list[tuple[PressureSample, bool]]:
    """
    Load a recorded trace.

    Args:
        path: CSV file path

    Returns:
        List of (pressure sample, motion_ok) pairs in file order

    Raises:
        FileNotFoundError: If the file does not exist
        TraceFormatError: If the header or a row is malformed, or the
            file is not UTF-8 text
    """
    path = Path(path)
    rows: list[tuple[PressureSample, bool]] = []

    with _csv_reader(path) as reader:
        fields = reader.fieldnames or []
        missing = [c for c in TRACE_COLUMNS[:2] if c not in fields]
        if missing:
            raise TraceFormatError(
                f"{path}: missing column(s) {', '.join(missing)} (found {fields})"
            )
        has_motion = "motion_ok" in fields

        for line, record in enumerate(reader, start=2):
            try:
                time_ns = int(record["time_ns"])
                hpa = float(record["pressure_hpa"])
            except (TypeError, ValueError) as e:
                raise TraceFormatError(f"Line {line}: {e}") from e

            motion_ok = True
            if has_motion and record.get("motion_ok") not in (None, ""):
                motion_ok = _parse_bool(record["motion_ok"], line)

            rows.append((PressureSample(time_ns, hpa), motion_ok))

    logger.debug(f"Loaded {len(rows)} samples from {path}")
    return rows


def save_trace(
    path: str | Path, rows: Iterable[tuple[PressureSample, bool]]
) -> int:
    """
    Write a trace file.

    Returns:
        Number of samples written
    """
    path = Path(path)
    count = 0
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.writer(f)
        writer.writerow(TRACE_COLUMNS)
        for sample, motion_ok in rows:
            writer.writerow([sample.time_ns, repr(float(sample.hpa)), int(motion_ok)])
            count += 1
    return count


def load_motion(path: str | Path) -> list[MotionSample]:
    """
    Load a recorded accelerometer stream.

    Raises:
        FileNotFoundError: If the file does not exist
        TraceFormatError: If the header or a row is malformed, or the
            file is not UTF-8 text
    """
    path = Path(path)
    samples: list[MotionSample] = []

    with _csv_reader(path) as reader:
        fields = reader.fieldnames or []
        missing = [c for c in MOTION_COLUMNS if c not in fields]
        if missing:
            raise TraceFormatError(
                f"{path}: missing column(s) {', '.join(missing)} (found {fields})"
            )

        for line, record in enumerate(reader, start=2):
            try:
                samples.append(
                    MotionSample(
                        int(record["time_ns"]),
                        float(record["ax"]),
                        float(record["ay"]),
                        float(record["az"]),
                    )
                )
            except (TypeError, ValueError) as e:
                raise TraceFormatError(f"Line {line}: {e}") from e

    logger.debug(f"Loaded {len(samples)} motion samples from {path}")
    return samples
