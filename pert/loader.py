from __future__ import annotations

import io
import logging
import re
import sys
from pathlib import Path
from typing import IO, List, Sequence, Union

import pandas as pd

from .engine import PertScheduler
from .errors import MalformedRowError
from .models import TaskRow

logger = logging.getLogger(__name__)

FIELD_COUNT = 4
_UNSIGNED = re.compile(r"[0-9]+")
_PARSER_LINE = re.compile(r"line (\d+)")


def _is_missing(value: object) -> bool:
    try:
        return value is None or pd.isna(value)
    except (TypeError, ValueError):
        return False


def _safe_str(value: object) -> str:
    if _is_missing(value):
        return ""
    return str(value).strip()


class DataLoader:
    """
    Reads task records ``from,to,duration,name`` from delimited text.

    No header line is expected. Fields are trimmed and blank lines skipped;
    any record that does not decode to exactly four fields with unsigned
    integer ``from``/``to``/``duration`` raises ``MalformedRowError``.
    """

    def __init__(self, rows: Sequence[TaskRow]):
        self.rows: List[TaskRow] = list(rows)

    @classmethod
    def from_text(cls, text: str) -> "DataLoader":
        return cls(parse_rows(text))

    @classmethod
    def from_bytes(cls, data: bytes, encoding: str = "utf-8-sig") -> "DataLoader":
        try:
            text = data.decode(encoding)
        except UnicodeDecodeError as exc:
            row_number = data.count(b"\n", 0, exc.start) + 1
            raw = data.split(b"\n")[row_number - 1].decode(encoding, errors="replace")
            raise MalformedRowError(row_number, raw.strip().split(","), "undecodable bytes") from exc
        return cls.from_text(text)

    @classmethod
    def from_stream(cls, stream: IO) -> "DataLoader":
        """Load from any readable source: file, socket file, in-memory buffer."""
        data: Union[str, bytes] = stream.read()
        if isinstance(data, bytes):
            return cls.from_bytes(data)
        return cls.from_text(data)

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "DataLoader":
        with open(path, "rb") as handle:
            return cls.from_stream(handle)

    @classmethod
    def from_stdin(cls) -> "DataLoader":
        return cls.from_stream(sys.stdin.buffer)

    def to_network(self, **scheduler_options):
        """Build and schedule the network described by the loaded rows."""
        return PertScheduler(**scheduler_options).schedule(self.rows)

    def get_rows_dataframe(self) -> pd.DataFrame:
        """Get loaded rows as a pandas DataFrame."""
        return pd.DataFrame(
            [row._asdict() for row in self.rows],
            columns=list(TaskRow._fields),
        )


def parse_rows(text: str) -> List[TaskRow]:
    """
    Parse CSV text into ``TaskRow`` tuples, preserving record order.

    Rows are numbered by physical line, so blank lines still count. The
    frame is read wider than any line can be, which leaves short rows padded
    with missing values and extra fields visible to ``_decode_row``.
    """
    if text.startswith("\ufeff"):
        text = text[1:]
    lines = text.split("\n")
    line_numbers = [number for number, line in enumerate(lines, start=1) if line.strip()]
    width = max([line.count(",") + 1 for line in lines] + [FIELD_COUNT + 1])

    try:
        frame = pd.read_csv(
            io.StringIO(text),
            header=None,
            names=list(range(width)),
            dtype=object,
            engine="python",
            keep_default_na=False,
            skipinitialspace=True,
            skip_blank_lines=True,
        )
    except pd.errors.EmptyDataError:
        logger.debug("Input holds no records")
        return []
    except pd.errors.ParserError as exc:
        match = _PARSER_LINE.search(str(exc))
        line_number = int(match.group(1)) if match else 0
        raw = lines[line_number - 1] if 0 < line_number <= len(lines) else ""
        raise MalformedRowError(line_number, raw.split(","), "wrong number of fields") from exc

    rows: List[TaskRow] = []
    for index, values in enumerate(frame.itertuples(index=False, name=None)):
        row_number = line_numbers[index] if index < len(line_numbers) else index + 1
        rows.append(_decode_row(row_number, list(values)))

    logger.debug("Loaded %d task rows", len(rows))
    return rows


def _decode_row(row_number: int, values: List[object]) -> TaskRow:
    fields = [_safe_str(v) for v in values if not _is_missing(v)]
    if any(_is_missing(v) for v in values[:FIELD_COUNT]):
        raise MalformedRowError(row_number, fields, "expected 4 fields")
    if any(not _is_missing(v) for v in values[FIELD_COUNT:]):
        raise MalformedRowError(row_number, fields, "expected 4 fields")

    from_raw, to_raw, duration_raw, name = fields[:FIELD_COUNT]
    for label, raw in (("from", from_raw), ("to", to_raw), ("duration", duration_raw)):
        if not _UNSIGNED.fullmatch(raw):
            raise MalformedRowError(
                row_number, fields, f"'{label}' must be an unsigned integer, got '{raw}'"
            )

    return TaskRow(int(from_raw), int(to_raw), int(duration_raw), name)
