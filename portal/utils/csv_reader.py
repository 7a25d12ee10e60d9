# portal/utils/csv_reader.py
"""
Line-by-line CSV reading for bulk uploads.

Each line is decoded and split on its own, so a bad line (wrong column
count, broken quoting, invalid UTF-8) turns into a failed ``ParsedRow``
instead of aborting the whole file.
"""
import csv
import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Dict, Iterator, List, Optional, Sequence

from portal.errors import ValidationError

log = logging.getLogger(__name__)

FACULTY_COLUMNS = ["name", "username", "password", "department", "designation", "baseSalary"]
SALARY_COLUMNS = [
    "username", "basic", "hra", "da", "conveyance", "medical", "other_earnings",
    "pf", "tax", "professionalTax", "other_deductions",
]


@dataclass
class ParsedRow:
    line_number: int
    values: Optional[Dict[str, str]] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def _split_line(text: str) -> List[str]:
    return next(csv.reader([text], strict=True))


def read_rows(stream: BinaryIO, schema: Sequence[str]) -> Iterator[ParsedRow]:
    """
    Yield one ParsedRow per data line of ``stream``.

    The first non-blank line is the header. Values are keyed by the schema
    columns; columns the header does not carry come back as "".
    """
    header: Optional[List[str]] = None

    for line_number, raw in enumerate(stream, start=1):
        try:
            text = raw.decode("utf-8-sig" if header is None else "utf-8")
        except UnicodeDecodeError as exc:
            if header is None:
                raise ValidationError("CSV header is not valid UTF-8 text.")
            yield ParsedRow(line_number, error=f"invalid text encoding ({exc.reason})")
            continue

        text = text.rstrip("\r\n")
        if not text.strip():
            continue

        try:
            fields = _split_line(text)
        except csv.Error as exc:
            if header is None:
                raise ValidationError(f"CSV header could not be parsed: {exc}")
            yield ParsedRow(line_number, error=f"malformed line ({exc})")
            continue

        if header is None:
            header = [f.strip() for f in fields]
            missing = [c for c in schema if c not in header]
            if missing:
                log.info("CSV header lacks columns %s; they will read as empty", missing)
            continue

        if len(fields) != len(header):
            yield ParsedRow(
                line_number,
                error=f"expected {len(header)} columns, found {len(fields)}",
            )
            continue

        row = dict(zip(header, (f.strip() for f in fields)))
        yield ParsedRow(line_number, values={col: row.get(col, "") for col in schema})

    if header is None:
        raise ValidationError("CSV file is empty.")


@contextmanager
def stored_upload(upload, directory: Path):
    """
    Copy an uploaded file to a temp file under ``directory`` and yield its path.

    The temp file is removed when the block exits, whether or not it raised.
    """
    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    suffix = Path(getattr(upload, "filename", None) or "").suffix or ".csv"
    fd, name = tempfile.mkstemp(prefix="upload_", suffix=suffix, dir=str(directory))
    path = Path(name)
    try:
        with os.fdopen(fd, "wb") as out_f:
            shutil.copyfileobj(upload.file, out_f)
        yield path
    finally:
        upload.file.close()
        path.unlink(missing_ok=True)
        log.debug("Removed temporary upload %s", path)
