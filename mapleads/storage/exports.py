"""CSV export of extracted business records."""

from __future__ import annotations

import csv
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Iterable

from mapleads.models import CSV_COLUMNS, BusinessRecord

CSV_HEADER = list(CSV_COLUMNS)


def write_csv(records: Iterable[BusinessRecord], csv_path: str) -> Path:
    path = Path(csv_path)
    os.makedirs(path.parent, exist_ok=True)

    with NamedTemporaryFile(
        mode="w", newline="", encoding="utf-8", dir=str(path.parent), delete=False
    ) as handle:
        writer = csv.writer(handle)
        writer.writerow(CSV_HEADER)
        for record in records:
            writer.writerow(record.as_row())
        handle.flush()
        os.fsync(handle.fileno())
        tmp_name = handle.name

    os.replace(tmp_name, path)
    return path
