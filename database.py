import logging
from pathlib import Path
from typing import Any, List, Optional, Sequence
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import IllegalCharacterError, InvalidFileException

from config import settings
from errors import PersistenceError, StoreUnreadableError
from models import InventoryRecord
from strings import COMPONENT_ID, PART_NO

logger = logging.getLogger(__name__)

# XML parse errors from both ElementTree and lxml derive from SyntaxError
READ_ERRORS = (InvalidFileException, BadZipFile, KeyError, ValueError, SyntaxError, OSError)


def _has_text(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def _collect_headers(records: Sequence[InventoryRecord]) -> List[str]:
    """Union of all record fields, in order of first appearance."""
    headers = {}
    for record in records:
        for key in record:
            headers.setdefault(key, None)
    return list(headers)


class InventoryWorkbook:
    """
    Excel-backed store for the whole inventory record collection.

    The collection is read and written as one unit: every ``load`` parses
    the file again and every ``save`` rewrites it completely. Nothing is
    cached between calls, so the workbook on disk is the only state.
    """

    def __init__(self, path: Optional[str] = None, sheet_name: Optional[str] = None,
                 lossy_load: Optional[bool] = None):
        """
        Args:
            path: Path to the .xlsx file (created empty on first load if missing)
            sheet_name: Title of the sheet written by this store
            lossy_load: Treat an unreadable file as an empty collection
                instead of raising StoreUnreadableError
        """
        self.path = Path(path or settings.INVENTORY_FILE)
        self.sheet_name = sheet_name or settings.INVENTORY_SHEET
        self.lossy_load = settings.LOSSY_LOAD if lossy_load is None else lossy_load

    def load(self) -> List[InventoryRecord]:
        """
        Read every data row of the first sheet into a record keyed by header.

        Empty cells are left out of the record. Rows with neither a
        Component ID nor a Part No are blank spreadsheet rows and are dropped.

        Raises:
            StoreUnreadableError: If the file cannot be parsed and lossy loading is off
            PersistenceError: If a missing file cannot be created
        """
        if not self.path.exists():
            logger.info("Inventory file %s not found, creating an empty one", self.path)
            self._write([])
            return []

        try:
            return self._read_filtered()
        except READ_ERRORS as e:
            if self.lossy_load:
                logger.error("Inventory file %s is unreadable, loading it as empty: %s", self.path, e)
                return []
            raise StoreUnreadableError(f"Inventory file {self.path} is unreadable: {e}") from e

    def save(self, records: Sequence[InventoryRecord]) -> None:
        """
        Overwrite the file with the given records and verify the result.

        The file is read back right after writing; a different record
        count means the write was truncated.

        Raises:
            PersistenceError: If writing fails or the read-back does not match
        """
        logger.debug("Saving %d records to %s", len(records), self.path)
        self._write(records)

        try:
            written = len(self._read_filtered())
        except READ_ERRORS as e:
            raise PersistenceError(f"Could not verify {self.path} after saving: {e}") from e

        if written != len(records):
            raise PersistenceError(
                f"Save verification failed for {self.path}: "
                f"wrote {len(records)} records, read back {written}"
            )
        logger.info("Saved %d records to %s", written, self.path)

    def _read(self) -> List[InventoryRecord]:
        wb = openpyxl.load_workbook(self.path, read_only=True, data_only=True)
        try:
            sheet = wb.worksheets[0]
            rows = sheet.iter_rows(values_only=True)
            header_row = next(rows, None)
            if not header_row:
                return []

            # Columns without a header cell carry no field name and are skipped
            columns = [(i, str(h)) for i, h in enumerate(header_row) if _has_text(h)]
            records = []
            for row in rows:
                record = {}
                for i, name in columns:
                    value = row[i] if i < len(row) else None
                    if value is None or value == "":
                        continue
                    record[name] = value
                records.append(record)
            return records
        finally:
            wb.close()

    def _read_filtered(self) -> List[InventoryRecord]:
        return [r for r in self._read() if _has_text(r.get(COMPONENT_ID)) or _has_text(r.get(PART_NO))]

    def _write(self, records: Sequence[InventoryRecord]) -> None:
        wb = openpyxl.Workbook()
        sheet = wb.active
        sheet.title = self.sheet_name

        headers = _collect_headers(records)
        try:
            for col, name in enumerate(headers, start=1):
                sheet.cell(row=1, column=col, value=name)
            for row, record in enumerate(records, start=2):
                for col, name in enumerate(headers, start=1):
                    value = record.get(name)
                    if value is None or value == "":
                        continue
                    cell = sheet.cell(row=row, column=col, value=value)
                    # Keep text such as "=5V" literal instead of turning it into a formula
                    if isinstance(value, str) and value.startswith("="):
                        cell.data_type = "s"
            wb.save(self.path)
        except (IllegalCharacterError, ValueError, TypeError) as e:
            raise PersistenceError(f"Could not write record data to {self.path}: {e}") from e
        except OSError as e:
            raise PersistenceError(f"Could not write inventory file {self.path}: {e}") from e
