import re
from typing import Any, Dict, List, Optional, Sequence

from models import (
    InventoryRecord, IssueLine, IssueRequest, RecordKey, RecordType, Status,
    StorageLine, StorageRequest, key_text,
)
from strings import (
    COMPONENT_ID, DATE, DELIVERY_DATE, GRADE, ISSUE_DATE, ISSUE_FOR, ISSUE_NO,
    ISSUED_TO, MANUFACTURER, NAME, PART_DESCRIPTION, PART_NO, QUALITY_GRADE,
    QUANTITY_EACH, RELATIVE_HUMIDITY, REQUEST_TEXT, SERIAL_NO, SNO_PO, SNO_SO,
    SO_NO, SO_NUMBER, SO_PDF, STATUS, STORAGE_DATA, STORAGE_DATE, STORAGE_NO,
    STORAGE_QUANTITY, STORAGE_TEMPERATURE, SUB_SYSTEM, SUBMITTED_BY,
    SYSTEM_MANAGER, TOTAL_QUANTITY, TYPE,
)

COMPONENT_ID_PATTERN = re.compile(r"CMP-(\d+)")


def next_component_id(existing: Sequence[InventoryRecord]) -> str:
    """
    Derive the next free Component ID from a record collection.

    When minting several IDs for one batch, pass the collection with the
    batch's already-built records appended so the IDs keep increasing.

    Args:
        existing: Records whose Component IDs are already taken

    Returns:
        'CMP-' followed by the highest numeric suffix plus one, zero-padded to 3 digits
    """
    highest = 0
    for record in existing:
        cid = record.get(COMPONENT_ID)
        if not cid:
            continue
        match = COMPONENT_ID_PATTERN.search(str(cid))
        if match:
            highest = max(highest, int(match.group(1)))
    return f"CMP-{highest + 1:03d}"


def matches(record: InventoryRecord, key: RecordKey) -> bool:
    """True if any of the key's fields on the record stringifies to the key value."""
    return any(key_text(record.get(name)) == key.value for name in key.fields)


def find_records(records: Sequence[InventoryRecord], identifier: Any) -> List[InventoryRecord]:
    """
    Return every record matching the identifier.

    A bare identifier matches Issue No, Storage No or Component ID, so a
    transaction number selects the whole batch while a Component ID selects
    one line of it.
    """
    key = RecordKey.coerce(identifier)
    return [r for r in records if matches(r, key)]


def find_record(records: Sequence[InventoryRecord], identifier: Any) -> Optional[InventoryRecord]:
    """Return the first record matching the identifier, or None."""
    key = RecordKey.coerce(identifier)
    return next((r for r in records if matches(r, key)), None)


def remaining_records(records: Sequence[InventoryRecord], identifier: Any) -> List[InventoryRecord]:
    """Return every record that does NOT match the identifier, in order."""
    key = RecordKey.coerce(identifier)
    return [r for r in records if not matches(r, key)]


def is_pending(record: InventoryRecord) -> bool:
    """True if the record's Status reads 'Pending', ignoring case."""
    status = record.get(STATUS)
    return status is not None and str(status).strip().lower() == Status.PENDING.value.lower()


def pending_groups(records: Sequence[InventoryRecord]) -> Dict[str, InventoryRecord]:
    """
    Collapse pending records into one representative per transaction.

    Records are grouped by Issue No, falling back to Storage No. Only the
    first record of each group is kept. Records with neither key cannot be
    grouped and are left out.

    Returns:
        Mapping of transaction number to a copy of its first pending record
    """
    groups: Dict[str, InventoryRecord] = {}
    for record in records:
        if not is_pending(record):
            continue
        group_key = key_text(record.get(ISSUE_NO)) or key_text(record.get(STORAGE_NO))
        if group_key and group_key not in groups:
            groups[group_key] = dict(record)
    return groups


def build_issue_record(request: IssueRequest, line: IssueLine, component_id: str,
                       today: str, attachment: Optional[str] = None) -> InventoryRecord:
    """Build the pending record for one issued line item."""
    return {
        COMPONENT_ID: component_id,
        NAME: line.part_description or RecordType.ISSUED.value,
        PART_NO: line.part_no,
        PART_DESCRIPTION: line.part_description,
        TYPE: RecordType.ISSUED.value,
        STATUS: Status.PENDING.value,
        DATE: today,
        ISSUED_TO: request.issue_to,
        ISSUE_NO: request.issue_no,
        ISSUE_DATE: line.issue_date or request.issue_date,
        REQUEST_TEXT: request.request_text,
        ISSUE_FOR: request.issue_for,
        SYSTEM_MANAGER: request.system_manager,
        SERIAL_NO: line.serial_no,
        SNO_SO: line.sno_so,
        MANUFACTURER: line.manufacturer,
        QUALITY_GRADE: line.quality_grade,
        SUB_SYSTEM: line.sub_system,
        QUANTITY_EACH: line.quantity_each,
        TOTAL_QUANTITY: line.total_quantity,
        SO_NO: line.so_no,
        SO_PDF: attachment,
        STORAGE_TEMPERATURE: line.storage_temp,
        SUBMITTED_BY: request.submitted_by,
    }


def build_storage_record(request: StorageRequest, line: StorageLine, component_id: str,
                         today: str) -> InventoryRecord:
    """Build the pending record for one stored line item."""
    return {
        COMPONENT_ID: component_id,
        NAME: line.part_description or RecordType.STORED.value,
        PART_NO: line.part_no,
        PART_DESCRIPTION: line.part_description,
        TYPE: RecordType.STORED.value,
        STATUS: Status.PENDING.value,
        DATE: today,
        STORAGE_NO: request.storage_no,
        STORAGE_DATE: request.storage_date,
        SO_NUMBER: request.so_number,
        SYSTEM_MANAGER: request.system_manager,
        SERIAL_NO: line.serial_no,
        SNO_PO: line.sno_po,
        GRADE: line.grade,
        STORAGE_QUANTITY: line.quantity,
        STORAGE_TEMPERATURE: line.storage_temp,
        RELATIVE_HUMIDITY: line.relative_humidity,
        STORAGE_DATA: line.storage_data,
        DELIVERY_DATE: line.delivery_date,
        SO_NO: request.so_number,
        SUBMITTED_BY: request.submitted_by,
    }
