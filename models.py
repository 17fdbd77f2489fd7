from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from strings import COMPONENT_ID, ISSUE_NO, STORAGE_NO

# One spreadsheet row: column header -> scalar (str, number or None)
InventoryRecord = Dict[str, Any]


class Status(str, Enum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"


class RecordType(str, Enum):
    ISSUED = "Issued Component"
    STORED = "Stored Component"


class Scope(str, Enum):
    USER = "user"
    ADMIN = "admin"


class KeyKind(Enum):
    """Record field an identifier can be matched against."""
    COMPONENT_ID = COMPONENT_ID
    ISSUE_NO = ISSUE_NO
    STORAGE_NO = STORAGE_NO


KEY_PREFIXES = {
    "component": KeyKind.COMPONENT_ID,
    "issue": KeyKind.ISSUE_NO,
    "storage": KeyKind.STORAGE_NO,
}

# Loose keys are compared against these fields, in this order
LOOSE_KEY_FIELDS: Tuple[str, ...] = (ISSUE_NO, STORAGE_NO, COMPONENT_ID)


def key_text(value: Any) -> Optional[str]:
    """
    Stringify a key cell the way identifiers are compared.

    Empty values (None, "", 0, False) never match anything and give None.
    Integral floats read back from a sheet are rendered without the
    trailing ".0" so that 17.0 and "17" compare equal.
    """
    if value is None or value == "" or value is False or value == 0:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


@dataclass(frozen=True)
class RecordKey:
    """
    Caller-supplied identifier, resolved once at the boundary.

    Attributes:
        value: Stringified identifier (compared by exact, case-sensitive equality)
        kind: Field to match; None matches Issue No, Storage No or Component ID
    """
    value: str
    kind: Optional[KeyKind] = None

    @property
    def fields(self) -> Tuple[str, ...]:
        if self.kind is None:
            return LOOSE_KEY_FIELDS
        return (self.kind.value,)

    @classmethod
    def parse(cls, text: str) -> "RecordKey":
        """Build a key from 'issue:X', 'storage:X', 'component:X' or a bare identifier."""
        prefix, sep, rest = text.partition(":")
        kind = KEY_PREFIXES.get(prefix.strip().lower()) if sep else None
        if kind is not None and rest:
            return cls(rest, kind)
        return cls(text)

    @classmethod
    def coerce(cls, identifier: Union["RecordKey", Any]) -> "RecordKey":
        if isinstance(identifier, RecordKey):
            return identifier
        return cls(key_text(identifier) or str(identifier))

    def __str__(self) -> str:
        return self.value


@dataclass
class IssueLine:
    """
    One line item of an issue request.

    Attributes:
        part_no: Part number
        part_description: Free text, also used as the record Name
        issue_date: Overrides the request's issue date for this line
        pdf: Opaque upload handle for the SO PDF (bytes, binary file, or path)
        existing_pdf: Attachment reference kept from an earlier submission
    """
    part_no: Any = None
    part_description: Any = None
    issue_date: Any = None
    serial_no: Any = None
    sno_so: Any = None
    manufacturer: Any = None
    quality_grade: Any = None
    sub_system: Any = None
    quantity_each: Any = None
    total_quantity: Any = None
    so_no: Any = None
    storage_temp: Any = None
    pdf: Any = None
    existing_pdf: Optional[str] = None


@dataclass
class IssueRequest:
    """Header of an issue submission plus its line items."""
    issue_no: Any = None
    issue_date: Any = None
    request_text: Any = None
    issue_to: Any = None
    issue_for: Any = None
    system_manager: Any = None
    submitted_by: Any = None
    components: List[IssueLine] = field(default_factory=list)

    @property
    def transaction_no(self) -> Any:
        return self.issue_no

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "IssueRequest":
        """Build a request from the camelCase form payload used by web clients."""
        lines = [
            IssueLine(**{attr: item.get(key) for key, attr in ISSUE_LINE_KEYS.items() if key in item})
            for item in payload.get("components") or []
        ]
        header = {attr: payload.get(key) for key, attr in ISSUE_HEADER_KEYS.items()}
        return cls(components=lines, **header)


@dataclass
class StorageLine:
    """One line item of a storage request."""
    part_no: Any = None
    part_description: Any = None
    serial_no: Any = None
    sno_po: Any = None
    grade: Any = None
    quantity: Any = None
    storage_temp: Any = None
    relative_humidity: Any = None
    storage_data: Any = None
    delivery_date: Any = None


@dataclass
class StorageRequest:
    """Header of a storage submission plus its line items."""
    storage_no: Any = None
    storage_date: Any = None
    so_number: Any = None
    system_manager: Any = None
    submitted_by: Any = None
    components: List[StorageLine] = field(default_factory=list)

    @property
    def transaction_no(self) -> Any:
        return self.storage_no

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "StorageRequest":
        """Build a request from the camelCase form payload used by web clients."""
        lines = [
            StorageLine(**{attr: item.get(key) for key, attr in STORAGE_LINE_KEYS.items() if key in item})
            for item in payload.get("components") or []
        ]
        header = {attr: payload.get(key) for key, attr in STORAGE_HEADER_KEYS.items()}
        return cls(components=lines, **header)


BatchRequest = Union[IssueRequest, StorageRequest]

ISSUE_HEADER_KEYS = {
    "issueNo": "issue_no", "issueDate": "issue_date", "requestText": "request_text",
    "issueTo": "issue_to", "issueFor": "issue_for", "systemManager": "system_manager",
    "submittedBy": "submitted_by",
}

ISSUE_LINE_KEYS = {
    "partNo": "part_no", "partDescription": "part_description", "issueDate": "issue_date",
    "serialNo": "serial_no", "snoSO": "sno_so", "manufacturer": "manufacturer",
    "qualityGrade": "quality_grade", "subSystem": "sub_system", "quantityEach": "quantity_each",
    "totalQuantity": "total_quantity", "soNo": "so_no", "storageTemp": "storage_temp",
    "existingPdf": "existing_pdf",
}

STORAGE_HEADER_KEYS = {
    "storageNo": "storage_no", "storageDate": "storage_date", "soNumber": "so_number",
    "systemManager": "system_manager", "submittedBy": "submitted_by",
}

STORAGE_LINE_KEYS = {
    "partNo": "part_no", "partDescription": "part_description", "serialNo": "serial_no",
    "snoPO": "sno_po", "grade": "grade", "quantity": "quantity", "storageTemp": "storage_temp",
    "relativeHumidity": "relative_humidity", "storageData": "storage_data",
    "deliveryDate": "delivery_date",
}


@dataclass
class LedgerResult:
    """
    Outcome of one ledger operation.

    Attributes:
        success: True if the operation was applied
        message: Human-readable summary
        kind: 'ok' on success, otherwise the failure kind (validation, not_found, ...)
        records: Updated collection, pending groups or the looked-up record
        count: Number of records submitted, updated or removed
    """
    success: bool
    message: str
    kind: str = "ok"
    records: Optional[List[InventoryRecord]] = None
    count: Optional[int] = None

    @property
    def record(self) -> Optional[InventoryRecord]:
        return self.records[0] if self.records else None


@dataclass
class Identity:
    """Authenticated account as returned by the credential store."""
    id: str = ""
    name: str = ""
    role: str = Scope.USER.value


@dataclass
class ArchivedFile:
    """
    File kept in the upload archive.

    Attributes:
        id: 'FILE-' followed by the leading timestamp of the name
        name: File name inside the archive directory
        scientist: Uploader name parsed from the file name
        path: Public reference ('/uploads/<name>')
        size: Size in bytes
        upload_date: ISO timestamp
        description: Description parsed from the file name
    """
    id: str = ""
    name: str = ""
    scientist: str = ""
    path: str = ""
    size: int = 0
    upload_date: str = ""
    description: str = ""
