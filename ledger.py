import logging
import threading
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional, Tuple

from config import settings
from database import InventoryWorkbook
from errors import DependencyError, LedgerError, NotFoundError, ValidationError
from logic import (
    build_issue_record, build_storage_record, find_record, find_records, is_pending,
    next_component_id, pending_groups, remaining_records,
)
from models import (
    BatchRequest, Identity, InventoryRecord, IssueLine, IssueRequest,
    LedgerResult, RecordKey, Status, StorageRequest, key_text,
)
from strings import (
    APPROVAL_DATE, APPROVAL_SIGNATURE, APPROVED_BY, COMPONENT_ID,
    REJECTION_DATE, REJECTION_REASON, STATUS,
)

logger = logging.getLogger(__name__)


def utc_today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


class InventoryLedger:
    """
    Approval workflow over the inventory workbook.

    Components are issued or stored by submitting batches of line items.
    Each batch enters the pending queue and an approver accepts or rejects
    it as a whole. Every operation loads the full collection, computes the
    new one in memory and writes it back; a single lock serializes these
    cycles so concurrent callers cannot lose each other's updates or mint
    the same Component ID.

    Public methods never raise ledger errors: failures come back as a
    ``LedgerResult`` with ``success=False`` and the failure ``kind``.
    """

    def __init__(self, store: Optional[InventoryWorkbook] = None, attachments: Any = None,
                 allow_terminal_overwrite: Optional[bool] = None,
                 today: Optional[Callable[[], str]] = None):
        """
        Args:
            store: Tabular store owning the inventory file
            attachments: Collaborator with store_so_pdf(issue_no, part_no, upload)
                and discard(reference); required only for lines carrying a PDF upload
            allow_terminal_overwrite: Let approve/reject overwrite Approved/Rejected records
            today: Clock returning the ISO date stamped on records
        """
        self.store = store or InventoryWorkbook()
        self.attachments = attachments
        if allow_terminal_overwrite is None:
            allow_terminal_overwrite = settings.ALLOW_TERMINAL_OVERWRITE
        self.allow_terminal_overwrite = allow_terminal_overwrite
        self.today = today or utc_today
        self._lock = threading.Lock()

    # ===== QUERIES =====
    def list_inventory(self) -> LedgerResult:
        return self._run("list inventory", self._list_inventory)

    def get_component(self, identifier: Any) -> LedgerResult:
        """Look up the first record whose Issue No, Storage No or Component ID matches."""
        return self._run("get component", self._get_component, identifier)

    def list_pending(self) -> LedgerResult:
        """One representative record per pending transaction."""
        return self._run("list pending", self._list_pending)

    # ===== SUBMISSIONS =====
    def submit_issue(self, request: IssueRequest) -> LedgerResult:
        return self._run("submit issue", self._submit, request, IssueRequest)

    def submit_storage(self, request: StorageRequest) -> LedgerResult:
        return self._run("submit storage", self._submit, request, StorageRequest)

    def update(self, identifier: Any, request: BatchRequest) -> LedgerResult:
        """
        Replace every record matching the identifier with a new pending batch.

        The new Component IDs continue from the records that remain after
        the old ones are dropped. An identifier that matches nothing simply
        appends the batch.
        """
        return self._run("update", self._update, identifier, request)

    # ===== APPROVAL WORKFLOW =====
    def approve(self, identifier: Any, approved_by: Any, signature: Any = None) -> LedgerResult:
        """
        Mark every matching record Approved and stamp approver, date and signature.

        Args:
            identifier: Transaction number, Component ID, or RecordKey
            approved_by: Approver name or Identity
            signature: Approval signature stored as-is
        """
        if isinstance(approved_by, Identity):
            approved_by = approved_by.name
        stamp = {APPROVED_BY: approved_by, APPROVAL_SIGNATURE: signature}
        return self._run("approve", self._transition, identifier, Status.APPROVED, stamp,
                         APPROVAL_DATE)

    def reject(self, identifier: Any, reason: Any = None) -> LedgerResult:
        """Mark every matching record Rejected and stamp the reason and date."""
        stamp = {REJECTION_REASON: reason}
        return self._run("reject", self._transition, identifier, Status.REJECTED, stamp,
                         REJECTION_DATE)

    def delete(self, identifier: Any) -> LedgerResult:
        """Remove every record matching the identifier."""
        return self._run("delete", self._delete, identifier)

    # ===== IMPLEMENTATION =====
    def _run(self, action: str, operation: Callable[..., LedgerResult], *args) -> LedgerResult:
        with self._lock:
            try:
                return operation(*args)
            except LedgerError as e:
                logger.warning("%s failed (%s): %s", action, e.kind, e.message)
                return LedgerResult(success=False, message=e.message, kind=e.kind)

    def _list_inventory(self) -> LedgerResult:
        records = self.store.load()
        return LedgerResult(True, f"{len(records)} record(s) in inventory",
                            records=records, count=len(records))

    def _get_component(self, identifier: Any) -> LedgerResult:
        record = find_record(self.store.load(), RecordKey.coerce(identifier))
        if record is None:
            raise NotFoundError("Component not found")
        return LedgerResult(True, "Component found", records=[record], count=1)

    def _list_pending(self) -> LedgerResult:
        groups = pending_groups(self.store.load())
        logger.debug("Pending requests found: %d", len(groups))
        return LedgerResult(True, f"{len(groups)} pending request(s)",
                            records=list(groups.values()), count=len(groups))

    def _submit(self, request: BatchRequest, expected: type) -> LedgerResult:
        if not isinstance(request, expected):
            raise ValidationError("Invalid request format")
        self._validate(request)

        records = self.store.load()
        new_items, stored = self._build_batch(records, request)
        updated = records + new_items
        self._persist(updated, stored)

        purpose = "approval" if isinstance(request, IssueRequest) else "storage approval"
        logger.info("Submitted %d item(s) under %s", len(new_items), request.transaction_no)
        return LedgerResult(True, f"Successfully submitted {len(new_items)} components for {purpose}",
                            records=updated, count=len(new_items))

    def _update(self, identifier: Any, request: BatchRequest) -> LedgerResult:
        if not isinstance(request, (IssueRequest, StorageRequest)):
            raise ValidationError("Invalid request format")
        self._validate(request)

        key = RecordKey.coerce(identifier)
        records = self.store.load()
        remaining = remaining_records(records, key)
        new_items, stored = self._build_batch(remaining, request)
        updated = remaining + new_items
        self._persist(updated, stored)

        logger.info("Updated %s: removed %d old item(s), added %d",
                    key, len(records) - len(remaining), len(new_items))
        return LedgerResult(True, f"Successfully updated {len(new_items)} component(s)",
                            records=updated, count=len(new_items))

    def _transition(self, identifier: Any, status: Status, stamp: dict,
                    date_field: str) -> LedgerResult:
        key = RecordKey.coerce(identifier)
        records = self.store.load()
        matched = find_records(records, key)
        if not matched:
            raise NotFoundError("Request not found in database")

        if not self.allow_terminal_overwrite:
            decided = [r.get(COMPONENT_ID) for r in matched if not is_pending(r)]
            if decided:
                raise ValidationError(
                    f"{len(decided)} item(s) already approved or rejected: "
                    + ", ".join(str(cid) for cid in decided)
                )

        today = self.today()
        for record in matched:
            record[STATUS] = status.value
            record.update(stamp)
            record[date_field] = today
        self.store.save(records)

        verb = "approved" if status is Status.APPROVED else "rejected"
        logger.info("%s: %d item(s) %s", key, len(matched), verb)
        return LedgerResult(True, f"Request {verb} successfully! {len(matched)} item(s) updated.",
                            count=len(matched))

    def _delete(self, identifier: Any) -> LedgerResult:
        key = RecordKey.coerce(identifier)
        records = self.store.load()
        remaining = remaining_records(records, key)
        removed = len(records) - len(remaining)
        if removed == 0:
            raise NotFoundError("Component not found")

        self.store.save(remaining)
        logger.info("Deleted %d item(s) matching %s", removed, key)
        return LedgerResult(True, f"Successfully deleted {removed} component(s)", count=removed)

    @staticmethod
    def _validate(request: BatchRequest) -> None:
        if not request.components:
            raise ValidationError("At least one component is required")
        if key_text(request.transaction_no) is None:
            label = "Issue No" if isinstance(request, IssueRequest) else "Storage No"
            raise ValidationError(f"{label} is required")

    def _build_batch(self, base: List[InventoryRecord],
                     request: BatchRequest) -> Tuple[List[InventoryRecord], List[str]]:
        """
        Build the pending records of a batch on top of ``base``.

        Returns:
            Tuple of (new records, attachment references stored for them)
        """
        today = self.today()
        new_items: List[InventoryRecord] = []
        stored: List[str] = []
        try:
            for line in request.components:
                component_id = next_component_id(base + new_items)
                if isinstance(request, IssueRequest):
                    attachment = self._attach(request, line, stored)
                    new_items.append(build_issue_record(request, line, component_id, today, attachment))
                else:
                    new_items.append(build_storage_record(request, line, component_id, today))
        except LedgerError:
            self._discard(stored)
            raise
        return new_items, stored

    def _attach(self, request: IssueRequest, line: IssueLine, stored: List[str]) -> Optional[str]:
        if line.pdf is None:
            return line.existing_pdf
        if self.attachments is None:
            raise DependencyError("No attachment store is configured for SO PDF uploads")
        try:
            reference = self.attachments.store_so_pdf(request.issue_no, line.part_no, line.pdf)
        except Exception as e:
            logger.exception("Storing SO PDF for part %s failed", line.part_no)
            raise DependencyError(f"Failed to store SO PDF for part {line.part_no}: {e}") from e
        stored.append(reference)
        return reference

    def _persist(self, records: List[InventoryRecord], stored: List[str]) -> None:
        try:
            self.store.save(records)
        except LedgerError:
            self._discard(stored)
            raise

    def _discard(self, stored: List[str]) -> None:
        for reference in stored:
            try:
                self.attachments.discard(reference)
            except Exception:
                logger.exception("Could not remove orphaned attachment %s", reference)
