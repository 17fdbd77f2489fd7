import pytest

from attachments import UploadArchive
from database import InventoryWorkbook
from ledger import InventoryLedger
from models import IssueLine, IssueRequest, StorageLine, StorageRequest


@pytest.fixture
def inventory_path(tmp_path):
    return tmp_path / "inventory.xlsx"


@pytest.fixture
def store(inventory_path):
    return InventoryWorkbook(str(inventory_path), sheet_name="Inventory", lossy_load=False)


@pytest.fixture
def archive(tmp_path):
    return UploadArchive(str(tmp_path / "uploads"))


@pytest.fixture
def ledger(store, archive):
    return InventoryLedger(store, attachments=archive, allow_terminal_overwrite=True,
                           today=lambda: "2026-03-14")


@pytest.fixture
def make_issue():
    def _make(issue_no="ISS-1", count=1, **line_fields):
        lines = [
            IssueLine(part_no=f"P-{i + 1}", part_description=f"Part {i + 1}",
                      total_quantity=i + 1, **line_fields)
            for i in range(count)
        ]
        return IssueRequest(issue_no=issue_no, issue_date="2026-03-10", issue_to="Lab 3",
                            system_manager="R. Rao", submitted_by="tech1", components=lines)
    return _make


@pytest.fixture
def make_storage():
    def _make(storage_no="ST-1", count=1):
        lines = [
            StorageLine(part_no=f"S-{i + 1}", part_description=f"Stored part {i + 1}",
                        quantity=10 * (i + 1), storage_temp="22C", relative_humidity="40%")
            for i in range(count)
        ]
        return StorageRequest(storage_no=storage_no, storage_date="2026-03-11", so_number="SO-55",
                              system_manager="R. Rao", components=lines)
    return _make
