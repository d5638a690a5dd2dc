import pytest

from core.snapshots import MemoryStorage, SnapshotRegistry
from core.table import TabularModel

TRACKER_HEADER = [
    "Project",
    "Project Status",
    "Requirements Approval Status",
    "SME Design Required?",
    "Development Status",
    "Testing Status",
    "Extension Required?",
    "CMAN Package(s)",
    "ServiceNow Change(s)",
]


@pytest.fixture
def tracker_table():
    """A small tracker sheet with ragged rows and blank cells."""
    return TabularModel(
        header=list(TRACKER_HEADER),
        rows=[
            ["Alpha", "Active", "Approved", "Yes", "Done", "Passed", "No", "FS-1, SEC-2", "CHG001"],
            ["Beta", "Active", "Pending", None, "In Progress", None, "Yes", "FS-1, other", "CHG002, INC9"],
            ["Gamma", "Closed", "Approved", "No", "Done", "Passed", None, None, "CHG001"],
            ["Delta", "Active"],
        ],
    )


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def registry(storage):
    return SnapshotRegistry(storage, clock=lambda: "01/02/2026, 10:00:00 AM")
