import pytest

from core.exceptions import DirectoryLookupError, DirectoryWriteError
from core.models import DirectoryEntry


class FakeDirectory:
    """In-memory stand-in for ActiveDirectoryClient"""

    def __init__(self):
        self.by_employee_id = {}
        self.by_dn = {}
        self.reference_lookups = []
        self.writes = []
        self.failing_writes = set()
        self.broken_references = set()

    def add_user(self, employee_id, display_name, manager_dn=None, enabled=True,
                 title=None, description=None, groups=(), account_name=None):
        dn = f"CN={display_name},OU=Users,DC=example,DC=com"
        entry = DirectoryEntry(
            employee_id=employee_id,
            display_name=display_name,
            account_name=account_name or display_name.split()[0].lower(),
            enabled=enabled,
            manager_ref=manager_dn,
            title=title,
            description=description,
            group_refs=frozenset(f"CN={group},OU=Groups,DC=example,DC=com" for group in groups),
            distinguished_name=dn
        )
        self.by_employee_id.setdefault(employee_id, entry)
        self.by_dn[dn] = entry
        return entry

    def lookup_by_employee_id(self, employee_id):
        return self.by_employee_id.get(employee_id)

    def lookup_by_reference(self, reference):
        self.reference_lookups.append(reference)
        if reference in self.broken_references:
            raise DirectoryLookupError(f"Server unavailable reading {reference}")
        if reference not in self.by_dn:
            raise DirectoryLookupError(f"No directory entry at {reference}")
        return self.by_dn[reference]

    def lookup_group_name(self, reference):
        return reference.split(',')[0].split('=', 1)[1]

    def write_attribute(self, employee_id, attribute, value):
        if (employee_id, attribute) in self.failing_writes:
            raise DirectoryWriteError(f"Insufficient access writing {attribute} for {employee_id}")
        self.writes.append((employee_id, attribute, value))


@pytest.fixture
def directory():
    directory = FakeDirectory()
    jane = directory.add_user("555", "Jane Doe")
    directory.add_user("556", "John Roe (SUG)")
    directory.add_user("1001", "Alice Smith", manager_dn=jane.distinguished_name,
                       title="Lift Operator", description="Lift Operator",
                       groups=["SMS Users"])
    directory.add_user("1002", "Bob Jones", manager_dn=jane.distinguished_name,
                       title="Senior Manager, Operations", enabled=False)
    directory.add_user("1003", "Carol White")
    return directory


@pytest.fixture
def write_csv(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return str(path)
    return _write
