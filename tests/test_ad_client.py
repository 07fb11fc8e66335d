from unittest.mock import MagicMock

import pytest
from ldap3.core.exceptions import LDAPException

from core.ad_client import ActiveDirectoryClient
from core.exceptions import DirectoryLookupError, DirectoryWriteError


def make_entry(dn, **attributes):
    entry = MagicMock()
    entry.entry_dn = dn
    entry.entry_attributes_as_dict = {name: list(values) for name, values in attributes.items()}
    return entry


@pytest.fixture
def client():
    client = ActiveDirectoryClient("ldap://dc", "user", "secret", "DC=example,DC=com")
    client.connection = MagicMock()
    client.connection.entries = []
    return client


def test_lookup_by_employee_id_builds_entry(client):
    client.connection.entries = [make_entry(
        "CN=Alice Smith,OU=Users,DC=example,DC=com",
        employeeID=["1001"],
        displayName=["Alice Smith"],
        sAMAccountName=["alice"],
        userAccountControl=[514],
        manager=["CN=Jane Doe,OU=Users,DC=example,DC=com"],
        title=["Lift Operator"],
        memberOf=["CN=SMS Users,OU=Groups,DC=example,DC=com"],
    )]

    entry = client.lookup_by_employee_id("1001")

    search = client.connection.search.call_args.kwargs
    assert "(employeeID=1001)" in search['search_filter']
    assert search['search_base'] == "DC=example,DC=com"
    assert entry.employee_id == "1001"
    assert entry.account_name == "alice"
    assert entry.enabled is False
    assert entry.manager_ref == "CN=Jane Doe,OU=Users,DC=example,DC=com"
    assert entry.description is None
    assert entry.group_refs == frozenset({"CN=SMS Users,OU=Groups,DC=example,DC=com"})


def test_lookup_escapes_filter_values(client):
    client.lookup_by_employee_id("10*)(cn=*")

    search_filter = client.connection.search.call_args.kwargs['search_filter']
    assert "10\\2a\\29\\28cn=\\2a" in search_filter


def test_lookup_by_employee_id_not_found(client):
    assert client.lookup_by_employee_id("9999") is None


def test_custom_employee_id_attribute(client):
    client.employee_id_attribute = "employeeNumber"

    client.lookup_by_employee_id("1001")

    search = client.connection.search.call_args.kwargs
    assert "(employeeNumber=1001)" in search['search_filter']
    assert "employeeNumber" in search['attributes']


def test_lookup_by_reference_missing_raises(client):
    with pytest.raises(DirectoryLookupError):
        client.lookup_by_reference("CN=Gone,DC=example,DC=com")


def test_ldap_errors_become_lookup_errors(client):
    client.connection.search.side_effect = LDAPException("server down")

    with pytest.raises(DirectoryLookupError):
        client.lookup_by_employee_id("1001")


def test_lookup_group_name(client):
    assert client.lookup_group_name("CN=SMS Users,OU=Groups,DC=example,DC=com") == "SMS Users"


def test_write_attribute_replaces_value(client):
    client.connection.entries = [make_entry("CN=Alice Smith,OU=Users,DC=example,DC=com", employeeID=["1001"])]
    client.connection.modify.return_value = True

    client.write_attribute("1001", "title", "Lift Supervisor")

    dn, changes = client.connection.modify.call_args.args
    assert dn == "CN=Alice Smith,OU=Users,DC=example,DC=com"
    assert changes == {"title": [("MODIFY_REPLACE", ["Lift Supervisor"])]}


def test_rejected_write_raises(client):
    client.connection.entries = [make_entry("CN=Alice Smith,OU=Users,DC=example,DC=com", employeeID=["1001"])]
    client.connection.modify.return_value = False
    client.connection.result = {'description': 'insufficientAccessRights'}

    with pytest.raises(DirectoryWriteError, match="insufficientAccessRights"):
        client.write_attribute("1001", "manager", "CN=Jane Doe,OU=Users,DC=example,DC=com")


def test_write_to_unknown_employee_raises(client):
    with pytest.raises(DirectoryWriteError):
        client.write_attribute("9999", "title", "x")


def test_requires_connection():
    client = ActiveDirectoryClient("ldap://dc", "user", "secret", "DC=example,DC=com")

    with pytest.raises(ConnectionError):
        client.lookup_by_employee_id("1001")


def test_failed_search_raises_instead_of_not_found(client):
    client.connection.search.return_value = False
    client.connection.result = {'result': 50, 'description': 'insufficientAccessRights'}

    with pytest.raises(DirectoryLookupError, match="insufficientAccessRights"):
        client.lookup_by_employee_id("1001")


def test_empty_successful_search_is_not_found(client):
    client.connection.search.return_value = False
    client.connection.result = {'result': 0, 'description': 'success'}

    assert client.lookup_by_employee_id("1001") is None


def test_no_such_object_reference_is_missing_entry(client):
    client.connection.search.return_value = False
    client.connection.result = {'result': 32, 'description': 'noSuchObject'}

    with pytest.raises(DirectoryLookupError, match="No directory entry"):
        client.lookup_by_reference("CN=Gone,DC=example,DC=com")


def test_write_reports_failed_lookup_as_error(client):
    client.connection.search.return_value = False
    client.connection.result = {'result': 51, 'description': 'busy'}

    with pytest.raises(DirectoryLookupError, match="busy"):
        client.write_attribute("1001", "title", "Lift Supervisor")
    client.connection.modify.assert_not_called()


def test_lookup_group_name_unescapes_cn(client):
    assert client.lookup_group_name("CN=Smith\\, J Team,OU=Groups,DC=example,DC=com") == "Smith, J Team"
    assert client.lookup_group_name("CN=Lift\\2C Ops,OU=Groups,DC=example,DC=com") == "Lift, Ops"
