from unittest.mock import MagicMock

from core.ad_client import ActiveDirectoryClient
from core.models import AccountStatus, InputRecord
from core.reconciler import ReconciliationEngine


def test_matching_manager(directory):
    engine = ReconciliationEngine(directory)
    record = InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=2)

    result = engine.reconcile(record, directory.lookup_by_employee_id("1001"))

    assert result.manager_match is True
    assert result.current_manager_id == "555"
    assert result.current_manager_name == "Jane Doe"
    assert result.expected_manager_name == "Jane Doe"
    assert result.account_status == AccountStatus.ACTIVE


def test_changing_directory_manager_flips_match(directory):
    record = InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=2)
    entry = directory.lookup_by_employee_id("1001")
    entry.manager_ref = directory.lookup_by_employee_id("556").distinguished_name

    result = ReconciliationEngine(directory).reconcile(record, entry)

    assert result.manager_match is False
    assert result.current_manager_id == "556"
    assert result.current_manager_name == "John Roe"


def test_match_compares_ids_as_strings(directory):
    manager = directory.add_user("0555", "Padded Manager")
    entry = directory.add_user("2000", "Dana Case", manager_dn=manager.distinguished_name)
    record = InputRecord(employee_id="2000", expected_manager_raw="Padded Manager (555)")

    result = ReconciliationEngine(directory).reconcile(record, entry)

    assert result.current_manager_id == "0555"
    assert result.expected_manager_id == "555"
    assert result.manager_match is False


def test_missing_entry_produces_no_result(directory):
    engine = ReconciliationEngine(directory)
    records = [
        InputRecord(employee_id="9999", expected_manager_raw="Jane Doe (555)", row_number=2),
        InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=3),
    ]

    report = engine.run(records)

    assert [result.employee_id for result in report.results] == ["1001"]
    assert [record.employee_id for record in report.not_found] == ["9999"]
    assert report.errors == []
    assert report.total_records == 2


def test_no_manager_assigned_sentinel(directory):
    record = InputRecord(employee_id="1003", expected_manager_raw="Jane Doe (555)")

    result = ReconciliationEngine(directory).reconcile(record, directory.lookup_by_employee_id("1003"))

    assert result.current_manager_name == "No Manager Assigned"
    assert result.current_manager_id == "N/A"
    assert result.manager_match is False


def test_no_manager_and_invalid_expected_compare_equal(directory):
    record = InputRecord(employee_id="1003", expected_manager_raw="not a manager")

    result = ReconciliationEngine(directory).reconcile(record, directory.lookup_by_employee_id("1003"))

    assert result.expected_manager_name == "Invalid Format"
    assert result.manager_match is True


def test_invalid_expected_never_matches_real_manager(directory):
    record = InputRecord(employee_id="1001", expected_manager_raw="Jane Doe")

    result = ReconciliationEngine(directory).reconcile(record, directory.lookup_by_employee_id("1001"))

    assert result.manager_match is False


def test_manager_lookup_failure_is_reported_per_record(directory):
    directory.add_user("3000", "Eve Broken", manager_dn="CN=Gone,OU=Users,DC=example,DC=com")
    records = [
        InputRecord(employee_id="3000", expected_manager_raw="Jane Doe (555)", row_number=2),
        InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=3),
    ]

    report = ReconciliationEngine(directory).run(records)

    assert [error.employee_id for error in report.errors] == ["3000"]
    assert report.errors[0].row_number == 2
    assert [result.employee_id for result in report.results] == ["1001"]


def test_duplicate_ids_produce_separate_results(directory):
    records = [
        InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=2),
        InputRecord(employee_id="1001", expected_manager_raw="John Roe (556)", row_number=3),
    ]

    report = ReconciliationEngine(directory).run(records)

    assert [result.manager_match for result in report.results] == [True, False]


def test_manager_cache_does_not_change_output(directory):
    records = [
        InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=2),
        InputRecord(employee_id="1002", expected_manager_raw="John Roe (556)", row_number=3),
    ]

    cached = ReconciliationEngine(directory, cache_managers=True).run(records)
    cached_lookups = len(directory.reference_lookups)
    directory.reference_lookups.clear()
    uncached = ReconciliationEngine(directory, cache_managers=False).run(records)

    assert cached.results == uncached.results
    assert cached_lookups == 1
    assert len(directory.reference_lookups) == 2


def test_group_flags_and_action(directory):
    engine = ReconciliationEngine(directory, tracked_groups=["SMS Users", "Sugarbush Staff"],
                                  classify_action=True)
    record = InputRecord(employee_id="1002", expected_manager_raw="Jane Doe (555)")

    result = engine.reconcile(record, directory.lookup_by_employee_id("1002"))

    assert result.group_flags == {"SMS Users": False, "Sugarbush Staff": False}
    assert result.action == "Suspend with Delegation"
    assert result.account_status == AccountStatus.INACTIVE

    alice = engine.reconcile(record, directory.lookup_by_employee_id("1001"))
    assert alice.group_flags == {"SMS Users": True, "Sugarbush Staff": False}
    assert alice.action == "Suspend with no Delegate"


def test_title_comparison(directory):
    engine = ReconciliationEngine(directory, compare_titles=True)
    entry = directory.lookup_by_employee_id("1001")

    same = engine.reconcile(InputRecord(employee_id="1001", new_job_title="Lift Operator"), entry)
    different = engine.reconcile(InputRecord(employee_id="1001", new_job_title="lift operator"), entry)

    assert same.job_title_match is True
    assert different.job_title_match is False


def test_extra_columns_attached(directory):
    engine = ReconciliationEngine(directory, extra_columns=lambda record: {"effective_date": record.effective_date})
    record = InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", effective_date="2026-01-01")

    result = engine.reconcile(record, directory.lookup_by_employee_id("1001"))

    assert result.csv_data == {"effective_date": "2026-01-01"}


def test_directory_search_failure_is_an_error_not_a_missing_record():
    connection = MagicMock()
    connection.search.return_value = False
    connection.entries = []
    connection.result = {'result': 50, 'description': 'insufficientAccessRights'}
    client = ActiveDirectoryClient("ldap://dc", "user", "secret", "DC=example,DC=com")
    client.connection = connection

    report = ReconciliationEngine(client).run([
        InputRecord(employee_id="1001", expected_manager_raw="Jane Doe (555)", row_number=2)
    ])

    assert report.not_found == []
    assert [error.employee_id for error in report.errors] == ["1001"]
    assert "insufficientAccessRights" in report.errors[0].message


def test_group_flags_ignore_case(directory):
    directory.add_user("4000", "Gil Case", groups=["sms users", "Lift\\, Ops"])
    directory.lookup_group_name = ActiveDirectoryClient("ldap://dc", "user", "secret", "DC=example,DC=com").lookup_group_name
    engine = ReconciliationEngine(directory, tracked_groups=["SMS Users", "Lift, Ops", "Sugarbush Staff"])

    result = engine.reconcile(InputRecord(employee_id="4000"), directory.lookup_by_employee_id("4000"))

    assert result.group_flags == {"SMS Users": True, "Lift, Ops": True, "Sugarbush Staff": False}
