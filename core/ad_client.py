# =============================================================================
# core/ad_client.py - Active Directory client
# =============================================================================

import logging
from typing import Optional
from ldap3 import Server, Connection, ALL, BASE, MODIFY_REPLACE
from ldap3.core.exceptions import LDAPException
from ldap3.utils.conv import escape_filter_chars
from ldap3.utils.dn import parse_dn

from core.exceptions import DirectoryLookupError, DirectoryWriteError
from core.models import DirectoryEntry


class ActiveDirectoryClient:
    """Active Directory client implementing the lookups reconciliation needs"""

    USER_ATTRIBUTES = [
        'displayName', 'sAMAccountName', 'userAccountControl', 'manager',
        'title', 'description', 'memberOf'
    ]

    # LDAP result codes
    RESULT_SUCCESS = 0
    RESULT_NO_SUCH_OBJECT = 32

    def __init__(self, server_url: str, username: str, password: str, base_dn: str,
                 employee_id_attribute: str = 'employeeID'):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.base_dn = base_dn
        self.employee_id_attribute = employee_id_attribute
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        if not self.connect():
            raise ConnectionError(f"Could not connect to Active Directory at {self.server_url}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit"""
        self.disconnect()

    def connect(self) -> bool:
        """Establish connection to Active Directory"""
        try:
            server = Server(self.server_url, get_info=ALL)
            self.connection = Connection(
                server,
                user=self.username,
                password=self.password,
                auto_bind=True
            )
            self.logger.info("Successfully connected to Active Directory")
            return True
        except Exception as e:
            self.logger.error(f"Failed to connect to AD: {e}")
            return False

    def disconnect(self) -> None:
        """Close Active Directory connection"""
        if self.connection:
            self.connection.unbind()
            self.connection = None
            self.logger.info("Disconnected from Active Directory")

    def lookup_by_employee_id(self, employee_id: str) -> Optional[DirectoryEntry]:
        """Find the user carrying this employee id; None when there is none"""
        search_filter = (
            f"(&(objectCategory=person)(objectClass=user)"
            f"({self.employee_id_attribute}={escape_filter_chars(employee_id)}))"
        )
        entries = self._search(self.base_dn, search_filter, employee_id)

        if not entries:
            self.logger.debug(f"Employee {employee_id} not found in AD")
            return None

        if len(entries) > 1:
            self.logger.warning(f"Multiple users found for employee {employee_id}, using first match")

        return self._to_directory_entry(entries[0])

    def lookup_by_reference(self, reference: str) -> DirectoryEntry:
        """Read the entry a DN points at, such as a user's manager attribute"""
        entries = self._search(reference, '(objectClass=*)', reference, scope=BASE)

        if not entries:
            raise DirectoryLookupError(f"No directory entry at {reference}")

        return self._to_directory_entry(entries[0])

    def lookup_group_name(self, reference: str) -> str:
        """Return the common name of a group DN"""
        try:
            components = parse_dn(reference)
        except LDAPException as e:
            raise DirectoryLookupError(f"Malformed group reference {reference}: {e}") from e

        for attribute, value, _ in components:
            if attribute.lower() == 'cn':
                return self._unescape_dn_value(value)
        return reference

    @staticmethod
    def _unescape_dn_value(value: str) -> str:
        """Undo RFC 4514 escaping in an attribute value, e.g. Smith\\, J becomes Smith, J"""
        raw = bytearray()
        index = 0
        while index < len(value):
            char = value[index]
            if char == '\\' and index + 1 < len(value):
                pair = value[index + 1:index + 3]
                if len(pair) == 2 and all(c in '0123456789abcdefABCDEF' for c in pair):
                    raw.append(int(pair, 16))
                    index += 3
                    continue
                char = value[index + 1]
                index += 1
            raw.extend(char.encode('utf-8'))
            index += 1
        return raw.decode('utf-8', errors='replace')

    def write_attribute(self, employee_id: str, attribute: str, value: str) -> None:
        """Replace a single attribute on the user identified by employee id"""
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        entry = self.lookup_by_employee_id(employee_id)
        if entry is None:
            raise DirectoryWriteError(f"Employee {employee_id} not found in AD")

        try:
            succeeded = self.connection.modify(
                entry.distinguished_name,
                {attribute: [(MODIFY_REPLACE, [value])]}
            )
        except LDAPException as e:
            raise DirectoryWriteError(f"Error writing {attribute} for {employee_id}: {e}") from e

        if not succeeded:
            description = self.connection.result.get('description', 'unknown error')
            raise DirectoryWriteError(f"AD rejected {attribute} update for {employee_id}: {description}")

        self.logger.info(f"Updated {attribute} for {employee_id}")

    def _search(self, search_base: str, search_filter: str, identifier: str, scope=None) -> list:
        """Run a search and return the matching entries"""
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        attributes = self.USER_ATTRIBUTES + [self.employee_id_attribute]
        kwargs = {'scope': scope} if scope is not None else {}

        try:
            found = self.connection.search(
                search_base=search_base,
                search_filter=search_filter,
                attributes=attributes,
                **kwargs
            )
        except LDAPException as e:
            self.logger.error(f"Error querying {identifier}: {e}")
            raise DirectoryLookupError(f"Error querying {identifier}: {e}") from e

        # search() is also False for an empty successful search; only the result code tells them apart
        if not found:
            result = self.connection.result or {}
            if result.get('result', self.RESULT_SUCCESS) not in (self.RESULT_SUCCESS, self.RESULT_NO_SUCH_OBJECT):
                description = result.get('description') or result.get('message') or 'unknown error'
                self.logger.error(f"Error querying {identifier}: {description}")
                raise DirectoryLookupError(f"Error querying {identifier}: {description}")
            return []

        return list(self.connection.entries)

    def _to_directory_entry(self, entry) -> DirectoryEntry:
        """Convert an ldap3 entry into a DirectoryEntry"""
        attrs = entry.entry_attributes_as_dict

        def single(name: str) -> Optional[str]:
            values = attrs.get(name) or []
            return str(values[0]) if values else None

        uac = attrs.get('userAccountControl') or [0]
        return DirectoryEntry(
            employee_id=single(self.employee_id_attribute) or "",
            display_name=single('displayName') or "",
            account_name=single('sAMAccountName') or "",
            enabled=self._is_account_active(int(uac[0] or 0)),
            manager_ref=single('manager'),
            title=single('title'),
            description=single('description'),
            group_refs=frozenset(str(group) for group in attrs.get('memberOf') or []),
            distinguished_name=entry.entry_dn
        )

    def _is_account_active(self, user_account_control: int) -> bool:
        """Check if user account is active based on userAccountControl flags"""
        # 0x2 = ACCOUNTDISABLE flag
        return not bool(user_account_control & 0x2)
