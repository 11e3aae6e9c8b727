# =============================================================================
# core/ad_client.py - On-prem Active Directory client
# =============================================================================

import logging
from typing import Dict, Any, Optional
from ldap3 import Server, Connection, ALL, BASE, SUBTREE
from ldap3.core.exceptions import LDAPException
from ldap3.core.results import RESULT_SUCCESS, RESULT_NO_SUCH_OBJECT
from ldap3.utils.conv import escape_filter_chars


USER_ATTRIBUTES = [
    'userAccountControl', 'mobile', 'manager', 'mail', 'title',
    'company', 'department', 'description', 'lastLogon', 'pwdLastSet',
    'lastLogonTimestamp', 'whenCreated', 'distinguishedName'
]


class ActiveDirectoryClient:
    """Active Directory client for principal name and manager lookups"""

    def __init__(self, server_url: str, username: str, password: str, base_dn: str):
        self.server_url = server_url
        self.username = username
        self.password = password
        self.base_dn = base_dn
        self.connection: Optional[Connection] = None
        self.logger = logging.getLogger(__name__)

    def __enter__(self):
        """Context manager entry"""
        if not self.connect():
            raise ConnectionError(f"Could not bind to Active Directory at {self.server_url}")
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

    def find_user_by_principal_name(self, principal_name: str) -> Dict[str, Any]:
        """
        Look up an account by userPrincipalName.

        Returns the account's attributes keyed by LDAP name with single values
        unwrapped, or an empty dict when no account matches. LDAP errors are
        left to the caller.
        """
        search_filter = (
            f"(&(objectCategory=person)(objectClass=user)"
            f"(userPrincipalName={escape_filter_chars(principal_name)}))"
        )
        entries = self._search(self.base_dn, search_filter, USER_ATTRIBUTES, SUBTREE)

        if not entries:
            self.logger.debug(f"User {principal_name} not found in AD")
            return {}

        if len(entries) > 1:
            self.logger.warning(f"Multiple users found for {principal_name}, using first match")

        self.logger.debug(f"Found user {principal_name} in AD")
        return self._flatten(entries[0].entry_attributes_as_dict)

    def resolve_manager_display_name(self, manager_dn: str) -> str:
        """Read the displayName of the object a manager reference points at"""
        entries = self._search(manager_dn, '(objectClass=*)', ['displayName'], BASE)
        if not entries:
            raise LookupError(f"Manager {manager_dn} not found in AD")

        display_name = self._flatten(entries[0].entry_attributes_as_dict).get('displayName')
        return str(display_name) if display_name else manager_dn

    def is_account_active(self, user_account_control: Optional[int]) -> bool:
        """Check if user account is active based on userAccountControl flags"""
        # 0x2 = ACCOUNTDISABLE flag
        return not bool(int(user_account_control or 0) & 0x2)

    def _search(self, search_base: str, search_filter: str, attributes, scope):
        if not self.connection:
            raise ConnectionError("Not connected to Active Directory")

        succeeded = self.connection.search(
            search_base=search_base,
            search_filter=search_filter,
            search_scope=scope,
            attributes=attributes
        )
        if not succeeded:
            result = self.connection.result or {}
            code = result.get('result')
            # noSuchObject just means there is nothing at search_base
            if code not in (RESULT_SUCCESS, RESULT_NO_SUCH_OBJECT):
                raise LDAPException(
                    f"Search under {search_base} failed: {result.get('description')} ({code})"
                )
            return []
        return self.connection.entries

    @staticmethod
    def _flatten(attributes: Dict[str, Any]) -> Dict[str, Any]:
        """Unwrap single-valued attribute lists; absent attributes become None"""
        flat = {}
        for name, values in attributes.items():
            if isinstance(values, list):
                if not values:
                    flat[name] = None
                elif len(values) == 1:
                    flat[name] = values[0]
                else:
                    flat[name] = values
            else:
                flat[name] = values
        return flat
