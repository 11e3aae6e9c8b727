"""
Shared fixtures for the report tests.
"""

from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest

from core.ad_client import ActiveDirectoryClient


@pytest.fixture
def ad_account():
    """Attributes of a typical enabled AD account, as returned by the AD client."""
    return {
        'userAccountControl': 512,
        'mobile': '(555) 123-4567',
        'manager': 'CN=Jane Boss,OU=Staff,DC=corp,DC=example,DC=com',
        'mail': 'alice@example.com',
        'title': 'Engineer',
        'company': 'Example Corp',
        'department': 'IT',
        'description': None,
        'lastLogon': datetime(2024, 3, 1, 8, 30, 0, tzinfo=timezone.utc),
        'pwdLastSet': 0,
        'lastLogonTimestamp': datetime(1601, 1, 1, tzinfo=timezone.utc),
        'whenCreated': datetime(2020, 1, 15, 9, 0, 0, tzinfo=timezone.utc),
        'distinguishedName': 'CN=Alice,OU=Staff,DC=corp,DC=example,DC=com',
    }


@pytest.fixture
def ad_client(ad_account):
    """AD client double that finds alice@example.com and her manager."""
    client = MagicMock(spec=ActiveDirectoryClient)
    client.find_user_by_principal_name.side_effect = (
        lambda upn: dict(ad_account) if upn == 'alice@example.com' else {}
    )
    client.resolve_manager_display_name.return_value = 'Jane Boss'
    client.is_account_active.side_effect = lambda uac: not bool(int(uac or 0) & 0x2)
    return client
