"""
Tests for AD enrichment, with and without phone normalization.
"""

import logging
from unittest.mock import MagicMock

import pytest
from ldap3.core.exceptions import LDAPSocketOpenError

from core.graph_client import GraphClient
from core.models import UserMFARecord, MFAStatus, LookupStatus, MFA_FIELDNAMES, AD_FIELDNAMES
from processors.ad_enricher import ADEnricherProcessor
from processors.ad_enricher_normalized import NormalizingADEnricherProcessor
from processors.mfa_collector import MFACollector
from utils.csv_utils import CSVHandler


ALICE = UserMFARecord(principal_name='alice@example.com', app=True, password=True)
NOBODY = UserMFARecord(principal_name='nobody@example.com')


def assert_not_found(record):
    assert record.found is False
    assert record.mobile == "N/A"
    assert record.mobile_normalized == "N/A"
    assert record.enabled is False
    for name in ('manager', 'mail', 'title', 'company', 'department', 'description',
                 'last_logon', 'pwd_last_set', 'last_logon_timestamp', 'when_created',
                 'distinguished_name'):
        assert getattr(record, name) == "N/A", name


class TestADEnricher:
    """Test attribute copying and not-found handling."""

    def test_found(self, ad_client):
        record = ADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.found is True
        assert record.lookup_status == LookupStatus.FOUND
        assert record.app is True
        assert record.mfa_status == MFAStatus.ENABLED
        assert record.enabled is True
        assert record.manager == 'Jane Boss'
        assert record.mail == 'alice@example.com'
        assert record.company == 'Example Corp'
        assert record.description == 'N/A'
        assert record.mobile == '(555) 123-4567'
        assert record.mobile_normalized == 'N/A'
        assert record.last_logon == '2024-03-01 08:30:00'
        assert record.pwd_last_set == 'Never'
        assert record.last_logon_timestamp == 'Never'
        assert record.when_created == '2020-01-15 09:00:00'
        assert record.distinguished_name.startswith('CN=Alice')
        ad_client.resolve_manager_display_name.assert_called_once_with(
            'CN=Jane Boss,OU=Staff,DC=corp,DC=example,DC=com'
        )

    def test_disabled_account_without_manager_or_mobile(self, ad_client, ad_account):
        ad_account.update(userAccountControl=514, manager=None, mobile=None)

        record = ADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.found is True
        assert record.enabled is False
        assert record.manager == 'N/A'
        assert record.mobile == 'blank'
        ad_client.resolve_manager_display_name.assert_not_called()

    def test_not_found(self, ad_client):
        record = ADEnricherProcessor(ad_client).lookup_single_user(NOBODY)

        assert_not_found(record)
        assert record.lookup_status == LookupStatus.NOT_FOUND

    def test_lookup_error_is_reported_as_not_found(self, ad_client, caplog):
        ad_client.find_user_by_principal_name.side_effect = LDAPSocketOpenError("unreachable")

        record = ADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert_not_found(record)
        assert record.lookup_status == LookupStatus.ERROR
        assert "unreachable" in caplog.text

    def test_manager_error_is_reported_as_not_found(self, ad_client):
        ad_client.resolve_manager_display_name.side_effect = LookupError("no such manager")

        record = ADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert_not_found(record)
        assert record.lookup_status == LookupStatus.ERROR


class TestNormalizingADEnricher:
    """Test mobile normalization on top of enrichment."""

    def test_valid_mobile(self, ad_client):
        record = NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.mobile == '(555) 123-4567'
        assert record.mobile_normalized == '5551234567'

    def test_mobile_with_junk(self, ad_client, ad_account):
        ad_account['mobile'] = '5551234567x'

        record = NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.mobile_normalized == '5551234567'

    def test_invalid_mobile(self, ad_client, ad_account):
        ad_account['mobile'] = '25551234567'

        record = NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.found is True
        assert record.mobile == 'Invalid'
        assert record.mobile_normalized == 'N/A'

    def test_blank_mobile(self, ad_client, ad_account):
        ad_account['mobile'] = ''

        record = NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.mobile == 'blank'
        assert record.mobile_normalized == 'N/A'

    def test_not_found(self, ad_client):
        assert_not_found(NormalizingADEnricherProcessor(ad_client).lookup_single_user(NOBODY))

    def test_output_fieldnames(self, ad_client):
        fieldnames = NormalizingADEnricherProcessor(ad_client).get_output_fieldnames()

        assert fieldnames[:len(MFA_FIELDNAMES)] == MFA_FIELDNAMES
        assert fieldnames.index('mobile_normalized') == fieldnames.index('mobile') + 1
        assert len(fieldnames) == len(MFA_FIELDNAMES) + len(AD_FIELDNAMES) + 1


class TestProcessUsers:
    """Test the file-to-file workflow."""

    @pytest.fixture
    def mfa_report(self, tmp_path):
        path = tmp_path / "mfa_report.csv"
        rows = [ALICE.to_dict(), NOBODY.to_dict(), UserMFARecord(principal_name='').to_dict()]
        CSVHandler.write_csv(rows, str(path), MFA_FIELDNAMES)
        return path

    def test_basic_report(self, ad_client, mfa_report, tmp_path):
        output = tmp_path / "mfa_report_ad.csv"

        stats = ADEnricherProcessor(ad_client).process_users(str(mfa_report), str(output))

        rows, headers = CSVHandler.read_csv(str(output))
        assert headers == MFA_FIELDNAMES + AD_FIELDNAMES
        assert [row['user_principal_name'] for row in rows] == ['alice@example.com', 'nobody@example.com']
        assert rows[0]['found'] == 'True'
        assert rows[0]['app'] == 'True'
        assert rows[1]['found'] == 'False'
        assert rows[1]['mobile'] == 'N/A'
        assert stats.total_records == 2
        assert stats.successful_lookups == 1
        assert stats.failed_lookups == 1
        assert stats.success_rate == 50.0

    def test_normalized_report(self, ad_client, mfa_report, tmp_path, ad_account):
        ad_account['mobile'] = 'call me'
        output = tmp_path / "mfa_report_ad_normalized.csv"

        stats = NormalizingADEnricherProcessor(ad_client).process_users(str(mfa_report), str(output))

        rows, headers = CSVHandler.read_csv(str(output))
        assert 'mobile_normalized' in headers
        assert rows[0]['mobile'] == 'Invalid'
        assert stats.invalid_mobiles == 1

    def test_rejects_non_mfa_report(self, ad_client, tmp_path):
        path = tmp_path / "other.csv"
        path.write_text("username,email\nalice,alice@example.com\n", encoding="utf-8")

        with pytest.raises(ValueError):
            ADEnricherProcessor(ad_client).process_users(str(path), str(tmp_path / "out.csv"))

    def test_collector_output_feeds_enricher(self, ad_client, tmp_path):
        """The MFA report written by the collector is valid enricher input."""
        graph_client = MagicMock(spec=GraphClient)
        graph_client.list_all_users.return_value = [{'userPrincipalName': 'alice@example.com'}]
        graph_client.list_auth_methods.return_value = [
            {'@odata.type': '#microsoft.graph.phoneAuthenticationMethod'}
        ]
        mfa_path = tmp_path / "mfa.csv"
        MFACollector(graph_client).run(str(mfa_path))

        output = tmp_path / "ad.csv"
        ADEnricherProcessor(ad_client).process_users(str(mfa_path), str(output))

        rows, _ = CSVHandler.read_csv(str(output))
        assert rows[0]['phone'] == 'True'
        assert rows[0]['mfa_status'] == 'Enabled'
        assert rows[0]['manager'] == 'Jane Boss'

    def test_short_row_is_skipped(self, ad_client, tmp_path, caplog):
        """A truncated line is logged and skipped; the other rows are still enriched."""
        path = tmp_path / "mfa_report.csv"
        CSVHandler.write_csv([ALICE.to_dict()], str(path), MFA_FIELDNAMES)
        with open(path, 'a', encoding='utf-8') as file:
            file.write("bob@example.com\n")
        output = tmp_path / "out.csv"

        stats = ADEnricherProcessor(ad_client).process_users(str(path), str(output))

        rows, _ = CSVHandler.read_csv(str(output))
        assert [row['user_principal_name'] for row in rows] == ['alice@example.com']
        assert stats.total_records == 1
        assert "line 3" in caplog.text
        assert "bob@example.com" in caplog.text

    def test_status_is_derived_from_flags(self, ad_client, tmp_path, caplog):
        """An mfa_status that disagrees with the flags is corrected."""
        path = tmp_path / "mfa_report.csv"
        row = UserMFARecord(principal_name='alice@example.com', password=True).to_dict()
        row['mfa_status'] = 'Enabled'
        other = NOBODY.to_dict()
        other['mfa_status'] = 'enabled'
        CSVHandler.write_csv([row, other], str(path), MFA_FIELDNAMES)
        output = tmp_path / "out.csv"

        ADEnricherProcessor(ad_client).process_users(str(path), str(output))

        rows, _ = CSVHandler.read_csv(str(output))
        assert [r['mfa_status'] for r in rows] == ['Disabled', 'Disabled']
        assert "does not match registered methods" in caplog.text


class TestMobileHandling:
    """Test that mobile numbers are copied without alteration."""

    def test_mobile_copied_verbatim(self, ad_client, ad_account):
        ad_account['mobile'] = ' +1 555 123 4567 '

        record = ADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.mobile == ' +1 555 123 4567 '

    def test_whitespace_mobile_is_blank(self, ad_client, ad_account):
        ad_account['mobile'] = '   '

        assert ADEnricherProcessor(ad_client).lookup_single_user(ALICE).mobile == 'blank'
        assert NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE).mobile == 'blank'

    def test_normalized_keeps_raw_mobile(self, ad_client, ad_account):
        ad_account['mobile'] = ' 555.123.4567 '

        record = NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert record.mobile == ' 555.123.4567 '
        assert record.mobile_normalized == '5551234567'

    def test_invalid_mobile_logged_once(self, ad_client, ad_account, caplog):
        ad_account['mobile'] = '12345'

        with caplog.at_level(logging.WARNING):
            NormalizingADEnricherProcessor(ad_client).lookup_single_user(ALICE)

        assert len([r for r in caplog.records if '12345' in r.getMessage()]) == 1
