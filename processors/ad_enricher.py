# =============================================================================
# processors/ad_enricher.py - AD enrichment of the MFA report
# =============================================================================

from typing import List, Dict, Any

from core.base_processor import BaseUserProcessor
from core.models import (
    EnrichedRecord, LookupStatus, UserMFARecord,
    MFA_FIELDNAMES, AD_FIELDNAMES, NOT_AVAILABLE
)
from utils.timestamps import format_ad_timestamp, format_generalized_time


BLANK_MOBILE = "blank"

# Report field -> AD attribute, copied as-is when present
STRING_ATTRIBUTES = {
    'mail': 'mail',
    'title': 'title',
    'company': 'company',
    'department': 'department',
    'description': 'description',
    'distinguished_name': 'distinguishedName',
}

TIMESTAMP_ATTRIBUTES = {
    'last_logon': 'lastLogon',
    'pwd_last_set': 'pwdLastSet',
    'last_logon_timestamp': 'lastLogonTimestamp',
}


class ADEnricherProcessor(BaseUserProcessor):
    """Adds on-prem AD account attributes to each MFA report row"""

    def lookup_single_user(self, mfa_record: UserMFARecord) -> EnrichedRecord:
        """
        Look up the account by principal name and copy its attributes.

        A missing account and a failed lookup (including manager resolution)
        both leave the record at its defaults with found=False. Only
        lookup_status tells them apart.
        """
        principal_name = mfa_record.principal_name

        try:
            ad_data = self.ad_client.find_user_by_principal_name(principal_name)
            if not ad_data:
                self.logger.info(f"{principal_name} not found in AD")
                return self.create_not_found_record(mfa_record, LookupStatus.NOT_FOUND)

            return self.create_enriched_record(mfa_record, ad_data)

        except Exception as e:
            self.logger.error(f"Error during lookup for {principal_name}: {e}")
            return self.create_not_found_record(mfa_record, LookupStatus.ERROR)

    def create_not_found_record(self, mfa_record: UserMFARecord,
                                status: LookupStatus) -> EnrichedRecord:
        record = EnrichedRecord.from_mfa_record(mfa_record)
        record.found = False
        record.mobile = NOT_AVAILABLE
        record.lookup_status = status
        return record

    def create_enriched_record(self, mfa_record: UserMFARecord,
                               ad_data: Dict[str, Any]) -> EnrichedRecord:
        """Build the enriched record from AD attributes"""
        record = EnrichedRecord.from_mfa_record(mfa_record)

        # Resolved first so a failure leaves the record untouched
        manager_dn = ad_data.get('manager')
        if manager_dn:
            record.manager = self.ad_client.resolve_manager_display_name(str(manager_dn))

        record.found = True
        record.lookup_status = LookupStatus.FOUND
        record.enabled = self.ad_client.is_account_active(ad_data.get('userAccountControl'))

        for field_name, attribute in STRING_ATTRIBUTES.items():
            value = ad_data.get(attribute)
            if value:
                setattr(record, field_name, str(value))

        for field_name, attribute in TIMESTAMP_ATTRIBUTES.items():
            setattr(record, field_name, format_ad_timestamp(ad_data.get(attribute)))

        record.when_created = format_generalized_time(ad_data.get('whenCreated'))

        mobile = ad_data.get('mobile')
        self.populate_mobile(record, str(mobile) if mobile is not None else "")

        return record

    def populate_mobile(self, record: EnrichedRecord, raw_mobile: str) -> None:
        """Copy the mobile number verbatim, or mark it blank"""
        record.mobile = raw_mobile if raw_mobile.strip() else BLANK_MOBILE

    def record_to_dict(self, record: EnrichedRecord) -> Dict[str, Any]:
        return record.to_dict()

    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for the enriched report"""
        return MFA_FIELDNAMES + AD_FIELDNAMES
