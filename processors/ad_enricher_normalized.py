# =============================================================================
# processors/ad_enricher_normalized.py - AD enrichment with phone normalization
# =============================================================================

from typing import List, Dict, Any

from core.models import EnrichedRecord, NOT_AVAILABLE
from processors.ad_enricher import ADEnricherProcessor, BLANK_MOBILE
from utils.phone import normalize_phone_number


INVALID_MOBILE = "Invalid"


class NormalizingADEnricherProcessor(ADEnricherProcessor):
    """AD enrichment that also reduces mobile numbers to 10 digits"""

    def populate_mobile(self, record: EnrichedRecord, raw_mobile: str) -> None:
        if not raw_mobile.strip():
            record.mobile = BLANK_MOBILE
            record.mobile_normalized = NOT_AVAILABLE
            return

        normalized = normalize_phone_number(raw_mobile)
        if normalized is None:
            record.mobile = INVALID_MOBILE
            record.mobile_normalized = NOT_AVAILABLE
        else:
            record.mobile = raw_mobile
            record.mobile_normalized = normalized

    def record_to_dict(self, record: EnrichedRecord) -> Dict[str, Any]:
        return record.to_dict(include_normalized=True)

    def get_output_fieldnames(self) -> List[str]:
        """Enriched columns with mobile_normalized right after mobile"""
        fieldnames = super().get_output_fieldnames()
        position = fieldnames.index('mobile') + 1
        return fieldnames[:position] + ['mobile_normalized'] + fieldnames[position:]
