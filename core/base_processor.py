# =============================================================================
# core/base_processor.py - Abstract base processor
# =============================================================================

from abc import ABC, abstractmethod
from typing import List, Dict, Any
import logging

from core.models import EnrichedRecord, ProcessingStats, LookupStatus, UserMFARecord
from core.ad_client import ActiveDirectoryClient
from utils.csv_utils import CSVHandler


class BaseUserProcessor(ABC):
    """Abstract base class for processors that enrich the MFA report from AD"""

    def __init__(self, ad_client: ActiveDirectoryClient):
        self.ad_client = ad_client
        self.logger = logging.getLogger(self.__class__.__name__)

    @abstractmethod
    def lookup_single_user(self, mfa_record: UserMFARecord) -> EnrichedRecord:
        """Look up one user in AD and return the enriched record"""
        pass

    @abstractmethod
    def record_to_dict(self, record: EnrichedRecord) -> Dict[str, Any]:
        """Convert an enriched record to a CSV row"""
        pass

    @abstractmethod
    def get_output_fieldnames(self) -> List[str]:
        """Get fieldnames for CSV output"""
        pass

    def should_skip_row(self, row: Dict[str, Any]) -> bool:
        """Skip rows without a principal name"""
        return not (row.get('user_principal_name') or '').strip()

    def is_malformed_row(self, row: Dict[str, Any]) -> bool:
        """Rows with missing or surplus fields cannot be trusted for the MFA flags"""
        return None in row or any(value is None for value in row.values())

    def parse_input_rows(self, csv_data: List[Dict[str, Any]]) -> List[UserMFARecord]:
        """Convert MFA report rows to records, logging and skipping bad rows"""
        mfa_records = []
        empty = 0

        # Line 1 is the header
        for line_number, row in enumerate(csv_data, start=2):
            if self.should_skip_row(row):
                empty += 1
                continue

            if self.is_malformed_row(row):
                self.logger.warning(
                    f"Skipping malformed row on line {line_number} "
                    f"for {row.get('user_principal_name')}: field count does not match header"
                )
                continue

            record = UserMFARecord.from_dict(row)
            reported_status = (row.get('mfa_status') or '').strip()
            if reported_status != record.mfa_status.value:
                self.logger.warning(
                    f"{record.principal_name}: mfa_status '{reported_status}' does not match "
                    f"registered methods, using {record.mfa_status.value}"
                )
            mfa_records.append(record)

        if empty:
            self.logger.warning(f"Skipped {empty} rows with an empty principal name")
        return mfa_records

    def process_users(self, input_csv: str, output_csv: str) -> ProcessingStats:
        """Main processing workflow"""
        self.logger.info(f"Starting {self.__class__.__name__} processing workflow")

        try:
            csv_data, headers = CSVHandler.read_csv(input_csv)
            self.logger.info(f"Read {len(csv_data)} records from {input_csv}")

            if 'user_principal_name' not in headers:
                raise ValueError(f"{input_csv} is not an MFA report (no user_principal_name column)")

            mfa_records = self.parse_input_rows(csv_data)

            processed_users = self.lookup_users(mfa_records)

            output_data = [self.record_to_dict(user) for user in processed_users]
            CSVHandler.write_csv(output_data, output_csv, self.get_output_fieldnames())

            stats = self.calculate_stats(processed_users)
            self.log_statistics(stats)

            return stats

        except Exception as e:
            self.logger.error(f"Processing failed: {e}")
            raise

    def lookup_users(self, mfa_records: List[UserMFARecord]) -> List[EnrichedRecord]:
        """Enrich every record, one lookup at a time, in input order"""
        processed_users = []
        total = len(mfa_records)

        for index, mfa_record in enumerate(mfa_records, start=1):
            self.logger.info(f"[{index}/{total}] Processing {mfa_record.principal_name}")
            processed_users.append(self.lookup_single_user(mfa_record))

        return processed_users

    def calculate_stats(self, processed_users: List[EnrichedRecord]) -> ProcessingStats:
        """Calculate processing statistics"""
        stats = ProcessingStats()
        stats.total_records = len(processed_users)

        for user in processed_users:
            status = user.lookup_status
            stats.lookup_status_counts[status] = stats.lookup_status_counts.get(status, 0) + 1

            if status == LookupStatus.FOUND:
                stats.successful_lookups += 1
            elif status == LookupStatus.NOT_FOUND:
                stats.failed_lookups += 1
            elif status == LookupStatus.ERROR:
                stats.error_lookups += 1

            if user.mobile == "Invalid":
                stats.invalid_mobiles += 1

        return stats

    def log_statistics(self, stats: ProcessingStats) -> None:
        """Log processing statistics"""
        status_counts = {status.value: count for status, count in stats.lookup_status_counts.items()}
        self.logger.info(f"Lookup summary: {status_counts}")
        self.logger.info(f"Success rate: {stats.success_rate:.1f}% ({stats.successful_lookups}/{stats.total_records})")
        if stats.invalid_mobiles:
            self.logger.warning(f"{stats.invalid_mobiles} mobile numbers could not be normalized")
