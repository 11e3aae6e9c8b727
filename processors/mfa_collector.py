# =============================================================================
# processors/mfa_collector.py - MFA registration report from Microsoft Graph
# =============================================================================

import logging
from typing import List, Dict, Any

from core.graph_client import GraphClient, GraphAPIError
from core.models import UserMFARecord, MFAStatus, CollectionStats, MFA_FIELDNAMES
from utils.csv_utils import CSVHandler


# Graph @odata.type -> report flag
METHOD_TYPE_FLAGS = {
    '#microsoft.graph.emailAuthenticationMethod': 'email',
    '#microsoft.graph.fido2AuthenticationMethod': 'fido2',
    '#microsoft.graph.microsoftAuthenticatorAuthenticationMethod': 'app',
    '#microsoft.graph.passwordAuthenticationMethod': 'password',
    '#microsoft.graph.phoneAuthenticationMethod': 'phone',
    '#microsoft.graph.softwareOathAuthenticationMethod': 'softwareoath',
    '#microsoft.graph.temporaryAccessPassAuthenticationMethod': 'tempaccess',
    '#microsoft.graph.windowsHelloForBusinessAuthenticationMethod': 'hellobusiness',
}

# Registered on every account, so never counts as a second factor
SINGLE_FACTOR_FLAGS = {'password'}


class MFACollector:
    """Builds one MFA record per cloud directory user"""

    def __init__(self, graph_client: GraphClient, strict: bool = False):
        self.graph_client = graph_client
        self.strict = strict
        self.stats = CollectionStats()
        self.logger = logging.getLogger(self.__class__.__name__)

    def build_record(self, principal_name: str, methods: List[Dict[str, Any]]) -> UserMFARecord:
        """Set one flag per registered method and derive the MFA status"""
        record = UserMFARecord(principal_name=principal_name)

        for method in methods:
            method_type = method.get('@odata.type', '')
            flag = METHOD_TYPE_FLAGS.get(method_type)
            if flag is None:
                # Method kinds added to Graph later are left out of the report
                self.logger.debug(f"Ignoring unknown method type {method_type!r} for {principal_name}")
                continue

            setattr(record, flag, True)
            if flag not in SINGLE_FACTOR_FLAGS:
                record.mfa_status = MFAStatus.ENABLED

        return record

    def collect(self) -> List[UserMFARecord]:
        """
        Query every user and their registered authentication methods.

        Failing to list users is fatal. A failed method lookup skips that
        user (listed in ``self.stats.method_errors``) unless the collector is
        strict, in which case the error is raised.
        """
        self.stats = CollectionStats()
        users = self.graph_client.list_all_users()
        records = []
        total = len(users)

        for index, user in enumerate(users, start=1):
            principal_name = user.get('userPrincipalName', '')
            if not principal_name:
                self.logger.warning(f"Skipping user {user.get('id')} with no principal name")
                continue

            self.logger.info(f"[{index}/{total}] Processing {principal_name}")
            self.stats.total_users += 1

            try:
                methods = self.graph_client.list_auth_methods(principal_name)
            except GraphAPIError as e:
                if self.strict:
                    raise
                self.logger.error(f"Error reading authentication methods for {principal_name}: {e}")
                self.stats.method_errors.append(principal_name)
                continue

            record = self.build_record(principal_name, methods)
            if record.mfa_status == MFAStatus.ENABLED:
                self.stats.mfa_enabled += 1
            else:
                self.stats.mfa_disabled += 1
            records.append(record)

        return records

    def run(self, output_csv: str) -> CollectionStats:
        """Collect the report and write it to CSV"""
        self.logger.info(f"Starting {self.__class__.__name__} run")

        records = self.collect()
        CSVHandler.write_csv([record.to_dict() for record in records], output_csv, MFA_FIELDNAMES)

        self.log_statistics(self.stats)
        return self.stats

    def log_statistics(self, stats: CollectionStats) -> None:
        self.logger.info(
            f"MFA summary: {stats.mfa_enabled} enabled, {stats.mfa_disabled} disabled "
            f"({stats.enabled_rate:.1f}% enabled)"
        )
        if stats.method_errors:
            self.logger.warning(
                f"Authentication methods could not be read for {len(stats.method_errors)} users, "
                f"left out of the report: {', '.join(stats.method_errors)}"
            )
