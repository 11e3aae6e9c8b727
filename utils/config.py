# =============================================================================
# utils/config.py - Configuration management
# =============================================================================

import os
from typing import Optional, List
from dotenv import load_dotenv


class Config:
    """Configuration management"""

    def __init__(self):
        load_dotenv()

    # On-prem Active Directory

    @property
    def ad_server(self) -> Optional[str]:
        return os.getenv("AD_SERVER")

    @property
    def ad_username(self) -> Optional[str]:
        return os.getenv("AD_USERNAME")

    @property
    def ad_password(self) -> Optional[str]:
        return os.getenv("AD_PASSWORD")

    @property
    def base_dn(self) -> Optional[str]:
        return os.getenv("BASE_DN")

    # Microsoft Graph app registration

    @property
    def tenant_id(self) -> Optional[str]:
        return os.getenv("TENANT_ID")

    @property
    def client_id(self) -> Optional[str]:
        return os.getenv("CLIENT_ID")

    @property
    def client_secret(self) -> Optional[str]:
        return os.getenv("CLIENT_SECRET")

    # Report locations

    @property
    def mfa_report_path(self) -> str:
        return os.getenv("MFA_REPORT_PATH", "mfa_report.csv")

    @property
    def ad_report_path(self) -> str:
        return os.getenv("AD_REPORT_PATH", "mfa_report_ad.csv")

    @property
    def ad_normalized_report_path(self) -> str:
        return os.getenv("AD_NORMALIZED_REPORT_PATH", "mfa_report_ad_normalized.csv")

    def validate_ad_config(self) -> bool:
        """Validate that all required AD configuration is present"""
        return not self.get_missing_ad_vars()

    def get_missing_ad_vars(self) -> List[str]:
        """Get list of missing AD configuration variables"""
        vars_and_names = [
            (self.ad_server, "AD_SERVER"),
            (self.ad_username, "AD_USERNAME"),
            (self.ad_password, "AD_PASSWORD"),
            (self.base_dn, "BASE_DN")
        ]
        return [name for var, name in vars_and_names if not var]

    def validate_graph_config(self) -> bool:
        """Validate that the Graph app registration settings are present"""
        return not self.get_missing_graph_vars()

    def get_missing_graph_vars(self) -> List[str]:
        """Get list of missing Graph configuration variables"""
        vars_and_names = [
            (self.tenant_id, "TENANT_ID"),
            (self.client_id, "CLIENT_ID"),
            (self.client_secret, "CLIENT_SECRET")
        ]
        return [name for var, name in vars_and_names if not var]
