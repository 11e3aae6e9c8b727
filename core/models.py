# =============================================================================
# core/models.py - Report data models
# =============================================================================

from dataclasses import dataclass, field, fields
from typing import Dict, Any, List
from enum import Enum


class MFAStatus(Enum):
    """Overall MFA state of a cloud directory user"""
    ENABLED = "Enabled"
    DISABLED = "Disabled"


class LookupStatus(Enum):
    """Outcome of an on-prem AD lookup"""
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


# Boolean flag per authentication method kind, in report column order
METHOD_FLAGS = [
    'email', 'fido2', 'app', 'password', 'phone',
    'softwareoath', 'tempaccess', 'hellobusiness'
]

MFA_FIELDNAMES = ['user_principal_name', 'mfa_status'] + METHOD_FLAGS

AD_FIELDNAMES = [
    'found', 'mobile', 'enabled', 'manager', 'mail', 'title', 'company',
    'department', 'description', 'last_logon', 'pwd_last_set',
    'last_logon_timestamp', 'when_created', 'distinguished_name'
]

NOT_AVAILABLE = "N/A"


def _text(row: Dict[str, Any], key: str) -> str:
    # DictReader fills the missing fields of a short row with None
    return (row.get(key) or '').strip()


def _parse_bool(value: Any) -> bool:
    return str(value or '').strip().lower() == 'true'


@dataclass
class UserMFARecord:
    """MFA registration summary for one cloud directory user"""
    principal_name: str
    mfa_status: MFAStatus = field(default=MFAStatus.DISABLED, init=False)
    email: bool = False
    fido2: bool = False
    app: bool = False
    password: bool = False
    phone: bool = False
    softwareoath: bool = False
    tempaccess: bool = False
    hellobusiness: bool = False

    def __post_init__(self):
        self.refresh_status()

    @property
    def has_mfa(self) -> bool:
        """True when any method other than password is registered"""
        return any(getattr(self, flag) for flag in METHOD_FLAGS if flag != 'password')

    def refresh_status(self) -> None:
        """Derive mfa_status from the method flags"""
        self.mfa_status = MFAStatus.ENABLED if self.has_mfa else MFAStatus.DISABLED

    def to_dict(self) -> Dict[str, Any]:
        row = {
            'user_principal_name': self.principal_name,
            'mfa_status': self.mfa_status.value,
        }
        for flag in METHOD_FLAGS:
            row[flag] = getattr(self, flag)
        return row

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> 'UserMFARecord':
        """Rebuild a record from an MFA report row; mfa_status is derived from the flags"""
        flags = {flag: _parse_bool(row.get(flag)) for flag in METHOD_FLAGS}
        return cls(principal_name=_text(row, 'user_principal_name'), **flags)


@dataclass
class EnrichedRecord(UserMFARecord):
    """MFA record plus on-prem Active Directory attributes"""
    found: bool = False
    mobile: str = NOT_AVAILABLE
    mobile_normalized: str = NOT_AVAILABLE
    enabled: bool = False
    manager: str = NOT_AVAILABLE
    mail: str = NOT_AVAILABLE
    title: str = NOT_AVAILABLE
    company: str = NOT_AVAILABLE
    department: str = NOT_AVAILABLE
    description: str = NOT_AVAILABLE
    last_logon: str = NOT_AVAILABLE
    pwd_last_set: str = NOT_AVAILABLE
    last_logon_timestamp: str = NOT_AVAILABLE
    when_created: str = NOT_AVAILABLE
    distinguished_name: str = NOT_AVAILABLE
    lookup_status: LookupStatus = field(default=LookupStatus.NOT_FOUND, compare=False)

    @classmethod
    def from_mfa_record(cls, mfa_record: UserMFARecord) -> 'EnrichedRecord':
        """Start an enriched record with every AD field at its default"""
        values = {f.name: getattr(mfa_record, f.name) for f in fields(UserMFARecord) if f.init}
        return cls(**values)

    def to_dict(self, include_normalized: bool = False) -> Dict[str, Any]:
        row = super().to_dict()
        for name in AD_FIELDNAMES:
            row[name] = getattr(self, name)
            if name == 'mobile' and include_normalized:
                row['mobile_normalized'] = self.mobile_normalized
        return row

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> 'EnrichedRecord':
        """Rebuild a record from an enriched report row"""
        record = cls.from_mfa_record(UserMFARecord.from_dict(row))
        for name in AD_FIELDNAMES + ['mobile_normalized']:
            if name not in row:
                continue
            if name in ('found', 'enabled'):
                setattr(record, name, _parse_bool(row[name]))
            else:
                setattr(record, name, row[name] if row[name] is not None else NOT_AVAILABLE)
        record.lookup_status = LookupStatus.FOUND if record.found else LookupStatus.NOT_FOUND
        return record


@dataclass
class ProcessingStats:
    """Statistics for AD enrichment results"""
    total_records: int = 0
    successful_lookups: int = 0
    failed_lookups: int = 0
    error_lookups: int = 0
    invalid_mobiles: int = 0
    lookup_status_counts: Dict[LookupStatus, int] = field(default_factory=dict)

    @property
    def success_rate(self) -> float:
        """Calculate success rate percentage"""
        if self.total_records == 0:
            return 0.0
        return (self.successful_lookups / self.total_records) * 100


@dataclass
class CollectionStats:
    """Statistics for an MFA collection run"""
    total_users: int = 0
    mfa_enabled: int = 0
    mfa_disabled: int = 0
    method_errors: List[str] = field(default_factory=list)

    @property
    def enabled_rate(self) -> float:
        """Share of reported users with MFA enabled, as a percentage"""
        reported = self.mfa_enabled + self.mfa_disabled
        if reported == 0:
            return 0.0
        return (self.mfa_enabled / reported) * 100
