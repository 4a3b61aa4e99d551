"""
Enumeration definitions for the Network Insights backend.

All enums inherit from both `str` and `Enum` so they serialize as plain strings
in Pydantic models and JSON responses.
"""

from enum import Enum


class LicenseeStatus(str, Enum):
    """
    Account status of a licensee.

    Derived at ingestion from the spreadsheet Status column when present,
    otherwise from the Cancelado flag (S/SIM means inactive).
    """
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class GraduationTier(str, Enum):
    """
    Ordered career tier of a licensee, lowest first.

    Comparison between tiers uses `rank`, not the string value:

        GraduationTier.SENIOR.rank < GraduationTier.DIRECTOR.rank
    """
    CONSULTANT = "CONSULTANT"
    SENIOR = "SENIOR"
    MANAGER = "MANAGER"
    EXECUTIVE = "EXECUTIVE"
    DIRECTOR = "DIRECTOR"
    SHAREHOLDER = "SHAREHOLDER"

    @property
    def rank(self) -> int:
        return _TIER_ORDER.index(self)

    @property
    def is_entry_level(self) -> bool:
        return self is GraduationTier.CONSULTANT


_TIER_ORDER = list(GraduationTier)


class NumericField(str, Enum):
    """Numeric licensee fields accepted by the metrics aggregator."""
    ACTIVE_CLIENTS = "active_clients"
    TELECOM_CLIENTS = "telecom_clients"
    ACTIVE_LICENSEES = "active_licensees"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class RiskLabel(str, Enum):
    """
    Churn-risk label.

    - urgent: score > 70
    - monitor: 40 < score <= 70
    - low_risk: score <= 40
    """
    URGENT = "urgent"
    MONITOR = "monitor"
    LOW_RISK = "low_risk"


class StateCluster(str, Enum):
    """Geographic performance cluster assigned per state."""
    PREMIUM = "premium"
    POTENTIAL = "potential"
    GROWTH = "growth"
    DEVELOPMENT = "development"


class ChatIntent(str, Enum):
    """
    Intent of an assistant chat message.

    Every intent except GENERAL is answered from computed metrics without
    calling the language model.
    """
    ACTIVE_COUNT = "active_count"
    CONVERSION_RATE = "conversion_rate"
    TOP_PERFORMERS = "top_performers"
    CHURN_RISK = "churn_risk"
    STATE_COMPARISON = "state_comparison"
    GRADUATION_DISTRIBUTION = "graduation_distribution"
    GENERAL = "general"


class InsightType(str, Enum):
    ALERT = "alert"
    RECOMMENDATION = "recommendation"
    PREDICTION = "prediction"


class InsightPriority(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class ExportFormat(str, Enum):
    CSV = "csv"
    JSON = "json"
