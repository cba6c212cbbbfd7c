"""Course insights: role-gated aggregate computations over queue activity."""

from officehours.services.insights.filters import (
    EntityKind,
    Filter,
    FilterConfigurationError,
    apply_filters,
)
from officehours.services.insights.outputs import (
    InsightComponent,
    InsightOutput,
    InsightSize,
)
from officehours.services.insights.registry import (
    INSIGHTS,
    InsightContractError,
    InsightDefinition,
    InsightError,
    InsightForbiddenError,
    InsightNotFoundError,
    compute_insight,
    get_insight,
    list_insights,
)

__all__ = [
    "EntityKind",
    "Filter",
    "FilterConfigurationError",
    "apply_filters",
    "InsightComponent",
    "InsightOutput",
    "InsightSize",
    "INSIGHTS",
    "InsightContractError",
    "InsightDefinition",
    "InsightError",
    "InsightForbiddenError",
    "InsightNotFoundError",
    "compute_insight",
    "get_insight",
    "list_insights",
]
