"""Lead distribution: rotation planning, namespace leases and the engine."""

from leadrotation.distribution.engine import DistributionEngine, DistributionResult
from leadrotation.distribution.lease import NamespaceLease
from leadrotation.distribution.planner import (
    MAX_BATCH_SIZE,
    DistributionPlan,
    compute_batch_size,
    plan_distribution,
    resume_index,
)

__all__ = [
    "DistributionEngine",
    "DistributionPlan",
    "DistributionResult",
    "MAX_BATCH_SIZE",
    "NamespaceLease",
    "compute_batch_size",
    "plan_distribution",
    "resume_index",
]
