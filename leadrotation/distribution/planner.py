"""Pure rotation planning for one distribution run.

Nothing here touches storage: given the eligible agent addresses (already in
their stable order), the unassigned lead ids (in fetch order) and the persisted
cursor, ``plan_distribution`` decides which lead goes to which agent and where
the cursor lands afterwards.
"""

from __future__ import annotations

import math
from collections.abc import Hashable, Sequence
from dataclasses import dataclass

MAX_BATCH_SIZE = 4


def compute_batch_size(unassigned_count: int, eligible_count: int, max_batch_size: int = MAX_BATCH_SIZE) -> int:
    """Leads placed with one agent before rotating: ceil(backlog / agents), capped."""
    if unassigned_count <= 0 or eligible_count <= 0:
        return 0
    return min(math.ceil(unassigned_count / eligible_count), max_batch_size)


def resume_index(agents: Sequence[str], last_index: int, last_agent: str | None) -> int:
    """Starting pointer for this run.

    If the agent recorded on the cursor is still eligible, continue one past the
    recorded index. Otherwise reuse the recorded slot so churn never skips a
    turn; the neutral index (-1) starts at the first agent.
    """
    count = len(agents)
    if count == 0:
        raise ValueError("resume_index requires at least one eligible agent")
    if last_agent and last_agent in agents:
        return (last_index + 1) % count
    return max(last_index, 0) % count


@dataclass(frozen=True)
class DistributionPlan:
    batch_size: int
    start_index: int
    final_index: int
    final_agent: str
    assignments: tuple[tuple[Hashable, str], ...]

    @property
    def total(self) -> int:
        return len(self.assignments)


def plan_distribution(
    agents: Sequence[str],
    lead_ids: Sequence[Hashable],
    last_index: int,
    last_agent: str | None,
    max_batch_size: int = MAX_BATCH_SIZE,
) -> DistributionPlan | None:
    """Walk the backlog in batches, advancing the pointer after every full batch.

    The pointer also advances after the final lead when that lead completes a
    batch, so the next run already starts past a fully served agent. Returns
    ``None`` when there are no agents or no leads.
    """
    if not agents or not lead_ids:
        return None

    count = len(agents)
    batch_size = compute_batch_size(len(lead_ids), count, max_batch_size)
    start = resume_index(agents, last_index, last_agent)
    total = min(batch_size * count, len(lead_ids))

    pointer = start
    assignments: list[tuple[Hashable, str]] = []
    for position in range(total):
        assignments.append((lead_ids[position], agents[pointer]))
        if (position + 1) % batch_size == 0:
            pointer = (pointer + 1) % count

    return DistributionPlan(
        batch_size=batch_size,
        start_index=start,
        final_index=pointer,
        final_agent=agents[pointer],
        assignments=tuple(assignments),
    )
