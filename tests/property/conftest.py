# tests/property/conftest.py
"""Shared Hypothesis strategies for property-based tests.

A "plan" describes producers without building them, so every example gets
fresh stream objects. build_producer() turns one plan entry into the thing
that is appended to a session.

Strategy Categories:
- Chunks (bytes and str payloads)
- Producer plans (literal, sync stream, async stream, lazy literal)

Usage:
    from tests.property.conftest import producer_plans, build_producer

    @given(plan=producer_plans)
    def test_order(plan: list[ProducerPlan]) -> None:
        ...
"""

# =============================================================================
# Hypothesis Settings
# =============================================================================
#
# For standardized @settings decorators, import from tests.property.settings:
#   from tests.property.settings import STANDARD_SETTINGS, ORDERING_SETTINGS
#
# Tiers: ORDERING (300), STATE_MACHINE (200), STANDARD (100), QUICK (20)
# =============================================================================

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from hypothesis import strategies as st

from tests.conftest import ChunkSource, ManualScheduler

PlanKind = Literal["literal", "stream", "async_stream", "lazy_literal", "lazy_stream"]


@dataclass(frozen=True)
class ProducerPlan:
    """Recipe for one producer and the chunks it should contribute."""

    kind: PlanKind
    chunks: tuple[bytes, ...]


# =============================================================================
# Chunk strategies
# =============================================================================

# Non-empty so every chunk is visible in the output sequence
chunks = st.binary(min_size=1, max_size=16)

# =============================================================================
# Producer plan strategies
# =============================================================================

literal_plans = st.builds(lambda chunk: ProducerPlan("literal", (chunk,)), chunks)

stream_plans = st.builds(
    ProducerPlan,
    kind=st.sampled_from(["stream", "async_stream", "lazy_stream"]),
    chunks=st.lists(chunks, max_size=5).map(tuple),
)

lazy_literal_plans = st.builds(lambda chunk: ProducerPlan("lazy_literal", (chunk,)), chunks)

producer_plan = st.one_of(literal_plans, stream_plans, lazy_literal_plans)

producer_plans = st.lists(producer_plan, max_size=25)


def build_producer(plan: ProducerPlan, scheduler: ManualScheduler) -> Any:
    """Build the appendable producer for a plan entry."""
    if plan.kind == "literal":
        return plan.chunks[0]
    if plan.kind == "stream":
        return ChunkSource(plan.chunks)
    if plan.kind == "async_stream":
        return ChunkSource(plan.chunks, scheduler=scheduler)
    if plan.kind == "lazy_literal":
        value = plan.chunks[0]
        return lambda next_producer: scheduler.call_soon(next_producer, value)
    stream_chunks = plan.chunks
    return lambda next_producer: next_producer(ChunkSource(stream_chunks, scheduler=scheduler))


def expected_output(plans: list[ProducerPlan]) -> list[bytes]:
    """Chunks a session should emit for a plan, in order."""
    return [chunk for plan in plans for chunk in plan.chunks]
