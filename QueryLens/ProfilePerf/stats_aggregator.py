###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Iterator, Mapping, Optional, Sequence, Tuple

from ..Profile2Tree.key_patterns import KeyKind, PlannerPhase, PlannerPhaseNode, classify_key
from ..Profile2Tree.profile_to_tree import Fragment, Pipeline
from ..util import ProfileKeys, parse_duration

logger = logging.getLogger(__name__)

# Placeholders shown when the execution section lacks a field. Shared/persisted
# state relies on these exact strings.
NOT_AVAILABLE = "N/A"
ZERO_BYTES = "0 B"

# Planning above this share of planning + execution time is flagged.
PLANNING_WARNING_THRESHOLD_PCT = 30.0

_ZERO_SIZE_RE = re.compile(r"0+(?:\.0+)?\s*(?:[kmgtp]i?)?b?", re.IGNORECASE)


@dataclass(frozen=True)
class PlannerTiming:
    total: float = 0.0
    analyzer: float = 0.0
    transformer: float = 0.0
    optimizer: float = 0.0
    exec_plan_build: float = 0.0
    deploy: float = 0.0

    def to_dict(self) -> Dict[str, float]:
        return {phase.value: getattr(self, phase.value) for phase in PlannerPhase}


@dataclass(frozen=True)
class ExecutionStats:
    allocated_memory: str = NOT_AVAILABLE
    peak_memory: str = NOT_AVAILABLE
    cpu_time: str = NOT_AVAILABLE
    operator_time: str = NOT_AVAILABLE
    scan_time: str = NOT_AVAILABLE
    network_time: str = NOT_AVAILABLE
    spill_bytes: str = ZERO_BYTES

    @property
    def has_spill(self) -> bool:
        """Anything but a formatted zero size counts, including sizes that do not parse."""
        return not _ZERO_SIZE_RE.fullmatch(str(self.spill_bytes).strip())

    def to_dict(self) -> Dict[str, str]:
        return {
            "allocated_memory": self.allocated_memory,
            "peak_memory": self.peak_memory,
            "cpu_time": self.cpu_time,
            "operator_time": self.operator_time,
            "scan_time": self.scan_time,
            "network_time": self.network_time,
            "spill_bytes": self.spill_bytes,
        }


@dataclass(frozen=True)
class PlanningBreakdown:
    planning_time: float
    execution_time: float
    planning_pct: float
    execution_pct: float
    planning_warning: bool


@dataclass(frozen=True)
class Analysis:
    query_wall_time: float
    total_active_time: float
    fragments: Tuple[Fragment, ...]
    execution_stats: ExecutionStats
    planner_timing: Optional[PlannerTiming]
    pipeline_ranks: Mapping[Tuple[int, int], int] = field(
        default_factory=lambda: MappingProxyType({}), hash=False
    )

    def all_pipelines(self) -> Iterator[Pipeline]:
        for fragment in self.fragments:
            yield from fragment.pipelines

    def get_pipeline_rank(self, fragment_id: int, pipeline_id: int) -> Optional[int]:
        """1-based rank by active time across the whole query, None if unknown."""
        return self.pipeline_ranks.get((fragment_id, pipeline_id))

    @property
    def max_driver_total_time(self) -> float:
        return max((p.driver_total_time for p in self.all_pipelines()), default=0.0)


def rank_pipelines(fragments: Sequence[Fragment]) -> Mapping[Tuple[int, int], int]:
    """
    Rank every pipeline of every fragment by active time, longest first.

    Ties keep fragment order, then pipeline order within a fragment. Should
    the same (fragment id, pipeline id) occur twice, the later rank is kept.
    """
    pipelines = [p for fragment in fragments for p in fragment.pipelines]
    ordered = sorted(pipelines, key=lambda p: p.active_time, reverse=True)
    ranks = {}
    for rank, pipeline in enumerate(ordered, start=1):
        ranks[pipeline.key] = rank
    return MappingProxyType(ranks)


def build_execution_stats(execution: Mapping[str, Any]) -> ExecutionStats:
    fields = ProfileKeys.ExecutionFields

    def get_value(name, default):
        value = execution.get(name) if isinstance(execution, Mapping) else None
        # empty values fall back to the placeholder as well
        return value if value else default

    return ExecutionStats(
        allocated_memory=get_value(fields.AllocatedMemory, NOT_AVAILABLE),
        peak_memory=get_value(fields.PeakMemory, NOT_AVAILABLE),
        cpu_time=get_value(fields.CpuTime, NOT_AVAILABLE),
        operator_time=get_value(fields.OperatorTime, NOT_AVAILABLE),
        scan_time=get_value(fields.ScanTime, NOT_AVAILABLE),
        network_time=get_value(fields.NetworkTime, NOT_AVAILABLE),
        spill_bytes=get_value(fields.SpillBytes, ZERO_BYTES),
    )


def extract_planner_timing(planner: Mapping[str, Any]) -> Optional[PlannerTiming]:
    """
    Collect planner phase timings from the keys of the "Planner" section.

    Returns None unless a positive Total was found, so callers hide any
    planning-vs-execution view instead of showing zeros. When a phase shows
    up more than once the last occurrence wins.
    """
    if not isinstance(planner, Mapping):
        return None
    buckets = {phase.value: 0.0 for phase in PlannerPhase}
    for key in planner:
        node = classify_key(key, KeyKind.PlannerPhase)
        if isinstance(node, PlannerPhaseNode):
            buckets[node.phase.value] = node.time_ms
    if buckets[PlannerPhase.Total.value] <= 0:
        return None
    return PlannerTiming(**buckets)


def compute_planning_breakdown(analysis: Analysis) -> Optional[PlanningBreakdown]:
    planner = analysis.planner_timing
    if planner is None:
        return None
    planning_time = planner.total
    execution_time = analysis.query_wall_time
    total_time = planning_time + execution_time
    if total_time == 0:
        return None
    planning_pct = planning_time / total_time * 100
    return PlanningBreakdown(
        planning_time=planning_time,
        execution_time=execution_time,
        planning_pct=planning_pct,
        execution_pct=execution_time / total_time * 100,
        planning_warning=planning_pct > PLANNING_WARNING_THRESHOLD_PCT,
    )


class StatsAggregator:
    @staticmethod
    def aggregate(
        fragments: Sequence[Fragment],
        execution: Mapping[str, Any],
        planner: Optional[Mapping[str, Any]] = None,
    ) -> Analysis:
        if not isinstance(execution, Mapping):
            execution = {}
        fragments = tuple(fragments)
        total_active_time = float(sum(f.total_active_time for f in fragments))
        analysis = Analysis(
            query_wall_time=parse_duration(
                execution.get(ProfileKeys.ExecutionFields.WallTime)
            ),
            total_active_time=total_active_time,
            fragments=fragments,
            execution_stats=build_execution_stats(execution),
            planner_timing=extract_planner_timing(planner or {}),
            pipeline_ranks=rank_pipelines(fragments),
        )
        logger.debug(
            "Aggregated %d fragments, total active time %.3f ms",
            len(fragments),
            total_active_time,
        )
        return analysis


def analyze_fragments(
    fragments: Sequence[Fragment],
    execution: Mapping[str, Any],
    planner: Optional[Mapping[str, Any]] = None,
) -> Analysis:
    return StatsAggregator.aggregate(fragments, execution, planner)
