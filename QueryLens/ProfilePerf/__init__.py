###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .stats_aggregator import (
    Analysis,
    ExecutionStats,
    PlannerTiming,
    PlanningBreakdown,
    StatsAggregator,
    analyze_fragments,
    compute_planning_breakdown,
    extract_planner_timing,
    rank_pipelines,
)
from .profile_perf import ProfilePerfAnalyzer, QueryProfileOverview, process_overview

__all__ = [
    "Analysis",
    "ExecutionStats",
    "PlannerTiming",
    "PlanningBreakdown",
    "StatsAggregator",
    "analyze_fragments",
    "compute_planning_breakdown",
    "extract_planner_timing",
    "rank_pipelines",
    "ProfilePerfAnalyzer",
    "QueryProfileOverview",
    "process_overview",
]
