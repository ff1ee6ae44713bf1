###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .Profile2Tree import (
    Fragment,
    Pipeline,
    Operator,
    ProfileTreeBuilder,
    extract_fragments,
    sort_pipelines_by_id,
    classify_key,
)
from .ProfilePerf import (
    Analysis,
    ExecutionStats,
    PlannerTiming,
    StatsAggregator,
    ProfilePerfAnalyzer,
    QueryProfileOverview,
    process_overview,
)
from .util import DataLoader, ProfileKeys, ProfileFormatError, parse_duration, parse_bytes
from .Reporting import *

__all__ = [
    "Fragment",
    "Pipeline",
    "Operator",
    "ProfileTreeBuilder",
    "extract_fragments",
    "sort_pipelines_by_id",
    "classify_key",
    "Analysis",
    "ExecutionStats",
    "PlannerTiming",
    "StatsAggregator",
    "ProfilePerfAnalyzer",
    "QueryProfileOverview",
    "process_overview",
    "DataLoader",
    "ProfileKeys",
    "ProfileFormatError",
    "parse_duration",
    "parse_bytes",
    "Reporting",
]
