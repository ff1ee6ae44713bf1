###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import pytest

from QueryLens.Profile2Tree.profile_to_tree import Fragment, Pipeline, extract_fragments
from QueryLens.ProfilePerf.stats_aggregator import (
    ExecutionStats,
    PlannerTiming,
    StatsAggregator,
    analyze_fragments,
    build_execution_stats,
    compute_planning_breakdown,
    extract_planner_timing,
    rank_pipelines,
)


def _pipeline(fragment_id, pipeline_id, active_time, driver_total_time=0.0):
    return Pipeline(
        id=pipeline_id,
        fragment_id=fragment_id,
        active_time=active_time,
        driver_total_time=driver_total_time,
        schedule_time=0.0,
        input_empty_time=0.0,
    )


def _make_fragments():
    return (
        Fragment(id=0, pipelines=(_pipeline(0, 0, 5.0, 10.0), _pipeline(0, 1, 30.0, 40.0))),
        Fragment(id=1, pipelines=(_pipeline(1, 0, 30.0, 35.0), _pipeline(1, 2, 1.0, 90.0))),
        Fragment(id=3),
    )


class TestPlannerTiming:
    def test_total_and_analyzer(self):
        timing = extract_planner_timing({"-- Total[1] 57ms": "", "-- Analyzer[1] 23ms": ""})
        assert timing == PlannerTiming(total=57.0, analyzer=23.0)
        assert timing.to_dict() == {
            "total": 57.0,
            "analyzer": 23.0,
            "transformer": 0.0,
            "optimizer": 0.0,
            "exec_plan_build": 0.0,
            "deploy": 0.0,
        }

    def test_no_total_means_no_planner_data(self):
        assert extract_planner_timing({"-- Analyzer[1] 5ms": ""}) is None
        assert extract_planner_timing({"-- Total[1] 0ms": "", "-- Analyzer[1] 5ms": ""}) is None
        assert extract_planner_timing({}) is None
        assert extract_planner_timing(None) is None

    @pytest.mark.parametrize(
        "key, expected",
        [("-- Total[1] 2s", 2000.0), ("-- Total[1] 500us", 0.5), ("-- Total[1] 250000ns", 0.25)],
    )
    def test_units(self, key, expected):
        assert extract_planner_timing({key: ""}).total == expected

    def test_all_phases_and_unrelated_keys(self):
        planner = {
            "-- Parser[1] 1ms": "",
            "    -- Total[1] 100ms": "",
            "        -- Analyzer[1] 10ms": "",
            "        -- Transformer[1] 20ms": "",
            "        -- Optimizer[1] 30ms": "",
            "        -- ExecPlanBuild[1] 15ms": "",
            "    -- Deploy[1] 25ms": "",
            "Coordinator": "127.0.0.1",
        }
        assert extract_planner_timing(planner) == PlannerTiming(
            total=100.0, analyzer=10.0, transformer=20.0, optimizer=30.0,
            exec_plan_build=15.0, deploy=25.0,
        )

    def test_unsupported_total_value_means_no_planner_data(self):
        assert extract_planner_timing({"-- Total[1] 1s234ms": ""}) is None
        assert extract_planner_timing({"-- Total[1] 2m": ""}) is None

    def test_duplicate_phase_last_wins(self):
        planner = {"-- Total[1] 10ms": "", "-- Optimizer[1] 3ms": "", "-- Optimizer[2] 4ms": ""}
        assert extract_planner_timing(planner).optimizer == 4.0


class TestPipelineRanking:
    def test_rank_one_is_max_active_time(self):
        ranks = rank_pipelines(_make_fragments())
        assert ranks[(0, 1)] == 1
        # tie with (0, 1) keeps encounter order
        assert ranks[(1, 0)] == 2
        assert ranks[(0, 0)] == 3
        assert ranks[(1, 2)] == 4
        assert len(ranks) == 4

    def test_ranks_are_read_only(self):
        ranks = rank_pipelines(_make_fragments())
        with pytest.raises(TypeError):
            ranks[(0, 0)] = 99

    def test_no_pipelines(self):
        assert dict(rank_pipelines(())) == {}


class TestExecutionStats:
    def test_placeholders(self):
        stats = build_execution_stats({})
        assert stats.to_dict() == {
            "allocated_memory": "N/A",
            "peak_memory": "N/A",
            "cpu_time": "N/A",
            "operator_time": "N/A",
            "scan_time": "N/A",
            "network_time": "N/A",
            "spill_bytes": "0 B",
        }
        assert stats.has_spill is False

    def test_values_pass_through(self):
        stats = build_execution_stats(
            {
                "QueryAllocatedMemoryUsage": "1.234 GB",
                "QueryPeakMemoryUsagePerNode": "512.000 MB",
                "QueryCumulativeCpuTime": "3s200ms",
                "QueryCumulativeOperatorTime": "2s",
                "QueryCumulativeScanTime": "1s",
                "QueryCumulativeNetworkTime": "20ms",
                "QuerySpillBytes": "64.000 MB",
            }
        )
        assert stats.allocated_memory == "1.234 GB"
        assert stats.cpu_time == "3s200ms"
        assert stats.spill_bytes == "64.000 MB"
        assert stats.has_spill is True

    @pytest.mark.parametrize("spill", ["0 B", "0.000 B", "0 KB", "0.0 MiB", " 0 b "])
    def test_zero_spill_variants(self, spill):
        assert ExecutionStats(spill_bytes=spill).has_spill is False

    @pytest.mark.parametrize("spill", ["1 B", "64.000 MB", "1,024 B", "1.0 KiB", "N/A"])
    def test_non_zero_or_unparseable_spill_is_flagged(self, spill):
        assert ExecutionStats(spill_bytes=spill).has_spill is True


class TestStatsAggregator:
    def test_totals(self):
        fragments = _make_fragments()
        analysis = StatsAggregator.aggregate(fragments, {"QueryExecutionWallTime": "1s500ms"})
        assert analysis.query_wall_time == 1500.0
        assert analysis.total_active_time == sum(f.total_active_time for f in fragments)
        assert analysis.total_active_time == 66.0
        assert analysis.fragments == fragments
        assert analysis.planner_timing is None
        assert analysis.max_driver_total_time == 90.0

    def test_analysis_is_hashable(self):
        first = analyze_fragments(_make_fragments(), {"QueryExecutionWallTime": "10ms"})
        second = analyze_fragments(_make_fragments(), {"QueryExecutionWallTime": "10ms"})
        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_get_pipeline_rank(self):
        analysis = analyze_fragments(_make_fragments(), {})
        assert analysis.get_pipeline_rank(0, 1) == 1
        assert analysis.get_pipeline_rank(9, 9) is None

    def test_empty(self):
        analysis = analyze_fragments(extract_fragments({}), {})
        assert analysis.fragments == ()
        assert analysis.total_active_time == 0
        assert analysis.query_wall_time == 0
        assert analysis.max_driver_total_time == 0.0
        assert list(analysis.all_pipelines()) == []

    def test_planner_section(self):
        analysis = analyze_fragments((), {}, {"-- Total[1] 57ms": ""})
        assert analysis.planner_timing.total == 57.0


class TestPlanningBreakdown:
    def test_split(self):
        analysis = analyze_fragments(
            (), {"QueryExecutionWallTime": "300ms"}, {"-- Total[1] 100ms": ""}
        )
        breakdown = compute_planning_breakdown(analysis)
        assert breakdown.planning_time == 100.0
        assert breakdown.execution_time == 300.0
        assert breakdown.planning_pct == 25.0
        assert breakdown.execution_pct == 75.0
        assert breakdown.planning_warning is False

    def test_warning_above_threshold(self):
        analysis = analyze_fragments(
            (), {"QueryExecutionWallTime": "100ms"}, {"-- Total[1] 100ms": ""}
        )
        assert compute_planning_breakdown(analysis).planning_warning is True

    def test_no_planner_data(self):
        analysis = analyze_fragments((), {"QueryExecutionWallTime": "100ms"}, {})
        assert compute_planning_breakdown(analysis) is None
