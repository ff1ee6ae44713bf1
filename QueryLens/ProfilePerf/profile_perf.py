###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Optional

import pandas as pd

from ..Profile2Tree.profile_to_tree import extract_fragments, sort_pipelines_by_id
from ..util import DataLoader, ProfileFormatError, ProfileKeys, get_mapping, parse_bytes
from .stats_aggregator import (
    NOT_AVAILABLE,
    Analysis,
    StatsAggregator,
    compute_planning_breakdown,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QueryProfileOverview:
    # raw Query.Summary / Query.Execution, passed through untouched
    summary: Mapping[str, Any]
    execution: Mapping[str, Any]
    analysis: Analysis


def process_overview(document: Mapping[str, Any]) -> QueryProfileOverview:
    """
    Build the normalized performance model of one query profile.

    The only hard failure is a document without a "Query" object; any other
    missing section or field resolves to zeros and placeholders.
    """
    query = (
        document.get(ProfileKeys.Sections.Query)
        if isinstance(document, Mapping)
        else None
    )
    if not isinstance(query, Mapping):
        raise ProfileFormatError('Invalid query profile format: missing "Query" object')

    summary = get_mapping(query, ProfileKeys.Sections.Summary)
    execution = get_mapping(query, ProfileKeys.Sections.Execution)
    planner = get_mapping(query, ProfileKeys.Sections.Planner)

    fragments = extract_fragments(execution)
    analysis = StatsAggregator.aggregate(fragments, execution, planner)
    return QueryProfileOverview(summary=summary, execution=execution, analysis=analysis)


class ProfilePerfAnalyzer:
    @staticmethod
    def from_file(profile_filepath: str) -> "ProfilePerfAnalyzer":
        data = DataLoader.load_data(profile_filepath)
        return ProfilePerfAnalyzer(data)

    def __init__(self, document: Mapping[str, Any]):
        self.overview = process_overview(document)
        self.analysis = self.overview.analysis

    def get_df_query_summary(self) -> pd.DataFrame:
        fields = ProfileKeys.SummaryFields
        summary = self.overview.summary
        rows = [
            ("Query ID", summary.get(fields.QueryId)),
            ("Duration", summary.get(fields.Total)),
            ("State", summary.get(fields.QueryState)),
            ("Fragments", len(self.analysis.fragments)),
            ("User", summary.get(fields.User)),
            ("Database", summary.get(fields.DefaultDb)),
        ]
        return pd.DataFrame(
            [
                (label, NOT_AVAILABLE if value is None or value == "" else value)
                for label, value in rows
            ],
            columns=["field", "value"],
        )

    def get_df_fragments(self) -> pd.DataFrame:
        total_active_time = self.analysis.total_active_time
        rows = []
        for fragment in self.analysis.fragments:
            rows.append(
                {
                    "fragment_id": fragment.id,
                    "num_pipelines": len(fragment.pipelines),
                    "total_active_time_ms": fragment.total_active_time,
                    "Percentage (%)": (
                        fragment.total_active_time / total_active_time * 100
                        if total_active_time > 0
                        else 0.0
                    ),
                }
            )
        columns = ["fragment_id", "num_pipelines", "total_active_time_ms", "Percentage (%)"]
        return pd.DataFrame(rows, columns=columns)

    def get_df_pipelines(self) -> pd.DataFrame:
        """
        One row per pipeline, fragments in id order and pipelines sorted by id
        inside each fragment. Percentage columns are of the pipeline's own
        driver total time; relative_driver_time_pct is against the longest
        pipeline of the query.
        """
        max_driver_time = self.analysis.max_driver_total_time
        rows = []
        for fragment in self.analysis.fragments:
            for pipeline in sort_pipelines_by_id(fragment):
                top_operator = pipeline.top_operator
                rows.append(
                    {
                        "fragment_id": fragment.id,
                        "pipeline_id": pipeline.id,
                        "rank": self.analysis.get_pipeline_rank(fragment.id, pipeline.id),
                        "active_time_ms": pipeline.active_time,
                        "schedule_time_ms": pipeline.schedule_time,
                        "input_empty_time_ms": pipeline.input_empty_time,
                        "driver_total_time_ms": pipeline.driver_total_time,
                        "active_pct": pipeline.active_pct * 100,
                        "schedule_pct": pipeline.schedule_pct * 100,
                        "waiting_pct": pipeline.waiting_pct * 100,
                        "relative_driver_time_pct": (
                            pipeline.driver_total_time / max_driver_time * 100
                            if max_driver_time > 0
                            else 0.0
                        ),
                        "num_operators": len(pipeline.operators),
                        "top_operator": top_operator.name if top_operator else None,
                    }
                )
        columns = [
            "fragment_id", "pipeline_id", "rank",
            "active_time_ms", "schedule_time_ms", "input_empty_time_ms", "driver_total_time_ms",
            "active_pct", "schedule_pct", "waiting_pct", "relative_driver_time_pct",
            "num_operators", "top_operator",
        ]
        return pd.DataFrame(rows, columns=columns)

    def get_df_operators(self, topk: Optional[int] = None) -> pd.DataFrame:
        """Operators of the whole query ranked by operator time, most expensive first."""
        rows = []
        for pipeline in self.analysis.all_pipelines():
            for operator in pipeline.operators:
                rows.append(
                    {
                        "fragment_id": pipeline.fragment_id,
                        "pipeline_id": pipeline.id,
                        "name": operator.name,
                        "plan_node_id": operator.plan_node_id,
                        "operator_time_ms": operator.operator_time,
                        "operator_time": operator.operator_time_str,
                    }
                )
        columns = [
            "rank", "fragment_id", "pipeline_id", "name", "plan_node_id",
            "operator_time_ms", "operator_time", "Percentage (%)", "Cumulative Percentage (%)",
        ]
        if not rows:
            return pd.DataFrame(columns=columns)

        df = pd.DataFrame(rows)
        df.sort_values(by="operator_time_ms", ascending=False, kind="stable", inplace=True)
        df.reset_index(drop=True, inplace=True)
        df["rank"] = df.index + 1
        total_operator_time = df["operator_time_ms"].sum()
        if total_operator_time > 0:
            df["Percentage (%)"] = df["operator_time_ms"] / total_operator_time * 100
        else:
            df["Percentage (%)"] = 0.0
        df["Cumulative Percentage (%)"] = df["Percentage (%)"].cumsum()
        if topk is not None:
            df = df.head(topk)
        return df[columns]

    def get_df_planner_timing(self) -> pd.DataFrame:
        columns = ["phase", "time_ms", "Percentage (%)"]
        planner = self.analysis.planner_timing
        if planner is None:
            return pd.DataFrame(columns=columns)
        rows = [
            (phase, time_ms, time_ms / planner.total * 100)
            for phase, time_ms in planner.to_dict().items()
        ]
        return pd.DataFrame(rows, columns=columns)

    def get_df_execution_stats(self) -> pd.DataFrame:
        stats = self.analysis.execution_stats
        rows = [("wall_time_ms", self.analysis.query_wall_time)]
        rows.append(("total_active_time_ms", self.analysis.total_active_time))
        rows.extend(stats.to_dict().items())
        rows.append(("spill_bytes_num", parse_bytes(stats.spill_bytes)))
        rows.append(("has_spill", stats.has_spill))
        return pd.DataFrame(rows, columns=["metric", "value"])

    def get_df_planning_vs_execution(self) -> pd.DataFrame:
        columns = [
            "planning_time_ms", "execution_time_ms",
            "planning_pct", "execution_pct", "planning_warning",
        ]
        breakdown = compute_planning_breakdown(self.analysis)
        if breakdown is None:
            return pd.DataFrame(columns=columns)
        return pd.DataFrame(
            [
                (
                    breakdown.planning_time,
                    breakdown.execution_time,
                    breakdown.planning_pct,
                    breakdown.execution_pct,
                    breakdown.planning_warning,
                )
            ],
            columns=columns,
        )
