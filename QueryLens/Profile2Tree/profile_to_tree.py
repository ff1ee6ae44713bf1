###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import logging
from dataclasses import dataclass
from typing import Any, List, Mapping, Optional, Tuple

from ..util import ProfileKeys, get_mapping, parse_duration
from .key_patterns import (
    FragmentNode,
    KeyKind,
    OperatorNode,
    PipelineNode,
    classify_key,
)

logger = logging.getLogger(__name__)

# formatted operator time used when the profile does not report one
DEFAULT_OPERATOR_TIME_STR = "0ns"


@dataclass(frozen=True)
class Operator:
    name: str
    operator_time: float
    operator_time_str: str
    plan_node_id: Optional[int] = None


@dataclass(frozen=True)
class Pipeline:
    id: int
    fragment_id: int
    active_time: float
    driver_total_time: float
    schedule_time: float
    input_empty_time: float
    operators: Tuple[Operator, ...] = ()

    @property
    def key(self) -> Tuple[int, int]:
        """Identity of the pipeline across fragments."""
        return (self.fragment_id, self.id)

    # The percentage breakdown is derived on every access, never stored.
    # Values are fractions of driver_total_time in [0, 1].
    @property
    def active_pct(self) -> float:
        if self.driver_total_time == 0:
            return 0.0
        return self.active_time / self.driver_total_time

    @property
    def schedule_pct(self) -> float:
        if self.driver_total_time == 0:
            return 0.0
        return self.schedule_time / self.driver_total_time

    @property
    def waiting_pct(self) -> float:
        if self.driver_total_time == 0:
            return 0.0
        return max(0.0, 1.0 - self.active_pct - self.schedule_pct)

    @property
    def top_operator(self) -> Optional[Operator]:
        return self.operators[0] if self.operators else None


@dataclass(frozen=True)
class Fragment:
    id: int
    pipelines: Tuple[Pipeline, ...] = ()

    @property
    def total_active_time(self) -> float:
        return float(sum(p.active_time for p in self.pipelines))


def sort_pipelines_by_id(fragment: Fragment) -> Tuple[Pipeline, ...]:
    """
    Return the fragment's pipelines ordered by id ascending.

    The tree builder keeps pipelines in the order the profile lists them;
    ordering them for display is the caller's job.
    """
    return tuple(sorted(fragment.pipelines, key=lambda p: p.id))


class ProfileTreeBuilder:
    """
    Builds the Fragment -> Pipeline -> Operator hierarchy from the
    "Execution" section of a query profile.

    Only direct keys are inspected at each level: fragment keys of the
    execution section, pipeline keys of a fragment, operator keys of a
    pipeline. Every other key is ignored.
    """

    @staticmethod
    def build(execution: Mapping[str, Any]) -> Tuple[Fragment, ...]:
        if not isinstance(execution, Mapping):
            return ()
        fragments: List[Fragment] = []
        for key, fragment_data in execution.items():
            node = classify_key(key, KeyKind.Fragment)
            if not isinstance(node, FragmentNode):
                continue
            fragments.append(ProfileTreeBuilder.build_fragment(node.id, fragment_data))
        # stable: fragments sharing an id stay in document order
        fragments.sort(key=lambda f: f.id)
        logger.debug("Extracted %d fragments", len(fragments))
        return tuple(fragments)

    @staticmethod
    def build_fragment(fragment_id: int, fragment_data: Any) -> Fragment:
        if not isinstance(fragment_data, Mapping):
            logger.debug("Fragment %d has no mapping body", fragment_id)
            return Fragment(id=fragment_id)
        pipelines = []
        for key, pipeline_data in fragment_data.items():
            node = classify_key(key, KeyKind.Pipeline)
            if not isinstance(node, PipelineNode):
                continue
            pipelines.append(
                ProfileTreeBuilder.build_pipeline(fragment_id, node.id, pipeline_data)
            )
        return Fragment(id=fragment_id, pipelines=tuple(pipelines))

    @staticmethod
    def build_pipeline(fragment_id: int, pipeline_id: int, pipeline_data: Any) -> Pipeline:
        fields = ProfileKeys.PipelineFields
        if not isinstance(pipeline_data, Mapping):
            pipeline_data = {}
        operators = []
        for key, operator_data in pipeline_data.items():
            node = classify_key(key, KeyKind.Operator)
            if isinstance(node, OperatorNode):
                operators.append(ProfileTreeBuilder.build_operator(node, operator_data))
        operators.sort(key=lambda op: op.operator_time, reverse=True)
        return Pipeline(
            id=pipeline_id,
            fragment_id=fragment_id,
            active_time=parse_duration(pipeline_data.get(fields.ActiveTime)),
            driver_total_time=parse_duration(pipeline_data.get(fields.DriverTotalTime)),
            schedule_time=parse_duration(pipeline_data.get(fields.ScheduleTime)),
            input_empty_time=parse_duration(pipeline_data.get(fields.InputEmptyTime)),
            operators=tuple(operators),
        )

    @staticmethod
    def build_operator(node: OperatorNode, operator_data: Any) -> Operator:
        fields = ProfileKeys.OperatorFields
        common_metrics = get_mapping(operator_data, fields.CommonMetrics)
        time_value = common_metrics.get(fields.OperatorTotalTime)
        return Operator(
            name=node.name,
            operator_time=parse_duration(time_value),
            operator_time_str=str(time_value) if time_value else DEFAULT_OPERATOR_TIME_STR,
            plan_node_id=node.plan_node_id,
        )


def extract_fragments(execution: Mapping[str, Any]) -> Tuple[Fragment, ...]:
    return ProfileTreeBuilder.build(execution)
