###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

"""
Classification of raw profile keys.

The profile document encodes its structure in key text: "Fragment 3",
"Pipeline (id=0)", "OLAP_SCAN (plan_node_id=0)", "-- Analyzer[1] 23ms".
Every key is turned into exactly one of the node variants below before any
tree assembly happens. Keys that match nothing become Unrecognized and are
skipped by callers; they are metadata or counters, not errors.
"""

import re
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional, Union

from ..util import duration_to_ms

FRAGMENT_REGEX = re.compile(r"Fragment (\d+)", re.ASCII)
PIPELINE_REGEX = re.compile(r"Pipeline \(id=(\d+)\)", re.ASCII)
OPERATOR_MARKER = "(plan_node_id="
PLAN_NODE_ID_REGEX = re.compile(r"\(plan_node_id=(-?\d+)\)")
PLANNER_PHASE_REGEX = re.compile(
    r"--\s*([A-Za-z]+)\[\d+\]\s+(\d+(?:\.\d+)?)\s*(ms|us|ns|s)?(?!\s*[A-Za-z\d.])",
    re.IGNORECASE,
)


class KeyKind(StrEnum):
    Fragment     = "fragment"
    Pipeline     = "pipeline"
    Operator     = "operator"
    PlannerPhase = "planner_phase"


class PlannerPhase(StrEnum):
    Total         = "total"
    Analyzer      = "analyzer"
    Transformer   = "transformer"
    Optimizer     = "optimizer"
    ExecPlanBuild = "exec_plan_build"
    Deploy        = "deploy"


# lower-cased phase name as printed by the planner -> phase bucket
_PLANNER_PHASE_NAMES = {
    "total": PlannerPhase.Total,
    "analyzer": PlannerPhase.Analyzer,
    "transformer": PlannerPhase.Transformer,
    "optimizer": PlannerPhase.Optimizer,
    "execplanbuild": PlannerPhase.ExecPlanBuild,
    "deploy": PlannerPhase.Deploy,
}


@dataclass(frozen=True)
class FragmentNode:
    id: int


@dataclass(frozen=True)
class PipelineNode:
    id: int


@dataclass(frozen=True)
class OperatorNode:
    name: str
    plan_node_id: Optional[int] = None


@dataclass(frozen=True)
class PlannerPhaseNode:
    phase: PlannerPhase
    value: float
    unit: str
    time_ms: float


@dataclass(frozen=True)
class Unrecognized:
    key: str


KeyNode = Union[FragmentNode, PipelineNode, OperatorNode, PlannerPhaseNode, Unrecognized]


def match_fragment(key: str) -> Optional[int]:
    m = FRAGMENT_REGEX.fullmatch(key)
    return int(m.group(1)) if m else None


def match_pipeline(key: str) -> Optional[int]:
    m = PIPELINE_REGEX.fullmatch(key)
    return int(m.group(1)) if m else None


def match_operator(key: str) -> Optional[OperatorNode]:
    """
    Any key containing "(plan_node_id=" is an operator; the whole key is its
    name. The numeric plan node id is kept when present but is not required.
    """
    if OPERATOR_MARKER not in key:
        return None
    m = PLAN_NODE_ID_REGEX.search(key)
    return OperatorNode(name=key, plan_node_id=int(m.group(1)) if m else None)


def match_planner_phase(key: str) -> Optional[PlannerPhaseNode]:
    """
    Match a planner timing line such as "    -- Analyzer[1] 23ms".
    Unknown phase names are not a match, and neither is a value with any
    other unit or a compound value such as "1s234ms". A missing unit means
    milliseconds.
    """
    m = PLANNER_PHASE_REGEX.search(key)
    if not m:
        return None
    name, number, unit = m.groups()
    phase = _PLANNER_PHASE_NAMES.get(name.lower())
    if phase is None:
        return None
    unit = (unit or "ms").lower()
    value = float(number)
    return PlannerPhaseNode(
        phase=phase, value=value, unit=unit, time_ms=duration_to_ms(value, unit)
    )


def classify_key(key: str, kind: KeyKind) -> KeyNode:
    """Classify a key against the pattern expected at its position in the document."""
    if not isinstance(key, str):
        return Unrecognized(key=str(key))
    if kind == KeyKind.Fragment:
        fragment_id = match_fragment(key)
        return FragmentNode(fragment_id) if fragment_id is not None else Unrecognized(key)
    if kind == KeyKind.Pipeline:
        pipeline_id = match_pipeline(key)
        return PipelineNode(pipeline_id) if pipeline_id is not None else Unrecognized(key)
    if kind == KeyKind.Operator:
        return match_operator(key) or Unrecognized(key)
    if kind == KeyKind.PlannerPhase:
        return match_planner_phase(key) or Unrecognized(key)
    raise ValueError(f"Unknown key kind: {kind}")
