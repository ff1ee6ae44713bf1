###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

from .key_patterns import (
    KeyKind,
    PlannerPhase,
    FragmentNode,
    PipelineNode,
    OperatorNode,
    PlannerPhaseNode,
    Unrecognized,
    classify_key,
)
from .profile_to_tree import (
    Fragment,
    Pipeline,
    Operator,
    ProfileTreeBuilder,
    extract_fragments,
    sort_pipelines_by_id,
)

__all__ = [
    "KeyKind",
    "PlannerPhase",
    "FragmentNode",
    "PipelineNode",
    "OperatorNode",
    "PlannerPhaseNode",
    "Unrecognized",
    "classify_key",
    "Fragment",
    "Pipeline",
    "Operator",
    "ProfileTreeBuilder",
    "extract_fragments",
    "sort_pipelines_by_id",
]
