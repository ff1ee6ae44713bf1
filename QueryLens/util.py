###############################################################################
# Copyright (c) 2024 - 2025 Advanced Micro Devices, Inc. All rights reserved.
#
# See LICENSE for license information.
###############################################################################

import json
import logging
import math
import re

from enum import StrEnum
from typing import Any, Mapping

logger = logging.getLogger(__name__)


class ProfileFormatError(ValueError):
    """Raised when a profile document has no top-level "Query" object."""


# generic data loader class for json or json.gz query profiles
class DataLoader:
    @staticmethod
    def load_data(filename_path: str) -> dict:
        if filename_path.endswith('json.gz'):
            import gzip
            with gzip.open(filename_path, 'r') as fin:
                data = fin.read().decode('utf-8')
        elif filename_path.endswith('json'):
            with open(filename_path, 'r') as fin:
                data = fin.read()
        else:
            raise ValueError("Unknown file type", filename_path)
        return json.loads(data)


# Well-known field names of the query profile document.
# Structural keys (fragments, pipelines, operators, planner phases) are not
# listed here, see Profile2Tree.key_patterns for those.
class ProfileKeys:
    class Sections(StrEnum):
        Query     = 'Query'
        Summary   = 'Summary'
        Execution = 'Execution'
        Planner   = 'Planner'

    class SummaryFields(StrEnum):
        QueryId    = 'Query ID'
        Total      = 'Total'
        QueryState = 'Query State'
        User       = 'User'
        DefaultDb  = 'Default Db'

    class ExecutionFields(StrEnum):
        WallTime        = 'QueryExecutionWallTime'
        AllocatedMemory = 'QueryAllocatedMemoryUsage'
        PeakMemory      = 'QueryPeakMemoryUsagePerNode'
        CpuTime         = 'QueryCumulativeCpuTime'
        OperatorTime    = 'QueryCumulativeOperatorTime'
        ScanTime        = 'QueryCumulativeScanTime'
        NetworkTime     = 'QueryCumulativeNetworkTime'
        SpillBytes      = 'QuerySpillBytes'

    class PipelineFields(StrEnum):
        ActiveTime      = 'ActiveTime'
        DriverTotalTime = 'DriverTotalTime'
        ScheduleTime    = 'ScheduleTime'
        InputEmptyTime  = 'InputEmptyTime'

    class OperatorFields(StrEnum):
        CommonMetrics     = 'CommonMetrics'
        OperatorTotalTime = 'OperatorTotalTime'


def get_mapping(container: Any, key: str) -> Mapping:
    """Return container[key] if it is a mapping, else an empty dict."""
    if not isinstance(container, Mapping):
        return {}
    value = container.get(key)
    if isinstance(value, Mapping):
        return value
    if value is not None:
        logger.debug("Expected a mapping under %r, got %s", key, type(value).__name__)
    return {}


# Formatted values produced by the engine, e.g. "1s234ms", "12.345ms",
# "250.000us", "3m4s", "1.234 GB", "0 B".
_MS_PER_DURATION_UNIT = {
    'h': 3_600_000,
    'm': 60_000,
    's': 1000,
    'ms': 1,
}
_DURATION_UNITS_PER_MS = {
    'us': 1000,
    'ns': 1_000_000,
}
_DURATION_PART_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(ms|us|ns|h|m|s)?", re.IGNORECASE)
_DURATION_RE = re.compile(
    r"(?:\d+(?:\.\d+)?\s*(?:ms|us|ns|h|m|s)\s*)+|\d+(?:\.\d+)?", re.IGNORECASE
)

_BYTE_UNIT_TO_BYTES = {
    'b': 1.0,
    'kb': 1024.0,
    'mb': 1024.0 ** 2,
    'gb': 1024.0 ** 3,
    'tb': 1024.0 ** 4,
    'pb': 1024.0 ** 5,
}
_BYTES_RE = re.compile(r"(\d+(?:\.\d+)?)\s*([kmgtp]?b)?", re.IGNORECASE)


def duration_to_ms(value: float, unit: str) -> float:
    """Convert value expressed in unit (h, m, s, ms, us, ns) to milliseconds."""
    unit = unit.lower()
    if unit in _DURATION_UNITS_PER_MS:
        return value / _DURATION_UNITS_PER_MS[unit]
    return value * _MS_PER_DURATION_UNIT[unit]


def parse_duration(value: Any) -> float:
    """
    Convert an engine-formatted duration into milliseconds.

    Accepts compound strings ("1s234ms", "2m3.5s"), single values ("12.345ms",
    "500us") and plain numbers, which are taken as milliseconds. Anything
    absent or unparseable yields 0.0; this function never raises.
    """
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if not isinstance(value, str):
        return 0.0
    text = value.strip().replace('µ', 'u')
    if not text or not _DURATION_RE.fullmatch(text):
        return 0.0
    total = 0.0
    for number, unit in _DURATION_PART_RE.findall(text):
        total += duration_to_ms(float(number), unit or 'ms')
    return total


def parse_bytes(value: Any) -> float:
    """Convert a formatted byte size ("1.234 GB", "0 B") into bytes; 0.0 if unparseable."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0
    if not isinstance(value, str):
        return 0.0
    m = _BYTES_RE.fullmatch(value.strip())
    if not m:
        return 0.0
    number, unit = m.groups()
    return float(number) * _BYTE_UNIT_TO_BYTES[(unit or 'b').lower()]
