"""
Flakiness detection for RPC endpoints under sustained concurrent load.
"""

from .errors import ConfigurationError, FlakeDetectorError
from .recorder import LatencyRecorder
from .report import assemble_endpoint_report, export_reports
from .runner import EndpointCoordinator, QueryRunner, run, run_async
from .scoring import calculate_flakiness_score, score_status
from .types import (
    EndpointReport,
    ProbeOutcome,
    QueryPlan,
    QueryResult,
    RunConfig,
)

__all__ = [
    "ConfigurationError",
    "EndpointCoordinator",
    "EndpointReport",
    "FlakeDetectorError",
    "LatencyRecorder",
    "ProbeOutcome",
    "QueryPlan",
    "QueryResult",
    "QueryRunner",
    "RunConfig",
    "assemble_endpoint_report",
    "calculate_flakiness_score",
    "export_reports",
    "run",
    "run_async",
    "score_status",
]
