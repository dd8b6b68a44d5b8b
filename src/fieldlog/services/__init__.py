"""Services for the Field Activity Log System.

Components:
- ExtractionClient: Calls the external AI extraction service
- LogNormalizer: Coerces raw candidates into ActivityLog records
- LogStore / SQLiteLogStore / SupabaseLogStore: Backing stores
- SchemaCapabilityCheck: Cached probe of store provisioning
- TranscriptionPipeline: Text -> normalized logs -> saved transcription
- LocationGrouper: Location groups and map marker scenes
- TableSorter: Stable table sorting
- DashboardState: Immutable dashboard state and reducers
- MapRenderer: Standalone HTML activity maps
"""

from fieldlog.services.extraction_client import ExtractionClient, ExtractionResult
from fieldlog.services.log_normalizer import LogNormalizer
from fieldlog.services.schema_check import SchemaCapabilityCheck, SchemaStatus
from fieldlog.services.log_store import LogStore, SQLiteLogStore, create_log_store
from fieldlog.services.supabase_store import SupabaseLogStore
from fieldlog.services.pipeline import PipelineResult, PipelineState, TranscriptionPipeline
from fieldlog.services.location_grouper import LocationGrouper, group_by_location
from fieldlog.services.table_sorter import SortConfig, SortDirection, TableSorter, sort_logs
from fieldlog.services.log_state import DashboardState, DashboardTab, LogFilter
from fieldlog.services.log_stats import LogStats, compute_log_stats
from fieldlog.services.map_renderer import MapRenderer

__all__ = [
    "ExtractionClient",
    "ExtractionResult",
    "LogNormalizer",
    "SchemaCapabilityCheck",
    "SchemaStatus",
    "LogStore",
    "SQLiteLogStore",
    "SupabaseLogStore",
    "create_log_store",
    "PipelineResult",
    "PipelineState",
    "TranscriptionPipeline",
    "LocationGrouper",
    "group_by_location",
    "SortConfig",
    "SortDirection",
    "TableSorter",
    "sort_logs",
    "DashboardState",
    "DashboardTab",
    "LogFilter",
    "LogStats",
    "compute_log_stats",
    "MapRenderer",
]
