from .results import (
    ProvisionedTable,
    SchemaNotReady,
    NoSessions,
    TableFailed,
    TableResult,
    RecordingTableResult,
    RecordingSummary,
    DateRange,
    BatchReport,
    FanoutReport
)

__all__ = [
    'ProvisionedTable',
    'SchemaNotReady',
    'NoSessions',
    'TableFailed',
    'TableResult',
    'RecordingTableResult',
    'RecordingSummary',
    'DateRange',
    'BatchReport',
    'FanoutReport',
]
