# schedule.py
import re
from typing import Dict
from sqlalchemy import Column, Date, Integer, MetaData, String, Table, Text, Time

from cohort_scheduler.core.exceptions import InvalidTableNameException

# Table names end up in SQL; only names following the convention are accepted
SCHEDULE_TABLE_PATTERN = re.compile(r"^[A-Za-z0-9_]+_schedule$")

schedule_metadata = MetaData()

_tables: Dict[str, Table] = {}


def is_schedule_table_name(table_name: str) -> bool:
    return bool(table_name) and bool(SCHEDULE_TABLE_PATTERN.match(table_name))


def schedule_table(table_name: str) -> Table:
    """Return the Core table for one cohort's schedule, building it on first use.

    Every cohort has an identically shaped table, so the definition is shared
    and only the name differs.
    """
    if not is_schedule_table_name(table_name):
        raise InvalidTableNameException(table_name)

    table = _tables.get(table_name)
    if table is None:
        table = Table(
            table_name,
            schedule_metadata,
            Column("id", Integer, primary_key=True),
            Column("week_number", Integer, nullable=True),
            Column("session_number", Integer, nullable=True),
            Column("date", Date, nullable=True, index=True),
            Column("day", String, nullable=True),
            Column("time", Time, nullable=True),
            Column("session_type", String, nullable=True),
            Column("subject_type", String, nullable=True),
            Column("subject_name", String, nullable=True),
            Column("subject_topic", String, nullable=True),
            Column("mentor_id", Integer, nullable=True),
            Column("swapped_mentor_id", Integer, nullable=True),
            Column("teams_meeting_link", Text, nullable=True),
            Column("session_recording", Text, nullable=True),
            Column("initial_session_material", Text, nullable=True),
        )
        _tables[table_name] = table
    return table
