import re
from dataclasses import dataclass
from typing import Optional

# e.g. "basic1_1_schedule" -> Basic 1.1, "placement2_0_schedule" -> Placement 2.0
COHORT_TABLE_PATTERN = re.compile(r"^([a-zA-Z]+)(\d+)_(\d+)$")


@dataclass(frozen=True)
class Cohort:
    type: str
    number: str

    @property
    def display_name(self) -> str:
        return f"{self.type} {self.number}"

    @property
    def cache_key(self) -> str:
        return f"{self.type}_{self.number}"

    @property
    def meeting_label(self) -> str:
        return f"Cohort {self.type} {self.number}"


def parse_cohort_from_table_name(table_name: str) -> Optional[Cohort]:
    """Decode the cohort a schedule table belongs to, or None if the name is off-convention."""
    name = table_name.replace("_schedule", "")
    match = COHORT_TABLE_PATTERN.match(name)
    if not match:
        return None

    type_raw, major, minor = match.groups()
    return Cohort(
        type=type_raw[0].upper() + type_raw[1:],
        number=f"{major}.{minor}",
    )


def cohort_display_name(table_name: str) -> str:
    """Human-readable cohort name, falling back to the de-suffixed table name."""
    cohort = parse_cohort_from_table_name(table_name)
    if cohort:
        return cohort.display_name
    return table_name.replace("_schedule", "").replace("_", " ")


def build_meeting_subject(
    table_name: str,
    subject_name: Optional[str],
    mentor_name: Optional[str] = None,
    unknown_cohort_label: Optional[str] = "Cohort Unknown 0.0"
) -> str:
    """Meeting title, e.g. "Cohort Basic 1.1 - Web Development - Saswata".

    Recording filenames start with this title, so provisioning and
    reconciliation must build it identically. With unknown_cohort_label=None an
    off-convention table yields the bare subject name.
    """
    cohort = parse_cohort_from_table_name(table_name)
    label = cohort.meeting_label if cohort else unknown_cohort_label
    if not label:
        return subject_name or "Session"
    parts = [label, subject_name or "Session"]
    if mentor_name:
        parts.append(mentor_name)
    return " - ".join(parts)
