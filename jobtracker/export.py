"""
CSV serialization of the application list.

Every row value is quoted and embedded quotes are doubled, so notes and
titles containing commas or quotes survive a spreadsheet round trip.
"""
from datetime import date
from typing import Iterable, NamedTuple, Optional
import csv
import io

from .schemas import JobApplication

CSV_COLUMNS = [
    ("Job Title", "job_title"),
    ("Company", "company"),
    ("Platform", "platform"),
    ("Location", "location"),
    ("Employment Type", "employment_type"),
    ("Date Applied", "date_applied"),
    ("Status", "status"),
    ("Job URL", "job_url"),
    ("Contact Name", "contact_name"),
    ("Contact Email", "contact_email"),
    ("Follow-up Due", "follow_up_due_date"),
    ("Next Action", "next_action"),
    ("Salary Range", "salary_range"),
    ("Notes", "notes"),
]


class CsvExport(NamedTuple):
    filename: str
    content: str


def export_filename(day: Optional[date] = None) -> str:
    return f"job-applications-{(day or date.today()).isoformat()}.csv"


def _cell(value) -> str:
    if value is None:
        return ""
    return str(getattr(value, "value", value))


def _quoted_row(values) -> str:
    buffer = io.StringIO()
    csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="").writerow(values)
    return buffer.getvalue()


def applications_to_csv(applications: Iterable[JobApplication]) -> str:
    """Header line, then one fully quoted row per application in the given order."""
    lines = [",".join(header for header, _ in CSV_COLUMNS)]
    for app in applications:
        lines.append(_quoted_row([_cell(getattr(app, attr)) for _, attr in CSV_COLUMNS]))
    return "\n".join(lines)


def build_export(applications: Iterable[JobApplication], day: Optional[date] = None) -> CsvExport:
    return CsvExport(filename=export_filename(day), content=applications_to_csv(applications))
