"""
Report and backup export.

CSV layout (one line per row, "\\n" terminated):

    TiffinTracker Report
    Period: 01 Mar 2024 to 31 Mar 2024

    Summary
    Category,None,Half,Full,Total Amount
    Lunch,...
    Dinner,...
    Grand Total,,,,Rs.1234

    Daily Entries
    Date,Lunch Type,Lunch Price,Dinner Type,Dinner Price,Notes
    01 Mar 2024,Full,60,Half,50,"notes"

Backups are JSON objects ``{"entries": [...], "settings": {...}}`` with
camelCase keys and 2-space indentation.
"""
import json
import logging
from abc import ABC, abstractmethod
from datetime import date
from pathlib import Path
from typing import List, Optional, Sequence

from pydantic import ValidationError

from tiffin_tracker.exceptions import ExportSinkUnavailableError, ImportMalformedError
from tiffin_tracker.schemas import BackupPayload, DayEntry, ImportResult, ReportData, UserSettings
from tiffin_tracker.services.report_engine import effective_price
from tiffin_tracker.utils.date_ranges import today_str
from tiffin_tracker.utils.helpers import format_amount, format_currency, format_display_date

logger = logging.getLogger(__name__)

CSV_MIME_TYPE = "text/csv"
JSON_MIME_TYPE = "application/json"

SUMMARY_HEADER = "Category,None,Half,Full,Total Amount"
ENTRIES_HEADER = "Date,Lunch Type,Lunch Price,Dinner Type,Dinner Price,Notes"


# --- Filenames ---

def report_filename(report: ReportData) -> str:
    return f"TiffinTracker_{report.start_date}_to_{report.end_date}.csv"


def backup_filename(today: Optional[date] = None) -> str:
    return f"TiffinTracker_Backup_{today_str(today)}.json"


# --- CSV ---

def _quote(text: str) -> str:
    return '"' + text.replace('"', '""') + '"'


def to_csv(report: ReportData, settings: UserSettings) -> str:
    """Render a report as CSV text"""
    code = settings.currency
    lc, dc = report.lunch_counts, report.dinner_counts

    lines = [
        "TiffinTracker Report",
        f"Period: {format_display_date(report.start_date)} to {format_display_date(report.end_date)}",
        "",
        "Summary",
        SUMMARY_HEADER,
        f"Lunch,{lc.none},{lc.half},{lc.full},{format_currency(report.total_lunch_amount, code)}",
        f"Dinner,{dc.none},{dc.half},{dc.full},{format_currency(report.total_dinner_amount, code)}",
        f"Grand Total,,,,{format_currency(report.grand_total, code)}",
        "",
        "Daily Entries",
        ENTRIES_HEADER,
    ]

    for entry in report.entries:
        lunch_price = effective_price(entry.lunch_type, entry.lunch_price, settings)
        dinner_price = effective_price(entry.dinner_type, entry.dinner_price, settings)
        lines.append(",".join([
            format_display_date(entry.date),
            entry.lunch_type.value,
            format_amount(lunch_price),
            entry.dinner_type.value,
            format_amount(dinner_price),
            _quote(entry.notes),
        ]))

    return "\n".join(lines) + "\n"


# --- JSON backup ---

def to_json_backup(entries: Sequence[DayEntry], settings: UserSettings) -> str:
    data = {
        "entries": [e.model_dump(mode="json", by_alias=True) for e in entries],
        "settings": settings.model_dump(mode="json", by_alias=True),
    }
    return json.dumps(data, indent=2, ensure_ascii=False)


def parse_backup(text: str) -> BackupPayload:
    """Parse and validate backup text in full; nothing is applied here"""
    try:
        data = json.loads(text)
    except (json.JSONDecodeError, TypeError) as e:
        raise ImportMalformedError(f"Backup is not valid JSON: {e}")

    if not isinstance(data, dict):
        raise ImportMalformedError("Backup must be a JSON object")
    if data.get("entries") is not None and not isinstance(data["entries"], list):
        raise ImportMalformedError("Backup 'entries' must be a list")
    if data.get("settings") is not None and not isinstance(data["settings"], dict):
        raise ImportMalformedError("Backup 'settings' must be an object")

    try:
        return BackupPayload.model_validate(data)
    except ValidationError as e:
        raise ImportMalformedError(f"Backup has invalid fields: {e.error_count()} error(s)\n{e}")


async def _check_entry_ids(store, patches) -> None:
    """
    Reject ids that a newly created entry would share with another date,
    either one already stored or one earlier in the same backup.
    Ids of entries that merge into an existing date are ignored.
    """
    known = {e.date: e.id for e in await store.get_all()}
    owners = {entry_id: entry_date for entry_date, entry_id in known.items()}

    for patch in patches:
        if patch.date in known:
            continue
        if patch.id is not None:
            owner = owners.get(patch.id)
            if owner is not None:
                raise ImportMalformedError(f"Backup entry {patch.date} reuses id {patch.id} of {owner}")
            owners[patch.id] = patch.date
        known[patch.date] = patch.id


async def import_backup(store, text: str) -> ImportResult:
    """
    Merge a backup into the store. Settings are merged first, then every
    entry goes through upsert. Malformed input is rejected before any write.
    """
    payload = parse_backup(text)
    await _check_entry_ids(store, payload.entries or [])
    result = ImportResult()

    if payload.settings is not None:
        await store.update_settings(payload.settings)
        result.settings_applied = True

    for patch in payload.entries or []:
        existed = await store.get_by_date(patch.date) is not None
        await store.upsert(patch)
        if existed:
            result.updated += 1
        else:
            result.created += 1

    logger.info(
        f"Backup imported: created={result.created}, updated={result.updated}, "
        f"settings_applied={result.settings_applied}"
    )
    return result


# --- Sinks ---

class ExportSink(ABC):
    """Destination for exported text (file, share sheet, download)"""

    @abstractmethod
    def write(self, filename: str, content: str, mime_type: str) -> bool:
        pass


class FileExportSink(ExportSink):
    """Writes exports as UTF-8 files into a directory"""

    def __init__(self, directory):
        self.directory = Path(directory)

    def write(self, filename: str, content: str, mime_type: str) -> bool:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.directory / filename
        path.write_text(content, encoding="utf-8")
        logger.info(f"Exported {mime_type} to {path}")
        return True


def _deliver(sink: ExportSink, filename: str, content: str, mime_type: str) -> bool:
    try:
        return bool(sink.write(filename, content, mime_type))
    except (OSError, ExportSinkUnavailableError) as e:
        logger.error(f"Error exporting {filename}: {e}")
        return False


def export_report(report: ReportData, settings: UserSettings, sink: ExportSink) -> bool:
    return _deliver(sink, report_filename(report), to_csv(report, settings), CSV_MIME_TYPE)


async def export_backup(store, sink: ExportSink, today: Optional[date] = None) -> bool:
    entries: List[DayEntry] = await store.get_all()
    settings = await store.get_settings()
    return _deliver(sink, backup_filename(today), to_json_backup(entries, settings), JSON_MIME_TYPE)
