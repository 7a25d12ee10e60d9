# portal/salary/reports.py
"""
Bulk payslip output: one continuous multi-page PDF, or a ZIP of
individually rendered payslips.
"""
import io
import json
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence
from zipfile import ZIP_DEFLATED, ZipFile

from portal.errors import NotFoundError, PortalError
from portal.salary.models import SalaryRecord
from portal.salary.periods import month_number, period_key
from portal.utils.pdf_generator import draw_payslip, new_document, render_payslip

log = logging.getLogger(__name__)

MANIFEST_NAME = "MANIFEST.json"


def chronological(records: Sequence[SalaryRecord]) -> List[SalaryRecord]:
    """Oldest first, by year then calendar month (not month name)."""
    return sorted(records, key=lambda r: period_key(r.year, r.month))


def newest_first(records: Sequence[SalaryRecord]) -> List[SalaryRecord]:
    return sorted(records, key=lambda r: period_key(r.year, r.month), reverse=True)


def grouped_by_faculty(records: Sequence[SalaryRecord]) -> List[SalaryRecord]:
    """Username (alphabetical), then calendar order within each faculty."""
    return sorted(records, key=lambda r: (r.username, *period_key(r.year, r.month)))


def faculty_entry_name(record: SalaryRecord) -> str:
    return f"{record.year}-{month_number(record.month):02d}_Payslip_{record.month}.pdf"


def monthly_entry_name(record: SalaryRecord) -> str:
    return f"{record.username}_Payslip_{record.month}_{record.year}.pdf"


def build_payslip_collection(records: Sequence[SalaryRecord], title: str = "Payslips") -> bytes:
    """Render ``records`` in the given order, one page each, into one PDF."""
    if not records:
        raise NotFoundError("No salary records found for this period.")

    buffer = io.BytesIO()
    c = new_document(buffer, title=title)
    for record in records:
        draw_payslip(c, record, record.faculty, record.month, record.year)
        c.showPage()
    c.save()
    log.info("Built payslip collection '%s' with %d pages", title, len(records))
    return buffer.getvalue()


@dataclass
class ArchiveResult:
    content: bytes
    entries: List[str] = field(default_factory=list)
    failed: List[Dict[str, str]] = field(default_factory=list)


def build_payslip_archive(
    records: Sequence[SalaryRecord],
    name_for: Callable[[SalaryRecord], str],
    render: Optional[Callable[[SalaryRecord], bytes]] = None,
) -> ArchiveResult:
    """
    Render each record on its own and add it to a ZIP.

    A record that fails to render is skipped and listed in ``failed`` (and in
    a MANIFEST.json entry); the other entries are still written.
    """
    if not records:
        raise NotFoundError("No salary records found for this period.")

    render = render or render_payslip
    buffer = io.BytesIO()
    result = ArchiveResult(content=b"")

    with ZipFile(buffer, "w", ZIP_DEFLATED) as zip_file:
        for record in records:
            name = name_for(record)
            if name in result.entries:
                name = name[:-len(".pdf")] + f"_{record.id}.pdf"
            try:
                pdf = render(record)
            except Exception as exc:
                log.exception("Payslip for %s %s %s failed to render", record.username, record.month, record.year)
                result.failed.append({
                    "entry": name,
                    "username": record.username,
                    "period": f"{record.month} {record.year}",
                    "error": str(exc) or exc.__class__.__name__,
                })
                continue
            zip_file.writestr(name, pdf)
            result.entries.append(name)

        if not result.entries:
            raise PortalError("Server error generating payslips: none of the payslips could be rendered.")

        if result.failed:
            manifest = {"generated": result.entries, "failed": result.failed}
            zip_file.writestr(MANIFEST_NAME, json.dumps(manifest, indent=2))

    result.content = buffer.getvalue()
    log.info("Built payslip archive: %d entries, %d failed", len(result.entries), len(result.failed))
    return result
