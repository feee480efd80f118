"""
Member Exports

CSV and PDF renderings of the member registry for the admin dashboard.
"""

import csv
import io
from collections.abc import Sequence
from datetime import UTC, datetime

from app.core.documents import PdfDocument, format_fr_datetime
from app.modules.members.models import Member

CSV_HEADER = ["ID", "Nom", "Email", "WhatsApp", "Projet", "Date"]
UTF8_BOM = "\ufeff"

# Column widths in points for the PDF table (A4 usable width is ~495pt)
PDF_COLUMNS = [("Nom", 110), ("Email", 140), ("WhatsApp", 70), ("Projet", 110), ("Date", 65)]


def build_members_csv(members: Sequence[Member]) -> bytes:
    """
    Render members as CSV.

    The output starts with a UTF-8 BOM so spreadsheet tools detect the
    encoding; every data cell is quoted.
    """
    buffer = io.StringIO()
    buffer.write(UTF8_BOM)

    csv.writer(buffer, lineterminator="\n").writerow(CSV_HEADER)
    rows = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for member in members:
        rows.writerow(
            [
                str(member.id),
                member.name,
                member.email,
                member.whatsapp,
                member.project or "-",
                format_fr_datetime(member.confirmed_at),
            ]
        )

    return buffer.getvalue().encode("utf-8")


def render_members_pdf(
    members: Sequence[Member],
    *,
    program: str,
    max_places: int,
    generated_at: datetime | None = None,
) -> bytes:
    """Render the member registry as a paginated PDF table."""
    generated_at = generated_at or datetime.now(UTC)
    widths = [width for _, width in PDF_COLUMNS]

    doc = PdfDocument(title=f"{program} - Inscriptions")
    doc.line(program, size=18, bold=True, align="center")
    doc.line("Liste des inscriptions confirmées", size=12, align="center")
    doc.space(6)
    doc.line(f"Généré le : {format_fr_datetime(generated_at)}", size=9)
    doc.line(f"Places occupées : {len(members)}/{max_places}", size=9)
    doc.space()

    doc.columns([label for label, _ in PDF_COLUMNS], widths, bold=True)
    for member in members:
        doc.columns(
            [
                member.name,
                member.email,
                member.whatsapp,
                member.project or "-",
                member.confirmed_at.strftime("%d/%m/%Y"),
            ],
            widths,
        )

    return doc.to_bytes()


def export_filename(prefix: str, extension: str, today: datetime | None = None) -> str:
    """Build e.g. inscriptions_2026-03-01.csv"""
    today = today or datetime.now(UTC)
    return f"{prefix}_{today.strftime('%Y-%m-%d')}.{extension}"
