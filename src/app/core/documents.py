"""
PDF Documents

Acceptance-of-terms document given to applicants and archived on disk, plus
a small canvas wrapper reused by the members export.

Rendering is synchronous (reportlab); call it through asyncio.to_thread from
request handlers.
"""

import io
import logging
import re
from datetime import UTC, datetime
from pathlib import Path

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfgen import canvas

logger = logging.getLogger(__name__)

MARGIN = 50
BODY_FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"

ACCEPTANCE_CONDITIONS: list[tuple[str, list[str]]] = [
    (
        "1. INSCRIPTION",
        [
            "Le client accepte de s'inscrire au programme {program} en versant le montant requis.",
        ],
    ),
    (
        "2. VÉRIFICATION DU PAIEMENT",
        [
            "Le client comprend que son paiement doit être vérifié avant son approbation. "
            "Ce processus peut prendre jusqu'à 24 heures.",
        ],
    ),
    (
        "3. ACCÈS AU GROUPE PRIVÉ",
        [
            "Une fois approuvé, le client aura accès au groupe privé {program} "
            "avec tous les bénéfices associés.",
        ],
    ),
    (
        "4. CONDITIONS DE SERVICE",
        [
            "- Le client s'engage à respecter les règles du groupe",
            "- Le client ne doit pas partager les contenus privés en dehors du groupe",
            "- Le client accepte les conditions de la plateforme",
        ],
    ),
    (
        "5. CONFIRMATION",
        [
            "Le client confirme qu'il accepte volontairement ces conditions SANS CONTRAINTE "
            "et qu'aucune pression n'a été exercée.",
        ],
    ),
    (
        "6. RESPONSABILITÉ",
        [
            "{program} décline toute responsabilité en cas de dispute ou désaccord ultérieur "
            "concernant les conditions.",
        ],
    ),
    (
        "7. ARCHIVAGE",
        [
            "Ce document sert de preuve d'acceptation des conditions par le client.",
        ],
    ),
]


def format_fr_datetime(value: datetime) -> str:
    """Format a timestamp as dd/mm/YYYY HH:MM:SS."""
    return value.strftime("%d/%m/%Y %H:%M:%S")


class PdfDocument:
    """
    Top-to-bottom text layout on an A4 canvas.

    Keeps a vertical cursor and starts a new page when the next line would
    run into the bottom margin.
    """

    def __init__(self, title: str):
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=A4)
        self._canvas.setTitle(title)
        self.width, self.height = A4
        self.y = self.height - MARGIN

    @property
    def usable_width(self) -> float:
        return self.width - 2 * MARGIN

    def _ensure_space(self, needed: float) -> None:
        if self.y - needed < MARGIN:
            self._canvas.showPage()
            self.y = self.height - MARGIN

    def line(
        self,
        text: str,
        *,
        size: int = 11,
        bold: bool = False,
        align: str = "left",
        leading: float | None = None,
    ) -> None:
        """Write text, wrapping it to the usable width."""
        font = BOLD_FONT if bold else BODY_FONT
        leading = leading or size * 1.45
        for chunk in simpleSplit(text, font, size, self.usable_width) or [""]:
            self._ensure_space(leading)
            self._canvas.setFont(font, size)
            if align == "center":
                self._canvas.drawCentredString(self.width / 2, self.y, chunk)
            else:
                self._canvas.drawString(MARGIN, self.y, chunk)
            self.y -= leading

    def columns(self, values: list[str], widths: list[float], *, size: int = 9, bold: bool = False) -> None:
        """Write one table row; each cell is clipped to its column width."""
        font = BOLD_FONT if bold else BODY_FONT
        leading = size * 1.5
        self._ensure_space(leading)
        self._canvas.setFont(font, size)
        x = MARGIN
        for value, width in zip(values, widths, strict=True):
            lines = simpleSplit(value, font, size, width - 4)
            self._canvas.drawString(x, self.y, lines[0] if lines else "")
            x += width
        self.y -= leading

    def space(self, amount: float = 12) -> None:
        self.y -= amount

    def to_bytes(self) -> bytes:
        self._canvas.save()
        return self._buffer.getvalue()


def render_acceptance_pdf(
    name: str,
    email: str,
    whatsapp: str,
    *,
    program: str,
    issued_at: datetime | None = None,
) -> bytes:
    """
    Render the acceptance-of-terms document for one applicant.

    Args:
        name: Client's full name (used as the digital signature)
        email: Client's email
        whatsapp: Client's WhatsApp number
        program: Program name printed in the header and conditions
        issued_at: Timestamp printed on the document (defaults to now, UTC)

    Returns:
        The PDF file as bytes
    """
    issued_at = issued_at or datetime.now(UTC)
    stamp = format_fr_datetime(issued_at)

    doc = PdfDocument(title=f"{program} - Acceptation des conditions")

    doc.line(program, size=20, bold=True, align="center")
    doc.line("Formulaire d'Acceptation des Conditions", size=12, align="center")
    doc.space()

    doc.line("Date et heure :", bold=True)
    doc.line(stamp)
    doc.space()

    doc.line("Informations du Client :", bold=True)
    doc.line(f"Nom : {name}")
    doc.line(f"Email : {email}")
    doc.line(f"WhatsApp : {whatsapp}")
    doc.space()

    doc.line("Conditions d'Acceptation", size=12, bold=True)
    for heading, paragraphs in ACCEPTANCE_CONDITIONS:
        doc.space(4)
        doc.line(heading, bold=True)
        for paragraph in paragraphs:
            doc.line(paragraph.format(program=program))
    doc.space()

    doc.line("Acceptation Volontaire", bold=True)
    doc.line(
        "Je déclare avoir lu, compris et accepté les conditions ci-dessus de manière "
        "volontaire et sans contrainte.",
        size=10,
    )
    doc.space(24)
    doc.line(f"Signature du client (digitale) : {name}", size=10)
    doc.line(f"Date et heure de signature : {stamp}", size=10)
    doc.space()

    doc.line("---", size=9, align="center")
    doc.line(f"Document généré automatiquement par {program}", size=8, align="center")
    doc.line(f"Référence : {int(issued_at.timestamp() * 1000)}", size=8, align="center")

    return doc.to_bytes()


def safe_filename_part(value: str) -> str:
    """Collapse whitespace to underscores and drop path-unsafe characters."""
    collapsed = re.sub(r"\s+", "_", value.strip())
    return re.sub(r"[^\w.-]", "", collapsed) or "client"


def acceptance_filename(name: str, issued_at: datetime) -> str:
    return f"acceptance_{safe_filename_part(name)}_{int(issued_at.timestamp() * 1000)}.pdf"


def archive_pdf(directory: str | Path, filename: str, content: bytes) -> Path:
    """
    Write a PDF copy into the archive directory, creating it if needed.

    Returns:
        Path of the archived file
    """
    archive_dir = Path(directory)
    archive_dir.mkdir(parents=True, exist_ok=True)
    path = archive_dir / filename
    path.write_bytes(content)
    logger.info(f"Archived signed PDF: {path.name}")
    return path


def clear_archive(directory: str | Path) -> int:
    """Delete every archived PDF. Returns the number of files removed."""
    archive_dir = Path(directory)
    if not archive_dir.exists():
        return 0

    removed = 0
    for path in archive_dir.glob("*.pdf"):
        path.unlink()
        removed += 1
    return removed
