"""
Document export pipeline: rendered HTML -> tall raster -> paginated A4 PDF.

    IDLE -> PREPARING -> CAPTURING -> PAGINATING -> SAVED
                 \\            \\            \\
                  +------------+------------+--> ERROR -> IDLE

Layout restoration and rasterizer shutdown run on every path. No file is
produced unless the pipeline reaches SAVED.
"""
import enum
import logging
import threading
from dataclasses import dataclass
from io import BytesIO
from typing import List, Optional

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from quotegen.exceptions import ExportCancelled, ExportError

logger = logging.getLogger(__name__)

# A4 portrait proportions
A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297


class ExportState(enum.Enum):
    """Export pipeline state."""
    IDLE = "idle"
    PREPARING = "preparing"
    CAPTURING = "capturing"
    PAGINATING = "paginating"
    SAVED = "saved"
    ERROR = "error"


@dataclass
class ExportResult:
    """Finished export."""
    filename: str
    content: bytes
    page_count: int
    mimetype: str = 'application/pdf'


def page_height_for(width: int) -> int:
    """Pixel height of one A4 page for a raster `width` pixels wide."""
    return max(1, round(width * A4_HEIGHT_MM / A4_WIDTH_MM))


def paginate_raster(image: Image.Image, page_height: int) -> List[Image.Image]:
    """
    Slice a tall raster into consecutive pages of `page_height` pixels.

    Produces ceil(H / P) slices; the last one holds whatever remains, so
    slices tile the raster with no gap, overlap or trailing blank page.

    Raises:
        ExportError: for an empty raster or a non-positive page height
    """
    width, height = image.size
    if width <= 0 or height <= 0:
        raise ExportError('Captured document is empty')
    if page_height <= 0:
        raise ExportError(f'Invalid page height: {page_height}')

    pages = []
    top = 0
    while height - top > 0:
        bottom = min(top + page_height, height)
        pages.append(image.crop((0, top, width, bottom)))
        top = bottom

    return pages


def write_pdf(pages: List[Image.Image]) -> bytes:
    """Place each page image at the top of its own A4 page, full width."""
    if not pages:
        raise ExportError('Nothing to write')

    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    page_width, page_height = A4

    for page in pages:
        if page.mode not in ('RGB', 'L'):
            page = page.convert('RGB')
        px_width, px_height = page.size
        draw_height = page_width * px_height / px_width
        pdf.drawImage(
            ImageReader(page),
            0, page_height - draw_height,
            width=page_width, height=draw_height
        )
        pdf.showPage()

    pdf.save()
    return buffer.getvalue()


class DocumentExportPipeline:
    """
    One export at a time through a rasterizer.

    The rasterizer must provide load(html, scale), apply_export_layout(),
    wait_for_assets(timeout), capture() -> PIL image, restore_layout() and
    close().
    """

    def __init__(self, rasterizer, scale: int = 2, asset_timeout: float = 10.0,
                 cancel_event: Optional[threading.Event] = None):
        self.rasterizer = rasterizer
        self.scale = scale
        self.asset_timeout = asset_timeout
        self.cancel_event = cancel_event or threading.Event()
        self.state = ExportState.IDLE
        self.history = [ExportState.IDLE]
        self.error: Optional[Exception] = None

    def _transition(self, state: ExportState) -> None:
        logger.debug(f"[EXPORT] {self.state.value} -> {state.value}")
        self.state = state
        self.history.append(state)

    def _check_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise ExportCancelled()

    def cancel(self) -> None:
        self.cancel_event.set()

    def _cleanup(self) -> None:
        try:
            self.rasterizer.restore_layout()
        except ExportError as e:
            logger.warning(f"[EXPORT] Layout restore failed: {e}")
        finally:
            self.rasterizer.close()

    def _fail(self, error: Exception) -> None:
        self.error = error
        self._transition(ExportState.ERROR)
        self._transition(ExportState.IDLE)

    def export(self, html: str, document_name: str) -> ExportResult:
        """
        Run the full pipeline for one document.

        Args:
            html: Resolved document markup
            document_name: File name without extension (e.g. Quote-Q2601-0042)

        Returns:
            ExportResult with the PDF bytes

        Raises:
            ExportCancelled: cancel() was called before the export finished
            AssetLoadError: images did not load in time
            ExportError: any other failure; nothing is produced
        """
        if self.state not in (ExportState.IDLE, ExportState.SAVED):
            raise ExportError(f'Export already in progress ({self.state.value})')
        if self.state == ExportState.SAVED:
            self._transition(ExportState.IDLE)
        self.error = None

        try:
            self._check_cancelled()
            self._transition(ExportState.PREPARING)
            self.rasterizer.load(html, scale=self.scale)
            self.rasterizer.apply_export_layout()
            self.rasterizer.wait_for_assets(self.asset_timeout)
            self._check_cancelled()

            self._transition(ExportState.CAPTURING)
            image = self.rasterizer.capture()
            self._check_cancelled()

            self._transition(ExportState.PAGINATING)
            pages = paginate_raster(image, page_height_for(image.width))
            content = write_pdf(pages)
            self._check_cancelled()

            self._transition(ExportState.SAVED)
        except ExportError as e:
            logger.error(f"[EXPORT] {document_name} failed: {e.message}")
            self._fail(e)
            raise
        except (OSError, ValueError) as e:
            logger.error(f"[EXPORT] {document_name} failed: {e}")
            self._fail(e)
            raise ExportError(f'Failed to export document: {e}') from e
        finally:
            self._cleanup()

        logger.info(f"[EXPORT] {document_name}.pdf written ({len(pages)} pages, {len(content)} bytes)")
        return ExportResult(filename=f"{document_name}.pdf", content=content, page_count=len(pages))
