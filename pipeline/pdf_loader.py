"""
PDF to image conversion using PyMuPDF.
"""

import base64
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

import fitz  # PyMuPDF
import pdfplumber
from PIL import Image

from config import PDF_IMAGE_FORMAT, PDF_SCALE
from pipeline.errors import DocumentReadError
from utils.image_utils import encode_image, mime_type_for

logger = logging.getLogger(__name__)

PdfSource = Union[str, Path, bytes, bytearray]


@dataclass(frozen=True)
class PageImage:
    """One rasterized PDF page."""
    page_number: int  # 1-indexed, matches the PDF's own numbering
    data: bytes
    mime_type: str

    @property
    def format(self) -> str:
        return self.mime_type.split("/")[-1]

    def to_base64(self) -> str:
        return base64.b64encode(self.data).decode("utf-8")


def _describe(source: PdfSource) -> str:
    if isinstance(source, (bytes, bytearray)):
        return f"<{len(source)} byte buffer>"
    return str(source)


class PDFLoader:
    """Handles PDF loading and conversion to page images."""

    def __init__(self, scale: float = PDF_SCALE, image_format: str = PDF_IMAGE_FORMAT):
        self.scale = scale
        self.image_format = image_format
        self.mime_type = mime_type_for(image_format)

    def load_pdf(self, source: PdfSource) -> fitz.Document:
        """Open a PDF from a path or an in-memory buffer."""
        try:
            if isinstance(source, (bytes, bytearray)):
                return fitz.open(stream=bytes(source), filetype="pdf")
            return fitz.open(str(source))
        except Exception as e:
            raise DocumentReadError(f"Could not open PDF {_describe(source)}: {e}") from e

    def page_to_pil(self, page: fitz.Page, scale: float) -> Image.Image:
        """Render a single PDF page to a PIL Image."""
        mat = fitz.Matrix(scale, scale)
        pix = page.get_pixmap(matrix=mat)
        mode = "RGBA" if pix.alpha else "RGB"
        return Image.frombytes(mode, [pix.width, pix.height], pix.samples)

    def rasterize(
        self,
        source: PdfSource,
        page_numbers: Iterable[int],
        scale: Optional[float] = None,
    ) -> List[PageImage]:
        """
        Convert the requested pages (1-indexed) to images.

        Every page is walked in order but only requested pages are rendered.
        Pages that do not exist in the document are simply absent from the
        result. The result is sorted by page number.

        Raises:
            DocumentReadError: if the document cannot be parsed; nothing is
                returned in that case.
        """
        wanted = set(page_numbers)
        scale = self.scale if scale is None else scale
        images = []

        doc = self.load_pdf(source)
        try:
            for page_number, page in enumerate(doc, start=1):
                if page_number not in wanted:
                    continue
                image = self.page_to_pil(page, scale)
                images.append(PageImage(
                    page_number=page_number,
                    data=encode_image(image, self.image_format),
                    mime_type=self.mime_type,
                ))
        except Exception as e:
            raise DocumentReadError(
                f"Failed to convert PDF pages from {_describe(source)}: {e}"
            ) from e
        finally:
            doc.close()

        images.sort(key=lambda img: img.page_number)
        return images

    def rasterize_range(self, source: PdfSource, start_page: int, end_page: int) -> List[PageImage]:
        """Convert an inclusive page range to images."""
        return self.rasterize(source, range(start_page, end_page + 1))

    def get_page_count(self, source: PdfSource) -> int:
        """Get total number of pages without rendering anything."""
        try:
            if isinstance(source, (bytes, bytearray)):
                with pdfplumber.open(io.BytesIO(bytes(source))) as pdf:
                    return len(pdf.pages)
            with pdfplumber.open(str(source)) as pdf:
                return len(pdf.pages)
        except Exception as e:
            raise DocumentReadError(f"Could not read PDF {_describe(source)}: {e}") from e


def validate_page_range(start_page: int, end_page: int, total_pages: int) -> Optional[str]:
    """Return an error message if the range is not inside the document, else None."""
    if start_page < 1 or start_page > total_pages:
        return f"Invalid start page: {start_page}. Must be between 1 and {total_pages}"
    if end_page < start_page or end_page > total_pages:
        return f"Invalid end page: {end_page}. Must be between {start_page} and {total_pages}"
    return None
