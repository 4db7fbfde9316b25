"""
Plain-text extraction for uploaded study documents.

Supported formats are PDF (PyMuPDF), DOCX (python-docx) and PPTX (read
directly from the zip container).
"""

from __future__ import annotations

import html
import io
import logging
import re
import zipfile
from dataclasses import dataclass
from typing import BinaryIO, Callable

import docx
from docx.table import Table
import fitz  # PyMuPDF

__all__ = [
    "PipelineError",
    "UnsupportedFormat",
    "ExtractionFailed",
    "DocumentTextExtractor",
    "extract_text_from_file",
    "file_extension",
]

logger = logging.getLogger(__name__)

SLIDE_ENTRY_PATTERN = re.compile(r"^ppt/slides/slide\d+\.xml$")
TEXT_RUN_PATTERN = re.compile(r"<a:t[^>]*>[^<]*</a:t>")
TAG_PATTERN = re.compile(r"<[^>]*>")


class PipelineError(Exception):
    """Base class for errors that cross the quiz pipeline boundary."""


class UnsupportedFormat(PipelineError):
    """Raised when the file extension is not pdf, docx or pptx."""

    def __init__(self, extension: str | None) -> None:
        self.extension = extension
        super().__init__(f"Unsupported file type: {extension or '(none)'}")


class ExtractionFailed(PipelineError):
    """Raised when a supported file cannot be parsed."""


def file_extension(file_name: str) -> str:
    """Lower-cased text after the last dot ('' when there is no dot)."""
    return file_name.rsplit(".", 1)[1].lower() if "." in file_name else ""


@dataclass(frozen=True)
class DocumentTextExtractor:
    """
    Format-dispatching text extractor.

    Parameters
    ----------
    max_slides : int
        Number of slide entries read from a PPTX archive, in archive-listing
        order (which is not necessarily presentation order).
    """

    max_slides: int = 10

    def extract(self, fileobj: BinaryIO, file_name: str) -> str:
        extension = file_extension(file_name)
        handler = self._handlers().get(extension)
        if handler is None:
            raise UnsupportedFormat(extension or None)

        data = fileobj.read()
        text = handler(data)
        logger.debug("extracted text", extra={"file_format": extension, "chars": len(text)})
        return text

    def _handlers(self) -> dict[str, Callable[[bytes], str]]:
        return {
            "pdf": self.extract_pdf,
            "docx": self.extract_docx,
            "pptx": self.extract_pptx,
        }

    def extract_pdf(self, data: bytes) -> str:
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if doc.page_count == 0:
                    raise ExtractionFailed("PDF has no pages")
                pages = []
                for page in doc:
                    # word tuples: (x0, y0, x1, y1, word, block_no, line_no, word_no)
                    words = page.get_text("words")
                    pages.append(" ".join(w[4] for w in words))
        except ExtractionFailed:
            raise
        except Exception as exc:  # noqa: BLE001
            raise ExtractionFailed(f"Could not read PDF: {exc}") from exc
        return "\n".join(pages).strip()

    def extract_docx(self, data: bytes) -> str:
        try:
            document = docx.Document(io.BytesIO(data))
        except Exception as exc:  # noqa: BLE001
            raise ExtractionFailed(f"Could not read DOCX: {exc}") from exc

        # Body order; a merged cell is reported once per spanned grid column.
        blocks: list[str] = []
        for item in document.iter_inner_content():
            if isinstance(item, Table):
                seen = set()
                for row in item.rows:
                    for cell in row.cells:
                        if cell._tc in seen:
                            continue
                        seen.add(cell._tc)
                        blocks.append(cell.text)
            else:
                blocks.append(item.text)
        return "\n\n".join(blocks)

    def extract_pptx(self, data: bytes) -> str:
        try:
            with zipfile.ZipFile(io.BytesIO(data)) as archive:
                slide_names = [n for n in archive.namelist() if SLIDE_ENTRY_PATTERN.match(n)]
                runs: list[str] = []
                for name in slide_names[: self.max_slides]:
                    content = archive.read(name).decode("utf-8", errors="replace")
                    for match in TEXT_RUN_PATTERN.findall(content):
                        runs.append(html.unescape(TAG_PATTERN.sub("", match)))
        except Exception as exc:  # noqa: BLE001
            # BadZipFile, zlib.error on corrupt members, ...
            raise ExtractionFailed(f"Could not read PPTX: {exc}") from exc
        return " ".join(runs).strip()


def extract_text_from_file(
    fileobj: BinaryIO,
    file_name: str,
    *,
    extractor: DocumentTextExtractor | None = None,
) -> str:
    """
    Extract plain text from an uploaded file, dispatching on its extension.

    Raises UnsupportedFormat before touching ``fileobj`` when the extension is
    not recognized, and ExtractionFailed for malformed input.
    """
    return (extractor or DocumentTextExtractor()).extract(fileobj, file_name)
