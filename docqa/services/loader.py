# =============================================================================
# Document Loader — Text Files and PDF Pages
# =============================================================================
#
# Reads the source documents from local storage:
#   - read_text_document(): the whole file as one UTF-8 string
#   - load_pdf_pages(): one PageSegment per PDF page, extracted with docling
#
# Both are async; the blocking work (file I/O, docling conversion) runs in a
# worker thread so the event loop keeps serving other requests.
#
# Any failure (missing file, permission error, bad encoding, corrupt PDF)
# raises DocumentLoadError. There is no partial-read recovery: the request
# that triggered the load fails and the current index is left untouched.
# =============================================================================

from __future__ import annotations

import asyncio
import logging
from collections import defaultdict
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from docling_core.types.doc.labels import DocItemLabel

from docqa.services.errors import DocumentLoadError

if TYPE_CHECKING:
    from docling.document_converter import DocumentConverter

logger = logging.getLogger(__name__)

# Item labels whose text is kept as-is on the page
_TEXT_LABELS = frozenset({
    DocItemLabel.TITLE,
    DocItemLabel.SECTION_HEADER,
    DocItemLabel.TEXT,
    DocItemLabel.PARAGRAPH,
    DocItemLabel.LIST_ITEM,
    DocItemLabel.CAPTION,
    DocItemLabel.FOOTNOTE,
})


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


@dataclass
class PageSegment:
    """The text of a single PDF page."""

    page_number: int  # 1-indexed
    text: str


# ---------------------------------------------------------------------------
# Plain Text
# ---------------------------------------------------------------------------


async def read_text_document(path: str | Path) -> str:
    """
    Read a text file fully into memory.

    Raises:
        DocumentLoadError: If the file is missing, unreadable, or not UTF-8.
    """
    path = Path(path)
    logger.info("Reading text document: %s", path)

    try:
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    except FileNotFoundError as exc:
        raise DocumentLoadError(f"Text document not found: {path}") from exc
    except (OSError, UnicodeDecodeError) as exc:
        raise DocumentLoadError(
            f"Failed to read text document '{path}': {exc}"
        ) from exc

    logger.info("Read %d characters from '%s'", len(text), path.name)
    return text


# ---------------------------------------------------------------------------
# PDF — Docling Converter (lazy, one per option set)
# ---------------------------------------------------------------------------
# Creating a DocumentConverter loads layout models, so instances are cached.
# docling itself is imported lazily: importing it pulls in torch.
# ---------------------------------------------------------------------------

_converters: dict[tuple[bool, bool], DocumentConverter] = {}


def _get_converter(ocr: bool, table_structure: bool) -> DocumentConverter:
    """Lazily initialize and cache a docling DocumentConverter."""
    key = (ocr, table_structure)
    if key not in _converters:
        from docling.datamodel.base_models import InputFormat
        from docling.datamodel.pipeline_options import PdfPipelineOptions
        from docling.document_converter import DocumentConverter, PdfFormatOption

        logger.info(
            "Initializing docling DocumentConverter (ocr=%s, tables=%s)...",
            ocr, table_structure,
        )
        pipeline_options = PdfPipelineOptions()
        pipeline_options.do_ocr = ocr
        pipeline_options.do_table_structure = table_structure

        _converters[key] = DocumentConverter(
            format_options={
                InputFormat.PDF: PdfFormatOption(
                    pipeline_options=pipeline_options,
                ),
            }
        )
    return _converters[key]


async def load_pdf_pages(
    path: str | Path,
    ocr: bool = False,
    table_structure: bool = True,
) -> list[PageSegment]:
    """
    Extract the text of every page of a PDF.

    Pages without any extractable text are skipped, so the returned list
    may be shorter than the page count.

    Raises:
        DocumentLoadError: If the file is missing or docling fails.
    """
    path = Path(path)
    if not path.exists():
        raise DocumentLoadError(f"PDF document not found: {path}")

    return await asyncio.to_thread(_convert_pdf, path, ocr, table_structure)


def _convert_pdf(path: Path, ocr: bool, table_structure: bool) -> list[PageSegment]:
    logger.info("Parsing PDF: %s", path.name)
    converter = _get_converter(ocr, table_structure)

    try:
        result = converter.convert(str(path))
    except Exception as exc:
        raise DocumentLoadError(
            f"docling failed to parse '{path.name}': {exc}"
        ) from exc

    lines_by_page: dict[int, list[str]] = defaultdict(list)

    for item, _level in result.document.iterate_items():
        page_no = 0
        if getattr(item, "prov", None):
            page_no = item.prov[0].page_no

        label = getattr(item, "label", None)
        if label == DocItemLabel.TABLE:
            text = _table_to_markdown(item, result.document)
        elif label in _TEXT_LABELS:
            text = (getattr(item, "text", "") or "").strip()
        else:
            continue

        if text:
            lines_by_page[page_no].append(text)

    pages = [
        PageSegment(page_number=page_no, text="\n".join(lines))
        for page_no, lines in sorted(lines_by_page.items())
    ]

    logger.info("Parsed '%s': %d pages with text", path.name, len(pages))
    return pages


def _table_to_markdown(table_item: object, document: object) -> str:
    """
    Render a docling TableItem as a markdown table.

    Falls back to the item's plain text if the export fails.
    """
    try:
        if hasattr(table_item, "export_to_markdown"):
            return table_item.export_to_markdown(doc=document).strip()
    except Exception as exc:
        logger.warning("Table export to markdown failed: %s", exc)

    text = getattr(table_item, "text", "")
    return text.strip() if text else ""
