#!/usr/bin/env python3
"""
Render the sample text document as a PDF.

Produces the PDF served by GET /loadPdfEmbeddings from the same content as
the text document, one paragraph per block, so both load endpoints can be
tried against the same facts.

Usage:
    python scripts/generate_sample_pdf.py

Output:
    data/langchain-test.pdf
"""

from pathlib import Path

from fpdf import FPDF

DATA_DIR = Path(__file__).resolve().parent.parent / "data"
SOURCE_PATH = DATA_DIR / "langchain-test.txt"
OUTPUT_PATH = DATA_DIR / "langchain-test.pdf"


class SampleDocument(FPDF):
    """Plain PDF with a page footer."""

    def footer(self):
        self.set_y(-15)
        self.set_font("Helvetica", "I", 8)
        self.set_text_color(150, 150, 150)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", 0, 0, "C")

    def body_text(self, text: str):
        self.set_font("Helvetica", "", 11)
        self.set_text_color(30, 30, 30)
        self.multi_cell(0, 6, text)
        self.ln(3)


def generate_document():
    text = SOURCE_PATH.read_text(encoding="utf-8")
    # Re-flow hard-wrapped lines; keep blank lines as paragraph breaks
    paragraphs = [
        " ".join(block.split())
        for block in text.split("\n\n")
        if block.strip()
    ]

    pdf = SampleDocument()
    pdf.alias_nb_pages()
    pdf.set_auto_page_break(auto=True, margin=20)
    pdf.add_page()

    for paragraph in paragraphs:
        pdf.body_text(paragraph)

    pdf.output(str(OUTPUT_PATH))
    print(f"Generated: {OUTPUT_PATH} ({OUTPUT_PATH.stat().st_size:,} bytes)")


if __name__ == "__main__":
    generate_document()
