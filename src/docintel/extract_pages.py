from __future__ import annotations

import argparse
from pathlib import Path

import fitz  # PyMuPDF

from .documents import ExtractedText
from .errors import ExtractionError, UnsupportedFormatError
from .records import write_jsonl


TEXT_SUFFIXES = (".txt", ".md", ".text")
PDF_SUFFIXES = (".pdf",)


def extract_pdf_pages(pdf_path: Path) -> list[dict]:
    """Extract text per page using PyMuPDF.

    Returns a list of dicts: {"page": int, "text": str}
    """
    try:
        doc = fitz.open(pdf_path)
    except (fitz.FileDataError, RuntimeError) as exc:
        raise ExtractionError(f"Cannot open PDF {pdf_path}: {exc}") from exc
    pages: list[dict] = []
    try:
        for i in range(doc.page_count):
            page = doc.load_page(i)
            text = page.get_text("text")
            pages.append({"page": i + 1, "text": text})
    except RuntimeError as exc:
        raise ExtractionError(f"Failed reading {pdf_path}: {exc}") from exc
    finally:
        doc.close()
    return pages


def extract_text(path: Path) -> ExtractedText:
    """Plain text of a PDF or text file. Pages of a PDF are joined by blank lines."""
    path = Path(path)
    suffix = path.suffix.lower()
    if not path.exists():
        raise ExtractionError(f"File not found: {path}")

    if suffix in PDF_SUFFIXES:
        pages = extract_pdf_pages(path)
        return ExtractedText(
            text="\n\n".join(p["text"] for p in pages),
            page_count=len(pages),
        )

    if suffix in TEXT_SUFFIXES:
        try:
            return ExtractedText(text=path.read_text(encoding="utf-8", errors="replace"))
        except OSError as exc:
            raise ExtractionError(f"Cannot read {path}: {exc}") from exc

    raise UnsupportedFormatError(f"Unsupported file type '{suffix or path.name}': {path}")


def main() -> None:
    parser = argparse.ArgumentParser(description="Extract PDF pages -> JSONL")
    parser.add_argument("--pdf", required=True, help="Path to the PDF")
    parser.add_argument(
        "--out",
        required=True,
        help="Output JSONL path (e.g., data/processed/rfp_pages.jsonl)",
    )
    args = parser.parse_args()

    pdf_path = Path(args.pdf)
    out_path = Path(args.out)
    pages = extract_pdf_pages(pdf_path)
    write_jsonl(pages, out_path)
    print(f"Wrote {len(pages)} pages to {out_path}")


if __name__ == "__main__":
    main()
