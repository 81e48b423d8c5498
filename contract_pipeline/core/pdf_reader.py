import fitz
from pydantic import BaseModel

from .errors import PDFParseError


class PDFExtractionResult(BaseModel):
    text: str
    page_count: int
    size_bytes: int
    extraction_method: str = "embedded"


def pdf_bytes_to_text(pdf_bytes: bytes) -> PDFExtractionResult:
    """Lê um PDF recebido em bytes (upload) e retorna o texto concatenado."""
    try:
        doc = fitz.open(stream=pdf_bytes, filetype="pdf")
    except Exception as e:
        raise PDFParseError(f"Não foi possível abrir o PDF: {e}") from e

    try:
        text_parts = []
        for page in doc:
            text_parts.append(page.get_text())
        page_count = doc.page_count
    except Exception as e:
        raise PDFParseError(f"Falha ao ler o texto do PDF: {e}") from e
    finally:
        doc.close()

    return PDFExtractionResult(
        text="\n".join(text_parts),
        page_count=page_count,
        size_bytes=len(pdf_bytes),
    )
