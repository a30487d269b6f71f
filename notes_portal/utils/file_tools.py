import io
import logging

from pypdf import PdfReader

logger = logging.getLogger(__name__)

SIZE_UNITS = ["Bytes", "KB", "MB", "GB"]


def file_extension(filename: str) -> str:
    """
    Extension en minuscules avec le point : "Notes.PDF" -> ".pdf", "README" -> ".readme".
    """
    return "." + filename.rsplit(".", 1)[-1].lower()


def format_file_size(size: int) -> str:
    """
    Taille lisible en base 1024 : 0 -> "0 Bytes", 1536 -> "1.5 KB".
    """
    if size <= 0:
        return "0 Bytes"
    i = 0
    while i < len(SIZE_UNITS) - 1 and size >= 1024 ** (i + 1):
        i += 1
    value = round(size / (1024 ** i), 2)
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{text} {SIZE_UNITS[i]}"


def count_pdf_pages(content: bytes) -> int:
    """
    Nombre de pages d'un PDF en mémoire, 0 si illisible.
    """
    try:
        return len(PdfReader(io.BytesIO(content)).pages)
    except Exception as e:
        logger.warning("count_pdf_pages failed: %s", e)
        return 0
