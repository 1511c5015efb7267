from __future__ import annotations
import io
from dataclasses import dataclass
from typing import Optional

from pypdf import PdfReader
from pypdf.errors import PdfReadError

from doclens.utils.logger import get_logger
from doclens.utils.types import UploadFile

logger = get_logger(__name__)

PDF_MAGIC = b"%PDF-"
MAX_UPLOAD_BYTES = 50 * 1024 * 1024


@dataclass
class UploadCheck:
    ok: bool
    pages: int = 0
    error: Optional[str] = None


def from_uploaded(uploaded) -> UploadFile:
    """Wrap a Streamlit ``UploadedFile`` (or any object with name/read) as an UploadFile."""
    data = uploaded.getvalue() if hasattr(uploaded, "getvalue") else uploaded.read()
    content_type = getattr(uploaded, "type", None) or "application/pdf"
    return UploadFile(name=uploaded.name, content=data, content_type=content_type)


def inspect_upload(file: UploadFile) -> UploadCheck:
    """Cheap local check that the upload is a readable PDF before the long backend call.

    Text extraction stays on the backend; we only open the document and count pages.
    """
    if not file.content:
        return UploadCheck(False, error="The selected file is empty.")
    if file.size > MAX_UPLOAD_BYTES:
        return UploadCheck(False, error=f"File exceeds {MAX_UPLOAD_BYTES // (1024 * 1024)} MB limit.")
    if not file.content.lstrip()[:5] == PDF_MAGIC:
        return UploadCheck(False, error="Only PDF documents can be analyzed.")
    try:
        reader = PdfReader(io.BytesIO(file.content))
        if reader.is_encrypted:
            return UploadCheck(False, error="Encrypted PDFs are not supported.")
        pages = len(reader.pages)
    except PdfReadError as e:
        logger.info("Rejected unreadable PDF %s: %s", file.name, e)
        return UploadCheck(False, error="The PDF could not be read. It may be damaged.")
    except Exception as e:  # pypdf raises assorted errors on malformed structure
        logger.info("Rejected malformed PDF %s: %s", file.name, e)
        return UploadCheck(False, error="The PDF could not be read. It may be damaged.")
    if pages == 0:
        return UploadCheck(False, error="The PDF has no pages.")
    return UploadCheck(True, pages=pages)
