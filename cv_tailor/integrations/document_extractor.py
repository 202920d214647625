"""Text extraction from uploaded CV documents (PDF, markdown)"""

import re
import unicodedata
from io import BytesIO
from typing import Optional

import httpx
import pdfplumber

from ..core.errors import InputError, TransientError
from ..models.task import FileType
from ..utils.helpers import strip_markdown
from ..utils.logger import app_logger

MAX_TEXT_CHARS = 50000


def clean_document_text(text: str, max_chars: int = MAX_TEXT_CHARS) -> str:
    """Normalize unicode and squeeze whitespace"""
    if not text or not text.strip():
        return ""
    text = unicodedata.normalize("NFC", text)
    text = re.sub(r"[ \t]+", " ", text)
    text = re.sub(r"\n\s*\n\s*\n", "\n\n", text)
    text = text.strip()
    if len(text) > max_chars:
        text = text[:max_chars]
    return text


def extract_pdf_text(data: bytes) -> str:
    """Concatenate the text of every PDF page"""
    try:
        with pdfplumber.open(BytesIO(data)) as pdf:
            parts = [page.extract_text() or "" for page in pdf.pages]
    except Exception as e:
        # pdfplumber surfaces several parser exception types for broken files
        raise InputError(f"Could not read PDF: {e}", stage="extract-text")
    return "\n\n".join(part for part in parts if part.strip())


async def download_file(url: str, client: Optional[httpx.AsyncClient] = None, timeout: float = 30) -> bytes:
    """Fetch a file body"""
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=timeout, follow_redirects=True)
    try:
        response = await client.get(url)
        response.raise_for_status()
        return response.content
    except httpx.HTTPStatusError as e:
        status = e.response.status_code
        if status >= 500:
            raise TransientError(f"Download failed: {status}", stage="extract-text", context={"url": url})
        raise InputError(f"Download failed: {status}", stage="extract-text", context={"url": url})
    except httpx.RequestError as e:
        raise TransientError(f"Download failed: {e}", stage="extract-text", context={"url": url})
    finally:
        if owns_client:
            await client.aclose()


async def extract_document_text(file_type: FileType, file_url: str, file_content: Optional[str] = None,
                                client: Optional[httpx.AsyncClient] = None) -> str:
    """Plain text of an uploaded CV; raises InputError when nothing usable is found"""
    file_type = FileType(file_type)

    if file_type == FileType.PDF:
        data = await download_file(file_url, client)
        text = extract_pdf_text(data)
    elif file_content:
        text = strip_markdown(file_content)
    else:
        data = await download_file(file_url, client)
        text = strip_markdown(data.decode("utf-8", errors="replace"))

    text = clean_document_text(text)
    if not text:
        raise InputError("No text could be extracted from the document", stage="extract-text",
                         context={"file_type": file_type.value})

    app_logger.info(f"Extracted {len(text)} characters from {file_type.value} document")
    return text
