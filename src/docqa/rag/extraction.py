"""Plain-text extraction from uploaded files."""

import io
from pathlib import PurePath


class TextExtractor:
    """Extract plain text from uploaded file bytes, chosen by file extension."""

    def extract(self, file_bytes: bytes, file_name: str) -> str:
        suffix = PurePath(file_name).suffix.lower()

        if suffix == ".pdf":
            return self._extract_pdf(file_bytes)
        elif suffix == ".docx":
            return self._extract_docx(file_bytes)
        else:
            return file_bytes.decode("utf-8", errors="replace")

    @staticmethod
    def _extract_pdf(file_bytes: bytes) -> str:
        try:
            import pypdf
        except ImportError:
            raise ImportError("PDF extraction requires 'pypdf'. pip install pypdf")
        reader = pypdf.PdfReader(io.BytesIO(file_bytes))
        return "\n".join(page.extract_text() or "" for page in reader.pages)

    @staticmethod
    def _extract_docx(file_bytes: bytes) -> str:
        try:
            from docx import Document as DocxDocument
        except ImportError:
            raise ImportError("Word extraction requires 'python-docx'. pip install python-docx")
        doc = DocxDocument(io.BytesIO(file_bytes))
        return "\n".join(para.text for para in doc.paragraphs)
