"""
Text extraction service for uploaded PDF documents and slide decks
"""
import logging
import re
from pathlib import Path
from typing import List

import PyPDF2
import pdfplumber
from pptx import Presentation

from utils.exceptions import ExtractionError

logger = logging.getLogger(__name__)


PDF_MEDIA_TYPE = "application/pdf"
PPTX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.presentationml.presentation"

SUPPORTED_MEDIA_TYPES = {
    PDF_MEDIA_TYPE: ".pdf",
    PPTX_MEDIA_TYPE: ".pptx",
}


class TextExtractor:
    """
    Service for extracting raw text from uploaded files.
    PDFs go through pdfplumber with a PyPDF2 fallback; slide decks through python-pptx.
    """

    def is_supported(self, media_type: str) -> bool:
        return media_type in SUPPORTED_MEDIA_TYPES

    def extract_text(self, file_path: str, media_type: str) -> str:
        """
        Extract text content from an uploaded file.

        Args:
            file_path: Path to the saved upload
            media_type: Declared media type of the upload

        Returns:
            Extracted text content (may be empty if the file has no text layer)

        Raises:
            ExtractionError: If the file is missing, unsupported or unreadable
        """
        if not Path(file_path).exists():
            raise ExtractionError(f"File not found: {file_path}", filename=file_path)

        if media_type == PDF_MEDIA_TYPE:
            logger.info(f"Processing PDF file {file_path}")
            text = self._extract_pdf(file_path)
        elif media_type == PPTX_MEDIA_TYPE:
            logger.info(f"Processing PPTX file {file_path}")
            text = self._extract_pptx(file_path)
        else:
            raise ExtractionError(
                f"Unsupported file format: {media_type}",
                filename=file_path,
                media_type=media_type
            )

        logger.info(f"Extracted {len(text)} characters from {file_path}")
        return text

    def _extract_pdf(self, file_path: str) -> str:
        # Try pdfplumber first (better for complex layouts)
        try:
            text = self._extract_with_pdfplumber(file_path)
            if text.strip():
                return text
        except Exception as e:
            logger.warning(f"pdfplumber extraction failed for {file_path}: {e}")

        try:
            return self._extract_with_pypdf2(file_path)
        except Exception as e:
            raise ExtractionError(
                f"Failed to extract text from file: {e}",
                filename=file_path,
                media_type=PDF_MEDIA_TYPE,
                original_exception=e
            ) from e

    def _extract_with_pdfplumber(self, file_path: str) -> str:
        """
        Extract text using pdfplumber library.

        Args:
            file_path: Path to the PDF file

        Returns:
            Extracted text content
        """
        text_parts = []

        with pdfplumber.open(file_path) as pdf:
            if len(pdf.pages) == 0:
                raise ExtractionError("PDF contains no pages", filename=file_path)

            for page_num, page in enumerate(pdf.pages, 1):
                try:
                    page_text = self._clean_text(page.extract_text() or "")
                except Exception as e:
                    logger.warning(f"Failed to extract text from page {page_num}: {e}")
                    continue
                if page_text:
                    text_parts.append(page_text)

        return '\n\n'.join(text_parts)

    def _extract_with_pypdf2(self, file_path: str) -> str:
        """
        Extract text using PyPDF2 library.

        Args:
            file_path: Path to the PDF file

        Returns:
            Extracted text content
        """
        text_parts = []

        with open(file_path, 'rb') as file:
            pdf_reader = PyPDF2.PdfReader(file)

            if len(pdf_reader.pages) == 0:
                raise ExtractionError("PDF contains no pages", filename=file_path)

            for page_num, page in enumerate(pdf_reader.pages, 1):
                try:
                    page_text = self._clean_text(page.extract_text() or "")
                except Exception as e:
                    logger.warning(f"Failed to extract text from page {page_num}: {e}")
                    continue
                if page_text:
                    text_parts.append(page_text)

        return '\n\n'.join(text_parts)

    def _extract_pptx(self, file_path: str) -> str:
        """Join the text frames of each slide with spaces, slides with newlines."""
        try:
            presentation = Presentation(file_path)
        except Exception as e:
            raise ExtractionError(
                f"Failed to extract text from file: {e}",
                filename=file_path,
                media_type=PPTX_MEDIA_TYPE,
                original_exception=e
            ) from e

        slides: List[str] = []
        for slide in presentation.slides:
            texts = []
            for shape in slide.shapes:
                if shape.has_text_frame:
                    texts.append(self._clean_text(shape.text_frame.text))
                elif getattr(shape, "has_table", False) and shape.has_table:
                    for row in shape.table.rows:
                        texts.extend(self._clean_text(cell.text) for cell in row.cells)
            slides.append(' '.join(t for t in texts if t))

        return '\n'.join(slides)

    def _clean_text(self, text: str) -> str:
        """
        Collapse whitespace and drop control characters left by the PDF/PPTX layers.
        """
        if not text:
            return ""

        text = re.sub(r'[\x00-\x08\x0b\x0c\x0e-\x1f\x7f]', '', text)
        text = re.sub(r'\s+', ' ', text)

        return text.strip()
