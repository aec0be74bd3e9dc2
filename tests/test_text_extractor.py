"""
Tests for text extraction from PDF and PPTX uploads
"""
import pytest
from unittest.mock import MagicMock, Mock, patch

from services.text_extractor import TextExtractor, PDF_MEDIA_TYPE, PPTX_MEDIA_TYPE
from utils.exceptions import ExtractionError, ErrorCode


def make_pdf(pages_text):
    pdf = MagicMock()
    pdf.pages = [Mock(extract_text=Mock(return_value=text)) for text in pages_text]
    pdf.__enter__.return_value = pdf
    return pdf


def text_shape(text):
    shape = Mock(has_text_frame=True)
    shape.text_frame.text = text
    return shape


class TestTextExtractor:

    def setup_method(self):
        self.extractor = TextExtractor()

    def test_is_supported(self):
        assert self.extractor.is_supported(PDF_MEDIA_TYPE)
        assert self.extractor.is_supported(PPTX_MEDIA_TYPE)
        assert not self.extractor.is_supported("text/plain")

    def test_missing_file(self, tmp_path):
        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract_text(str(tmp_path / "missing.pdf"), PDF_MEDIA_TYPE)
        assert exc_info.value.error_code == ErrorCode.TEXT_EXTRACTION_FAILED

    def test_unsupported_media_type(self, tmp_path):
        path = tmp_path / "notes.txt"
        path.write_text("plain text")

        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract_text(str(path), "text/plain")
        assert "Unsupported file format" in exc_info.value.message

    @patch('services.text_extractor.pdfplumber.open')
    def test_pdf_with_pdfplumber(self, mock_open, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF-1.4")
        mock_open.return_value = make_pdf(["Page one   text.", None, "Page\nthree."])

        text = self.extractor.extract_text(str(path), PDF_MEDIA_TYPE)

        assert text == "Page one text.\n\nPage three."

    @patch('services.text_extractor.PyPDF2.PdfReader')
    @patch('services.text_extractor.pdfplumber.open')
    def test_pdf_falls_back_to_pypdf2(self, mock_open, mock_reader, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"%PDF-1.4")
        mock_open.side_effect = Exception("broken layout")
        mock_reader.return_value.pages = [Mock(extract_text=Mock(return_value="Fallback text."))]

        text = self.extractor.extract_text(str(path), PDF_MEDIA_TYPE)

        assert text == "Fallback text."

    @patch('services.text_extractor.PyPDF2.PdfReader')
    @patch('services.text_extractor.pdfplumber.open')
    def test_pdf_unreadable(self, mock_open, mock_reader, tmp_path):
        path = tmp_path / "doc.pdf"
        path.write_bytes(b"garbage")
        mock_open.side_effect = Exception("not a pdf")
        mock_reader.side_effect = Exception("EOF marker not found")

        with pytest.raises(ExtractionError) as exc_info:
            self.extractor.extract_text(str(path), PDF_MEDIA_TYPE)
        assert "Failed to extract text from file" in exc_info.value.message

    @patch('services.text_extractor.Presentation')
    def test_pptx(self, mock_presentation, tmp_path):
        path = tmp_path / "deck.pptx"
        path.write_bytes(b"PK")

        picture = Mock(has_text_frame=False, has_table=False)
        slide_one = Mock(shapes=[text_shape("Title slide"), picture, text_shape("Subtitle  here")])
        slide_two = Mock(shapes=[text_shape("Second slide body")])
        mock_presentation.return_value.slides = [slide_one, slide_two]

        text = self.extractor.extract_text(str(path), PPTX_MEDIA_TYPE)

        assert text == "Title slide Subtitle here\nSecond slide body"

    @patch('services.text_extractor.Presentation')
    def test_pptx_unreadable(self, mock_presentation, tmp_path):
        path = tmp_path / "deck.pptx"
        path.write_bytes(b"not a zip")
        mock_presentation.side_effect = Exception("File is not a zip file")

        with pytest.raises(ExtractionError):
            self.extractor.extract_text(str(path), PPTX_MEDIA_TYPE)

    def test_clean_text(self):
        assert self.extractor._clean_text("  a\x00b \n\t c  ") == "ab c"
        assert self.extractor._clean_text("") == ""
