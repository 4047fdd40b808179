import io
import sys
import unittest
from pathlib import Path

import docx
import fitz

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_screener.errors import ParseError, UnsupportedFormatError  # noqa: E402
from resume_screener.parser import (  # noqa: E402
    DOCX_MIME,
    PDF_MIME,
    TEXT_MIME,
    clean_text,
    extract_text,
    guess_mime_type,
)


class CleanTextTests(unittest.TestCase):
    def test_keeps_line_breaks_and_collapses_spaces(self):
        raw = "Jane   Doe \r\n\tPython\t\tDeveloper\n\n\n\nSkills"
        self.assertEqual(clean_text(raw), "Jane Doe\nPython Developer\n\nSkills")

    def test_maps_bullets_and_quotes(self):
        raw = "• Built “fast” APIs – 2019–2021"
        self.assertEqual(clean_text(raw), '- Built "fast" APIs - 2019-2021')

    def test_drops_other_non_ascii(self):
        self.assertEqual(clean_text("José ☃ García"), "Jos Garca")

    def test_empty(self):
        self.assertEqual(clean_text(""), "")
        self.assertEqual(clean_text(None), "")


class ExtractTextTests(unittest.TestCase):
    def test_plain_text(self):
        self.assertEqual(extract_text(b"  Jane Doe\n\nPython  ", TEXT_MIME), "Jane Doe\n\nPython")

    def test_unsupported_type(self):
        with self.assertRaises(UnsupportedFormatError) as ctx:
            extract_text(b"\x89PNG", "image/png")
        self.assertEqual(ctx.exception.mime_type, "image/png")
        self.assertIsInstance(ctx.exception, ParseError)

    def test_docx(self):
        document = docx.Document()
        document.add_paragraph("Jane Doe")
        document.add_paragraph("Senior Python Developer")
        buffer = io.BytesIO()
        document.save(buffer)

        self.assertEqual(extract_text(buffer.getvalue(), DOCX_MIME), "Jane Doe\nSenior Python Developer")

    def test_pdf(self):
        lines = [
            "Jane Doe",
            "Senior Python Developer with 6 years of experience",
            "Built billing APIs on AWS and PostgreSQL for a fintech company",
        ]
        with fitz.open() as doc:
            page = doc.new_page()
            page.insert_text((72, 72), "\n".join(lines), fontsize=11)
            pdf_bytes = doc.tobytes()

        text = extract_text(pdf_bytes, PDF_MIME)
        for line in lines:
            self.assertIn(line, text)

    def test_corrupt_pdf(self):
        with self.assertRaises(ParseError):
            extract_text(b"definitely not a pdf", PDF_MIME)

    def test_corrupt_docx(self):
        with self.assertRaises(ParseError):
            extract_text(b"not a zip archive", DOCX_MIME)


class GuessMimeTypeTests(unittest.TestCase):
    def test_declared_supported_type_wins(self):
        self.assertEqual(guess_mime_type("resume.bin", PDF_MIME), PDF_MIME)

    def test_extension_fallback(self):
        self.assertEqual(guess_mime_type("Resume.DOCX", "application/octet-stream"), DOCX_MIME)
        self.assertEqual(guess_mime_type("notes.txt"), TEXT_MIME)

    def test_unknown(self):
        self.assertEqual(guess_mime_type("photo.png", "image/png"), "image/png")
        self.assertEqual(guess_mime_type("blob"), "application/octet-stream")


if __name__ == "__main__":
    unittest.main()
