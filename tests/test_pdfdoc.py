import io
import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from PIL import Image
from pypdf import PdfReader, PdfWriter

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from dimensions import mm_to_pt
from errors import EncodeError, WriteError

try:
    import pdfdoc
except (ImportError, OSError):  # cairocffi raises OSError without libcairo
    pdfdoc = None


def png_page(color):
    buffer = io.BytesIO()
    Image.new("RGB", (20, 30), color).save(buffer, format="PNG")
    return buffer.getvalue()


def blank_pdf(bytestring=None, **kwargs):
    writer = PdfWriter()
    writer.add_blank_page(width=72, height=72)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@unittest.skipUnless(pdfdoc, "CairoSVG needs the cairo library")
class WriteDocumentTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_one_pdf_page_per_buffer_in_order(self):
        target = os.path.join(self.root, "cards.pdf")
        with mock.patch("pdfdoc.cairosvg.svg2pdf", side_effect=blank_pdf) as svg2pdf:
            result = pdfdoc.write_document(target, [png_page("red"), png_page("blue"), png_page("red")], 100, 150)
        self.assertEqual(result, os.path.abspath(target))
        self.assertEqual(svg2pdf.call_count, 3)
        self.assertEqual(len(PdfReader(target).pages), 3)

    def test_conversion_failure_raises_encode_error(self):
        target = os.path.join(self.root, "cards.pdf")
        with mock.patch("pdfdoc.cairosvg.svg2pdf", side_effect=ValueError("bad svg")):
            with self.assertRaises(EncodeError) as ctx:
                pdfdoc.write_document(target, [png_page("red")], 100, 150)
        self.assertIn("#page1", ctx.exception.path)
        self.assertIn("bad svg", str(ctx.exception))
        self.assertFalse(os.path.exists(target))

    def test_unwritable_target_raises_write_error(self):
        target = os.path.join(self.root, "missing-dir", "cards.pdf")
        with mock.patch("pdfdoc.cairosvg.svg2pdf", side_effect=blank_pdf):
            with self.assertRaises(WriteError) as ctx:
                pdfdoc.write_document(target, [png_page("red")], 100, 150)
        self.assertEqual(ctx.exception.path, target)

    def test_page_size_matches_paper(self):
        target = os.path.join(self.root, "a4.pdf")
        pdfdoc.write_document(target, [png_page("red"), png_page("blue")], 210, 297)
        pages = PdfReader(target).pages
        self.assertEqual(len(pages), 2)
        box = pages[0].mediabox
        self.assertAlmostEqual(float(box.width), mm_to_pt(210), delta=1)
        self.assertAlmostEqual(float(box.height), mm_to_pt(297), delta=1)


if __name__ == "__main__":
    unittest.main()
