import io
import os

# cairo prec
if os.name == 'nt':
    os.environ['PATH'] += ';C:\\Program Files\\GTK3-Runtime Win64\\bin'
import cairosvg
from pypdf import PdfWriter

from errors import EncodeError, WriteError
from pagesvg import page_svg


def convert_page_to_pdf(png_bytes, width_mm, height_mm, label=""):
    try:
        return cairosvg.svg2pdf(bytestring=page_svg(png_bytes, width_mm, height_mm, label))
    except Exception as exc:
        raise EncodeError(label or "page", exc) from exc


def write_document(target_path, pages, width_mm, height_mm):
    """Write one PDF page per PNG buffer, in the given order."""
    print(f"\n=== Writing {len(pages)} pages into {os.path.basename(target_path)} ===")
    writer = PdfWriter()
    for index, png_bytes in enumerate(pages, start=1):
        pdf_bytes = convert_page_to_pdf(png_bytes, width_mm, height_mm, label=f"{target_path}#page{index}")
        writer.append(io.BytesIO(pdf_bytes))
    try:
        with open(target_path, "wb") as out_f:
            writer.write(out_f)
    except OSError as exc:
        raise WriteError(target_path, exc) from exc
    return os.path.abspath(target_path)
