import base64
import xml.etree.ElementTree as ET

from dimensions import mm_to_pt

SVG_NS = 'http://www.w3.org/2000/svg'
XLINK_NS = 'http://www.w3.org/1999/xlink'

def png_data_url(png_bytes: bytes) -> str:
    b64_img = base64.b64encode(png_bytes).decode('utf-8')
    return f"data:image/png;base64,{b64_img}"

class PageSVG:
    """Single-page SVG document that shows one raster page edge to edge.

    The page is sized in points, so converting it to PDF yields a page of the
    exact physical size regardless of the raster resolution.
    """

    def __init__(self, width_mm: float, height_mm: float):
        self.width_pt = mm_to_pt(width_mm)
        self.height_pt = mm_to_pt(height_mm)
        self.namespaces = {
            'svg': SVG_NS,
            'xlink': XLINK_NS
        }
        self._register_namespaces()
        self.root = ET.Element(f'{{{SVG_NS}}}svg', {
            'version': '1.1',
            'width': f'{self.width_pt:.4f}pt',
            'height': f'{self.height_pt:.4f}pt',
            'viewBox': f'0 0 {self.width_pt:.4f} {self.height_pt:.4f}',
        })

    def _register_namespaces(self):
        """Register XML namespaces to avoid ns0: prefixes"""
        for prefix, uri in self.namespaces.items():
            if prefix == 'svg':
                prefix = ''
            ET.register_namespace(prefix, uri)

    def add_image(self, png_bytes: bytes, label: str = '') -> ET.Element:
        """Stretch a PNG over the whole page"""
        attrs = {
            'x': '0',
            'y': '0',
            'width': f'{self.width_pt:.4f}',
            'height': f'{self.height_pt:.4f}',
            'preserveAspectRatio': 'none',
            f'{{{XLINK_NS}}}href': png_data_url(png_bytes),
        }
        if label:
            attrs['id'] = label
        return ET.SubElement(self.root, f'{{{SVG_NS}}}image', attrs)

    def to_bytes(self) -> bytes:
        return ET.tostring(self.root, encoding='utf-8')

def page_svg(png_bytes: bytes, width_mm: float, height_mm: float, label: str = '') -> bytes:
    page = PageSVG(width_mm, height_mm)
    page.add_image(png_bytes, label)
    return page.to_bytes()
