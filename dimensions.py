import math

PRINT_DPI = 300
MM_PER_INCH = 25.4
POINTS_PER_INCH = 72

A4_WIDTH_MM = 210
A4_HEIGHT_MM = 297


def round_half_up(value):
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def mm_to_px(mm, dpi=PRINT_DPI):
    if not mm:
        return None
    return round_half_up(mm / MM_PER_INCH * dpi)


def mm_to_pt(mm):
    return mm / MM_PER_INCH * POINTS_PER_INCH


def resolve_print_dimension(group, axis, dpi=PRINT_DPI):
    """Return the printed size of one card of ``group`` along ``axis`` in pixels.

    A millimetre size wins over a pixel size; without either, the group's base
    (rendered) card size is used.
    """
    if axis not in ("width", "height"):
        raise ValueError(f"Unknown axis: {axis}")
    mm = getattr(group, f"print_{axis}_mm", None)
    if mm:
        return mm_to_px(mm, dpi)
    px = getattr(group, f"print_{axis}_px", None)
    if px:
        return int(px)
    return int(getattr(group, f"card_{axis}"))


def page_size_px(width_mm, height_mm, dpi=PRINT_DPI):
    return mm_to_px(width_mm, dpi), mm_to_px(height_mm, dpi)
