import concurrent.futures
import os
from dataclasses import dataclass, field
from typing import List

from PIL import Image

from fileio import encode_png, write_bytes
from errors import ConfigError
from imagecache import ImageCache

ATLAS_COLUMNS = 10
ATLAS_ROWS = 7
ATLAS_BACKGROUND = "#111111"


@dataclass
class AtlasPage:
    """One packed grid image of up to ``columns * rows`` cards."""

    prefix: str
    index: int  # 1-based
    columns: int
    rows: int
    items: list = field(default_factory=list)
    locale: str = "default"

    @property
    def name(self) -> str:
        return f"{self.prefix}-{self.index:02d}-count-{len(self.items)}-{self.locale.lower()}"

    @property
    def filename(self) -> str:
        return f"{self.name}.png"

    def cells(self):
        """Yield ``(item, column, row)`` for every item on the page, in order."""
        for k, item in enumerate(self.items):
            yield item, k % self.columns, k // self.columns


def pack(images, columns=ATLAS_COLUMNS, rows=ATLAS_ROWS, prefix="atlas", locale="default") -> List[AtlasPage]:
    """Split ``images`` into consecutive grid pages. No images means no pages."""
    if columns < 1 or rows < 1:
        raise ConfigError(f"Atlas grid must be at least 1x1, got {columns}x{rows}")
    capacity = columns * rows
    pages = []
    for start in range(0, len(images), capacity):
        pages.append(AtlasPage(
            prefix=prefix,
            index=len(pages) + 1,
            columns=columns,
            rows=rows,
            items=list(images[start:start + capacity]),
            locale=locale,
        ))
    return pages


def render_atlas(page, cell_width, cell_height, cache, background=ATLAS_BACKGROUND):
    canvas = Image.new("RGBA", (page.columns * cell_width, page.rows * cell_height), background)
    for item, col, row in page.cells():
        image = cache.get(item, (cell_width, cell_height))
        canvas.alpha_composite(image, (col * cell_width, row * cell_height))
    return canvas


def build_atlases(
    prefix,
    image_paths,
    dest_dir,
    columns=ATLAS_COLUMNS,
    rows=ATLAS_ROWS,
    cell_width=490,
    cell_height=490,
    locale="default",
    cache=None,
    workers=8,
):
    """Pack, render and write the atlases of one image list. Returns the written paths."""
    pages = pack(image_paths, columns, rows, prefix=prefix, locale=locale)
    if not pages:
        print(f"Warning: No cards found for {prefix}, skipping.")
        return []
    cache = cache or ImageCache()
    os.makedirs(dest_dir, exist_ok=True)

    def render_page(page):
        target = os.path.join(dest_dir, page.filename)
        data = encode_png(render_atlas(page, cell_width, cell_height, cache), target)
        write_bytes(target, data)
        return target

    with concurrent.futures.ThreadPoolExecutor(max_workers=workers) as executor:
        written = list(executor.map(render_page, pages))
    for page in pages:
        print(f"Saved {page.filename} with {len(page.items)} cards.")
    return written


def split_faces_and_backs(source_dir, back_prefix="back-", extension=".png"):
    names = [
        name for name in os.listdir(source_dir)
        if name.lower().endswith(extension.lower())
    ]
    faces = sorted(n for n in names if not n.startswith(back_prefix))
    backs = sorted(n for n in names if n.startswith(back_prefix))
    return (
        [os.path.join(source_dir, n) for n in faces],
        [os.path.join(source_dir, n) for n in backs],
    )


def build_atlas_sets(
    source_dir,
    prefix,
    dest_dir,
    back_prefix="back-",
    stats=None,
    **options,
):
    """Build ``{prefix}-faces`` and ``{prefix}-backs`` atlases from one card directory."""
    print("\n=== Building Card Atlases ===")
    if not os.path.isdir(source_dir):
        faces, backs = [], []
    else:
        faces, backs = split_faces_and_backs(source_dir, back_prefix)
    cache = options.pop("cache", None) or ImageCache()
    written = {}
    for name, paths in ((f"{prefix}-faces", faces), (f"{prefix}-backs", backs)):
        written[name] = build_atlases(name, paths, dest_dir, cache=cache, **options)
        if stats is not None and not paths:
            stats.setdefault("warnings", []).append(f"No cards found for {name}, skipping.")
    if stats is not None:
        stats["atlases"] = {name: [os.path.abspath(p) for p in paths] for name, paths in written.items()}
        stats["atlas_count"] = sum(len(paths) for paths in written.values())
    return written
