import concurrent.futures
import os
import shutil
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from PIL import Image

from backs import BackResolver
from dimensions import resolve_print_dimension
from errors import EmptyGroup
from fileio import encode_png, natural_key, write_bytes
from filler import CardPair, build_batches, create_filler_factory
from gridlayout import Layout, compute_layout, compute_positions, describe
from imagecache import ImageCache

SHEET_BACKGROUND = "#ffffff"


def list_front_images(group):
    try:
        names = os.listdir(group.front_dir)
    except FileNotFoundError:
        return []
    fronts = sorted((name for name in names if group.accepts(name)), key=natural_key)
    return [os.path.join(group.front_dir, name) for name in fronts]


def load_card_pairs(group):
    """Pair every front of ``group`` with its back. Raises MissingAsset on a missing back."""
    resolver = BackResolver(group.back_strategy, group.front_dir)
    return [
        CardPair(front_path=front, back_path=resolver.resolve(front))
        for front in list_front_images(group)
    ]


def build_group_layout(group, config):
    page_width, page_height = config.page_size_px
    return compute_layout(
        page_width,
        page_height,
        resolve_print_dimension(group, "width", config.dpi),
        resolve_print_dimension(group, "height", config.dpi),
        group.gap if group.gap is not None else config.gap,
        columns=group.columns,
        rows=group.rows,
    )


def paint_batch(canvas, batch, layout, positions, cache, back=False):
    size = (layout.card_width, layout.card_height)
    for card, pos in zip(batch, positions):
        if back:
            image, x, y = cache.get(card.back_path, size), pos.back_x, pos.back_y
        else:
            image, x, y = cache.get(card.front_path, size), pos.front_x, pos.front_y
        canvas.paste(image, (x, y), image)


def render_sheet_pair(batch, layout, cache):
    """Composite a batch onto a front page and its mirrored back page."""
    positions = compute_positions(len(batch), layout)
    pages = []
    for back in (False, True):
        canvas = Image.new("RGB", (layout.page_width, layout.page_height), SHEET_BACKGROUND)
        paint_batch(canvas, batch, layout, positions, cache, back=back)
        pages.append(canvas)
    return pages[0], pages[1]


@dataclass
class Sheet:
    """One printed page pair, front and back, with a run-wide identifier."""

    sheet_id: str
    group_key: str
    group_label: str
    cards: List[CardPair]
    front_png: bytes = b""
    back_png: bytes = b""
    front_path: Optional[str] = None
    back_path: Optional[str] = None

    @property
    def fillers(self):
        return sum(1 for card in self.cards if card.is_filler)

    def summary(self):
        return {
            "id": self.sheet_id,
            "group": self.group_label,
            "total_cards": len(self.cards),
            "fillers": self.fillers,
            "front_path": self.front_path,
            "back_path": self.back_path,
        }


def sheet_id_for(index, group_key):
    return f"{index:03d}-{group_key}"


@dataclass
class SheetAssembler:
    """Turns card groups into numbered double-sided print sheets and one PDF.

    Groups are handled one after another so sheet numbers follow the group
    order. Inside a group, image decoding and page rendering run on a thread
    pool and are collected back in batch order.
    """

    config: object
    cache: ImageCache = field(default_factory=ImageCache)
    document_writer: Optional[Callable] = None
    stats: dict = field(default_factory=dict)

    def warn(self, message):
        print(f"Warning: {message}")
        self.stats.setdefault("warnings", []).append(message)

    def plan_layouts(self, groups) -> Dict[str, Layout]:
        """Resolve every group's layout up front. Raises ConfigError before any file is touched."""
        return {group.key: build_group_layout(group, self.config) for group in groups}

    def run(self, groups, clean=False):
        print("\n=== Compiling Print Sheets ===")
        layouts = self.plan_layouts(groups)
        output_dir = self.config.output_dir
        if clean and os.path.isdir(output_dir):
            shutil.rmtree(output_dir)
        os.makedirs(output_dir, exist_ok=True)
        self.stats["output_dir"] = os.path.abspath(output_dir)
        self.stats["page_size_px"] = list(self.config.page_size_px)
        self.stats.setdefault("groups", {})

        sheets = []
        with concurrent.futures.ThreadPoolExecutor(max_workers=self.config.workers) as executor:
            for group in groups:
                try:
                    group_sheets = self.process_group(
                        group, len(sheets) + 1, executor, layout=layouts[group.key]
                    )
                except EmptyGroup as exc:
                    self.warn(f"{exc}, skipping.")
                    self.stats["groups"][group.key] = {"label": group.label, "sheets": 0, "skipped": True}
                    continue
                if not group_sheets:
                    self.warn(f"{group.label} produced zero sheets.")
                sheets.extend(group_sheets)

        self.stats["sheet_count"] = len(sheets)
        self.stats["sheets"] = [sheet.summary() for sheet in sheets]
        if not sheets:
            self.warn("No sheets were generated. Make sure the card generators ran first.")
            return sheets

        pdf_path = os.path.join(output_dir, f"{self.config.document_name}.pdf")
        if self.document_writer is not None:
            pages = []
            for sheet in sheets:
                pages.append(sheet.front_png)
                pages.append(sheet.back_png)
            self.document_writer(pdf_path, pages, self.config.page_width_mm, self.config.page_height_mm)
            self.stats["final_pdf"] = os.path.abspath(pdf_path)
        print_summary(sheets, self.stats.get("final_pdf"))
        return sheets

    def process_group(self, group, first_index, executor, layout=None):
        cards = load_card_pairs(group)
        if not cards:
            raise EmptyGroup(group.key, f"No cards found for {group.label}")

        if layout is None:
            layout = build_group_layout(group, self.config)
        filler_factory = create_filler_factory(group)
        batches = build_batches(
            cards,
            layout.cards_per_sheet,
            filler_factory,
            self.config.extra_empty_sheets,
        )
        print(f"Preparing {len(batches)} sheet(s) for {group.label} ({len(cards)} cards + fillers).")

        unique_paths = {card.front_path for batch in batches for card in batch}
        unique_paths |= {card.back_path for batch in batches for card in batch}
        list(executor.map(self.cache.get, sorted(unique_paths)))

        sheets = [
            Sheet(
                sheet_id=sheet_id_for(first_index + offset, group.key),
                group_key=group.key,
                group_label=group.label,
                cards=batch,
            )
            for offset, batch in enumerate(batches)
        ]
        list(executor.map(lambda sheet: self.render_sheet(sheet, layout), sheets))

        self.stats.setdefault("groups", {})[group.key] = {
            "label": group.label,
            "cards": len(cards),
            "sheets": len(sheets),
            "layout": describe(layout),
        }
        return sheets

    def render_sheet(self, sheet, layout):
        front, back = render_sheet_pair(sheet.cards, layout, self.cache)
        output_dir = self.config.output_dir
        sheet.front_path = os.path.join(output_dir, f"{sheet.sheet_id}-front.png")
        sheet.back_path = os.path.join(output_dir, f"{sheet.sheet_id}-back.png")
        sheet.front_png = encode_png(front, sheet.front_path)
        sheet.back_png = encode_png(back, sheet.back_path)
        write_bytes(sheet.front_path, sheet.front_png)
        write_bytes(sheet.back_path, sheet.back_png)
        return sheet


def print_summary(sheets, pdf_path=None):
    print("\nPrint sheet overview:")
    for sheet in sheets:
        front_name = os.path.basename(sheet.front_path or "")
        back_name = os.path.basename(sheet.back_path or "")
        print(f"- {sheet.sheet_id} [{sheet.group_label}] -> {len(sheet.cards)} card(s) ({front_name} / {back_name})")
    if pdf_path:
        print(f"\nSaved consolidated PDF with {len(sheets) * 2} pages at {pdf_path}")
    print("Print double-sided (flip on long edge) to keep backs aligned.")
