import math
from dataclasses import dataclass
from typing import List, Optional

from dimensions import round_half_up
from errors import ConfigError


@dataclass(frozen=True)
class Layout:
    """Grid geometry of one print sheet, all values in page pixels."""

    page_width: int
    page_height: int
    card_width: int
    card_height: int
    gap: int
    columns: int
    rows: int

    @property
    def cards_per_sheet(self) -> int:
        return max(self.columns * self.rows, 1)


@dataclass(frozen=True)
class CardPosition:
    """Where one card slot lands on the front page and on the mirrored back page."""

    front_x: int
    front_y: int
    back_x: int
    back_y: int


def compute_layout(
    page_width: int,
    page_height: int,
    card_width: int,
    card_height: int,
    gap: int,
    columns: Optional[int] = None,
    rows: Optional[int] = None,
) -> Layout:
    """Fit as many cards as possible on the page, unless the grid is given."""
    if card_width <= 0 or card_height <= 0:
        raise ConfigError(f"Card size must be positive, got {card_width}x{card_height}")
    if page_width <= 0 or page_height <= 0:
        raise ConfigError(f"Page size must be positive, got {page_width}x{page_height}")
    if gap < 0:
        raise ConfigError(f"Gap must not be negative, got {gap}")

    if columns is None:
        columns = (page_width + gap) // (card_width + gap)
    if rows is None:
        rows = (page_height + gap) // (card_height + gap)

    return Layout(
        page_width=page_width,
        page_height=page_height,
        card_width=card_width,
        card_height=card_height,
        gap=gap,
        columns=max(int(columns), 1),
        rows=max(int(rows), 1),
    )


def compute_positions(batch_size: int, layout: Layout) -> List[CardPosition]:
    """Return one position per card of a batch, in batch order.

    The occupied rows are centred vertically as a block, and every row is
    centred horizontally on its own, so a short last row sits in the middle
    of the page rather than at the left edge.
    """
    if batch_size < 0:
        raise ValueError(f"Batch size must not be negative, got {batch_size}")
    if batch_size > layout.cards_per_sheet:
        raise ValueError(
            f"Batch of {batch_size} cards does not fit a {layout.columns}x{layout.rows} sheet"
        )
    if batch_size == 0:
        return []

    columns = layout.columns
    step_x = layout.card_width + layout.gap
    step_y = layout.card_height + layout.gap

    rows_needed = min(math.ceil(batch_size / columns), layout.rows)
    block_height = rows_needed * layout.card_height + max(rows_needed - 1, 0) * layout.gap
    start_y = max(round_half_up((layout.page_height - block_height) / 2), 0)

    positions = []
    for row in range(rows_needed):
        cards_in_row = min(columns, batch_size - row * columns)
        row_width = cards_in_row * layout.card_width + max(cards_in_row - 1, 0) * layout.gap
        row_start_x = max(round_half_up((layout.page_width - row_width) / 2), 0)
        y = start_y + row * step_y
        for col in range(cards_in_row):
            front_x = row_start_x + col * step_x
            positions.append(CardPosition(
                front_x=front_x,
                front_y=y,
                back_x=layout.page_width - front_x - layout.card_width,
                back_y=y,
            ))
    return positions


def describe(layout: Layout) -> dict:
    return {
        "page_width": layout.page_width,
        "page_height": layout.page_height,
        "card_width": layout.card_width,
        "card_height": layout.card_height,
        "gap": layout.gap,
        "columns": layout.columns,
        "rows": layout.rows,
        "cards_per_sheet": layout.cards_per_sheet,
    }
