from dataclasses import dataclass

from backs import StaticImage, assert_file


@dataclass(frozen=True)
class CardPair:
    """Front and back image of one printed card."""

    front_path: str
    back_path: str
    is_filler: bool = False


def chunked(seq, size):
    if size <= 0:
        yield list(seq)
        return
    for i in range(0, len(seq), size):
        yield seq[i:i + size]


def pad_batch(batch, target_size, filler_factory=None):
    """Fill ``batch`` up to ``target_size`` with filler cards.

    Without a filler factory the batch is returned as it is; a short last page
    is valid output.
    """
    if filler_factory is None:
        return batch
    padded = list(batch)
    while len(padded) < target_size:
        padded.append(filler_factory())
    return padded


def full_filler_batch(count, filler_factory):
    return [filler_factory() for _ in range(count)]


def create_filler_factory(group):
    """Return a callable producing blank cards for ``group``, or None.

    The blank back defaults to the group's shared back when it has one, and to
    the blank front otherwise.
    """
    front_path = group.empty_card_path
    if not front_path:
        return None
    front_path = str(front_path)
    assert_file(front_path, f"Missing empty card template for {group.label} at {front_path}")

    back_path = group.empty_card_back_path
    if back_path:
        back_path = str(back_path)
        assert_file(back_path, f"Missing empty card back template for {group.label} at {back_path}")
    elif isinstance(group.back_strategy, StaticImage):
        back_path = group.back_strategy.path
    else:
        back_path = front_path

    def make_filler():
        return CardPair(front_path=front_path, back_path=back_path, is_filler=True)

    return make_filler


def build_batches(cards, cards_per_sheet, filler_factory=None, extra_filler_sheets=0):
    """Split a group's cards into sheets, padding the last one and adding blank sheets."""
    batches = [
        pad_batch(batch, cards_per_sheet, filler_factory)
        for batch in chunked(cards, cards_per_sheet)
    ]
    if filler_factory is not None:
        for _ in range(extra_filler_sheets):
            batches.append(full_filler_batch(cards_per_sheet, filler_factory))
    return batches
