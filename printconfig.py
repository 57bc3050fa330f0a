import json
import os
from dataclasses import dataclass, field
from typing import List, Optional

from backs import BackStrategy, PairedPrefix, StaticImage, parse_back_strategy
from dimensions import A4_HEIGHT_MM, A4_WIDTH_MM, PRINT_DPI, page_size_px, round_half_up
from errors import ConfigError

CARD_SIZE = 490
TICKET_CARD_SIZE = 490
ROLE_CARD_WIDTH = 350
ROLE_CARD_HEIGHT = 490

PLAYER_CARD_SIZE_MM = 85
WORK_CARD_SIZE_MM = 78
ROLE_CARD_HEIGHT_MM = 100
ROLE_CARD_WIDTH_MM = round_half_up(ROLE_CARD_HEIGHT_MM * (ROLE_CARD_WIDTH / ROLE_CARD_HEIGHT))

EXTRA_EMPTY_SHEETS = 1
DEFAULT_DOCUMENT_NAME = "bads-double-sided-cards"
DEFAULT_WORKERS = 8


def default_gap(dpi=PRINT_DPI):
    # ~2 mm at 300 dpi
    return round_half_up(dpi * 0.08)


def default_locale():
    return (os.environ.get("LOCALE") or "default").lower()


@dataclass
class PrintConfig:
    """Run-wide settings shared by every card group."""

    page_width_mm: float = A4_WIDTH_MM
    page_height_mm: float = A4_HEIGHT_MM
    dpi: int = PRINT_DPI
    gap: Optional[int] = None
    extra_empty_sheets: int = EXTRA_EMPTY_SHEETS
    locale: str = field(default_factory=default_locale)
    output_dir: str = os.path.join("outputs", "print")
    document_name: str = DEFAULT_DOCUMENT_NAME
    workers: int = DEFAULT_WORKERS

    def __post_init__(self):
        self.locale = (self.locale or "default").lower()
        if self.gap is None:
            self.gap = default_gap(self.dpi)
        if self.page_width_mm <= 0 or self.page_height_mm <= 0:
            raise ConfigError(
                f"Page size must be positive, got {self.page_width_mm}x{self.page_height_mm} mm"
            )
        if self.extra_empty_sheets < 0:
            raise ConfigError("extra_empty_sheets must not be negative")
        if self.workers < 1:
            raise ConfigError("workers must be at least 1")

    @property
    def page_size_px(self):
        return page_size_px(self.page_width_mm, self.page_height_mm, self.dpi)


@dataclass
class CardGroup:
    """One deck of cards that is printed on its own run of sheets."""

    key: str
    label: str
    front_dir: str
    card_width: int = CARD_SIZE
    card_height: int = CARD_SIZE
    print_width_mm: Optional[float] = None
    print_height_mm: Optional[float] = None
    print_width_px: Optional[int] = None
    print_height_px: Optional[int] = None
    columns: Optional[int] = None
    rows: Optional[int] = None
    gap: Optional[int] = None
    back_strategy: Optional[BackStrategy] = None
    empty_card_path: Optional[str] = None
    empty_card_back_path: Optional[str] = None
    exclude_prefix: Optional[str] = None
    extension: str = ".png"

    def accepts(self, filename):
        if not filename.lower().endswith(self.extension.lower()):
            return False
        if self.exclude_prefix and filename.startswith(self.exclude_prefix):
            return False
        return True


def default_groups(outputs_root="outputs") -> List[CardGroup]:
    """The decks of the game, laid out under ``outputs_root`` by the card generators."""
    misc = os.path.join(outputs_root, "misc")
    player_back = StaticImage(path=os.path.join(misc, "player-deck.png"))
    work_back = StaticImage(path=os.path.join(misc, "work-deck.png"))
    return [
        CardGroup(
            key="milestones",
            label="Milestones",
            front_dir=os.path.join(outputs_root, "milestones"),
            print_width_mm=PLAYER_CARD_SIZE_MM,
            print_height_mm=PLAYER_CARD_SIZE_MM,
            back_strategy=PairedPrefix(prefix="back-"),
            exclude_prefix="back-",
            empty_card_path=os.path.join(misc, "milestone-empty-front.png"),
            empty_card_back_path=os.path.join(misc, "milestone-empty-back.png"),
        ),
        CardGroup(
            key="features",
            label="Features",
            front_dir=os.path.join(outputs_root, "features"),
            print_width_mm=PLAYER_CARD_SIZE_MM,
            print_height_mm=PLAYER_CARD_SIZE_MM,
            back_strategy=player_back,
            empty_card_path=os.path.join(misc, "feature-empty.png"),
        ),
        CardGroup(
            key="abilities",
            label="Abilities",
            front_dir=os.path.join(outputs_root, "abilities"),
            print_width_mm=PLAYER_CARD_SIZE_MM,
            print_height_mm=PLAYER_CARD_SIZE_MM,
            back_strategy=player_back,
            empty_card_path=os.path.join(misc, "ability-empty.png"),
        ),
        CardGroup(
            key="roles",
            label="Roles",
            front_dir=os.path.join(outputs_root, "roles"),
            card_width=ROLE_CARD_WIDTH,
            card_height=ROLE_CARD_HEIGHT,
            print_width_mm=ROLE_CARD_WIDTH_MM,
            print_height_mm=ROLE_CARD_HEIGHT_MM,
            back_strategy=StaticImage(path=os.path.join(misc, "role.png")),
            empty_card_path=os.path.join(misc, "role-empty.png"),
        ),
        CardGroup(
            key="tickets",
            label="Tickets",
            front_dir=os.path.join(outputs_root, "tickets"),
            card_width=TICKET_CARD_SIZE,
            card_height=TICKET_CARD_SIZE,
            print_width_mm=WORK_CARD_SIZE_MM,
            print_height_mm=WORK_CARD_SIZE_MM,
            back_strategy=work_back,
            empty_card_path=os.path.join(misc, "ticket-empty.png"),
        ),
        CardGroup(
            key="problems",
            label="Problems",
            front_dir=os.path.join(outputs_root, "problems"),
            card_width=TICKET_CARD_SIZE,
            card_height=TICKET_CARD_SIZE,
            print_width_mm=WORK_CARD_SIZE_MM,
            print_height_mm=WORK_CARD_SIZE_MM,
            back_strategy=work_back,
            empty_card_path=os.path.join(misc, "problem-empty.png"),
        ),
    ]


_INT_FIELDS = ("card_width", "card_height", "print_width_px", "print_height_px", "columns", "rows", "gap")
_FLOAT_FIELDS = ("print_width_mm", "print_height_mm")
_PATH_FIELDS = ("front_dir", "empty_card_path", "empty_card_back_path")


def group_from_dict(entry, base_dir=None) -> CardGroup:
    try:
        key = entry["key"]
    except KeyError:
        raise ConfigError(f"Card group without a key: {entry!r}")
    kwargs = {
        "key": key,
        "label": entry.get("label") or key.title(),
        "front_dir": entry.get("front_dir") or key,
    }
    for name in _INT_FIELDS:
        if entry.get(name) is not None:
            kwargs[name] = _as_number(entry[name], int, key, name)
    for name in _FLOAT_FIELDS:
        if entry.get(name) is not None:
            kwargs[name] = _as_number(entry[name], float, key, name)
    for name in _PATH_FIELDS:
        value = entry.get(name) or kwargs.get(name)
        if value:
            if base_dir and not os.path.isabs(value):
                value = os.path.normpath(os.path.join(base_dir, value))
            kwargs[name] = value
    if entry.get("exclude_prefix"):
        kwargs["exclude_prefix"] = entry["exclude_prefix"]
    if entry.get("extension"):
        kwargs["extension"] = entry["extension"]
    kwargs["back_strategy"] = parse_back_strategy(entry.get("back_strategy"), base_dir)
    return CardGroup(**kwargs)


def _as_number(value, kind, key, name):
    try:
        return kind(value)
    except (TypeError, ValueError):
        raise ConfigError(f"Group {key}: {name} must be a number, got {value!r}")


def load_groups(path) -> List[CardGroup]:
    """Read card groups from a JSON file: a list, or an object with a ``groups`` list."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError:
        raise ConfigError(f"Groups file not found: {path}")
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid groups file {path}: {exc}")
    if isinstance(data, dict):
        data = data.get("groups", [])
    if not isinstance(data, list):
        raise ConfigError(f"Groups file {path} must contain a list of groups")
    base_dir = os.path.dirname(os.path.abspath(path))
    groups = [group_from_dict(entry, base_dir) for entry in data]
    keys = [group.key for group in groups]
    duplicates = sorted({k for k in keys if keys.count(k) > 1})
    if duplicates:
        raise ConfigError(f"Duplicate group keys: {', '.join(duplicates)}")
    return groups
