import os
from dataclasses import dataclass
from typing import Optional, Union

from errors import ConfigError, MissingAsset


@dataclass(frozen=True)
class PairedPrefix:
    """Each front ``name.png`` has its own back ``{prefix}name.png``."""

    prefix: str
    directory: Optional[str] = None


@dataclass(frozen=True)
class StaticImage:
    """Every front of the group shares one back image."""

    path: str


BackStrategy = Union[PairedPrefix, StaticImage]


def parse_back_strategy(entry, base_dir=None):
    """Build a back strategy from a config mapping such as
    ``{"type": "paired_prefix", "prefix": "back-"}``.
    """
    if entry is None:
        return None
    kind = str(entry.get("type", "")).replace("-", "_").lower()
    if kind in ("paired_prefix", "pairedprefix"):
        prefix = entry.get("prefix")
        if not prefix:
            raise ConfigError("paired_prefix back strategy needs a prefix")
        directory = entry.get("dir") or entry.get("directory")
        if directory:
            directory = _resolve(directory, base_dir)
        return PairedPrefix(prefix=prefix, directory=directory)
    if kind in ("static_image", "staticimage"):
        path = entry.get("path")
        if not path:
            raise ConfigError("static_image back strategy needs a path")
        return StaticImage(path=_resolve(path, base_dir))
    raise ConfigError(f"Unsupported back strategy: {entry.get('type')!r}")


def _resolve(path, base_dir):
    if base_dir and not os.path.isabs(path):
        return os.path.normpath(os.path.join(base_dir, path))
    return path


def strip_prefix(name, prefix):
    if prefix and name.startswith(prefix):
        return name[len(prefix):]
    return name


def assert_file(path, message):
    if not os.path.isfile(path):
        raise MissingAsset(path, message)


class BackResolver:
    """Resolves the back image path for each front of one card group.

    Without a strategy a front is its own back. A static back is checked on
    disk once and then reused for every front.
    """

    def __init__(self, strategy: Optional[BackStrategy], front_dir):
        self.strategy = strategy
        self.front_dir = str(front_dir)
        self._static_checked = False

    def resolve(self, front_path):
        front_path = str(front_path)
        strategy = self.strategy
        if strategy is None:
            assert_file(front_path, f"Missing front image at {front_path}")
            return front_path
        if isinstance(strategy, PairedPrefix):
            front_name = os.path.basename(front_path)
            back_name = strategy.prefix + strip_prefix(front_name, strategy.prefix)
            back_dir = strategy.directory or os.path.dirname(front_path) or self.front_dir
            back_path = os.path.join(back_dir, back_name)
            assert_file(back_path, f"Missing back image {back_name} for {front_name}")
            return back_path
        if isinstance(strategy, StaticImage):
            if not self._static_checked:
                assert_file(strategy.path, f"Missing static back image at {strategy.path}")
                self._static_checked = True
            return strategy.path
        raise TypeError(f"Unsupported back strategy: {strategy!r}")


def resolve_back(strategy, front_path):
    return BackResolver(strategy, os.path.dirname(str(front_path))).resolve(front_path)
