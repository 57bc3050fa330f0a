class CardPressError(Exception):
    """Base class for failures that abort (or skip part of) a print run."""


class ConfigError(CardPressError):
    """Configuration that no layout can satisfy, e.g. a non-positive card size."""


class MissingAsset(CardPressError):
    """A required back, deck-back or filler image is not on disk."""

    def __init__(self, path, message=None):
        self.path = str(path)
        super().__init__(message or f"Missing asset: {self.path}")


class EmptyGroup(CardPressError):
    """A card group has no source images. Recoverable: the group is skipped."""

    def __init__(self, group_key, message=None):
        self.group_key = group_key
        super().__init__(message or f"No cards found for {group_key}")


class EncodeError(CardPressError):
    def __init__(self, path, cause=None):
        self.path = str(path)
        super().__init__(f"Failed to encode {self.path}: {cause}")


class WriteError(CardPressError):
    def __init__(self, path, cause=None):
        self.path = str(path)
        super().__init__(f"Failed to write {self.path}: {cause}")


class DecodeError(CardPressError):
    """An image exists on disk but cannot be read as a picture."""

    def __init__(self, path, cause=None):
        self.path = str(path)
        super().__init__(f"Failed to decode {self.path}: {cause}")
