import io
import os
import re

from errors import EncodeError, WriteError


def natural_key(name):
    """Case-insensitive sort key that orders ``card2`` before ``card10``."""
    parts = re.split(r"(\d+)", os.path.basename(str(name)).casefold())
    return [int(part) if part.isdigit() else part for part in parts]


def encode_png(image, target):
    try:
        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        return buffer.getvalue()
    except (OSError, ValueError) as exc:
        raise EncodeError(target, exc) from exc


def write_bytes(target, data):
    try:
        with open(target, "wb") as fh:
            fh.write(data)
    except OSError as exc:
        raise WriteError(target, exc) from exc
