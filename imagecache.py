import threading
from concurrent.futures import Future

from PIL import Image

from errors import DecodeError, MissingAsset


def decode_image(image_path):
    """Open an image from disk and fully decode it as RGBA."""
    try:
        with Image.open(image_path) as img:
            img.load()
            return img.convert("RGBA")
    except FileNotFoundError as exc:
        raise MissingAsset(image_path, f"Missing image at {image_path}") from exc
    except OSError as exc:
        # PIL.UnidentifiedImageError and truncated files land here
        raise DecodeError(image_path, exc) from exc


class ImageCache:
    """Decoded images keyed by source path, shared by all render tasks of a run.

    Each key is decoded at most once. A request for a key that is still being
    decoded by another thread waits for that result instead of decoding again.
    Resized variants are cached under ``(path, (width, height))``.
    """

    def __init__(self, loader=decode_image):
        self._loader = loader
        self._lock = threading.Lock()
        self._entries = {}
        self.decodes = 0

    def get(self, image_path, size=None):
        key = (str(image_path), tuple(size) if size else None)
        with self._lock:
            future = self._entries.get(key)
            owner = future is None
            if owner:
                future = Future()
                self._entries[key] = future
        if owner:
            try:
                future.set_result(self._produce(key))
            except BaseException as exc:
                future.set_exception(exc)
        return future.result()

    def _produce(self, key):
        image_path, size = key
        if size is None:
            with self._lock:
                self.decodes += 1
            return self._loader(image_path)
        source = self.get(image_path)
        if source.size == size:
            return source
        return source.resize(size, Image.Resampling.LANCZOS)

    def __contains__(self, image_path):
        with self._lock:
            return (str(image_path), None) in self._entries

    def __len__(self):
        with self._lock:
            return sum(1 for _, size in self._entries if size is None)
