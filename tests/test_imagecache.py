import os
import sys
import tempfile
import threading
import time
import unittest
from pathlib import Path

from PIL import Image

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from errors import DecodeError, MissingAsset
from imagecache import ImageCache, decode_image


class ImageCacheTests(unittest.TestCase):
    def test_concurrent_requests_share_one_decode(self):
        calls = []

        def slow_loader(path):
            calls.append(path)
            time.sleep(0.05)
            return Image.new("RGBA", (4, 4), "red")

        cache = ImageCache(loader=slow_loader)
        barrier = threading.Barrier(8)
        results = []

        def worker():
            barrier.wait()
            results.append(cache.get("deck.png"))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(calls, ["deck.png"])
        self.assertEqual(cache.decodes, 1)
        self.assertTrue(all(image is results[0] for image in results))

    def test_resized_variants_reuse_the_decode(self):
        cache = ImageCache(loader=lambda path: Image.new("RGBA", (40, 20), "blue"))
        self.assertEqual(cache.get("a.png", (10, 10)).size, (10, 10))
        self.assertEqual(cache.get("a.png", (20, 5)).size, (20, 5))
        self.assertIs(cache.get("a.png", (40, 20)), cache.get("a.png"))
        self.assertEqual(cache.decodes, 1)
        self.assertIn("a.png", cache)
        self.assertEqual(len(cache), 1)

    def test_failures_are_shared(self):
        def broken(path):
            raise MissingAsset(path)

        cache = ImageCache(loader=broken)
        with self.assertRaises(MissingAsset):
            cache.get("x.png")
        with self.assertRaises(MissingAsset):
            cache.get("x.png")

    def test_decode_image_reads_rgba(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "card.png")
            Image.new("RGB", (6, 3), "green").save(path)
            image = decode_image(path)
            self.assertEqual(image.mode, "RGBA")
            self.assertEqual(image.size, (6, 3))
            with self.assertRaises(MissingAsset):
                decode_image(os.path.join(tmp, "missing.png"))

    def test_corrupt_file_raises_decode_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "broken.png")
            with open(path, "wb") as fh:
                fh.write(b"not a png at all")
            with self.assertRaises(DecodeError) as ctx:
                decode_image(path)
            self.assertEqual(ctx.exception.path, path)
            cache = ImageCache()
            with self.assertRaises(DecodeError):
                cache.get(path, (4, 4))


if __name__ == "__main__":
    unittest.main()
