import os
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from backs import (
    BackResolver,
    PairedPrefix,
    StaticImage,
    parse_back_strategy,
    resolve_back,
    strip_prefix,
)
from errors import ConfigError, MissingAsset


def touch(path):
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with open(path, "wb") as fh:
        fh.write(b"")
    return path


class PairedPrefixTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name
        self.front = touch(os.path.join(self.root, "cards", "m1.png"))
        self.back = touch(os.path.join(self.root, "cards", "back-m1.png"))

    def tearDown(self):
        self._tmp.cleanup()

    def test_back_lives_next_to_front(self):
        strategy = PairedPrefix(prefix="back-")
        self.assertEqual(resolve_back(strategy, self.front), self.back)

    def test_resolving_is_idempotent(self):
        strategy = PairedPrefix(prefix="back-")
        once = resolve_back(strategy, self.front)
        twice = resolve_back(strategy, once)
        self.assertEqual(once, twice)

    def test_explicit_directory(self):
        other = touch(os.path.join(self.root, "backs", "back-m1.png"))
        strategy = PairedPrefix(prefix="back-", directory=os.path.join(self.root, "backs"))
        self.assertEqual(resolve_back(strategy, self.front), other)

    def test_missing_back_names_the_file(self):
        front = touch(os.path.join(self.root, "cards", "m2.png"))
        with self.assertRaises(MissingAsset) as ctx:
            resolve_back(PairedPrefix(prefix="back-"), front)
        self.assertTrue(ctx.exception.path.endswith("back-m2.png"))
        self.assertIn("back-m2.png", str(ctx.exception))

    def test_strip_prefix(self):
        self.assertEqual(strip_prefix("back-x.png", "back-"), "x.png")
        self.assertEqual(strip_prefix("x.png", "back-"), "x.png")


class StaticImageTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_every_front_shares_the_back(self):
        deck = touch(os.path.join(self.root, "player-deck.png"))
        resolver = BackResolver(StaticImage(path=deck), self.root)
        self.assertEqual(resolver.resolve("a.png"), deck)
        self.assertEqual(resolver.resolve("b.png"), deck)

    def test_missing_static_back(self):
        missing = os.path.join(self.root, "nope.png")
        with self.assertRaises(MissingAsset) as ctx:
            BackResolver(StaticImage(path=missing), self.root).resolve("a.png")
        self.assertEqual(ctx.exception.path, missing)

    def test_no_strategy_pairs_front_with_itself(self):
        front = touch(os.path.join(self.root, "solo.png"))
        self.assertEqual(resolve_back(None, front), front)


class ParseStrategyTests(unittest.TestCase):
    def test_paired_prefix(self):
        strategy = parse_back_strategy({"type": "pairedPrefix", "prefix": "back-"})
        self.assertEqual(strategy, PairedPrefix(prefix="back-"))

    def test_static_image_relative_to_base(self):
        strategy = parse_back_strategy({"type": "static_image", "path": "misc/role.png"}, "/data")
        self.assertEqual(strategy, StaticImage(path=os.path.normpath("/data/misc/role.png")))

    def test_none(self):
        self.assertIsNone(parse_back_strategy(None))

    def test_unknown_type(self):
        with self.assertRaises(ConfigError):
            parse_back_strategy({"type": "mirror"})

    def test_paired_prefix_needs_prefix(self):
        with self.assertRaises(ConfigError):
            parse_back_strategy({"type": "paired_prefix"})


if __name__ == "__main__":
    unittest.main()
