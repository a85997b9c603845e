from __future__ import annotations

import unittest

from app.scraping.errors import ValidationError
from app.scraping.registry import StrategyRegistry
from app.scraping.strategies import EACaseStrategy, HSENoticeStrategy


class TestStrategyRegistry(unittest.TestCase):
    def setUp(self) -> None:
        self.registry = StrategyRegistry()

    def test_builtin_pairs_are_registered(self) -> None:
        self.assertEqual(self.registry.count(), 4)
        self.assertTrue(self.registry.exists("hse", "case"))
        self.assertTrue(self.registry.exists("hse", "notice"))
        self.assertTrue(self.registry.exists("ea", "case"))
        self.assertTrue(self.registry.exists("ea", "notice"))

    def test_lookup_is_case_insensitive(self) -> None:
        self.assertIsInstance(self.registry.get(" HSE ", "Notice"), HSENoticeStrategy)
        self.assertIsInstance(self.registry.get("ea", "CASE"), EACaseStrategy)

    def test_unknown_agency(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.registry.get("fsa", "case")

        self.assertIn("agency", ctx.exception.field_errors)

    def test_unknown_enforcement_type(self) -> None:
        with self.assertRaises(ValidationError) as ctx:
            self.registry.get("hse", "prosecution")

        self.assertIn("enforcement_type", ctx.exception.field_errors)
        self.assertNotIn("agency", ctx.exception.field_errors)

    def test_register_overrides_builtin(self) -> None:
        replacement = EACaseStrategy()
        self.registry.register(agency="EA", enforcement_type="case", strategy=replacement)

        self.assertIs(self.registry.get("ea", "case"), replacement)
        self.assertEqual(self.registry.count(), 4)

    def test_list_is_sorted(self) -> None:
        keys = [(agency, kind) for agency, kind, _ in self.registry.list()]
        self.assertEqual(keys, [("ea", "case"), ("ea", "notice"), ("hse", "case"), ("hse", "notice")])


if __name__ == "__main__":
    unittest.main()
