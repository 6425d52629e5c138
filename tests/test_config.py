import os
import unittest
from unittest import mock

from scubacheck.cache import ReputationCache
from scubacheck.config import DEFAULT_CONFIG, load_config


class TestConfig(unittest.TestCase):
    def test_defaults(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            config = load_config()
        self.assertEqual(config, DEFAULT_CONFIG)
        self.assertIsNot(config, DEFAULT_CONFIG)

    def test_environment(self):
        env = {
            "SCUBACHECK_HTTP_TIMEOUT": "2.5",
            "SCUBACHECK_MAX_WORKERS": "3",
            "SCUBACHECK_ENRICHMENT": "off",
            "SCUBACHECK_SAFE_BROWSING_KEY": " abc ",
        }
        with mock.patch.dict(os.environ, env, clear=True):
            config = load_config()
        self.assertEqual(config["http_timeout"], 2.5)
        self.assertEqual(config["max_workers"], 3)
        self.assertFalse(config["enrichment_enabled"])
        self.assertEqual(config["safe_browsing_api_key"], "abc")

    def test_invalid_numbers_fall_back(self):
        env = {"SCUBACHECK_HTTP_TIMEOUT": "soon", "SCUBACHECK_MAX_WORKERS": "0"}
        with mock.patch.dict(os.environ, env, clear=True):
            with self.assertLogs("scubacheck.config", level="WARNING"):
                config = load_config()
        self.assertEqual(config["http_timeout"], DEFAULT_CONFIG["http_timeout"])
        self.assertEqual(config["max_workers"], DEFAULT_CONFIG["max_workers"])

    def test_invalid_overrides_fall_back(self):
        with mock.patch.dict(os.environ, {"SCUBACHECK_MAX_WORKERS": "3"}, clear=True):
            with self.assertLogs("scubacheck.config", level="WARNING"):
                config = load_config({"max_workers": 0, "http_timeout": "soon"})
        self.assertEqual(config["max_workers"], 3)
        self.assertEqual(config["http_timeout"], DEFAULT_CONFIG["http_timeout"])

    def test_overrides_win(self):
        with mock.patch.dict(os.environ, {"SCUBACHECK_MAX_WORKERS": "3"}, clear=True):
            config = load_config({"max_workers": 1})
        self.assertEqual(config["max_workers"], 1)


class TestReputationCache(unittest.TestCase):
    def test_keyed_by_source_and_key(self):
        cache = ReputationCache()
        cache.set("whois", "example.net ", 400)
        self.assertEqual(cache.get("whois", "example.net"), 400)
        self.assertIsNone(cache.get("urlscan", "example.net"))
        self.assertEqual(len(cache), 1)

    def test_falsy_results_are_cached(self):
        cache = ReputationCache()
        cache.set("safebrowsing", "http://example.net/", False)
        self.assertIs(cache.get("safebrowsing", "http://example.net/"), False)

    def test_clear(self):
        cache = ReputationCache()
        cache.set("whois", "a.example", 1)
        cache.set("whois", "b.example", 2)
        self.assertEqual(cache.clear(), 2)
        self.assertEqual(len(cache), 0)


if __name__ == "__main__":
    unittest.main()
