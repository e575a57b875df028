import unittest
from pathlib import Path
from tempfile import TemporaryDirectory

from crawlfrontier.config import (
    ConfigError,
    CrawlLimitsConfig,
    FrontierConfig,
    LogsConfig,
    load_yaml_config,
)

CONFIG_YAML = """
workspace: {workspace}
resumable: true
storage:
  folder: state/frontier
  queue_name: pending_urls
logs:
  log_file: ""
  log_level: debug
limits:
  max_depth: 3
  batch_size: 20
"""


class FrontierConfigTests(unittest.TestCase):
    def test_from_yaml(self) -> None:
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            path.write_text(CONFIG_YAML.format(workspace=tmpdir), encoding="utf-8")

            config = FrontierConfig.from_yaml(str(path))

            self.assertTrue(config.resumable)
            self.assertEqual(Path(tmpdir).resolve() / "state" / "frontier", config.get_storage_path())
            self.assertEqual("pending_urls", config.storage.queue_name)
            self.assertIsNone(config.get_log_path())
            self.assertEqual(20, config.limits.batch_size)

    def test_defaults(self) -> None:
        config = FrontierConfig.from_dict({"workspace": "ws"})

        self.assertFalse(config.resumable)
        self.assertEqual("pending_urls", config.storage.queue_name)
        self.assertEqual("INFO", config.logs.log_level)
        self.assertEqual(-1, config.limits.max_depth)
        self.assertIsNotNone(config.get_log_path())

    def test_missing_file(self) -> None:
        with self.assertRaises(ConfigError):
            load_yaml_config("/nonexistent/config.yaml")

    def test_invalid_documents(self) -> None:
        documents = [
            "- just\n- a list\n",
            "workspace: ws\nstorage: [1, 2]\n",
            "workspace: ws\nstorage:\n  unknown_key: 1\n",
            "resumable: true\n",
            "workspace: ws\nresumable: maybe\n",
            "workspace: ws\nlogs:\n  log_level: LOUD\n",
            "workspace: ws\nlimits:\n  batch_size: 0\n",
            "workspace: [unclosed\n",
        ]
        with TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "config.yaml"
            for document in documents:
                with self.subTest(document=document):
                    path.write_text(document, encoding="utf-8")
                    with self.assertRaises(ConfigError):
                        FrontierConfig.from_yaml(str(path))

    def test_allows_depth(self) -> None:
        self.assertTrue(CrawlLimitsConfig().allows_depth(10_000))
        limits = CrawlLimitsConfig(max_depth=2)
        self.assertTrue(limits.allows_depth(2))
        self.assertFalse(limits.allows_depth(3))

    def test_log_level_validation(self) -> None:
        LogsConfig(log_level="warning")
        with self.assertRaises(ValueError):
            LogsConfig(log_level="chatty")


if __name__ == "__main__":
    unittest.main()
