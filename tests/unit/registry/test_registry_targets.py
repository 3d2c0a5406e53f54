"""Tests for stop-target parsing and instance lookup."""

from __future__ import annotations

import json
import tempfile
import unittest
from pathlib import Path

from browsey.registry import FindTarget, InstanceInfo, InstanceRegistry, parse_target


class ParseTargetTests(unittest.TestCase):
    def test_colon_prefix_is_port(self) -> None:
        self.assertEqual(parse_target(":4200"), FindTarget(type="port", value=4200))

    def test_bare_integer_is_pid(self) -> None:
        self.assertEqual(parse_target("4200"), FindTarget(type="pid", value=4200))

    def test_everything_else_is_path_substring(self) -> None:
        for target in ("/home/me/project", "project", "0042", "-5", "12abc", ":abc", ":", "４２"):
            with self.subTest(target=target):
                self.assertEqual(parse_target(target), FindTarget(type="path", value=target))


class FindMatchingInstancesTests(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        path = Path(self._tmp.name) / "instances.json"
        entries = [
            {"pid": 100, "port": 4200, "host": "0.0.0.0", "kind": "api", "rootPath": "/Users/me/Project",
             "startedAt": "2026-01-01T00:00:00Z", "readonly": True, "version": "0.1.0"},
            {"pid": 4201, "port": 4300, "host": "0.0.0.0", "kind": "api", "rootPath": "/srv/photos",
             "startedAt": "2026-01-01T00:00:00Z", "readonly": False, "version": "0.1.0"},
            {"pid": 300, "port": 4201, "host": "0.0.0.0", "kind": "api", "rootPath": "/srv/projects",
             "startedAt": "2026-01-01T00:00:00Z", "readonly": True, "version": "0.1.0"},
            {"pid": 400, "port": 4202, "host": "0.0.0.0", "kind": "app", "rootPath": "",
             "apiUrl": "http://localhost:4200", "startedAt": "2026-01-01T00:00:00Z", "readonly": True,
             "version": "0.1.0"},
        ]
        path.write_text(json.dumps({"version": 1, "instances": entries}), encoding="utf-8")
        self.registry = InstanceRegistry(path, is_running=lambda pid: True)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    @staticmethod
    def _pids(instances: list[InstanceInfo]) -> list[int]:
        return [instance.pid for instance in instances]

    def test_port_target_matches_port_only(self) -> None:
        self.assertEqual(self._pids(self.registry.find_all_matching_instances(":4201")), [300])

    def test_pid_target_prefers_pid_match(self) -> None:
        self.assertEqual(self._pids(self.registry.find_all_matching_instances("4201")), [4201])

    def test_pid_target_falls_back_to_port(self) -> None:
        self.assertEqual(self._pids(self.registry.find_all_matching_instances("4200")), [100])

    def test_path_target_is_case_insensitive_substring(self) -> None:
        self.assertEqual(self._pids(self.registry.find_all_matching_instances("project")), [100, 300])
        self.assertEqual(self._pids(self.registry.find_all_matching_instances("PHOTOS")), [4201])

    def test_app_instances_have_no_root_path_to_match(self) -> None:
        instance = self.registry.find_instance(":4202")

        self.assertIsNotNone(instance)
        self.assertEqual(instance.kind, "app")
        self.assertEqual(instance.root_path, "")
        self.assertEqual(instance.api_url, "http://localhost:4200")

    def test_find_instance_returns_none_without_match(self) -> None:
        self.assertIsNone(self.registry.find_instance("nowhere"))
        self.assertEqual(self.registry.find_all_matching_instances(":9999"), [])


if __name__ == "__main__":
    unittest.main()
