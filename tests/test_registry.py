"""Tests for the in-memory worker process registry."""

from __future__ import annotations

import unittest
from unittest import mock

from workcarrier.supervisor.registry import ProcessRegistry


class ProcessRegistryTests(unittest.TestCase):
    def test_add_records_spawn_time(self) -> None:
        registry = ProcessRegistry()
        with mock.patch("workcarrier.supervisor.registry.time.time", return_value=1700.0):
            registry.add(101)
        self.assertIn(101, registry)
        self.assertEqual(registry.spawned_at(101), 1700.0)
        self.assertEqual(len(registry), 1)

    def test_remove_returns_timestamp_and_forgets_pid(self) -> None:
        registry = ProcessRegistry()
        registry.add(101)
        registry.add(102)
        self.assertIsNotNone(registry.remove(101))
        self.assertNotIn(101, registry)
        self.assertEqual(registry.pids(), [102])

    def test_remove_unknown_pid_returns_none(self) -> None:
        registry = ProcessRegistry()
        self.assertIsNone(registry.remove(4242))

    def test_iteration_is_a_snapshot(self) -> None:
        registry = ProcessRegistry()
        for pid in (1, 2, 3):
            registry.add(pid)
        for pid in registry:
            registry.remove(pid)
        self.assertEqual(len(registry), 0)

    def test_clear_empties_registry(self) -> None:
        registry = ProcessRegistry()
        registry.add(7)
        registry.clear()
        self.assertEqual(registry.pids(), [])


if __name__ == "__main__":
    unittest.main()
