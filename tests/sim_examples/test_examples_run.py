"""Smoke tests for the example and dataset generation scripts.

Runs the scripts in a subprocess with the Agg backend and checks their
console output and written files.
"""

import json
import os
import subprocess
import sys
import tempfile
import unittest
from pathlib import Path

import numpy as np


class TestScriptsRun(unittest.TestCase):
    """Smoke tests: scripts should run without errors."""

    def setUp(self):
        self.python_exe = sys.executable
        self.workspace_root = Path(__file__).parent.parent.parent
        self.env = os.environ.copy()
        self.env.update({
            "MPLBACKEND": "Agg",
            "PYTHONPATH": str(self.workspace_root),
        })

    def _run(self, args):
        return subprocess.run(
            [self.python_exe] + args,
            cwd=self.workspace_root,
            capture_output=True,
            text=True,
            timeout=60,
            env=self.env,
        )

    def test_wall_attenuation_example(self):
        result = self._run(["-m", "sim_examples.example_wall_attenuation"])

        self.assertEqual(result.returncode, 0, f"Script failed with stderr:\n{result.stderr}")
        self.assertIn("Scenario 8", result.stdout)
        self.assertIn("Examples completed successfully!", result.stdout)

    def test_dataset_generation(self):
        with tempfile.TemporaryDirectory() as tmp:
            out = Path(tmp) / "walk"
            result = self._run([
                "scripts/generate_rssi_walk_dataset.py",
                "--preset", "noisy_office",
                "--num-points", "20",
                "--output", str(out),
                "--seed", "3",
            ])

            self.assertEqual(result.returncode, 0, f"Script failed with stderr:\n{result.stderr}")
            for name in ("truth.npz", "measurements.npz", "config.json"):
                self.assertTrue((out / name).exists(), f"Missing {name}")

            truth = np.load(out / "truth.npz")
            measurements = np.load(out / "measurements.npz")
            self.assertEqual(truth["positions"].shape, (20, 2))
            self.assertEqual(measurements["rssi"].shape, (20, 4))
            self.assertEqual(measurements["estimates"].shape, (20, 2))

            with open(out / "config.json") as f:
                config = json.load(f)
            self.assertEqual(config["preset"], "noisy_office")
            self.assertTrue(config["simulation"]["filter_enabled"])
            self.assertEqual(config["seed"], 3)


if __name__ == "__main__":
    unittest.main()
