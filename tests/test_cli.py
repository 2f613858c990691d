import contextlib
import io
import tempfile
import unittest
from pathlib import Path
from unittest import mock

import torch

import headless_train
from lunar_lander.agent import PolicyNetwork
from lunar_lander.checkpoint import load_checkpoint


class TestHeadlessTrain(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.root = Path(self.tmp.name)
        self.model_path = self.root / "champion.pt"
        self.reports = self.root / "reports"
        # interop threads can only be configured once per process
        patcher = mock.patch.object(headless_train, "set_torch_stability")
        patcher.start()
        self.addCleanup(patcher.stop)

    def tearDown(self):
        self.tmp.cleanup()

    def _main(self, *argv):
        out = io.StringIO()
        with contextlib.redirect_stdout(out):
            headless_train.main(list(argv))
        return out.getvalue()

    def test_one_generation_writes_checkpoint_and_reports(self):
        output = self._main("--generations", "1", "--population", "4", "--workers", "1", "--seed", "1",
                            "--model-path", str(self.model_path), "--reports-dir", str(self.reports))

        self.assertTrue(self.model_path.exists())
        ckpt = load_checkpoint(PolicyNetwork(4), self.model_path)
        self.assertIsNotNone(ckpt)
        self.assertEqual(ckpt["generation"], 1)
        self.assertEqual(sorted(p.suffix for p in self.reports.iterdir()), [".csv", ".json"])
        self.assertIn("Epoch: 1", output)
        self.assertIn("Visualization skipped", output)

    def test_skip_train_flies_saved_champion(self):
        self._main("--generations", "1", "--population", "4", "--workers", "1", "--seed", "1",
                   "--model-path", str(self.model_path), "--reports-dir", str(self.reports))
        output = self._main("--skip-train", "--model-path", str(self.model_path))
        self.assertIn("Flying champion from", output)
        self.assertIn("Impact velocity (MPH)", output)

    def test_skip_train_without_checkpoint(self):
        output = self._main("--skip-train", "--model-path", str(self.model_path))
        self.assertIn("No usable checkpoint", output)

    def test_preset(self):
        output = self._main("--preset", "suicide")
        self.assertIn("SUICIDE BURN", output)
        self.assertTrue(any(word in output for word in ("PERFECT LANDING", "GOOD LANDING")))

    def test_bad_configuration_exits(self):
        with self.assertRaises(SystemExit) as ctx:
            self._main("--min-burn-altitude", "20")
        self.assertEqual(ctx.exception.code, -1)
        with self.assertRaises(SystemExit):
            self._main("--preset", "suicide", "--min-burn-altitude", "60")


if __name__ == "__main__":
    unittest.main()
