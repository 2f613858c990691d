import csv
import json
import tempfile
import unittest
from pathlib import Path

import torch

from lunar_lander.agent import PolicyNetwork, suicide_burn_policy
from lunar_lander.checkpoint import load_checkpoint, save_checkpoint
from lunar_lander.config import ObservationChannels
from lunar_lander.lander import DescentSimulator
from lunar_lander.metrics import GenerationSummary, RunMetrics
from lunar_lander.pilots import PolicyPilot, ScriptedPilot
from lunar_lander.replay import ReplayPlayer, record_descent


class TestRunMetrics(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.out = Path(self.tmp.name)
        self.best = DescentSimulator().attempt_landing(PolicyPilot(suicide_burn_policy()))

    def tearDown(self):
        self.tmp.cleanup()

    def test_record_and_export(self):
        metrics = RunMetrics(run_name="unit", run_tag="tag")
        rec = metrics.record_generation(1, scores=[1, 2, 3, 10], survivable=[True, False, False, True],
                                        best=self.best, wall_time_sec_generation=0.5)
        metrics.record_generation(2, scores=[4, 4], survivable=[True, True],
                                  best=self.best, wall_time_sec_generation=0.25)
        self.assertEqual(rec.mean_score, 4.0)
        self.assertEqual(rec.median_score, 2.5)
        self.assertEqual(rec.survivable_rate, 0.5)
        self.assertEqual(metrics.records[-1].wall_time_sec_cumulative, 0.75)

        metrics.record_improvement(GenerationSummary(
            generation=1, best_score=self.best.score, best_impact_speed_mph=self.best.impact_speed_mph,
            best_fuel_remaining_lbs=self.best.fuel_remaining, best_burn_history=self.best.burn_history,
            formula=None, rating=self.best.rating.label,
        ))

        paths = metrics.finalize_and_export(out_dir=self.out)
        self.assertEqual([p.suffix for p in paths], [".csv", ".json"])

        with paths[0].open() as f:
            rows = list(csv.DictReader(f))
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[0]["best_rating"], self.best.rating.label)

        with paths[1].open() as f:
            payload = json.load(f)
        self.assertEqual(payload["run_tag"], "tag")
        self.assertEqual(payload["generation_count"], 2)
        self.assertEqual(len(payload["improvements"][0]["best_burn_history"]), len(self.best.burn_history))

    def test_nothing_to_export(self):
        self.assertEqual(RunMetrics().finalize_and_export(out_dir=self.out), [])


class TestCheckpoint(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.path = Path(self.tmp.name) / "champion.pt"

    def tearDown(self):
        self.tmp.cleanup()

    def test_round_trip(self):
        src = PolicyNetwork(4, 3, generator=torch.Generator().manual_seed(3))
        save_checkpoint(src.genome(), src.widths, ObservationChannels(), generation=12, score=3999000,
                        note="perfect", path=self.path)

        dst = PolicyNetwork(4, 3)
        ckpt = load_checkpoint(dst, self.path)
        self.assertIsNotNone(ckpt)
        self.assertEqual(ckpt["generation"], 12)
        self.assertEqual(ckpt["note"], "perfect")
        self.assertTrue(torch.equal(dst.genome(), src.genome()))

    def test_shape_mismatch_is_refused(self):
        src = PolicyNetwork(4, 3)
        save_checkpoint(src.genome(), src.widths, ObservationChannels(), 1, 0, path=self.path)
        dst = PolicyNetwork(4, 0)
        before = dst.genome()
        self.assertIsNone(load_checkpoint(dst, self.path))
        self.assertTrue(torch.equal(dst.genome(), before))

    def test_missing_file(self):
        self.assertIsNone(load_checkpoint(PolicyNetwork(4), self.path))


class TestReplay(unittest.TestCase):
    def test_record_descent(self):
        recorded = record_descent(ScriptedPilot([]))
        first, last = recorded.frames[0], recorded.frames[-1]
        self.assertEqual(first.altitude, 120.0)
        self.assertEqual(first.phase, "awaiting_burn")
        self.assertEqual(last.altitude, 0.0)
        self.assertEqual(last.phase, "landed")
        self.assertEqual(recorded.duration, recorded.result.elapsed_time)

    def test_player_follows_simulated_time(self):
        recorded = record_descent(ScriptedPilot([]))
        player = ReplayPlayer(slowmo_factor=2, seconds_per_tick=2.0)
        self.assertFalse(player.start(None))
        self.assertTrue(player.start(recorded))

        shown = []
        while player.active:
            shown.append(player.step())

        # one simulated second per tick; frames land on 10 s turn boundaries
        self.assertEqual(shown[9].time, 0.0)
        self.assertEqual(shown[10].time, 10.0)
        self.assertEqual(shown[25].time, 20.0)
        times = [f.time for f in shown]
        self.assertEqual(times, sorted(times))
        self.assertIs(shown[0], recorded.frames[0])
        self.assertIs(shown[-1], recorded.frames[-1])
        self.assertEqual(len(player.history), len(recorded.frames))
        self.assertIsNone(player.step())

    def test_slow_motion_stretches_playback(self):
        recorded = record_descent(ScriptedPilot([]))

        def ticks(slowmo):
            player = ReplayPlayer(slowmo_factor=slowmo, seconds_per_tick=2.0)
            player.start(recorded)
            n = 0
            while player.active:
                player.step()
                n += 1
            return n

        self.assertGreater(ticks(2), ticks(1) * 1.8)


if __name__ == "__main__":
    unittest.main()
