import math
import unittest

import numpy as np
import torch

from lunar_lander import config as C
from lunar_lander.agent import (
    SUICIDE_BURN_BIAS,
    SUICIDE_BURN_WEIGHTS,
    PolicyNetwork,
    mutate_genome,
    suicide_burn_policy,
)


def _obs(n):
    return np.linspace(-0.7, 1.3, n)


class TestPolicyNetwork(unittest.TestCase):
    def setUp(self):
        self.gen = torch.Generator().manual_seed(1234)

    def test_shapes_with_and_without_hidden_layer(self):
        flat = PolicyNetwork(4, 0, generator=self.gen)
        self.assertEqual(flat.widths, (4, 1))
        self.assertEqual(flat.genome_size, 5)

        deep = PolicyNetwork(3, 5, generator=self.gen)
        self.assertEqual(deep.widths, (3, 5, 1))
        self.assertEqual(deep.genome_size, 3 * 5 + 5 + 5 + 1)

    def test_initial_weights_are_small(self):
        net = PolicyNetwork(4, 6, generator=self.gen)
        self.assertLessEqual(float(net.genome().abs().max()), C.INIT_WEIGHT_RANGE)

    def test_output_is_saturated(self):
        net = PolicyNetwork(2, 3, generator=self.gen)
        for obs in ([100.0, -50.0], [0.0, 0.0], [-1e6, 1e6]):
            out = net.evaluate(obs)
            self.assertGreaterEqual(out, -1.0)
            self.assertLessEqual(out, 1.0)

    def test_configuration_errors(self):
        with self.assertRaises(C.ConfigError):
            PolicyNetwork(0)
        with self.assertRaises(C.ConfigError):
            PolicyNetwork(3, hidden_neurons=-1)

    def test_copy_into_gives_identical_outputs_without_aliasing(self):
        src = PolicyNetwork(4, 3, generator=self.gen)
        dst = PolicyNetwork(4, 3, generator=self.gen)
        src.copy_into(dst)
        obs = _obs(4)
        self.assertEqual(src.evaluate(obs), dst.evaluate(obs))

        # mutating the copy leaves the source alone
        before = src.genome()
        dst.mutate_(1.0, 0.5, self.gen)
        self.assertTrue(torch.equal(src.genome(), before))
        self.assertFalse(torch.equal(dst.genome(), before))

    def test_copy_into_rejects_other_shapes(self):
        with self.assertRaises(ValueError):
            PolicyNetwork(4, 0).copy_into(PolicyNetwork(4, 2))

    def test_mutation_with_zero_probability_is_a_no_op(self):
        net = PolicyNetwork(4, 2, generator=self.gen)
        obs = _obs(4)
        before = net.evaluate(obs)
        net.mutate_(0.0, 0.5, self.gen)
        self.assertEqual(net.evaluate(obs), before)

    def test_mutate_genome_is_pure_and_bounded(self):
        genome = torch.zeros(1000, dtype=torch.float64)
        mutated = mutate_genome(genome, 0.25, 0.5, self.gen)
        self.assertTrue(torch.equal(genome, torch.zeros(1000, dtype=torch.float64)))
        changed = mutated != 0
        self.assertLessEqual(float(mutated.abs().max()), 0.5)
        # about a quarter of the genes move
        self.assertGreater(int(changed.sum()), 150)
        self.assertLess(int(changed.sum()), 350)

    def test_genome_is_a_value_copy(self):
        net = PolicyNetwork(4, 0, generator=self.gen)
        g = net.genome()
        g.fill_(9.0)
        self.assertLess(float(net.genome().abs().max()), 9.0)

    def test_reinitialize_changes_genome(self):
        net = PolicyNetwork(4, 2, generator=self.gen)
        before = net.genome()
        net.reinitialize_(self.gen)
        self.assertFalse(torch.equal(before, net.genome()))

    def test_formula_matches_evaluate(self):
        for hidden in (0, 3):
            net = PolicyNetwork(4, hidden, generator=self.gen)
            obs = list(_obs(4))
            formula = net.export_formula()
            value = eval(formula, {"__builtins__": {}}, {"tanh": math.tanh, "input": obs})
            self.assertAlmostEqual(value, net.evaluate(obs), places=12)

    def test_formula_uses_given_names(self):
        net = PolicyNetwork(2, 0, generator=self.gen)
        formula = net.export_formula(["alt", "speed"])
        self.assertTrue(formula.startswith("tanh("))
        self.assertIn("* alt)", formula)
        self.assertIn("* speed)", formula)
        with self.assertRaises(ValueError):
            net.export_formula(["only_one"])

    def test_suicide_burn_preset(self):
        net = suicide_burn_policy()
        obs = [0.3, 1.0, 1.0, 0.35]
        expected = math.tanh(sum(w * x for w, x in zip(SUICIDE_BURN_WEIGHTS, obs)) + SUICIDE_BURN_BIAS)
        self.assertAlmostEqual(net.evaluate(obs), expected, places=12)


if __name__ == "__main__":
    unittest.main()
