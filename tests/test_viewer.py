import os
import unittest
from unittest import mock

os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pygame

from lunar_lander import config as C
from lunar_lander import game_loop
from lunar_lander.agent import suicide_burn_policy
from lunar_lander.hud import (
    altitude_to_y,
    draw_banner,
    draw_burn_badge,
    draw_lander,
    draw_surface,
    draw_telemetry,
    panel_rect,
)
from lunar_lander.pilots import PolicyPilot
from lunar_lander.replay import record_descent


class TestHud(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        pygame.init()
        cls.font = pygame.font.SysFont(None, 22)
        cls.recorded = record_descent(PolicyPilot(suicide_burn_policy()))

    @classmethod
    def tearDownClass(cls):
        pygame.quit()

    def test_altitude_column(self):
        self.assertEqual(altitude_to_y(0.0, 120.0), C.HEIGHT - C.SURFACE_MARGIN)
        self.assertEqual(altitude_to_y(120.0, 120.0), 20)
        self.assertEqual(altitude_to_y(500.0, 120.0), 20)

    def test_draws_one_frame(self):
        world = pygame.Surface((C.WIDTH, C.HEIGHT))
        panel = pygame.Surface((C.PANEL_WIDTH, C.HEIGHT))
        frames = self.recorded.frames
        burning = next(f for f in frames if f.burn_rate > 0)

        draw_surface(world)
        draw_lander(world, burning, frames[0].altitude, C.MAX_BURN)
        draw_banner(world, "PERFECT  0.50 mph", self.font)
        draw_telemetry(panel, panel_rect(10, 100), [f.time for f in frames],
                       [f.downward_speed for f in frames], self.recorded.duration,
                       -0.1, 1.2, "Downward speed", self.font, reference=0.0)
        draw_telemetry(panel, panel_rect(120, 100), [0.0], [120.0], 0.0, 0.0, 120.0, "Altitude", self.font)
        draw_burn_badge(panel, panel_rect(230, 60), burning.burn_rate, C.MAX_BURN, self.font)

        # the ground strip is painted
        self.assertNotEqual(world.get_at((5, C.HEIGHT - 5))[:3], (0, 0, 0))


class TestGameLoop(unittest.TestCase):
    def test_window_closes_on_quit(self):
        recorded = record_descent(PolicyPilot(suicide_burn_policy()))
        with mock.patch("pygame.event.get", return_value=[pygame.event.Event(pygame.QUIT)]):
            game_loop.run(recorded, fps=1000)
        self.assertFalse(pygame.display.get_init())


if __name__ == "__main__":
    unittest.main()
