import pygame

from . import config as C
from .hud import (
    draw_banner,
    draw_burn_badge,
    draw_lander,
    draw_surface,
    draw_telemetry,
    panel_rect,
)
from .replay import RecordedRun, ReplayPlayer
from .scoring import Rating

CHART_HEIGHT = 100
CHART_GAP = 10


def run(recorded: RecordedRun, fps: int = C.FPS, slowmo: int = C.REPLAY_SLOWMO,
        constants: C.DescentConstants = C.DEFAULT_CONSTANTS) -> None:
    """Play a recorded descent in a window; R restarts, Esc or close quits."""
    pygame.init()
    screen = pygame.display.set_mode((C.WINDOW_WIDTH, C.HEIGHT))
    pygame.display.set_caption("Lunar descent")
    clock = pygame.time.Clock()
    font = pygame.font.SysFont(None, 22)
    world_surf = pygame.Surface((C.WIDTH, C.HEIGHT))
    panel_surf = pygame.Surface((C.PANEL_WIDTH, C.HEIGHT))

    top_altitude = max(f.altitude for f in recorded.frames)
    top_speed = max(f.downward_speed for f in recorded.frames) * C.MPH_PER_MILE_PER_SEC
    duration = recorded.duration
    result = recorded.result
    player = ReplayPlayer(slowmo)
    player.start(recorded)
    frame = recorded.frames[0]

    running = True
    while running:
        clock.tick(fps)
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                running = False
            if e.type == pygame.KEYDOWN:
                if e.key == pygame.K_ESCAPE:
                    running = False
                if e.key == pygame.K_r:
                    player.start(recorded)

        if player.active:
            frame = player.step()
        history = player.history
        times = [f.time for f in history]

        world_surf.fill((0, 0, 0))
        panel_surf.fill((8, 8, 8))
        draw_surface(world_surf)
        draw_lander(world_surf, frame, top_altitude, constants.max_burn)

        status = f"t {frame.time:6.1f}s  alt {frame.altitude:6.2f} mi  v {frame.downward_speed * C.MPH_PER_MILE_PER_SEC:7.1f} mph"
        world_surf.blit(font.render(status, True, (255, 255, 255)), (10, 10))

        if not player.active:
            color = (120, 255, 120) if result.rating <= Rating.GOOD else (255, 80, 80)
            draw_banner(world_surf, f"{result.rating.label.upper()}  {result.impact_speed_mph:.2f} mph", font, color)

        charts = (
            ([f.altitude for f in history], 0.0, top_altitude, "Altitude (mi)", None),
            ([f.downward_speed * C.MPH_PER_MILE_PER_SEC for f in history],
             min(0.0, -0.1 * top_speed), top_speed, "Downward speed (mph)", 0.0),
            ([f.fuel for f in history], 0.0, constants.full_tank, "Fuel (lb)", None),
        )
        y = C.PANEL_PADDING
        for values, lo, hi, label, reference in charts:
            draw_telemetry(panel_surf, panel_rect(y, CHART_HEIGHT), times, values, duration,
                           lo, hi, label, font, reference=reference)
            y += CHART_HEIGHT + CHART_GAP
        draw_burn_badge(panel_surf, panel_rect(y, 60), frame.burn_rate, constants.max_burn, font)

        screen.blit(world_surf, (0, 0))
        screen.blit(panel_surf, (C.WIDTH, 0))
        pygame.draw.line(screen, (90, 90, 90), (C.WIDTH, 0), (C.WIDTH, C.HEIGHT), 2)
        pygame.display.flip()

    pygame.quit()
