"""
HUD overlays for the descent viewer.

Responsibilities:
- Telemetry strips (altitude, speed, fuel) plotted against mission time
- Burn-rate badge
- Altitude column with the lander and its flame
- Outcome banner
"""
import pygame

from . import config as C

FRAME_FILL = (20, 20, 20)
FRAME_EDGE = (80, 80, 80)
TRACE = (255, 255, 255)
MUTED = (200, 200, 200)
FLAME = (255, 140, 0)


def panel_rect(y, height):
    """Full-width slot in the side panel, inset by the panel padding."""
    return pygame.Rect(C.PANEL_PADDING, y, C.PANEL_WIDTH - 2 * C.PANEL_PADDING, height)


def _frame_box(screen, rect, caption, font, color=TRACE):
    pygame.draw.rect(screen, FRAME_FILL, rect)
    pygame.draw.rect(screen, FRAME_EDGE, rect, 1)
    screen.blit(font.render(caption, True, color), (rect.x + 6, rect.y + 4))


def draw_telemetry(screen, rect, times, values, duration, lo, hi, label, font, reference=None):
    """
    Strip chart of one telemetry channel. x spans the whole descent (0..duration)
    so the trace grows left to right as the replay clock runs; values outside
    lo..hi are pinned to the edge. `reference` draws a dim horizontal line.
    """
    _frame_box(screen, rect, label, font)
    plot = pygame.Rect(rect.x + 6, rect.y + 22, rect.w - 12, rect.h - 28)
    span = hi - lo

    def to_xy(t, v):
        fx = 0.0 if duration <= 0 else min(1.0, t / duration)
        fy = 0.5 if span == 0 else (min(max(v, lo), hi) - lo) / span
        return plot.x + fx * plot.w, plot.bottom - fy * plot.h

    if reference is not None and lo <= reference <= hi:
        _, ry = to_xy(0.0, reference)
        pygame.draw.line(screen, FRAME_EDGE, (plot.x, ry), (plot.right, ry), 1)

    if len(values) >= 2:
        pygame.draw.lines(screen, TRACE, False, [to_xy(t, v) for t, v in zip(times, values)], 2)
    if values:
        latest = font.render(f"{values[-1]:.1f}", True, MUTED)
        screen.blit(latest, (rect.right - latest.get_width() - 6, rect.y + 4))


def draw_burn_badge(screen, rect, burn_rate, max_burn, font):
    _frame_box(screen, rect, "Fuel rate (lb/s)", font, MUTED)

    readout = pygame.font.SysFont(None, 28).render(f"{burn_rate:6.1f}", True, TRACE)
    screen.blit(readout, (rect.centerx - readout.get_width() // 2, rect.y + 20))

    frac = 0.0 if max_burn <= 0 else max(0.0, min(1.0, burn_rate / max_burn))
    pygame.draw.rect(screen, FLAME, pygame.Rect(rect.x + 6, rect.bottom - 10, int((rect.w - 12) * frac), 4))


def altitude_to_y(altitude, top_altitude, height=C.HEIGHT, margin=C.SURFACE_MARGIN):
    """Screen y for an altitude; the surface sits `margin` pixels above the bottom."""
    usable = height - margin - 20
    frac = 0.0 if top_altitude <= 0 else max(0.0, min(1.0, altitude / top_altitude))
    return int(height - margin - frac * usable)


def draw_surface(screen):
    ground_y = C.HEIGHT - C.SURFACE_MARGIN
    pygame.draw.rect(screen, (60, 60, 60), pygame.Rect(0, ground_y, C.WIDTH, C.SURFACE_MARGIN))
    pygame.draw.line(screen, (160, 160, 160), (0, ground_y), (C.WIDTH, ground_y), 3)


def draw_lander(screen, frame, top_altitude, max_burn):
    cx = C.WIDTH // 2
    cy = altitude_to_y(frame.altitude, top_altitude) - 12
    body = [(cx, cy - 14), (cx + 8, cy + 10), (cx + 4, cy + 12), (cx - 4, cy + 12), (cx - 8, cy + 10)]
    pygame.draw.polygon(screen, (220, 220, 220), body)
    pygame.draw.polygon(screen, (80, 80, 80), body, 2)

    if frame.burn_rate > 0 and frame.fuel > 0:
        flame_len = 8 + int(22 * min(1.0, frame.burn_rate / max_burn))
        flame = [(cx, cy + 12 + flame_len), (cx + 3, cy + 14), (cx - 3, cy + 14)]
        pygame.draw.polygon(screen, FLAME, flame)


def draw_banner(screen, text, font, color=(255, 255, 255)):
    msg = font.render(text, True, color)
    screen.blit(msg, (C.WIDTH // 2 - msg.get_width() // 2, 60))
