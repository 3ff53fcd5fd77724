"""
Marker clustering and camera focus for the simple-CRS campaign map.

Projection (CRS.Simple): point = (lng * 2^z, -lat * 2^z), in container pixels
up to a translation. Only pixel deltas matter here, so the translation is
dropped.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

CLUSTER_RADIUS_PX = 30.0

FAN_BASE_RADIUS_PX = 40.0
FAN_RADIUS_STEP_PX = 20.0
FAN_PER_REVOLUTION = 6
FAN_IN_DELAY_CLUSTER_MS = 500
FAN_IN_DELAY_FAN_MARKER_MS = 300

MOBILE_MAX_WIDTH = 768
PANEL_WIDTH = 350
PANEL_SHIFT_RATIO = 0.25
VIEW_PADDING = 50
PANEL_PADDING_RIGHT = 380
FOCUS_BOUNDS_OFFSET = 80.0
FOCUS_DURATION_S = 0.8
FOCUS_EASE_LINEARITY = 0.2

MAP_MIN_ZOOM = -1.0
MAP_MAX_ZOOM = 3.0
MAP_ZOOM_SNAP = 0.02


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float
    zoom: float
    center: LatLng = field(default_factory=lambda: LatLng(0.0, 0.0))
    min_zoom: float = MAP_MIN_ZOOM
    max_zoom: float = MAP_MAX_ZOOM
    zoom_snap: float = MAP_ZOOM_SNAP

    @property
    def is_mobile(self) -> bool:
        return self.width <= MOBILE_MAX_WIDTH


def project(ll: LatLng, zoom: float) -> Tuple[float, float]:
    s = 2.0 ** zoom
    return ll.lng * s, -ll.lat * s


def unproject(x: float, y: float, zoom: float) -> LatLng:
    s = 2.0 ** zoom
    return LatLng(lat=-y / s, lng=x / s)


def pixel_distance(a: LatLng, b: LatLng, zoom: float) -> float:
    ax, ay = project(a, zoom)
    bx, by = project(b, zoom)
    return math.hypot(ax - bx, ay - by)


# -------------------------
# clustering
# -------------------------
def group_by_proximity(
    points: Sequence[LatLng],
    zoom: float,
    radius: float = CLUSTER_RADIUS_PX,
) -> List[List[int]]:
    """
    Greedy grouping in input order. Each unprocessed seed takes every
    unprocessed point within radius of the seed itself (not transitive).
    """
    processed = [False] * len(points)
    groups: List[List[int]] = []
    for i, seed in enumerate(points):
        if processed[i]:
            continue
        processed[i] = True
        group = [i]
        for j in range(len(points)):
            if processed[j]:
                continue
            if pixel_distance(seed, points[j], zoom) <= radius:
                processed[j] = True
                group.append(j)
        groups.append(group)
    return groups


def cluster_center(points: Sequence[LatLng]) -> LatLng:
    n = len(points)
    return LatLng(lat=sum(p.lat for p in points) / n, lng=sum(p.lng for p in points) / n)


def fan_offsets(count: int) -> List[Tuple[float, float]]:
    """Spiral pixel offsets: 6 per revolution, +20px per revolution, first at 12 o'clock."""
    step = 2 * math.pi / FAN_PER_REVOLUTION
    out: List[Tuple[float, float]] = []
    for index in range(count):
        revolution = index // FAN_PER_REVOLUTION
        angle = (index % FAN_PER_REVOLUTION) * step - math.pi / 2
        radius = FAN_BASE_RADIUS_PX + revolution * FAN_RADIUS_STEP_PX
        out.append((math.cos(angle) * radius, math.sin(angle) * radius))
    return out


def fan_positions(center: LatLng, count: int, zoom: float) -> List[Dict[str, Any]]:
    cx, cy = project(center, zoom)
    positions: List[Dict[str, Any]] = []
    for dx, dy in fan_offsets(count):
        ll = unproject(cx + dx, cy + dy, zoom)
        positions.append({"lat": ll.lat, "lng": ll.lng, "offsetX": dx, "offsetY": dy})
    return positions


def cluster_markers(
    markers: Sequence[Dict[str, Any]],
    viewport: Viewport,
    radius: float = CLUSTER_RADIUS_PX,
) -> Dict[str, Any]:
    """markers: [{id, lat, lng, ...}]; extra keys are passed through untouched."""
    points = [LatLng(float(m["lat"]), float(m["lng"])) for m in markers]
    singles: List[Dict[str, Any]] = []
    clusters: List[Dict[str, Any]] = []

    for group in group_by_proximity(points, viewport.zoom, radius):
        if len(group) == 1:
            singles.append(dict(markers[group[0]]))
            continue
        center = cluster_center([points[i] for i in group])
        fans = fan_positions(center, len(group), viewport.zoom)
        clusters.append(
            {
                "id": f"cluster_{len(clusters)}",
                "center": {"lat": center.lat, "lng": center.lng},
                "count": len(group),
                "members": [{"marker": dict(markers[i]), "fan": fan} for i, fan in zip(group, fans)],
            }
        )

    return {
        "singles": singles,
        "clusters": clusters,
        "fanInDelays": {"cluster": FAN_IN_DELAY_CLUSTER_MS, "fanMarker": FAN_IN_DELAY_FAN_MARKER_MS},
    }


# -------------------------
# camera focus
# -------------------------
def optimal_zoom(current: float) -> float:
    if current < 0.8:
        return 1.2
    if current > 2.2:
        return 1.8
    return max(current, 1.0)


def panel_aware_target(target: LatLng, viewport: Viewport, panel_open: bool) -> LatLng:
    """With the side panel open on desktop, nudge the target by a quarter panel width."""
    if not panel_open or viewport.is_mobile:
        return target
    cx, cy = project(viewport.center, viewport.zoom)
    shifted = unproject(cx - PANEL_WIDTH * PANEL_SHIFT_RATIO, cy, viewport.zoom)
    return LatLng(lat=target.lat, lng=target.lng + (shifted.lng - viewport.center.lng))


def viewport_padding(viewport: Viewport, panel_open: bool) -> Dict[str, int]:
    right = PANEL_PADDING_RIGHT if panel_open and not viewport.is_mobile else VIEW_PADDING
    return {"top": VIEW_PADDING, "bottom": VIEW_PADDING, "left": VIEW_PADDING, "right": right}


def centering_bounds(target: LatLng) -> Tuple[LatLng, LatLng]:
    """(southWest, northEast)"""
    o = FOCUS_BOUNDS_OFFSET
    return LatLng(target.lat - o, target.lng - o), LatLng(target.lat + o, target.lng + o)


def _snap_down(zoom: float, snap: float) -> float:
    if not snap:
        return zoom
    # within 1% of a snap level counts as that level
    fine = snap / 100
    zoom = math.floor(zoom / fine + 0.5) * fine
    # float noise is rounded away before flooring so 1.2 stays 1.2
    return round(math.floor(round(zoom / snap, 9)) * snap, 9)


def bounds_zoom(
    bounds: Tuple[LatLng, LatLng],
    viewport: Viewport,
    padding: Tuple[float, float],
) -> float:
    """Largest zoom at which bounds fit the viewport minus padding (not 'inside')."""
    sw, ne = bounds
    size_x = viewport.width - padding[0]
    size_y = viewport.height - padding[1]
    nw_x, nw_y = project(LatLng(ne.lat, sw.lng), viewport.zoom)
    se_x, se_y = project(LatLng(sw.lat, ne.lng), viewport.zoom)
    bx, by = abs(se_x - nw_x), abs(se_y - nw_y)

    scale = min(size_x / bx if bx else math.inf, size_y / by if by else math.inf)
    if scale == 0:
        zoom = -math.inf
    elif scale < 0 or math.isinf(scale):
        zoom = math.inf
    else:
        zoom = viewport.zoom + math.log2(scale)
        zoom = _snap_down(zoom, viewport.zoom_snap)
    return max(viewport.min_zoom, min(viewport.max_zoom, zoom))


def fit_bounds_view(
    bounds: Tuple[LatLng, LatLng],
    viewport: Viewport,
    *,
    padding_top_left: Tuple[float, float] = (0.0, 0.0),
    padding_bottom_right: Tuple[float, float] = (0.0, 0.0),
    max_zoom: Optional[float] = None,
) -> Tuple[LatLng, float]:
    """Center and zoom the map lands on after fitBounds(bounds, options)."""
    padding = (
        padding_top_left[0] + padding_bottom_right[0],
        padding_top_left[1] + padding_bottom_right[1],
    )
    zoom = bounds_zoom(bounds, viewport, padding)
    if max_zoom is not None:
        zoom = min(max_zoom, zoom)

    sw, ne = bounds
    off_x = (padding_bottom_right[0] - padding_top_left[0]) / 2
    off_y = (padding_bottom_right[1] - padding_top_left[1]) / 2
    sw_x, sw_y = project(sw, zoom)
    ne_x, ne_y = project(ne, zoom)
    center = unproject((sw_x + ne_x) / 2 + off_x, (sw_y + ne_y) / 2 + off_y, zoom)

    # setView clamps to the map's zoom range
    zoom = max(viewport.min_zoom, min(viewport.max_zoom, zoom))
    return center, zoom


def plan_focus(target: LatLng, viewport: Viewport, panel_open: bool) -> Dict[str, Any]:
    adjusted = panel_aware_target(target, viewport, panel_open)
    max_zoom = optimal_zoom(viewport.zoom)
    padding = viewport_padding(viewport, panel_open)
    sw, ne = centering_bounds(adjusted)

    center, zoom = fit_bounds_view(
        (sw, ne),
        viewport,
        padding_top_left=(0, 0),
        padding_bottom_right=(padding["right"], 0),
        max_zoom=max_zoom,
    )
    return {
        "target": {"lat": adjusted.lat, "lng": adjusted.lng},
        "bounds": {
            "southWest": {"lat": sw.lat, "lng": sw.lng},
            "northEast": {"lat": ne.lat, "lng": ne.lng},
        },
        "padding": padding,
        "fitBoundsOptions": {
            "animate": True,
            "duration": FOCUS_DURATION_S,
            "easeLinearity": FOCUS_EASE_LINEARITY,
            "maxZoom": max_zoom,
            "paddingTopLeft": [0, 0],
            "paddingBottomRight": [padding["right"], 0],
        },
        "view": {"center": {"lat": center.lat, "lng": center.lng}, "zoom": zoom},
        "isMobile": viewport.is_mobile,
    }
