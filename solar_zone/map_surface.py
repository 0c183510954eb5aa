"""
Plotly map surface for drawing sessions.
"""

import math
from typing import Any, Dict, List, Optional, Sequence

import numpy as np
import plotly.graph_objects as go

from .geometry import GeoPoint
from .models import RoofSegmentStats

SATELLITE_TILES = (
    "https://server.arcgisonline.com/ArcGIS/rest/services/World_Imagery/MapServer/tile/{z}/{y}/{x}"
)
METERS_PER_DEGREE_LAT = 111320.0
MAX_GRID_POINTS = 2500

GRID_TRACE = 'Click grid'


def _closed_coords(points: Sequence[GeoPoint]):
    ring = list(points)
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return [p.lat for p in ring], [p.lng for p in ring]


class PlotlyDrawingSurface:
    """
    Collects drawing state and renders it as a plotly Scattermap figure.

    Map clicks are emulated with a grid of faint selectable markers over the
    building; selecting one of them yields the GeoPoint to add.
    """

    def __init__(
        self,
        center: GeoPoint,
        zoom: int = 19,
        bounding_box: Optional[Sequence[GeoPoint]] = None,
        grid_step_m: float = 1.0,
        satellite: bool = True
    ):
        self.center = center
        self.zoom = zoom
        self.bounding_box = bounding_box
        self.grid_step_m = grid_step_m
        self.satellite = satellite

        self.vertices: List[GeoPoint] = []
        self.ring: Sequence[GeoPoint] = ()
        self.holes: Sequence[Sequence[GeoPoint]] = ()
        self.interactive = True
        self.close_point: Optional[GeoPoint] = None
        self.roof_segments: Sequence[RoofSegmentStats] = ()

    # DrawingSurface

    def add_vertex(self, point: GeoPoint, index: int) -> None:
        self.vertices.insert(index, point)

    def remove_vertex(self, index: int) -> None:
        if 0 <= index < len(self.vertices):
            del self.vertices[index]

    def highlight_close_point(self, point: Optional[GeoPoint]) -> None:
        self.close_point = point

    def render_ring(self, points: Sequence[GeoPoint], holes: Sequence[Sequence[GeoPoint]],
                    interactive: bool) -> None:
        self.ring = tuple(points)
        self.holes = tuple(tuple(hole) for hole in holes)
        self.interactive = interactive

    # Rendering

    def show_roof_segments(self, segments: Sequence[RoofSegmentStats]) -> None:
        self.roof_segments = tuple(segments)

    def click_grid(self) -> List[GeoPoint]:
        """Selectable points covering the bounding box, thinned to MAX_GRID_POINTS."""
        if not self.bounding_box:
            return []
        sw, ne = self.bounding_box
        lat_step = self.grid_step_m / METERS_PER_DEGREE_LAT
        lng_step = self.grid_step_m / (METERS_PER_DEGREE_LAT * max(math.cos(math.radians(self.center.lat)), 1e-6))

        lats = np.arange(sw.lat, ne.lat + lat_step / 2, lat_step)
        lngs = np.arange(sw.lng, ne.lng + lng_step / 2, lng_step)
        stride = max(1, math.ceil(math.sqrt(len(lats) * len(lngs) / MAX_GRID_POINTS)))
        grid_lat, grid_lng = np.meshgrid(lats[::stride], lngs[::stride], indexing='ij')

        return [GeoPoint(lat=float(lat), lng=float(lng))
                for lat, lng in zip(grid_lat.ravel(), grid_lng.ravel())]

    def figure(self, height: int = 500) -> go.Figure:
        fig = go.Figure()

        grid = self.click_grid()
        if grid:
            fig.add_trace(go.Scattermap(
                lat=[p.lat for p in grid],
                lon=[p.lng for p in grid],
                mode='markers',
                marker=dict(size=6, color='white', opacity=0.08),
                name=GRID_TRACE,
                hoverinfo='none'
            ))

        for number, segment in enumerate(self.roof_segments, 1):
            if not segment.bounding_box:
                continue
            sw, ne = segment.bounding_box
            corners = [sw, GeoPoint(sw.lat, ne.lng), ne, GeoPoint(ne.lat, sw.lng)]
            lat, lon = _closed_coords(corners)
            fig.add_trace(go.Scattermap(
                lat=lat, lon=lon, mode='lines', fill='toself',
                line=dict(color='orange', width=1),
                fillcolor='rgba(255, 165, 0, 0.15)',
                name=f'Segment {number}',
                hoverinfo='name'
            ))

        if len(self.ring) >= 2:
            lat, lon = _closed_coords(self.ring)
            fig.add_trace(go.Scattermap(
                lat=lat, lon=lon, mode='lines', fill='toself',
                line=dict(color='#2563eb' if self.interactive else '#94a3b8', width=3),
                fillcolor='rgba(37, 99, 235, 0.25)',
                name='Zone',
                hoverinfo='skip'
            ))

        for number, hole in enumerate(self.holes, 1):
            lat, lon = _closed_coords(hole)
            fig.add_trace(go.Scattermap(
                lat=lat, lon=lon, mode='lines', fill='toself',
                line=dict(color='red', width=2),
                fillcolor='rgba(220, 38, 38, 0.35)',
                name=f'Excluded {number}',
                hoverinfo='skip'
            ))

        if self.vertices:
            fig.add_trace(go.Scattermap(
                lat=[p.lat for p in self.vertices],
                lon=[p.lng for p in self.vertices],
                mode='markers+lines',
                marker=dict(size=10, color='yellow'),
                line=dict(color='yellow', width=2),
                name='Vertices',
                hoverinfo='skip'
            ))

        if self.close_point is not None:
            fig.add_trace(go.Scattermap(
                lat=[self.close_point.lat],
                lon=[self.close_point.lng],
                mode='markers',
                marker=dict(size=18, color='lime'),
                name='Close here',
                hoverinfo='name'
            ))

        map_layout = dict(
            style="white-bg" if self.satellite else "open-street-map",
            center=dict(lat=self.center.lat, lon=self.center.lng),
            zoom=self.zoom
        )
        if self.satellite:
            map_layout['layers'] = [{
                'below': 'traces',
                'sourcetype': 'raster',
                'source': [SATELLITE_TILES]
            }]

        fig.update_layout(
            map=map_layout,
            margin=dict(l=0, r=0, t=0, b=0),
            height=height,
            showlegend=False,
            clickmode='event+select'
        )
        return fig


def selected_points(selection: Optional[Dict[str, Any]]) -> List[GeoPoint]:
    """GeoPoints picked on the click grid in a Streamlit plotly selection event."""
    if not selection:
        return []
    points = selection.get('points') or []
    return [
        GeoPoint(lat=float(point['lat']), lng=float(point['lon']))
        for point in points
        if 'lat' in point and 'lon' in point
    ]
