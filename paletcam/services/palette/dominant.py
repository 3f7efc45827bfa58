"""
Dominant color selection.

Greedily clusters a palette into visually distinct groups and returns the
mean color of the most populated group, brighter groups winning ties.
"""

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .color_utils import RgbColor, color_distance_squared, color_luma, round_half_up

DOMINANT_COLOR_CLUSTER_DISTANCE = 30


@dataclass
class ColorCluster:
    """Running mean of the palette colors assigned to one cluster."""
    r: int
    g: int
    b: int
    total_r: int
    total_g: int
    total_b: int
    count: int = 1

    @classmethod
    def seed(cls, color) -> "ColorCluster":
        return cls(color.r, color.g, color.b, color.r, color.g, color.b)

    def add(self, color) -> None:
        self.total_r += color.r
        self.total_g += color.g
        self.total_b += color.b
        self.count += 1
        self.r = round_half_up(self.total_r / self.count)
        self.g = round_half_up(self.total_g / self.count)
        self.b = round_half_up(self.total_b / self.count)

    def to_rgb(self) -> RgbColor:
        return RgbColor(self.r, self.g, self.b)


def cluster_colors(colors: Sequence, cluster_distance: float = DOMINANT_COLOR_CLUSTER_DISTANCE) -> List[ColorCluster]:
    """Assign each color to the first cluster within cluster_distance of its mean."""
    max_distance_squared = cluster_distance ** 2
    clusters: List[ColorCluster] = []

    for color in colors:
        match = next(
            (cluster for cluster in clusters
             if color_distance_squared(color, cluster) <= max_distance_squared),
            None
        )
        if match is None:
            clusters.append(ColorCluster.seed(color))
        else:
            match.add(color)

    return clusters


def get_dominant_color(colors: Optional[Sequence]) -> Optional[RgbColor]:
    """
    Most prominent color of a palette.

    Clusters are ranked by member count, then by relative luma. Returns None
    for an empty palette.
    """
    if not colors:
        return None

    clusters = cluster_colors(colors)
    clusters.sort(key=lambda cluster: (-cluster.count, -color_luma(cluster)))
    return clusters[0].to_rgb()
