"""
SVG document generation for Edge Bundle.

Writes bundled geometries as one svgwrite drawing, one path per edge.
"""

import math

import svgwrite

from edgebundle.io.save_artifacts import save_svg
from edgebundle.tracer import get_tracer, trace


def _finite_bbox(bbox):
    return all(math.isfinite(v) for v in bbox)


def union_bbox(geometries):
    """Union of all finite geometry bounding boxes, or None when there is none."""
    boxes = [g.bbox for g in geometries if _finite_bbox(g.bbox)]
    if not boxes:
        return None
    return [
        min(b[0] for b in boxes),
        min(b[1] for b in boxes),
        max(b[2] for b in boxes),
        max(b[3] for b in boxes),
    ]


def create_bundle_svg(result, padding=10.0):
    """
    Create an SVG drawing from a BundleResult.

    The viewbox covers every finite geometry plus padding. Geometries with
    non-finite coordinates are left out of the drawing.
    """
    bbox = union_bbox(result.geometries) or [0.0, 0.0, 0.0, 0.0]
    min_x = bbox[0] - padding
    min_y = bbox[1] - padding
    width = max(1.0, bbox[2] - bbox[0] + 2 * padding)
    height = max(1.0, bbox[3] - bbox[1] + 2 * padding)

    dwg = svgwrite.Drawing(size=(f"{width:.0f}px", f"{height:.0f}px"))
    dwg.viewbox(min_x, min_y, width, height)

    dwg.defs.add(dwg.style("""
        .edge { stroke-linecap: round; stroke-linejoin: round; }
    """))

    edge_group = dwg.g(id="edges", fill="none", class_="edge")

    for geometry in result.geometries:
        if not geometry.svg_path or not _finite_bbox(geometry.bbox):
            continue

        attrs = {}
        if geometry.stroke is not None:
            attrs["stroke"] = geometry.stroke
        if geometry.stroke_width is not None:
            attrs["stroke_width"] = geometry.stroke_width
        if geometry.stroke_opacity is not None:
            attrs["stroke_opacity"] = geometry.stroke_opacity

        edge_group.add(dwg.path(d=geometry.svg_path, id=f"edge_{geometry.index}", **attrs))

    dwg.add(edge_group)

    return dwg


@trace(label="save_bundle_svg")
def save_bundle_svg(result, path, padding=10.0):
    """Create the bundle drawing and write it to path."""
    tracer = get_tracer()

    dwg = create_bundle_svg(result, padding=padding)
    save_svg(dwg, path)

    tracer.event(f"Exported {len(result.geometries)} edges to SVG")

    return dwg
