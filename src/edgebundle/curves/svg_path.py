"""
SVG path strings from path commands.
"""

from edgebundle.models import compute_bbox


def path_to_svg(commands, precision=2):
    """
    Convert a list of PathCommand objects to an SVG path d attribute.

    Coordinates are written with a fixed number of decimals, e.g.
    ``M 0.00 0.00 C 10.00 0.00 20.00 0.00 30.00 0.00``.
    """
    if not commands:
        return ""

    parts = []
    for cmd in commands:
        coords = " ".join(f"{p[0]:.{precision}f} {p[1]:.{precision}f}" for p in cmd.points)
        parts.append(f"{cmd.command} {coords}")

    return " ".join(parts)


def compute_path_bbox(commands):
    """Bounding box [min_x, min_y, max_x, max_y] of all command points, handles included."""
    return compute_bbox([p for cmd in commands for p in cmd.points])


def count_commands(commands, command):
    """Number of commands of one kind ("M", "L" or "C")."""
    return sum(1 for cmd in commands if cmd.command == command)
