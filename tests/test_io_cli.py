"""Tests for edge loading, artifact export and the CLI."""

import json
import os

import networkx as nx
import pytest
import yaml


@pytest.fixture
def edge_list_file(temp_dir):
    """A JSON edge list using both point forms."""
    path = os.path.join(temp_dir, "edges.json")
    data = {
        "edges": [
            {"source": [0, 0], "target": [100, 0], "metadata": {"weight": 2}},
            {"source": {"x": 0, "y": 10}, "target": {"x": 100, "y": 10}},
            {"source": [50, 50], "target": [50, 50]},
        ]
    }
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f)
    return path


@pytest.fixture
def node_link_file(temp_dir):
    """A node-link graph with positioned nodes."""
    graph = nx.Graph()
    graph.add_node("a", x=0, y=0)
    graph.add_node("b", x=100, y=0)
    graph.add_node("c", x=100, y=10)
    graph.add_edge("a", "b", kind="road")
    graph.add_edge("a", "c", kind="rail")

    path = os.path.join(temp_dir, "graph.json")
    with open(path, "w", encoding="utf-8") as f:
        json.dump(nx.node_link_data(graph, edges="links"), f)
    return path


class TestLoadEdges:
    """Tests for loading edge files."""

    def test_edge_list(self, edge_list_file):
        """Both point forms load, metadata is kept."""
        from edgebundle.io.load_edges import load_edges

        edges = load_edges(edge_list_file)

        assert len(edges) == 3
        assert edges[0].metadata == {"weight": 2}
        assert edges[1].source.as_tuple() == (0.0, 10.0)
        assert edges[2].chord_length == 0.0

    def test_yaml_edge_list(self, temp_dir):
        """YAML files use the same layout."""
        from edgebundle.io.load_edges import load_edges

        path = os.path.join(temp_dir, "edges.yaml")
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump({"edges": [{"source": [1, 2], "target": [3, 4]}]}, f)

        edges = load_edges(path)

        assert edges[0].target.as_tuple() == (3.0, 4.0)

    def test_node_link_graph(self, node_link_file):
        """Node positions become endpoints, edge attributes become metadata."""
        from edgebundle.io.load_edges import load_edges

        edges = load_edges(node_link_file)

        assert len(edges) == 2
        kinds = {e.metadata["kind"]: e for e in edges}
        assert kinds["road"].target.as_tuple() == (100.0, 0.0)
        assert kinds["rail"].target.as_tuple() == (100.0, 10.0)
        assert kinds["road"].metadata["source"] == "a"

    def test_node_without_position(self, temp_dir):
        """A node missing x/y is rejected."""
        from edgebundle.io.load_edges import load_edges

        graph = nx.Graph()
        graph.add_node("a", x=0, y=0)
        graph.add_node("b")
        graph.add_edge("a", "b")

        path = os.path.join(temp_dir, "graph.json")
        with open(path, "w", encoding="utf-8") as f:
            json.dump(nx.node_link_data(graph, edges="links"), f)

        with pytest.raises(ValueError):
            load_edges(path)

    def test_missing_file(self, temp_dir):
        """A missing file raises FileNotFoundError."""
        from edgebundle.io.load_edges import load_edges

        with pytest.raises(FileNotFoundError):
            load_edges(os.path.join(temp_dir, "missing.json"))

    def test_coerce_edge_rejects_garbage(self):
        """Values that are not edges raise ValueError."""
        from edgebundle.io.load_edges import coerce_edge

        with pytest.raises(ValueError):
            coerce_edge("edge")


class TestValidateEdgeInputs:
    """Tests for input validation messages."""

    def test_valid(self, edge_list_file):
        """A good file has no errors."""
        from edgebundle.io.load_edges import validate_edge_inputs

        assert validate_edge_inputs(edge_list_file) == []

    def test_problems(self, temp_dir):
        """Missing, unsupported, unparsable and empty files are reported."""
        from edgebundle.io.load_edges import validate_edge_inputs

        assert "not found" in validate_edge_inputs(os.path.join(temp_dir, "nope.json"))[0]

        csv_path = os.path.join(temp_dir, "edges.csv")
        with open(csv_path, "w", encoding="utf-8") as f:
            f.write("0,0,1,1\n")
        assert "Unsupported" in validate_edge_inputs(csv_path)[0]

        bad_path = os.path.join(temp_dir, "bad.json")
        with open(bad_path, "w", encoding="utf-8") as f:
            f.write("{not json")
        assert "Cannot parse" in validate_edge_inputs(bad_path)[0]

        empty_path = os.path.join(temp_dir, "empty.json")
        with open(empty_path, "w", encoding="utf-8") as f:
            json.dump({"edges": []}, f)
        assert "No edges" in validate_edge_inputs(empty_path)[0]


class TestSvgExport:
    """Tests for SVG document export."""

    def test_paths_and_styles(self, parallel_edges):
        """Each edge becomes a path carrying its stroke attributes."""
        from edgebundle.export.svg_document import create_bundle_svg
        from edgebundle.pipeline import render

        result = render(parallel_edges, style={"stroke": ["red", "blue"]})
        content = create_bundle_svg(result).tostring()

        assert 'id="edge_0"' in content
        assert 'id="edge_1"' in content
        assert 'stroke="red"' in content
        assert 'stroke="blue"' in content
        assert 'viewBox="-10' in content

    def test_non_finite_geometry_skipped(self, mixed_edges):
        """Geometries with non-finite coordinates are left out."""
        from edgebundle.export.svg_document import create_bundle_svg, union_bbox
        from edgebundle.pipeline import render

        result = render(mixed_edges)
        content = create_bundle_svg(result).tostring()

        assert 'id="edge_3"' not in content
        assert 'id="edge_1"' in content
        assert "nan" not in content
        assert union_bbox(result.geometries)[0] == 0.0


class TestRunPipeline:
    """Tests for the file-to-file pipeline and CLI."""

    def test_run_pipeline_outputs(self, edge_list_file, temp_dir):
        """run_pipeline writes the result, SVG and validation report."""
        from edgebundle.pipeline import run_pipeline

        out_dir = os.path.join(temp_dir, "out")
        result, report = run_pipeline(edge_list_file, out_dir)

        assert len(result.geometries) == 3
        assert not report.has_errors
        for name in ("result.json", "bundled.svg", "validation_report.json", "validation_summary.txt"):
            assert os.path.exists(os.path.join(out_dir, name))

        with open(os.path.join(out_dir, "result.json"), "r", encoding="utf-8") as f:
            data = json.load(f)
        assert len(data["geometries"]) == 3
        assert data["stats"]["edge_count"] == 3

    def test_run_pipeline_without_svg(self, edge_list_file, temp_dir):
        """export_svg=False skips the SVG file."""
        from edgebundle.pipeline import run_pipeline

        out_dir = os.path.join(temp_dir, "out")
        run_pipeline(edge_list_file, out_dir, export_svg=False)

        assert not os.path.exists(os.path.join(out_dir, "bundled.svg"))

    def test_cli_run(self, edge_list_file, temp_dir, capsys):
        """The run command succeeds and reports a summary."""
        from edgebundle.cli import main

        out_dir = os.path.join(temp_dir, "cli_out")
        code = main(["run", "--input", edge_list_file, "--out", out_dir])

        assert code == 0
        assert os.path.exists(os.path.join(out_dir, "bundled.svg"))
        assert "Bundling completed successfully" in capsys.readouterr().out

    def test_cli_run_with_config(self, node_link_file, temp_dir):
        """A config file is honored by the run command."""
        from edgebundle.cli import main

        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump({"curve": {"type": "linear"}, "subdivision": {"subdivisions": 4}}, f)

        out_dir = os.path.join(temp_dir, "cli_out")
        code = main(["run", "-i", node_link_file, "-o", out_dir, "-c", config_path, "--no-svg"])

        assert code == 0
        with open(os.path.join(out_dir, "result.json"), "r", encoding="utf-8") as f:
            data = json.load(f)
        assert len(data["geometries"][0]["control_points"]) == 6
        assert not os.path.exists(os.path.join(out_dir, "bundled.svg"))

    def test_cli_missing_input(self, temp_dir, capsys):
        """A missing input file exits with 1."""
        from edgebundle.cli import main

        code = main(["run", "--input", os.path.join(temp_dir, "nope.json"), "--out", temp_dir])

        assert code == 1
        assert "not found" in capsys.readouterr().err

    def test_cli_bad_config(self, edge_list_file, temp_dir):
        """A configuration error is caught and exits with 1."""
        from edgebundle.cli import main

        config_path = os.path.join(temp_dir, "config.yaml")
        with open(config_path, "w", encoding="utf-8") as f:
            yaml.dump({"curve": {"type": "spline"}}, f)

        code = main(["run", "-i", edge_list_file, "-o", temp_dir, "-c", config_path])

        assert code == 1

    def test_init_config(self, temp_dir):
        """init-config writes a loadable default configuration."""
        from edgebundle.cli import main
        from edgebundle.config import load_config

        path = os.path.join(temp_dir, "edgebundle_config.yaml")
        assert main(["init-config", "--out", path]) == 0

        config = load_config(path)
        assert config.forces.iterations == 90
