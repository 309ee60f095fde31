"""End-to-end tests for the two-phase pipeline."""

import json
from dataclasses import replace
from pathlib import Path

import pytest

from graph2md.models import Graph, Node
from graph2md.pipeline import OutputDirError, build_site_index, render_graphs, run


def _dump(graph: Graph, path: Path, envelope: str = "api") -> Path:
    body = {
        "nodes": [
            {"id": n.id, "labels": list(n.labels), "properties": dict(n.properties)}
            for n in graph.nodes
        ],
        "relationships": [
            {"id": r.id, "type": r.type, "startNode": r.start_node, "endNode": r.end_node}
            for r in graph.relationships
        ],
    }
    if envelope == "api":
        doc = {"status": "completed", "result": {"graph": body}}
    else:
        doc = body
    path.write_text(json.dumps(doc), encoding="utf-8")
    return path


class TestBuildSiteIndex:
    def test_phase_one_is_complete(self, sample_graph):
        site = build_site_index([sample_graph])

        assert len(site.nodes) == 9
        assert len(site.slugs) == 9
        assert site.ownership.domain("F2") == "Auth"
        assert site.slugs.slug_for("dir1") == "dir-src"

    def test_render_graphs_in_memory(self, sample_graph, settings):
        docs = render_graphs([sample_graph], settings)
        slugs = [d.slug for d in docs]

        assert slugs[:2] == ["file-src-a-ts", "file-src-b-ts"]
        assert len(set(slugs)) == len(slugs)


class TestRun:
    """Tests for loading, rendering and writing."""

    def test_writes_one_file_per_slug(self, sample_graph, settings, temp_dir: Path):
        src = _dump(sample_graph, temp_dir / "graph.json")
        out = temp_dir / "site" / "data"

        stats = run([src], replace(settings, output_dir=out))

        assert stats.graphs_loaded == 1
        assert stats.nodes == 9
        assert stats.relationships == 11
        assert stats.written == 9
        assert stats.failed == 0
        page = (out / "file-src-a-ts.md").read_text(encoding="utf-8")
        assert page.startswith("---\ntitle: ")
        assert "## Dependencies\n\n- <a href=\"/file-src-b-ts.html\">b.ts</a>\n" in page
        assert "import_count: 1\n" in page

    def test_multiple_graphs_are_merged(self, builder, settings, temp_dir: Path):
        api = builder.file("F1", "api/main.go").build()
        web = Graph(nodes=list(api.nodes), relationships=[])
        web.nodes.append(Node("F2", ("File",), {"path": "web/app.ts", "name": "app.ts"}))

        paths = [
            _dump(api, temp_dir / "api.json"),
            _dump(web, temp_dir / "web.json", envelope="bare"),
        ]
        stats = run(paths, replace(settings, output_dir=temp_dir / "out"))

        assert stats.graphs_loaded == 2
        assert stats.nodes == 2
        assert sorted(p.name for p in (temp_dir / "out").iterdir()) == [
            "file-api-main-go.md",
            "file-web-app-ts.md",
        ]

    def test_bad_inputs_are_skipped(self, settings, temp_dir: Path):
        broken = temp_dir / "broken.json"
        broken.write_text("[1, 2", encoding="utf-8")
        out = temp_dir / "out"

        stats = run([broken, temp_dir / "absent.json"], replace(settings, output_dir=out))

        assert stats.graphs_loaded == 0
        assert stats.graphs_skipped == 2
        assert stats.written == 0
        assert out.is_dir()

    def test_write_failure_is_counted(self, sample_graph, settings, temp_dir: Path):
        src = _dump(sample_graph, temp_dir / "graph.json")
        out = temp_dir / "out"
        (out / "file-src-a-ts.md").mkdir(parents=True)

        stats = run([src], replace(settings, output_dir=out))

        assert stats.failed == 1
        assert stats.written == 8

    def test_uncreatable_output_dir(self, sample_graph, settings, temp_dir: Path):
        blocker = temp_dir / "blocker"
        blocker.write_text("", encoding="utf-8")

        with pytest.raises(OutputDirError):
            run([], replace(settings, output_dir=blocker / "data"))

    def test_callbacks(self, sample_graph, settings, temp_dir: Path):
        src = _dump(sample_graph, temp_dir / "graph.json")
        seen = {"phase1": 0, "written": 0}

        def on_phase1_done(site):
            seen["phase1"] = len(site.slugs)

        def on_written(_doc):
            seen["written"] += 1

        run(
            [src],
            replace(settings, output_dir=temp_dir / "out"),
            on_phase1_done=on_phase1_done,
            on_written=on_written,
        )
        assert seen == {"phase1": 9, "written": 9}
