"""Pytest configuration and fixtures for graph2md tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Any, Generator, List, Optional

import pytest

from graph2md.config import Settings
from graph2md.context import RenderContext
from graph2md.models import Graph, Node, Relationship
from graph2md.pipeline import build_site_index


class GraphBuilder:
    """Small fluent helper for building graphs in tests."""

    def __init__(self) -> None:
        self.nodes: List[Node] = []
        self.relationships: List[Relationship] = []

    def node(self, node_id: str, *labels: str, **props: Any) -> "GraphBuilder":
        self.nodes.append(Node(id=node_id, labels=tuple(labels), properties=dict(props)))
        return self

    def file(self, node_id: str, path: str, **props: Any) -> "GraphBuilder":
        props.setdefault("name", path.rsplit("/", 1)[-1])
        return self.node(node_id, "File", path=path, **props)

    def function(self, node_id: str, name: str, file_path: Optional[str] = None, **props: Any) -> "GraphBuilder":
        if file_path:
            props["filePath"] = file_path
        return self.node(node_id, "Function", name=name, **props)

    def cls(self, node_id: str, name: str, file_path: Optional[str] = None, **props: Any) -> "GraphBuilder":
        if file_path:
            props["filePath"] = file_path
        return self.node(node_id, "Class", name=name, **props)

    def rel(self, rel_type: str, start: str, end: str) -> "GraphBuilder":
        rel_id = f"r{len(self.relationships) + 1}"
        self.relationships.append(
            Relationship(id=rel_id, type=rel_type, start_node=start, end_node=end)
        )
        return self

    def build(self) -> Graph:
        return Graph(nodes=list(self.nodes), relationships=list(self.relationships))


@pytest.fixture
def builder() -> GraphBuilder:
    return GraphBuilder()


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture(autouse=True)
def isolated_config(temp_dir: Path, monkeypatch) -> Path:
    """Point the config home at a temp dir and clear GRAPH2MD_* variables."""
    home = temp_dir / "home"
    monkeypatch.setattr("graph2md.config.BASE_DIR", home)
    monkeypatch.setattr("graph2md.config.CONFIG_FILE", home / "config.toml")
    for name in (
        "GRAPH2MD_REPO_NAME",
        "GRAPH2MD_REPO_URL",
        "GRAPH2MD_SOURCE_TEMPLATE",
        "GRAPH2MD_OUTPUT_DIR",
    ):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def settings() -> Settings:
    return Settings(repo_name="acme", repo_url="https://github.com/acme/acme")


@pytest.fixture
def sample_graph(builder: GraphBuilder) -> Graph:
    """A small TypeScript service: two files, a class with a method, a domain tree."""
    return (
        builder
        .file("F1", "src/a.ts", language="typescript")
        .file("F2", "src/b.ts", language="typescript")
        .function("fn1", "run", "src/a.ts", startLine=3, endLine=12)
        .function("fn2", "helper", "src/b.ts", startLine=1, endLine=4)
        .cls("c1", "AuthManager", "src/b.ts", startLine=6, endLine=30)
        .function("m1", "login", "src/b.ts")
        .node("d1", "Domain", name="Auth", description="Authentication and sessions.")
        .node("s1", "Subdomain", name="Tokens")
        .node("dir1", "Directory", name="src", path="src")
        .rel("IMPORTS", "F1", "F2")
        .rel("DEFINES_FUNCTION", "F1", "fn1")
        .rel("DEFINES_FUNCTION", "F2", "fn2")
        .rel("DECLARES_CLASS", "F2", "c1")
        .rel("DEFINES_FUNCTION", "c1", "m1")
        .rel("calls", "fn1", "fn2")
        .rel("belongsTo", "m1", "d1")
        .rel("belongsTo", "fn2", "s1")
        .rel("partOf", "s1", "d1")
        .rel("CONTAINS_FILE", "dir1", "F1")
        .rel("CONTAINS_FILE", "dir1", "F2")
        .build()
    )


@pytest.fixture
def make_context(settings: Settings):
    """Run phase 1 over graphs and wrap the result for rendering."""

    def _make(*graphs: Graph, render_settings: Optional[Settings] = None) -> RenderContext:
        site = build_site_index(graphs)
        return RenderContext(site=site, settings=render_settings or settings)

    return _make
