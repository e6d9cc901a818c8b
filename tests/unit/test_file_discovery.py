"""Tests for multi-strategy file discovery and ranking."""

import pytest

from wavepulse.discovery.file_discovery import (
    FileDiscoveryEngine,
    extract_imports,
    name_confidence,
    path_context,
    rank_matches,
    resolve_import,
)
from wavepulse.models.domain import FileMatch
from wavepulse.tools.file_system import FileSystemTools


class ExplodingFS:
    """Every lookup raises, as a broken channel or tool bug would."""

    async def find_files(self, *args, **kwargs):
        raise RuntimeError("find exploded")

    async def grep_files(self, *args, **kwargs):
        raise RuntimeError("grep exploded")

    async def read_file(self, *args, **kwargs):
        raise RuntimeError("cat exploded")

    async def file_exists(self, *args, **kwargs):
        raise RuntimeError("test exploded")


def test_name_confidence():
    assert name_confidence("button", "/lib/components/button/button.tsx") == 0.9
    assert name_confidence("text-area", "/lib/textarea.tsx") == pytest.approx(0.7)
    assert name_confidence("text-field", "/lib/textarea.tsx") == pytest.approx(0.35)
    assert name_confidence("---", "/lib/x.ts") == 0.0


def test_path_context_is_parent_and_name():
    assert path_context("/lib/core/base.component.tsx") == "core/base.component.tsx"
    assert path_context("file.ts") == "/file.ts"


def test_extract_imports_handles_multiline_specifiers():
    source = "import {\n  A,\n  B\n} from './a';\nimport React from \"react\";\n"
    assert extract_imports(source) == ["./a", "react"]


def test_resolve_import():
    base = "/lib/runtime"
    assert resolve_import("./props.provider", "/lib/runtime/core/base.tsx", base) == (
        "/lib/runtime/core/props.provider.ts"
    )
    assert resolve_import("../core/base.component.tsx", "/lib/runtime/x/y.ts", base) == (
        "/lib/runtime/core/base.component.tsx"
    )
    assert resolve_import("@wavemaker/app-rn-runtime/core/tappable", "/any.ts", base) == (
        "/lib/runtime/src/core/tappable.ts"
    )
    assert resolve_import("@wavemaker/app-rn-runtime", "/any.ts", base) is None
    assert resolve_import("react-native", "/any.ts", base) is None


def test_rank_matches_dedupes_sorts_and_bounds():
    matches = [FileMatch("/a.ts", "content", 0.6, "a")]
    matches.append(FileMatch("/a.ts", "symbol", 0.9, "a"))
    matches.extend(FileMatch(f"/f{i}.ts", "name", i / 100, "f") for i in range(40))

    ranked = rank_matches(matches)

    assert len(ranked) == 30
    assert len({m.path for m in ranked}) == 30
    confidences = [m.confidence for m in ranked]
    assert confidences == sorted(confidences, reverse=True)
    first_a = next(m for m in ranked if m.path == "/a.ts")
    assert first_a.match_type == "content"
    assert first_a.confidence == 0.6


async def test_discover_finds_symbol_and_content_matches(local_fs, runtime_root):
    engine = FileDiscoveryEngine(local_fs)
    matches = await engine.discover("How does BaseComponent work?", ["base"], str(runtime_root))

    paths = [m.path for m in matches]
    assert str(runtime_root / "core" / "base.component.tsx") in paths
    assert str(runtime_root / "components" / "basic" / "button" / "button.tsx") in paths
    assert len(paths) == len(set(paths))


async def test_discover_traces_imports_of_name_matches(local_fs, runtime_root):
    engine = FileDiscoveryEngine(local_fs)
    matches = await engine.discover("Explain the base component", ["base"], str(runtime_root))

    provider = next(m for m in matches if m.path.endswith("props.provider.ts"))
    assert provider.match_type == "dependency"
    assert provider.confidence == 0.7
    assert provider.context == f"Imported by {runtime_root / 'core' / 'base.component.tsx'}"
    confidences = [m.confidence for m in matches]
    assert confidences == sorted(confidences, reverse=True)


async def test_discover_swallows_channel_failures(failing_executor):
    engine = FileDiscoveryEngine(FileSystemTools(failing_executor))
    assert await engine.discover("How does BaseComponent work?", ["base"], "/lib") == []


async def test_discover_swallows_unexpected_errors():
    engine = FileDiscoveryEngine(ExplodingFS())
    assert await engine.discover("How does WmButton render?", ["component"], "/lib") == []


async def test_discover_missing_base_path_yields_nothing(local_fs, tmp_path):
    engine = FileDiscoveryEngine(local_fs)
    assert await engine.discover("How does BaseComponent work?", [], str(tmp_path / "absent")) == []
