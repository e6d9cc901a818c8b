"""Multi-strategy file discovery: name, content, symbol and dependency matches, ranked."""

from __future__ import annotations

import asyncio
import posixpath
import re

from wavepulse.config.constants import (
    CONTENT_MATCH_LIMIT,
    DECLARATION_EXTENSIONS,
    DEPENDENCY_SEED_FILES,
    IMPORTS_PER_FILE,
    MAX_DISCOVERED_FILES,
    NAME_MATCH_LIMIT,
    SOURCE_EXTENSIONS,
    SYMBOL_MATCH_LIMIT,
)
from wavepulse.models.domain import FileMatch
from wavepulse.observability.logger import get_logger
from wavepulse.query.keywords import extract_keywords, extract_name_patterns, extract_symbols
from wavepulse.tools.file_system import FileSystemTools

logger = get_logger("file_discovery")

SYMBOL_CONFIDENCE = 0.9
DEPENDENCY_CONFIDENCE = 0.7
_DECLARATION_KINDS = ("class", "interface", "type")
_IMPORT = re.compile(r"import\s+[\s\S]*?\s+from\s+['\"](.+?)['\"]")
_SCOPED_PACKAGE = "@wavemaker/"


def name_confidence(pattern: str, path: str) -> float:
    lowered_path = path.lower()
    lowered = pattern.lower()
    if lowered in lowered_path:
        return 0.9
    words = [w for w in re.split(r"[-_]", lowered) if w]
    if not words:
        return 0.0
    hits = sum(1 for w in words if w in lowered_path)
    return hits / len(words) * 0.7


def content_confidence(keyword: str, path: str) -> float:
    return 0.8 if keyword.lower() in path.lower() else 0.6


def path_context(path: str) -> str:
    parts = path.rstrip("/").split("/")
    directory = parts[-2] if len(parts) > 1 else ""
    return f"{directory}/{parts[-1]}"


def extract_imports(source: str) -> list[str]:
    return _IMPORT.findall(source)


def resolve_import(import_path: str, from_file: str, base_path: str) -> str | None:
    """Map an import specifier to a file path; bare third-party imports resolve to None."""
    if import_path.startswith("."):
        resolved = posixpath.normpath(posixpath.join(posixpath.dirname(from_file), import_path))
    elif import_path.startswith(_SCOPED_PACKAGE):
        rest = "/".join(import_path.split("/")[2:])
        if not rest:
            return None
        resolved = f"{base_path.rstrip('/')}/src/{rest}"
    else:
        return None
    if resolved.endswith((".ts", ".tsx")):
        return resolved
    return f"{resolved}.ts"


def rank_matches(matches: list[FileMatch], limit: int = MAX_DISCOVERED_FILES) -> list[FileMatch]:
    """Deduplicate by path (first occurrence wins), sort by confidence, truncate."""
    unique: dict[str, FileMatch] = {}
    for match in matches:
        unique.setdefault(match.path, match)
    return sorted(unique.values(), key=lambda m: m.confidence, reverse=True)[:limit]


class FileDiscoveryEngine:
    def __init__(self, fs: FileSystemTools) -> None:
        self._fs = fs

    async def discover(
        self, query: str, domain_tags: list[str] | tuple[str, ...], base_path: str
    ) -> list[FileMatch]:
        keywords = extract_keywords(query)

        # 1. Independent strategies
        by_name, by_content, by_symbol = await asyncio.gather(
            self.find_by_name(query, base_path, keywords),
            self.find_by_content(keywords, base_path),
            self.find_by_symbol(query, base_path),
        )

        # 2. Dependencies of the first name matches
        by_dependency = await self.find_by_dependency(by_name, base_path)

        ranked = rank_matches(by_name + by_content + by_symbol + by_dependency)
        logger.info(
            "files_discovered",
            domains=list(domain_tags),
            name=len(by_name),
            content=len(by_content),
            symbol=len(by_symbol),
            dependency=len(by_dependency),
            ranked=len(ranked),
        )
        return ranked

    async def _lookup(self, call, label: str) -> list[str]:
        """Run one bounded lookup; any failure contributes no files."""
        try:
            result = await call
        except Exception as e:
            logger.warning("discovery_lookup_failed", lookup=label, error=str(e))
            return []
        if not result.success:
            logger.debug("discovery_lookup_empty", lookup=label, error=result.error)
            return []
        return list(result.data.get("files", []))

    async def find_by_name(
        self, query: str, base_path: str, keywords: list[str] | None = None
    ) -> list[FileMatch]:
        matches = []
        for pattern in extract_name_patterns(query, keywords):
            files = await self._lookup(
                self._fs.find_files(f"*{pattern}*", base_path, limit=NAME_MATCH_LIMIT),
                f"name:{pattern}",
            )
            matches.extend(
                FileMatch(f, "name", name_confidence(pattern, f), path_context(f)) for f in files
            )
        return matches

    async def find_by_content(self, keywords: list[str], base_path: str) -> list[FileMatch]:
        matches = []
        for keyword in keywords:
            files = await self._lookup(
                self._fs.grep_files(
                    keyword, base_path, include=SOURCE_EXTENSIONS, limit=CONTENT_MATCH_LIMIT
                ),
                f"content:{keyword}",
            )
            matches.extend(
                FileMatch(f, "content", content_confidence(keyword, f), path_context(f))
                for f in files
            )
        return matches

    async def find_by_symbol(self, query: str, base_path: str) -> list[FileMatch]:
        matches = []
        for symbol in extract_symbols(query):
            for kind in _DECLARATION_KINDS:
                files = await self._lookup(
                    self._fs.grep_files(
                        f"{kind} {symbol}",
                        base_path,
                        include=DECLARATION_EXTENSIONS,
                        limit=SYMBOL_MATCH_LIMIT,
                        ignore_case=False,
                    ),
                    f"symbol:{kind} {symbol}",
                )
                matches.extend(
                    FileMatch(f, "symbol", SYMBOL_CONFIDENCE, path_context(f)) for f in files
                )
        return matches

    async def find_by_dependency(self, seeds: list[FileMatch], base_path: str) -> list[FileMatch]:
        matches = []
        for seed in seeds[:DEPENDENCY_SEED_FILES]:
            try:
                result = await self._fs.read_file(seed.path)
                if not result.success:
                    continue
                for import_path in extract_imports(result.output)[:IMPORTS_PER_FILE]:
                    resolved = resolve_import(import_path, seed.path, base_path)
                    if resolved and await self._fs.file_exists(resolved):
                        matches.append(
                            FileMatch(
                                resolved,
                                "dependency",
                                DEPENDENCY_CONFIDENCE,
                                f"Imported by {seed.path}",
                            )
                        )
            except Exception as e:
                logger.warning("dependency_trace_failed", file=seed.path, error=str(e))
        return matches
