"""Search/replace editing with existence checks and post-condition verification.

An edit runs in four phases:

1. the file path is normalized, since paths handed over by the model are often
   serialized more than once (quoted, escaped, JSON-encoded);
2. the file is confirmed to exist, using ``ls`` as a second opinion when the
   ``[ -f ]`` test over the remote channel says it does not;
3. ``sed`` writes the edited text to a staged sibling file;
4. the staged text is verified (search text gone, replacement present, no
   attribute duplicated on a line) and only then moved over the original.
"""

from __future__ import annotations

import json
import posixpath
import re
import shlex
import time
from dataclasses import dataclass

from wavepulse.exceptions import CommandExecutionError
from wavepulse.models.domain import ToolResult
from wavepulse.observability.logger import get_logger
from wavepulse.protocols.executor import CommandExecutor
from wavepulse.tools.command_executor import decode_output

logger = get_logger("file_edit")

_QUOTES = "\"'"
_MAX_UNWRAP_DEPTH = 8
_TRAILING_ESCAPED_NEWLINES = re.compile(r"(?:\\+n)+$")
_PERMISSION_BITS = re.compile(r"^[-dl][rwxsStT-]{9}")
_LS_ERROR_TOKENS = ("not found", "no such file", "cannot access", "notfound")
_SED_ERROR_TOKENS = ("can't read", "no such file", "sed:")
_ATTRIBUTE = re.compile(r'([\w-]+)="[^"]*"')


def normalize_file_path(raw: str) -> str:
    """Peel quoting, escaping and JSON encoding layers off a file path."""
    path = raw
    for _ in range(_MAX_UNWRAP_DEPTH):
        previous = path
        path = _TRAILING_ESCAPED_NEWLINES.sub("", path.strip())
        if len(path) >= 2 and path[0] in _QUOTES and path[-1] == path[0]:
            if path[0] == '"':
                try:
                    decoded = json.loads(path)
                except ValueError:
                    decoded = None
                if isinstance(decoded, str):
                    path = decoded
                    continue
            path = path[1:-1]
        else:
            path = path.replace('\\"', '"').replace("\\'", "'").strip(_QUOTES)
        if path == previous:
            break
    return path.strip()


@dataclass(frozen=True)
class EditPaths:
    check_path: str
    command_path: str
    uses_working_dir: bool


def resolve_edit_paths(path: str, working_dir: str | None) -> EditPaths:
    if working_dir and not path.startswith("/"):
        check = posixpath.join(working_dir.rstrip("/") or "/", path)
        return EditPaths(check_path=check, command_path=path, uses_working_dir=True)
    return EditPaths(check_path=path, command_path=path, uses_working_dir=False)


def escape_sed_pattern(text: str) -> str:
    return re.sub(r"([\\/.*\[\]^$])", r"\\\1", text).replace("\n", "\\n")


def escape_sed_replacement(text: str) -> str:
    return re.sub(r"([\\/&])", r"\\\1", text).replace("\n", "\\n")


def ls_confirms_file(ls_output: str, path: str) -> bool:
    line = decode_output(ls_output).strip()
    lowered = line.lower()
    if not _PERMISSION_BITS.match(line):
        return False
    if any(token in lowered for token in _LS_ERROR_TOKENS):
        return False
    return posixpath.basename(path) in line or path in line


def find_duplicate_attribute(content: str, replace_text: str) -> tuple[str, list[str]] | None:
    """Return ``(attribute, offending lines)`` if the replacement's attribute now repeats on a line."""
    names = list(dict.fromkeys(_ATTRIBUTE.findall(replace_text)))
    for name in names:
        occurrence = rf'(?<![\w-]){re.escape(name)}="[^"]*"'
        if len(re.findall(occurrence, content)) <= 1:
            continue
        same_line = re.compile(f"{occurrence}.*{occurrence}")
        lines = [
            f"{number}:{line.strip()}"
            for number, line in enumerate(content.splitlines(), start=1)
            if same_line.search(line)
        ]
        if lines:
            return name, lines
    return None


class FileEditVerifier:
    def __init__(self, executor: CommandExecutor) -> None:
        self._executor = executor

    async def edit(
        self,
        file_path: str,
        search_text: str,
        replace_text: str,
        working_dir: str | None = None,
    ) -> ToolResult:
        clean_path = normalize_file_path(file_path)
        if not clean_path:
            return ToolResult(False, error=f'Invalid file path "{file_path}"')
        if not search_text:
            return ToolResult(False, error="Search text must not be empty")

        paths = resolve_edit_paths(clean_path, working_dir)
        command_dir = working_dir if paths.uses_working_dir else None
        staged_path = f"{paths.command_path}.tmp.{int(time.time() * 1000)}"

        try:
            exists, ls_output = await self._confirm_exists(paths.check_path)
            if not exists:
                logger.warning("edit_file_missing", raw_path=file_path, clean_path=clean_path)
                return ToolResult(
                    False,
                    error=(
                        f'File "{file_path}" not found. Cleaned path: "{clean_path}". '
                        f'Checked: "{paths.check_path}". LS output: {ls_output.strip() or "(empty)"}'
                    ),
                )

            sed_command = self._sed_command(paths.command_path, staged_path, search_text, replace_text)
            sed_output = decode_output(await self._executor.execute(sed_command, command_dir))
            if any(token in sed_output.lower() for token in _SED_ERROR_TOKENS):
                await self._discard(staged_path, command_dir)
                return ToolResult(False, error=f"sed failed: {sed_output.strip()[:500]}")

            staged = decode_output(
                await self._executor.execute(f"cat {shlex.quote(staged_path)} 2>&1", command_dir)
            )
            if staged.startswith("cat: "):
                await self._discard(staged_path, command_dir)
                return ToolResult(False, error=f"Could not read edited file: {staged.strip()[:500]}")

            failure = self._verify(staged, search_text, replace_text, clean_path)
            if failure is not None:
                await self._discard(staged_path, command_dir)
                return failure

            mv_output = decode_output(
                await self._executor.execute(
                    f"mv {shlex.quote(staged_path)} {shlex.quote(paths.command_path)}", command_dir
                )
            )
            if mv_output.strip():
                return ToolResult(False, error=f"Could not replace file: {mv_output.strip()[:500]}")
        except CommandExecutionError as e:
            logger.error("edit_file_command_failed", path=clean_path, error=str(e))
            return ToolResult(False, error=f"Command failed while editing {clean_path}: {e}")

        already_applied = search_text not in staged and not self._replacement_present(
            staged, replace_text
        )
        logger.info("file_edited", path=clean_path, already_applied=already_applied)
        message = (
            f"No occurrences left in {clean_path}; the change appears to be applied already"
            if already_applied
            else f"Successfully edited {clean_path}"
        )
        return ToolResult(True, output=message, data={"path": clean_path})

    async def _confirm_exists(self, check_path: str) -> tuple[bool, str]:
        quoted = shlex.quote(check_path)
        status = await self._executor.execute(
            f"[ -f {quoted} ] && echo exists || echo notfound"
        )
        if decode_output(status).strip() == "exists":
            return True, status
        ls_output = await self._executor.execute(f"ls -la {quoted} 2>&1 | head -1 || echo notfound")
        return ls_confirms_file(ls_output, check_path), ls_output

    @staticmethod
    def _sed_command(path: str, staged_path: str, search_text: str, replace_text: str) -> str:
        script = f"s/{escape_sed_pattern(search_text)}/{escape_sed_replacement(replace_text)}/g"
        flags = "-z " if "\n" in search_text else ""
        return (
            f"sed {flags}-e {shlex.quote(script)} {shlex.quote(path)} "
            f"> {shlex.quote(staged_path)}"
        )

    @staticmethod
    def _replacement_present(content: str, replace_text: str) -> bool:
        return bool(replace_text) and replace_text in content

    def _verify(
        self, content: str, search_text: str, replace_text: str, path: str
    ) -> ToolResult | None:
        replaced = self._replacement_present(content, replace_text)
        if search_text in content and not replaced:
            return ToolResult(
                False,
                error=(
                    f"Search text not found in {path}, no replacement made. Read the file "
                    "and copy the exact text to replace, including whitespace."
                ),
            )
        if not replaced:
            return None

        duplicate = find_duplicate_attribute(content, replace_text)
        if duplicate is None:
            return None
        attribute, lines = duplicate
        logger.warning("duplicate_attribute_detected", path=path, attribute=attribute)
        return ToolResult(
            False,
            error=(
                f'Duplicate attribute detected: "{attribute}" appears multiple times on the '
                f"same line in {path}. Lines: {'; '.join(lines[:5])}. Search for the EXISTING "
                f'{attribute}="..." pattern and replace only that attribute value, '
                "not add a new one."
            ),
            data={"attribute": attribute, "lines": lines[:5]},
        )

    async def _discard(self, staged_path: str, working_dir: str | None) -> None:
        try:
            await self._executor.execute(f"rm -f {shlex.quote(staged_path)}", working_dir)
        except CommandExecutionError as e:
            logger.warning("staged_file_cleanup_failed", path=staged_path, error=str(e))
