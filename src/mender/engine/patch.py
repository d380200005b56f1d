"""unified diffの解析・整形・適用。

git形式（diff --git a/<path> b/<path>）および素の ---/+++ 形式に対応する。
適用は各ハンクを宣言された行から探し始め、前後に向かってコンテキストが
完全一致する位置を探す。曖昧一致（fuzz）は行わない。
"""

import logging
import re

from mender.models.errors import DiffParseError, PatchApplyError
from mender.models.patch import FilePatch, Hunk
from mender.models.solution import PatchOutcome

LOG = logging.getLogger(__name__)

_HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_lines>\d+))?"
    r" \+(?P<new_start>\d+)(?:,(?P<new_lines>\d+))?"
    r" @@(?P<section>.*)$"
)

_SECTION_STARTS = ("diff --git ", "Index: ")


def _parse_file_name(line: str, prefix: str) -> str:
    # タイムスタンプはタブ区切りで付与される
    name = line[len(prefix) :].split("\t", 1)[0].strip()
    if len(name) >= 2 and name.startswith('"') and name.endswith('"'):
        name = name[1:-1]
    return name


def _parse_hunk(lines: list[str], start: int) -> tuple[Hunk, int]:
    header = lines[start]
    match = _HUNK_HEADER_RE.match(header)
    if match is None:
        raise DiffParseError(f"Malformed hunk header: {header!r}")

    old_lines = int(match.group("old_lines")) if match.group("old_lines") is not None else 1
    new_lines = int(match.group("new_lines")) if match.group("new_lines") is not None else 1
    hunk = Hunk(
        old_start=int(match.group("old_start")),
        old_lines=old_lines,
        new_start=int(match.group("new_start")),
        new_lines=new_lines,
        section=match.group("section").strip(),
    )

    removed = added = 0
    i = start + 1
    while i < len(lines):
        line = lines[i]
        wanted = removed < old_lines or added < new_lines
        if line.startswith("\\"):
            hunk.lines.append(line)
            i += 1
            continue
        if not wanted:
            break
        if line == "":
            # 末尾の空白が削られた空のコンテキスト行
            line = " "
        marker = line[0]
        if marker not in (" ", "-", "+"):
            break
        if marker in (" ", "-"):
            removed += 1
        if marker in (" ", "+"):
            added += 1
        hunk.lines.append(line)
        i += 1

    if removed != old_lines or added != new_lines:
        LOG.debug(
            "Hunk %r declares -%d/+%d lines but contains -%d/+%d",
            header,
            old_lines,
            new_lines,
            removed,
            added,
        )
    return hunk, i


def parse_patch(text: str) -> list[FilePatch]:
    """unified diffを解析し、ファイルごとのパッチに分割する。

    Raises:
        DiffParseError: ハンクヘッダーが不正な場合。
    """
    lines = text.splitlines()
    patches: list[FilePatch] = []
    current: FilePatch | None = None

    def start_new() -> FilePatch:
        patch = FilePatch()
        patches.append(patch)
        return patch

    i = 0
    while i < len(lines):
        line = lines[i]
        if line.startswith(_SECTION_STARTS):
            current = start_new()
            current.header.append(line)
        elif line.startswith("--- ") and i + 1 < len(lines) and lines[i + 1].startswith("+++ "):
            if current is None or current.old_name is not None or current.hunks:
                current = start_new()
            current.old_name = _parse_file_name(line, "--- ")
            current.new_name = _parse_file_name(lines[i + 1], "+++ ")
            i += 2
            continue
        elif line.startswith("@@"):
            if current is None:
                current = start_new()
            hunk, i = _parse_hunk(lines, i)
            current.hunks.append(hunk)
            continue
        elif current is not None and not current.hunks:
            # index, mode, rename などのメタデータ行
            current.header.append(line)
        i += 1

    return patches


def format_patch(patch: FilePatch) -> str:
    """1ファイル分のパッチをgit形式のunified diffに整形する。"""
    old_name = patch.old_name or "/dev/null"
    new_name = patch.new_name or "/dev/null"
    old_path = patch.old_path or patch.new_path or "unknown"
    new_path = patch.new_path or patch.old_path or "unknown"

    output = [f"diff --git a/{old_path} b/{new_path}", f"--- {old_name}", f"+++ {new_name}"]
    for hunk in patch.hunks:
        section = f" {hunk.section}" if hunk.section else ""
        output.append(f"@@ -{hunk.old_start},{hunk.old_lines} +{hunk.new_start},{hunk.new_lines} @@{section}")
        output.extend(hunk.lines)
    return "\n".join(output) + "\n"


def _find_position(work: list[str], expected: list[str], start: int, lower: int) -> int | None:
    """expectedが完全一致する位置を、startから前後交互に探す。"""
    upper = len(work) - len(expected)
    if upper < lower:
        return None
    start = min(max(start, lower), upper)
    for distance in range(0, max(start - lower, upper - start) + 1):
        for pos in (start + distance, start - distance) if distance else (start,):
            if lower <= pos <= upper and work[pos : pos + len(expected)] == expected:
                return pos
    return None


def apply_patch(source: str, patch: str | FilePatch) -> str | None:
    """1ファイル分のパッチを適用する。

    Args:
        source: 現在のファイル内容。
        patch: unified diff文字列、または解析済みのパッチ。

    Returns:
        適用後の内容。コンテキストが一致しない場合はNone。

    Raises:
        DiffParseError: diffが解析できない、または複数ファイル分を含む場合。
    """
    if isinstance(patch, str):
        parsed = parse_patch(patch)
        if len(parsed) > 1:
            raise DiffParseError("apply_patch only works with a single file patch")
        if not parsed:
            return source
        patch = parsed[0]

    eol = "\r\n" if "\r\n" in source else "\n"
    work = source.splitlines()
    ends_with_newline = source.endswith(("\n", "\r"))

    delta = 0
    lower = 0
    for hunk in patch.hunks:
        old_side = hunk.old_side()
        new_side = hunk.new_side()
        # old_linesが0のハンクは old_start の行の直後に挿入する
        expected = (hunk.old_start - 1 if hunk.old_lines else hunk.old_start) + delta
        pos = _find_position(work, old_side, expected, lower)
        if pos is None:
            return None

        if pos + len(old_side) == len(work):
            if hunk.new_missing_newline:
                ends_with_newline = False
            elif hunk.old_missing_newline:
                ends_with_newline = True

        work[pos : pos + len(old_side)] = new_side
        delta += (pos - expected) + len(new_side) - len(old_side)
        lower = pos + len(new_side)

    if not work:
        return ""
    return eol.join(work) + (eol if ends_with_newline else "")


def apply_diff(original: str, diff_text: str, uri: str = "") -> PatchOutcome:
    """diffを適用して提案内容を生成する。例外は送出しない。

    適用できない場合はdiffテキストそのものを内容として返し、エラーとして記録する。
    """
    try:
        computed = apply_patch(original, diff_text)
        reason = "patch context does not match the current content"
    except DiffParseError as e:
        computed = None
        reason = str(e)

    if computed is None:
        error = PatchApplyError(uri or "<unknown>", reason)
        LOG.error("%s\nSolution diff:\n%s", error, diff_text)
        return PatchOutcome(content=diff_text, applied=False, error=str(error))
    return PatchOutcome(content=computed, applied=True)
