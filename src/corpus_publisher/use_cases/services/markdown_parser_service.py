from __future__ import annotations

import re
from dataclasses import replace

from ...domain.errors import MalformedBlockError
from ...domain.models import Block, Link
from .inline_markup import extract_links, is_standalone_link, normalize_reference, unescape, visible_text

HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+|$)(.*)$")
CLOSING_HASHES_RE = re.compile(r"(?:^|[ \t]+)#+[ \t]*$")
SETEXT_RE = re.compile(r"^ {0,3}(=+|-+)[ \t]*$")
FENCE_OPEN_RE = re.compile(r"^( {0,3})(`{3,}|~{3,})(.*)$")
FENCE_CLOSE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})[ \t]*$")
FENCE_LABEL_RE = re.compile(r"^[\w+#.\-]+")
THEMATIC_BREAK_RE = re.compile(r"^ {0,3}(?:(?:\*[ \t]*){3,}|(?:-[ \t]*){3,}|(?:_[ \t]*){3,})$")
LIST_ITEM_RE = re.compile(r"^( {0,3})([-*+]|\d{1,9}[.)])(?:([ \t]+)(.*))?$")
QUOTE_RE = re.compile(r"^ {0,3}> ?(.*)$")
TABLE_DELIMITER_RE = re.compile(r"^ {0,3}\|?[ \t]*:?-+:?[ \t]*(?:\|[ \t]*:?-+:?[ \t]*)*\|?[ \t]*$")
REF_DEF_RE = re.compile(
    r"""^ {0,3}\[([^\]]+)\]:[ \t]*<?([^\s>]+)>?(?:[ \t]+(?:"[^"]*"|'[^']*'|\([^)]*\)))?[ \t]*$"""
)


def _indent_width(line: str) -> int:
    width = 0
    for ch in line:
        if ch == " ":
            width += 1
        elif ch == "\t":
            width += 4 - (width % 4)
        else:
            break
    return width


def _strip_indent(line: str, width: int) -> str:
    consumed = 0
    idx = 0
    while idx < len(line) and consumed < width:
        ch = line[idx]
        if ch == " ":
            consumed += 1
        elif ch == "\t":
            step = 4 - (consumed % 4)
            if consumed + step > width:
                break
            consumed += step
        else:
            break
        idx += 1
    return line[idx:]


def _split_row(line: str) -> list[str]:
    row = line.strip()
    if row.startswith("|"):
        row = row[1:]
    if row.endswith("|") and not row.endswith("\\|"):
        row = row[:-1]
    cells: list[str] = []
    buffer: list[str] = []
    code_run = 0
    idx = 0
    while idx < len(row):
        ch = row[idx]
        if ch == "\\" and idx + 1 < len(row) and row[idx + 1] == "|":
            buffer.append("|")
            idx += 2
            continue
        if ch == "`":
            run = len(row[idx:]) - len(row[idx:].lstrip("`"))
            if code_run == 0:
                code_run = run
            elif run == code_run:
                code_run = 0
            buffer.append("`" * run)
            idx += run
            continue
        if ch == "|" and code_run == 0:
            cells.append("".join(buffer).strip())
            buffer = []
            idx += 1
            continue
        buffer.append(ch)
        idx += 1
    cells.append("".join(buffer).strip())
    return cells


def _alignment(cell: str) -> str | None:
    cell = cell.strip()
    left = cell.startswith(":")
    right = cell.endswith(":")
    if left and right:
        return "center"
    if right:
        return "right"
    if left:
        return "left"
    return None


class MarkdownParserService:
    """Turns a Markdown/MDX body into an ordered sequence of blocks.

    Fenced examples are extracted verbatim and never interpreted. Headings are
    ranked 1..6 without enforcing strict nesting. An unterminated fence raises
    :class:`MalformedBlockError` and no partial result is returned.
    """

    def parse(self, body: str) -> list[Block]:
        lines = body.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        references = self.collect_references(lines)
        return self._parse_lines(lines, references, line_offset=0)

    @staticmethod
    def collect_references(lines: list[str]) -> dict[str, str]:
        references: dict[str, str] = {}
        fence: tuple[str, int] | None = None
        for line in lines:
            if fence is not None:
                if MarkdownParserService._closes_fence(line, fence):
                    fence = None
                continue
            opened = MarkdownParserService._opens_fence(line)
            if opened:
                fence = opened
                continue
            match = REF_DEF_RE.match(line)
            if match:
                references.setdefault(normalize_reference(match.group(1)), unescape(match.group(2)))
        return references

    @staticmethod
    def _closes_fence(line: str, fence: tuple[str, int]) -> bool:
        match = FENCE_CLOSE_RE.match(line)
        if not match:
            return False
        marker = match.group(1)
        return marker[0] == fence[0] and len(marker) >= fence[1]

    @staticmethod
    def _opens_fence(line: str) -> tuple[str, int] | None:
        match = FENCE_OPEN_RE.match(line)
        if not match:
            return None
        marker = match.group(2)
        if marker[0] == "`" and "`" in match.group(3):
            return None
        return marker[0], len(marker)

    def _starts_table(self, lines: list[str], idx: int) -> bool:
        if idx + 1 >= len(lines) or "|" not in lines[idx]:
            return False
        delimiter = lines[idx + 1]
        if not TABLE_DELIMITER_RE.match(delimiter) or "-" not in delimiter:
            return False
        if "|" not in delimiter and len(_split_row(lines[idx])) < 2:
            return False
        return len(_split_row(delimiter)) == len(_split_row(lines[idx]))

    def _starts_block(self, lines: list[str], idx: int) -> bool:
        line = lines[idx]
        return bool(
            self._opens_fence(line)
            or HEADING_RE.match(line)
            or THEMATIC_BREAK_RE.match(line)
            or QUOTE_RE.match(line)
            or REF_DEF_RE.match(line)
            or self._starts_table(lines, idx)
        )

    def _interrupts_paragraph(self, lines: list[str], idx: int) -> bool:
        if self._starts_block(lines, idx):
            return True
        match = LIST_ITEM_RE.match(lines[idx])
        if not match or not (match.group(4) or "").strip():
            return False
        marker = match.group(2)
        return not marker[0].isdigit() or marker[:-1] == "1"

    def _parse_lines(self, lines: list[str], references: dict[str, str], *, line_offset: int) -> list[Block]:
        blocks: list[Block] = []
        idx = 0
        while idx < len(lines):
            line = lines[idx]
            if not line.strip():
                idx += 1
                continue
            if self._opens_fence(line):
                block, idx = self._parse_fence(lines, idx, line_offset=line_offset)
                blocks.append(block)
                continue
            heading = HEADING_RE.match(line)
            if heading:
                content = CLOSING_HASHES_RE.sub("", heading.group(2).strip())
                blocks.append(self._heading(content, len(heading.group(1)), references, line_offset + idx + 1))
                idx += 1
                continue
            if THEMATIC_BREAK_RE.match(line) or REF_DEF_RE.match(line):
                idx += 1
                continue
            if self._starts_table(lines, idx):
                block, idx = self._parse_table(lines, idx, references, line_offset=line_offset)
                blocks.append(block)
                continue
            if LIST_ITEM_RE.match(line):
                block, idx = self._parse_list(lines, idx, references, line_offset=line_offset)
                blocks.append(block)
                continue
            if QUOTE_RE.match(line):
                quoted, idx = self._parse_quote(lines, idx, references, line_offset=line_offset)
                blocks.extend(quoted)
                continue
            block, idx = self._parse_paragraph(lines, idx, references, line_offset=line_offset)
            blocks.append(block)
        return blocks

    @staticmethod
    def _heading(content: str, level: int, references: dict[str, str], line: int) -> Block:
        return Block(
            block_type="heading",
            text=visible_text(content, references),
            source=content,
            heading_level=level,
            links=tuple(extract_links(content, references)),
            references=tuple(sorted(references.items())),
            line=line,
        )

    def _parse_fence(self, lines: list[str], start: int, *, line_offset: int) -> tuple[Block, int]:
        match = FENCE_OPEN_RE.match(lines[start])
        indent = len(match.group(1))
        marker = match.group(2)
        info = match.group(3).strip()
        label_match = FENCE_LABEL_RE.match(info)
        label = label_match.group(0) if label_match else None

        content: list[str] = []
        idx = start + 1
        while idx < len(lines):
            if self._closes_fence(lines[idx], (marker[0], len(marker))):
                text = "\n".join(content)
                block = Block(
                    block_type="fenced_example",
                    text=text,
                    source=text,
                    label=label,
                    line=line_offset + start + 1,
                )
                return block, idx + 1
            content.append(_strip_indent(lines[idx], indent))
            idx += 1
        raise MalformedBlockError(f"Unterminated fenced example opened with {marker!r}", line=line_offset + start + 1)

    def _parse_table(
        self,
        lines: list[str],
        start: int,
        references: dict[str, str],
        *,
        line_offset: int,
    ) -> tuple[Block, int]:
        columns = tuple(_split_row(lines[start]))
        alignments = tuple(_alignment(cell) for cell in _split_row(lines[start + 1]))
        rows: list[tuple[str, ...]] = []
        idx = start + 2
        while idx < len(lines):
            line = lines[idx]
            if not line.strip() or self._starts_block(lines, idx) or LIST_ITEM_RE.match(line):
                break
            cells = _split_row(line)[: len(columns)]
            cells += [""] * (len(columns) - len(cells))
            rows.append(tuple(cells))
            idx += 1

        all_cells = [*columns, *(cell for row in rows for cell in row)]
        links: list[Link] = []
        for cell in all_cells:
            links.extend(extract_links(cell, references))
        text = "\n".join(
            " | ".join(visible_text(cell, references) for cell in row) for row in [columns, *rows]
        )
        block = Block(
            block_type="table",
            text=text,
            source="\n".join(lines[start:idx]),
            columns=columns,
            rows=tuple(rows),
            alignments=alignments,
            links=tuple(links),
            references=tuple(sorted(references.items())),
            line=line_offset + start + 1,
        )
        return block, idx

    @staticmethod
    def _same_list(match: re.Match, ordered: bool, delimiter: str) -> bool:
        marker = match.group(2)
        if ordered:
            return marker[0].isdigit() and marker[-1] == delimiter
        return marker == delimiter

    def _parse_list(
        self,
        lines: list[str],
        start: int,
        references: dict[str, str],
        *,
        line_offset: int,
    ) -> tuple[Block, int]:
        first = LIST_ITEM_RE.match(lines[start])
        first_marker = first.group(2)
        ordered = first_marker[0].isdigit()
        delimiter = first_marker[-1]
        start_number = int(first_marker[:-1]) if ordered else None

        items: list[tuple[int, list[str]]] = []
        current: list[str] = []
        content_indent = 0
        fence: tuple[str, int] | None = None
        idx = start
        while idx < len(lines):
            line = lines[idx]
            if fence is not None:
                dedented = _strip_indent(line, content_indent)
                current.append(dedented)
                if self._closes_fence(dedented, fence):
                    fence = None
                idx += 1
                continue

            match = LIST_ITEM_RE.match(line)
            if match and (not items or len(match.group(1)) < content_indent):
                if THEMATIC_BREAK_RE.match(line) or not self._same_list(match, ordered, delimiter):
                    break
                content = match.group(4) or ""
                spaces = match.group(3) or ""
                if not content or len(spaces) > 4:
                    spaces = " "
                content_indent = len(match.group(1)) + len(match.group(2)) + len(spaces)
                current = [content]
                items.append((idx, current))
                fence = self._opens_fence(content)
                idx += 1
                continue

            if not line.strip():
                nxt = idx + 1
                while nxt < len(lines) and not lines[nxt].strip():
                    nxt += 1
                if nxt >= len(lines):
                    break
                following = lines[nxt]
                if _indent_width(following) >= content_indent:
                    current.append("")
                    idx += 1
                    continue
                sibling = LIST_ITEM_RE.match(following)
                if (
                    sibling
                    and len(sibling.group(1)) < content_indent
                    and not THEMATIC_BREAK_RE.match(following)
                    and self._same_list(sibling, ordered, delimiter)
                ):
                    idx += 1
                    continue
                break

            if _indent_width(line) >= content_indent:
                dedented = _strip_indent(line, content_indent)
                current.append(dedented)
                fence = self._opens_fence(dedented)
                idx += 1
                continue

            if current and current[-1].strip() and not self._interrupts_paragraph(lines, idx):
                current.append(line.strip())
                idx += 1
                continue
            break

        children: list[tuple[Block, ...]] = []
        texts: list[str] = []
        links: list[Link] = []
        for item_idx, content_lines in items:
            parsed = tuple(self._parse_lines(content_lines, references, line_offset=line_offset + item_idx))
            children.append(parsed)
            texts.append("\n".join(block.text for block in parsed))
            for block in parsed:
                links.extend(block.links)

        block = Block(
            block_type="list",
            text="\n".join(texts),
            source="\n".join(lines[start:idx]).rstrip("\n"),
            items=tuple(texts),
            ordered=ordered,
            start=start_number,
            links=tuple(links),
            children=tuple(children),
            line=line_offset + start + 1,
        )
        return block, idx

    def _parse_quote(
        self,
        lines: list[str],
        start: int,
        references: dict[str, str],
        *,
        line_offset: int,
    ) -> tuple[list[Block], int]:
        content: list[str] = []
        fence: tuple[str, int] | None = None
        idx = start
        while idx < len(lines):
            line = lines[idx]
            match = QUOTE_RE.match(line)
            if match:
                inner = match.group(1)
                if fence is not None:
                    if self._closes_fence(inner, fence):
                        fence = None
                else:
                    fence = self._opens_fence(inner)
                content.append(inner)
                idx += 1
                continue
            lazy = (
                fence is None
                and line.strip()
                and content
                and content[-1].strip()
                and not self._interrupts_paragraph(lines, idx)
            )
            if not lazy:
                break
            content.append(line.strip())
            idx += 1
        parsed = self._parse_lines(content, references, line_offset=line_offset + start)
        return [replace(block, quoted=True) for block in parsed], idx

    def _parse_paragraph(
        self,
        lines: list[str],
        start: int,
        references: dict[str, str],
        *,
        line_offset: int,
    ) -> tuple[Block, int]:
        collected = [lines[start].strip()]
        idx = start + 1
        while idx < len(lines):
            line = lines[idx]
            if not line.strip():
                break
            setext = SETEXT_RE.match(line)
            if setext:
                level = 1 if setext.group(1)[0] == "=" else 2
                content = "\n".join(collected)
                return self._heading(content, level, references, line_offset + start + 1), idx + 1
            if self._interrupts_paragraph(lines, idx):
                break
            collected.append(line.strip())
            idx += 1

        source = "\n".join(collected)
        links = tuple(extract_links(source, references))
        block_type = "paragraph"
        target = None
        if is_standalone_link(source, references):
            block_type = "link"
            target = links[0].target
        block = Block(
            block_type=block_type,
            text=visible_text(source, references),
            source=source,
            links=links,
            target=target,
            references=tuple(sorted(references.items())),
            line=line_offset + start + 1,
        )
        return block, idx


def plain_text(blocks: list[Block]) -> str:
    """Concatenate the visible text of ``blocks`` in reading order."""
    return "\n".join(block.text for block in blocks)
