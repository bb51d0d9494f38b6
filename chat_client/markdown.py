"""Regex-based markdown to display elements.

Supports headings (levels 1-3), bold spans, links, inline code and fenced
code blocks. Every pattern runs over the whole text; overlapping matches are
resolved by keeping the earliest-starting one. Inner text is not re-parsed,
so ``**`x`**`` renders as bold text containing literal backticks.
"""

import re
from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Text:
    text: str


@dataclass(frozen=True)
class LineBreak:
    pass


@dataclass(frozen=True)
class Heading:
    level: int
    text: str


@dataclass(frozen=True)
class Bold:
    text: str


@dataclass(frozen=True)
class Link:
    text: str
    href: str


@dataclass(frozen=True)
class InlineCode:
    text: str


@dataclass(frozen=True)
class CodeBlock:
    code: str
    language: str = ""


Element = Union[Text, LineBreak, Heading, Bold, Link, InlineCode, CodeBlock]

# Order matters: on equal start offsets the earlier pattern wins.
PATTERNS: list[tuple[str, re.Pattern]] = [
    ("heading3", re.compile(r"###\s+(.+?)(?=\n|\Z)")),
    ("heading2", re.compile(r"##\s+(.+?)(?=\n|\Z)")),
    ("heading1", re.compile(r"#\s+(.+?)(?=\n|\Z)")),
    ("bold", re.compile(r"\*\*(.+?)\*\*")),
    ("link", re.compile(r"\[(.+?)\]\((.+?)\)")),
    ("code", re.compile(r"`([^`]+)`")),
    ("codeblock", re.compile(r"```(\w*)\n([\s\S]+?)```")),
]


@dataclass
class _Span:
    kind: str
    start: int
    end: int
    match: re.Match

    def overlaps(self, other: "_Span") -> bool:
        return self.start < other.end and self.end > other.start


def _find_spans(text: str) -> list[_Span]:
    candidates = [
        _Span(kind, m.start(), m.end(), m)
        for kind, pattern in PATTERNS
        for m in pattern.finditer(text)
    ]
    # stable sort keeps pattern order for ties
    candidates.sort(key=lambda span: span.start)

    kept: list[_Span] = []
    for span in candidates:
        if not any(span.overlaps(other) for other in kept):
            kept.append(span)
    return kept


def _to_element(span: _Span) -> Element:
    m = span.match
    if span.kind.startswith("heading"):
        return Heading(level=int(span.kind[-1]), text=m.group(1))
    if span.kind == "bold":
        return Bold(m.group(1))
    if span.kind == "link":
        return Link(text=m.group(1), href=m.group(2))
    if span.kind == "code":
        return InlineCode(m.group(1))
    return CodeBlock(code=m.group(2), language=m.group(1) or "")


def split_by_newlines(text: str) -> list[Element]:
    """Plain text as Text segments separated by LineBreaks; blank lines only break."""
    lines = text.split("\n")
    elements: list[Element] = []
    for index, line in enumerate(lines):
        if line.strip():
            elements.append(Text(line))
        if index < len(lines) - 1:
            elements.append(LineBreak())
    return elements


def render_markdown(text: Optional[str]) -> list[Element]:
    """Convert text into display elements. Empty input yields no elements."""
    if not text:
        return []
    text = text.replace("\r\n", "\n")

    elements: list[Element] = []
    position = 0
    for span in _find_spans(text):
        if span.start > position:
            elements.extend(split_by_newlines(text[position:span.start]))
        elements.append(_to_element(span))
        position = span.end

    if position < len(text):
        elements.extend(split_by_newlines(text[position:]))
    return elements


def to_terminal(elements: list[Element]) -> str:
    """Render elements as plain terminal text."""
    out = []
    for element in elements:
        if isinstance(element, Text):
            out.append(element.text)
        elif isinstance(element, LineBreak):
            out.append("\n")
        elif isinstance(element, Heading):
            out.append(element.text.upper() if element.level == 1 else element.text)
        elif isinstance(element, Bold):
            out.append(f"*{element.text}*")
        elif isinstance(element, Link):
            out.append(f"{element.text} <{element.href}>")
        elif isinstance(element, InlineCode):
            out.append(f"`{element.text}`")
        elif isinstance(element, CodeBlock):
            header = f"[{element.language}]\n" if element.language else ""
            out.append(f"\n{header}{element.code}\n")
    return "".join(out)
