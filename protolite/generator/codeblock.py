"""Indentation-aware builder for Python source."""

from typing import Self

INDENT = "    "


class CodeBlock:
    """Accumulates statements, tracking nesting through control flow calls.

    Example:
        block = CodeBlock()
        block.begin_control_flow("if x")
        block.add("y = 1")
        block.end_control_flow()
        block.render()  # 'if x:\\n    y = 1'
    """

    def __init__(self) -> None:
        self._lines: list[tuple[int, str]] = []
        self._level = 0

    def __bool__(self) -> bool:
        return bool(self._lines)

    def add(self, text: str = "") -> Self:
        """Add one or more lines at the current indentation."""
        if not text:
            self._lines.append((0, ""))
            return self
        for line in text.split("\n"):
            self._lines.append((self._level if line else 0, line))
        return self

    def begin_control_flow(self, statement: str) -> Self:
        self.add(f"{statement}:")
        self._level += 1
        return self

    def next_control_flow(self, statement: str) -> Self:
        self._level -= 1
        return self.begin_control_flow(statement)

    def end_control_flow(self) -> Self:
        if self._level == 0:
            raise ValueError("end_control_flow() without begin_control_flow()")
        self._level -= 1
        return self

    def add_block(self, block: "CodeBlock") -> Self:
        """Nest another block at the current indentation."""
        for level, line in block._lines:
            self._lines.append((self._level + level if line else 0, line))
        return self

    def add_docstring(self, text: str | None) -> Self:
        """Add ``text`` (already sanitized) as a docstring; no-op for None."""
        if not text:
            return self
        lines = text.split("\n")
        if len(lines) == 1:
            return self.add(f'"""{text}"""')
        self.add(f'"""{lines[0]}')
        for line in lines[1:]:
            self.add(line)
        return self.add('"""')

    def render(self) -> str:
        if self._level != 0:
            raise ValueError("Unbalanced control flow in code block")
        return "\n".join(INDENT * level + line for level, line in self._lines)

    def __str__(self) -> str:
        return self.render()
