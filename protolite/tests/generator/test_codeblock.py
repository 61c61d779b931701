"""Tests for the source builder"""

from pytest import raises

from protolite.generator.codeblock import CodeBlock


def describe_code_block():
    def indents_control_flow(expect):
        block = CodeBlock()
        block.begin_control_flow("if x")
        block.add("y = 1")
        block.next_control_flow("else")
        block.add("y = 2")
        block.end_control_flow()

        expect(block.render()) == "if x:\n    y = 1\nelse:\n    y = 2"

    def keeps_blank_lines_unindented(expect):
        block = CodeBlock().begin_control_flow("class A").add("a = 1").add().add("b = 2")
        block.end_control_flow()

        expect(str(block)) == "class A:\n    a = 1\n\n    b = 2"

    def nests_blocks_at_the_current_level(expect):
        inner = CodeBlock().begin_control_flow("def f(self)").add("return 1").end_control_flow()
        outer = CodeBlock().begin_control_flow("class A").add_block(inner).end_control_flow()

        expect(outer.render()) == "class A:\n    def f(self):\n        return 1"

    def splits_multi_line_text(expect):
        block = CodeBlock().begin_control_flow("def f()").add("a = (\n    1\n)")
        block.end_control_flow()

        expect(block.render()) == "def f():\n    a = (\n        1\n    )"

    def writes_docstrings(expect):
        expect(CodeBlock().add_docstring("One line.").render()) == '"""One line."""'
        expect(CodeBlock().add_docstring("First.\nSecond.").render()) == (
            '"""First.\nSecond.\n"""'
        )
        expect(bool(CodeBlock().add_docstring(None))) == False

    def rejects_unbalanced_flow(expect):
        with raises(ValueError):
            CodeBlock().end_control_flow()
        with raises(ValueError):
            CodeBlock().begin_control_flow("if x").render()
