"""Tests for the block model, Lua generation and Lua parsing."""

import json

import pytest

from luablocks.blocks import (
    BLOCK_TYPES, FIELDS, Block, ParseError, Workspace, decode_program,
    generate_lua, parse_lua,
)

NESTED_LUA = """\
thread.start(function()
  while true do
    pio.pin.sethigh(pio.GPIO2)
    tmr.delayms(500)
    pio.pin.setlow(pio.GPIO2)
    tmr.delayms(500)
  end
end)
"""


class TestGenerate:
    def test_empty_program(self):
        assert generate_lua([]) == ""

    def test_nested_blocks_are_indented(self):
        blocks = [
            Block("repeat", {"value": "3"}),
            Block("if", {"value": "x > 1"}),
            Block("print", {"value": "x"}),
            Block("else"),
            Block("set", {"name": "x", "value": "x + 1"}),
            Block("end"),
            Block("end"),
        ]

        assert generate_lua(blocks) == (
            "for _ = 1, 3 do\n"
            "  if x > 1 then\n"
            "    print(x)\n"
            "  else\n"
            "    x = x + 1\n"
            "  end\n"
            "end\n"
        )

    def test_stray_end_does_not_go_negative(self):
        assert generate_lua([Block("end"), Block("print", {"value": "1"})]) == "end\nprint(1)\n"

    def test_fields_follow_templates(self):
        assert FIELDS["set"] == ("name", "value")
        assert FIELDS["forever"] == ()
        assert set(FIELDS) == set(BLOCK_TYPES)


class TestParse:
    def test_thread_program(self):
        blocks = parse_lua(NESTED_LUA)

        assert [b.type for b in blocks] == [
            "thread", "forever", "pin_high", "wait", "pin_low", "wait", "end", "end_thread"]
        assert blocks[3].fields == {"value": "500"}

    def test_regenerates_same_text(self):
        assert generate_lua(parse_lua(NESTED_LUA)) == NESTED_LUA

    def test_comments_and_blank_lines_are_skipped(self):
        blocks = parse_lua("-- blink\n\nprint('hi')\n")
        assert blocks == [Block("print", {"value": "'hi'"})]

    def test_assignment(self):
        [block] = parse_lua("count = count + 1")
        assert block.fields == {"name": "count", "value": "count + 1"}

    def test_unsupported_statement_reports_line(self):
        with pytest.raises(ParseError) as info:
            parse_lua("print(1)\nos.exit()\n")

        assert info.value.line == 2
        assert str(info.value) == "line 2: unsupported statement: os.exit()"

    def test_unmatched_end(self):
        with pytest.raises(ParseError, match="unexpected 'end'"):
            parse_lua("print(1)\nend\n")

    def test_thread_closed_with_plain_end(self):
        with pytest.raises(ParseError, match="unexpected 'end'"):
            parse_lua("thread.start(function()\nend\n")

    def test_else_outside_if(self):
        with pytest.raises(ParseError, match="'else' outside of 'if'"):
            parse_lua("while true do\nelse\nend\n")

    def test_missing_end_points_at_opener(self):
        with pytest.raises(ParseError) as info:
            parse_lua("print(1)\nif ok then\nprint(2)\n")

        assert info.value.line == 2
        assert "'if' is missing its 'end'" in str(info.value)


class TestSavedProgram:
    def test_round_trip_keeps_blocks(self, three_blocks):
        workspace = Workspace(three_blocks)
        restored = Workspace()
        restored.from_data(workspace.to_data())

        assert restored.blocks == three_blocks

    def test_values_are_stored_as_strings(self):
        text = json.dumps({"version": 1, "blocks": [{"type": "wait", "fields": {"value": 500}}]})
        assert decode_program(text) == [Block("wait", {"value": "500"})]

    @pytest.mark.parametrize("text, message", [
        ("{", "Expecting"),
        ("[]", "no block list"),
        ('{"blocks": [{"type": "teleport"}]}', "unknown block type"),
        ('{"blocks": [{"type": "wait", "fields": []}]}', "fields must be an object"),
        ('{"blocks": [{"type": "set", "fields": {"name": "x"}}]}', "missing field 'value'"),
    ])
    def test_invalid_programs(self, text, message):
        with pytest.raises(ParseError, match=message):
            decode_program(text)


class TestWorkspace:
    def test_add_and_remove(self):
        workspace = Workspace()
        workspace.add(Block("print", {"value": "1"}))
        workspace.add(Block("wait", {"value": "10"}), index=0)

        assert [b.type for b in workspace.blocks] == ["wait", "print"]
        assert workspace.remove(0).type == "wait"
        assert workspace.block_count() == 1

    def test_unknown_block_type_is_rejected(self):
        with pytest.raises(ValueError):
            Workspace().add(Block("teleport"))

    def test_from_text_replaces_blocks(self, three_blocks):
        workspace = Workspace(three_blocks)
        workspace.from_text("print(2)\n")
        assert workspace.blocks == [Block("print", {"value": "2"})]

    def test_failed_from_text_keeps_blocks(self, three_blocks):
        workspace = Workspace(three_blocks)
        with pytest.raises(ParseError):
            workspace.from_text("goto done\n")
        assert workspace.blocks == three_blocks

    def test_block_metadata(self):
        block = Block("thread")
        assert block.category == "Threads"
        assert block.colour.startswith("#")
        assert block.to_lua() == "thread.start(function()"
