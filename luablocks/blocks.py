"""Block program model: Lua generation, Lua-to-blocks parsing and the saved-program format."""

import json
import re
from dataclasses import dataclass, field

# Block type definitions: {type: (category, lua template, colour)}
BLOCK_TYPES = {
    # IO
    "pin_high": ("IO", "pio.pin.sethigh({value})", "#2196F3"),
    "pin_low": ("IO", "pio.pin.setlow({value})", "#2196F3"),
    "print": ("IO", "print({value})", "#2196F3"),
    # Control
    "wait": ("Control", "tmr.delayms({value})", "#FF9800"),
    "repeat": ("Control", "for _ = 1, {value} do", "#FF9800"),
    "forever": ("Control", "while true do", "#FF9800"),
    "end": ("Control", "end", "#FF9800"),
    # Logic
    "if": ("Logic", "if {value} then", "#4CAF50"),
    "else": ("Logic", "else", "#4CAF50"),
    # Threads
    "thread": ("Threads", "thread.start(function()", "#9C27B0"),
    "end_thread": ("Threads", "end)", "#9C27B0"),
    # Variables
    "set": ("Variables", "{name} = {value}", "#607D8B"),
}

CATEGORIES = ["All", "IO", "Control", "Logic", "Threads", "Variables"]

# Fields each block type needs, in the order the toolbox asks for them
FIELDS = {
    name: tuple(re.findall(r"\{(\w+)\}", template))
    for name, (_, template, _) in BLOCK_TYPES.items()
}

OPENERS = ("repeat", "forever", "if", "thread")
CLOSER = {"repeat": "end", "forever": "end", "if": "end", "thread": "end_thread"}

# Checked in order; the first full match wins
PATTERNS = [
    ("repeat", re.compile(r"for\s+_\s*=\s*1\s*,\s*(?P<value>.+?)\s+do")),
    ("forever", re.compile(r"while\s+true\s+do")),
    ("if", re.compile(r"if\s+(?P<value>.+?)\s+then")),
    ("else", re.compile(r"else")),
    ("thread", re.compile(r"thread\.start\(\s*function\s*\(\s*\)")),
    ("end_thread", re.compile(r"end\s*\)")),
    ("end", re.compile(r"end")),
    ("print", re.compile(r"print\((?P<value>.*)\)")),
    ("wait", re.compile(r"tmr\.delayms\((?P<value>.+)\)")),
    ("pin_high", re.compile(r"pio\.pin\.sethigh\((?P<value>.+)\)")),
    ("pin_low", re.compile(r"pio\.pin\.setlow\((?P<value>.+)\)")),
    ("set", re.compile(r"(?P<name>[A-Za-z_]\w*)\s*=\s*(?P<value>[^=\s].*)")),
]

INDENT = "  "


class ParseError(Exception):
    """Malformed Lua source or saved-program data."""

    def __init__(self, message, line=None):
        super().__init__(message)
        self.message = message
        self.line = line

    def __str__(self):
        if self.line is None:
            return self.message
        return f"line {self.line}: {self.message}"


@dataclass
class Block:
    type: str
    fields: dict = field(default_factory=dict)

    @property
    def category(self):
        return BLOCK_TYPES[self.type][0]

    @property
    def colour(self):
        return BLOCK_TYPES[self.type][2]

    def to_lua(self):
        return BLOCK_TYPES[self.type][1].format(**self.fields)


def generate_lua(blocks):
    """Serialize blocks to Lua, indenting nested statements."""
    lines = []
    depth = 0
    for block in blocks:
        if block.type in ("end", "end_thread", "else"):
            depth = max(depth - 1, 0)
        lines.append(INDENT * depth + block.to_lua())
        if block.type in OPENERS or block.type == "else":
            depth += 1
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def parse_lua(text):
    """Convert Lua source into a flat block list.

    Only the statements the toolbox can produce are understood. Blank
    lines and ``--`` comments are skipped; anything else raises ParseError
    with the offending line number.
    """
    blocks = []
    stack = []  # (opener type, line number)
    for number, raw in enumerate(text.splitlines(), start=1):
        line = raw.strip()
        if not line or line.startswith("--"):
            continue

        for name, pattern in PATTERNS:
            match = pattern.fullmatch(line)
            if match:
                break
        else:
            raise ParseError(f"unsupported statement: {line}", number)

        if name in ("end", "end_thread"):
            if not stack or CLOSER[stack[-1][0]] != name:
                raise ParseError(f"unexpected '{line}'", number)
            stack.pop()
        elif name == "else":
            if not stack or stack[-1][0] != "if":
                raise ParseError("'else' outside of 'if'", number)
        elif name in OPENERS:
            stack.append((name, number))

        fields = {k: v.strip() for k, v in match.groupdict().items()}
        blocks.append(Block(name, fields))

    if stack:
        opener, number = stack[-1]
        raise ParseError(f"'{opener}' is missing its '{CLOSER[opener]}'", number)
    return blocks


def decode_program(text):
    """Decode the saved-program JSON format into blocks."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(e.msg, e.lineno) from e

    if not isinstance(data, dict) or not isinstance(data.get("blocks"), list):
        raise ParseError("saved program has no block list")

    blocks = []
    for index, item in enumerate(data["blocks"]):
        if not isinstance(item, dict) or item.get("type") not in BLOCK_TYPES:
            raise ParseError(f"block {index}: unknown block type")
        fields = item.get("fields", {})
        if not isinstance(fields, dict):
            raise ParseError(f"block {index}: fields must be an object")
        missing = [f for f in FIELDS[item["type"]] if f not in fields]
        if missing:
            raise ParseError(f"block {index}: missing field {missing[0]!r}")
        blocks.append(Block(item["type"], {k: str(v) for k, v in fields.items()}))
    return blocks


class Workspace:
    """The block program being edited."""

    def __init__(self, blocks=None):
        self.blocks = list(blocks or [])
        self.visible = True

    def clear(self):
        self.blocks = []

    def block_count(self):
        return len(self.blocks)

    def set_visible(self, visible):
        self.visible = visible

    def add(self, block, index=None):
        if block.type not in BLOCK_TYPES:
            raise ValueError(f"unknown block type {block.type!r}")
        if index is None:
            self.blocks.append(block)
        else:
            self.blocks.insert(index, block)

    def remove(self, index):
        return self.blocks.pop(index)

    def to_text(self):
        return generate_lua(self.blocks)

    def parse(self, text):
        return parse_lua(text)

    def load_program(self, blocks):
        self.blocks.extend(blocks)

    def from_text(self, text):
        blocks = self.parse(text)
        self.clear()
        self.load_program(blocks)

    def to_data(self):
        return json.dumps({
            "version": 1,
            "blocks": [{"type": b.type, "fields": b.fields} for b in self.blocks],
        }, indent=2)

    def from_data(self, text):
        blocks = decode_program(text)
        self.clear()
        self.load_program(blocks)
