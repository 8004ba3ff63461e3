"""Shared fixtures: recording stand-ins for the GUI and the board."""

import pytest

from luablocks.blocks import Block, Workspace
from luablocks.board import BoardError
from luablocks.messages import Messages
from luablocks.session import SessionController
from luablocks.state import ACTIONS, PANES


class Pending:
    def __init__(self, name, args, on_ok, on_err, on_progress=None):
        self.name = name
        self.args = args
        self.on_ok = on_ok
        self.on_err = on_err
        self.on_progress = on_progress


class FakeBoard:
    """Records commands; tests complete or fail them explicitly."""

    def __init__(self):
        self.port = "/dev/ttyUSB0"
        self.calls = []
        self.pending = []

    def current_port(self):
        return self.port

    def _record(self, name, args, on_ok, on_err, on_progress=None):
        self.calls.append((name,) + args)
        self.pending.append(Pending(name, args, on_ok, on_err, on_progress))

    def run(self, port, path, code, on_ok, on_err):
        self._record("run", (path, code), on_ok, on_err)

    def stop(self, port, on_ok, on_err):
        self._record("stop", (), on_ok, on_err)

    def reboot(self, port, on_ok, on_err):
        self._record("reboot", (), on_ok, on_err)

    def identify(self, port, on_ok, on_err):
        self._record("identify", (), on_ok, on_err)

    def list_directory(self, port, path, on_ok, on_err):
        self._record("list_directory", (path,), on_ok, on_err)

    def receive_file(self, port, path, on_ok, on_err):
        self._record("receive_file", (path,), on_ok, on_err)

    def upgrade_firmware(self, port, image, on_progress, on_ok, on_err):
        self._record("upgrade_firmware", (image,), on_ok, on_err, on_progress)

    def calls_to(self, name):
        return [call for call in self.calls if call[0] == name]

    def _take(self, name):
        for i, pending in enumerate(self.pending):
            if pending.name == name:
                return self.pending.pop(i)
        raise AssertionError(f"no pending {name} command")

    def complete(self, name, result=None):
        self._take(name).on_ok(result)

    def fail(self, name, message="boom"):
        self._take(name).on_err(BoardError(message))

    def progress(self, name, percent):
        for pending in self.pending:
            if pending.name == name:
                pending.on_progress(percent)
                return
        raise AssertionError(f"no pending {name} command")


class FakeDialogs:
    def __init__(self):
        self.events = []
        self.progress_visible = False
        self.answer = True
        self.confirmations = []

    def show_progress(self, message, percent=None):
        self.events.append(("show_progress", message, percent))
        self.progress_visible = True

    def update_progress(self, percent):
        self.events.append(("update_progress", percent))

    def hide_progress(self):
        self.events.append(("hide_progress",))
        self.progress_visible = False

    def show_info(self, message, dismiss_ms):
        self.events.append(("show_info", message))

    def show_alert(self, message):
        self.events.append(("show_alert", message))

    def confirm(self, message, on_result):
        self.confirmations.append(message)
        on_result(self.answer)

    def named(self, name):
        return [e for e in self.events if e[0] == name]


class FakeView:
    def __init__(self):
        self.tab_active = dict.fromkeys(PANES, False)
        self.visible = dict.fromkeys(PANES, False)
        self.labels = {}
        self.enabled = dict.fromkeys(ACTIONS, None)
        self.linked = False
        self.status = ""

    def set_tab_active(self, pane, active):
        self.tab_active[pane] = active

    def set_pane_visible(self, pane, visible):
        self.visible[pane] = visible

    def set_tab_label(self, pane, text):
        self.labels[pane] = text

    def set_enabled(self, action, enabled):
        self.enabled[action] = enabled

    def set_linked_indicator(self, linked):
        self.linked = linked

    def set_status(self, text):
        self.status = text

    def visible_panes(self):
        return [pane for pane, shown in self.visible.items() if shown]


class FakeTreeView:
    def __init__(self):
        self.listings = {}
        self.resets = []

    def reset(self, location):
        self.resets.append(location)
        self.listings = {}

    def show_listing(self, path, nodes):
        self._drop_below(path)
        self.listings[path] = [node.name for node in nodes]

    def remove_listing(self, path):
        self._drop_below(path)

    def _drop_below(self, path):
        for key in list(self.listings):
            if key == path or key.startswith(path + "/"):
                del self.listings[key]


class FakeEditor:
    def __init__(self, text=""):
        self.text = text
        self.focused = 0

    def get_text(self):
        return self.text

    def set_text(self, text):
        self.text = text

    def focus(self):
        self.focused += 1


def make_record(kind, address, payload=b""):
    """One Intel HEX record with a correct checksum."""
    body = bytes([len(payload), (address >> 8) & 0xFF, address & 0xFF, kind]) + payload
    checksum = (-sum(body)) & 0xFF
    return ":" + (body + bytes([checksum])).hex().upper()


@pytest.fixture
def hex_record():
    return make_record


@pytest.fixture
def firmware_text():
    return "\n".join([
        make_record(0x04, 0, b"\x00\x01"),
        make_record(0x00, 0x0000, bytes(range(16))),
        make_record(0x00, 0x0010, bytes(range(16, 32))),
        make_record(0x01, 0),
    ]) + "\n"


@pytest.fixture
def workspace():
    return Workspace()


@pytest.fixture
def three_blocks():
    return [
        Block("print", {"value": '"hello"'}),
        Block("wait", {"value": "500"}),
        Block("pin_high", {"value": "pio.GPIO2"}),
    ]


@pytest.fixture
def editor():
    return FakeEditor()


@pytest.fixture
def board():
    return FakeBoard()


@pytest.fixture
def dialogs():
    return FakeDialogs()


@pytest.fixture
def view():
    return FakeView()


@pytest.fixture
def tree_view():
    return FakeTreeView()


@pytest.fixture
def messages():
    return Messages("en")


@pytest.fixture
def controller(workspace, editor, board, dialogs, messages, view, tree_view):
    return SessionController(workspace, editor, board, dialogs, messages, view,
                             tree_view=tree_view)
