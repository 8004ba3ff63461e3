"""Session state shared by the controller, the sync engine and the browser."""

from . import config
from .files import FileIdentity
from .tree import DirectoryTree

# Panes
BLOCKS = "blocks"
TEXT = "text"
BOARD = "board"
PANES = (BLOCKS, TEXT, BOARD)

# Actions whose enablement the controller recomputes
LINK = "link"
DISCARD = "discard"
LOAD = "load"
SAVE = "save"
RUN = "run"
STOP = "stop"
REBOOT = "reboot"
UPGRADE = "upgrade"
BOARD_TAB = "board_tab"
BOARD_CONTENT = "board_content"
ACTIONS = (LINK, DISCARD, LOAD, SAVE, RUN, STOP, REBOOT, UPGRADE, BOARD_TAB, BOARD_CONTENT)


class Session:
    """Everything the session knows, owned by one SessionController."""

    def __init__(self, location=config.DEFAULT_LOCATION, program=config.DEFAULT_PROGRAM):
        self.active_pane = BLOCKS
        self.linked = False
        self.connected = False
        self.progress_dialog_open = False

        self.board_file = FileIdentity()
        self.blocks_file = FileIdentity(location, program)
        self.editor_file = FileIdentity(location, program)
        self.tree = DirectoryTree(self.board_file.location)

        self.enabled = dict.fromkeys(ACTIONS, False)
        self.board_info = None
