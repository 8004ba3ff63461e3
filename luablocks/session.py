"""Top-level controller: active pane, linking, board commands and action enablement."""

import logging

from . import config
from .blocks import ParseError
from .browser import RemoteBrowser
from .files import FileIdentity
from .firmware import FirmwareError, parse_hex
from .state import (
    ACTIONS, BLOCKS, BOARD, BOARD_CONTENT, BOARD_TAB, DISCARD, LINK, LOAD,
    PANES, REBOOT, RUN, SAVE, STOP, TEXT, UPGRADE, Session,
)
from .sync import SyncEngine

log = logging.getLogger(__name__)

# Message key for each pane's tab label
TAB_LABELS = {BLOCKS: "blocks", TEXT: "editor", BOARD: "board"}

# Local file extension used by load/save on each pane
EXTENSIONS = {BLOCKS: "json", TEXT: "lua"}


class SessionController:
    """Drives the three panes and dispatches board commands.

    All methods run on the GUI thread; the board service calls back on it too.
    """

    def __init__(self, workspace, editor, board, dialogs, messages, view,
                 tree_view=None, session=None):
        self.session = session or Session()
        self.workspace = workspace
        self.editor = editor
        self.board = board
        self.dialogs = dialogs
        self.messages = messages
        self.view = view
        self.sync = SyncEngine(self.session, workspace, editor)
        self.browser = RemoteBrowser(self.session, board, dialogs, messages,
                                     view=tree_view, on_file_loaded=self._board_file_loaded)

    @property
    def active_pane(self):
        return self.session.active_pane

    @property
    def linked(self):
        return self.session.linked

    def _msg(self, key, **kwargs):
        text = self.messages.lookup(key)
        return text.format(**kwargs) if kwargs else text

    # ── Panes ──────────────────────────────────────────────

    def activate(self, pane, keep_editor=False):
        if pane not in PANES:
            raise ValueError(f"unknown pane {pane!r}")
        previous = self.session.active_pane

        if previous == BLOCKS:
            self.workspace.set_visible(False)
        for name in PANES:
            self.view.set_tab_active(name, False)
            self.view.set_pane_visible(name, False)

        self.session.active_pane = pane
        self.view.set_tab_active(pane, True)
        self.view.set_pane_visible(pane, True)
        if pane == BLOCKS:
            self.workspace.set_visible(True)

        try:
            self.sync.pane_entered(pane, previous, keep_editor=keep_editor)
        except ParseError as e:
            log.warning("text to blocks conversion failed: %s", e)
            self.dialogs.show_alert(self._msg("badCode", error=e))

        if pane == BOARD:
            self.session.board_file = FileIdentity()
            self.browser.reset()
            self.browser.refresh()
        elif pane == TEXT:
            self.editor.focus()

        self.update_enablement()
        self.update_labels()

    def toggle_linked(self):
        self.session.linked = not self.session.linked
        self.view.set_linked_indicator(self.session.linked)

    def workspace_changed(self):
        self.sync.blocks_changed()
        self.update_labels()

    def _board_file_loaded(self, identity, contents):
        self.editor.set_text(contents)
        self.activate(TEXT, keep_editor=True)

    # ── Enablement ─────────────────────────────────────────

    def update_enablement(self):
        enabled = dict.fromkeys(ACTIONS, False)
        pane_actions = (LINK, DISCARD, LOAD, SAVE, REBOOT, STOP, RUN)

        if self.session.active_pane in (BLOCKS, TEXT):
            enabled.update(dict.fromkeys(pane_actions, True))

        if self.session.connected:
            # Run/stop/reboot stay enabled on the board pane too
            enabled[UPGRADE] = self.session.active_pane == BOARD
            for action in (STOP, RUN, REBOOT, BOARD_CONTENT, BOARD_TAB):
                enabled[action] = True
        else:
            for action in (STOP, RUN, BOARD_TAB, REBOOT, BOARD_CONTENT, UPGRADE):
                enabled[action] = False

        self.session.enabled = enabled
        for action in ACTIONS:
            self.view.set_enabled(action, enabled[action])

    def update_labels(self):
        self.view.set_tab_label(BLOCKS, f"{self._msg(TAB_LABELS[BLOCKS])} {self.session.blocks_file}")
        self.view.set_tab_label(TEXT, f"{self._msg(TAB_LABELS[TEXT])} {self.session.editor_file}")
        self.view.set_tab_label(BOARD, self._msg(TAB_LABELS[BOARD]))

    # ── Destructive actions ────────────────────────────────

    def discard(self):
        pane = self.session.active_pane
        if pane == BLOCKS:
            count = self.workspace.block_count()
            if count == 0:
                return

            def on_result(confirmed):
                if confirmed:
                    self.workspace.clear()
                    self.workspace_changed()
            self.dialogs.confirm(self._msg("deleteAllBlocks", count=count), on_result)
        elif pane == TEXT:
            def on_result(confirmed):
                if confirmed:
                    self.editor.set_text("")
            self.dialogs.confirm(self._msg("deleteEditCode"), on_result)

    # ── Board commands ─────────────────────────────────────

    def _command_failed(self, command, err):
        log.warning("%s failed: %s", command, err)
        self.view.set_status(self._msg("commandFailed", command=command, error=err))

    def program_source(self):
        """(code, path) for the active pane, or None on the board pane."""
        pane = self.session.active_pane
        if pane == BLOCKS:
            return self.workspace.to_text(), self.session.blocks_file.path
        if pane == TEXT:
            return self.editor.get_text(), self.session.editor_file.path
        return None

    def run(self):
        source = self.program_source()
        if source is None:
            log.info("run ignored on the %s pane", self.session.active_pane)
            return
        code, path = source
        self.dialogs.show_progress(self._msg("sendingCode"))

        def on_ok(_):
            self.dialogs.hide_progress()
            self.view.set_status(self._msg("programSent", path=path))

        def on_err(err):
            self.dialogs.hide_progress()
            self._command_failed(RUN, err)

        self.board.run(self.board.current_port(), path, code, on_ok, on_err)

    def stop(self):
        self.board.stop(
            self.board.current_port(),
            lambda _: self.view.set_status(self._msg("programStopped")),
            lambda err: self._command_failed(STOP, err),
        )

    def reboot(self):
        self.board.reboot(
            self.board.current_port(),
            lambda _: self.view.set_status(self._msg("boardRebooted")),
            lambda err: self._command_failed(REBOOT, err),
        )

    # ── Firmware ───────────────────────────────────────────

    def upgrade_firmware(self, contents):
        try:
            image = parse_hex(contents)
        except FirmwareError as e:
            log.warning("bad firmware image: %s", e)
            self.dialogs.show_alert(self._msg("badFirmware", error=e))
            return
        log.info("upgrading firmware, %d bytes", image.size)
        self.session.progress_dialog_open = False

        def on_ok(_):
            self.session.progress_dialog_open = False
            self.dialogs.hide_progress()
            self.dialogs.show_info(self._msg("firmwareUpgraded"), config.INFO_DISMISS_MS)
            self.identify()

        def on_err(err):
            self.session.progress_dialog_open = False
            self.dialogs.hide_progress()
            self._command_failed(UPGRADE, err)
            # A partial flash may have left the board in its bootloader
            self.identify()

        self.board.upgrade_firmware(self.board.current_port(), image,
                                    self.upgrade_progress, on_ok, on_err)

    def upgrade_progress(self, percent):
        if not self.session.progress_dialog_open:
            self.session.progress_dialog_open = True
            self.dialogs.show_progress(self._msg("upgradingFirmware"), percent)
        else:
            self.dialogs.update_progress(percent)

    def identify(self, on_info=None):
        def on_ok(info):
            self.session.board_info = info
            log.info("board: %s", info)
            if on_info:
                on_info(info)

        self.board.identify(self.board.current_port(), on_ok,
                            lambda err: log.warning("identify failed: %s", err))

    # ── Connectivity ───────────────────────────────────────

    def board_connected(self):
        self.session.connected = True
        self.dialogs.show_info(self._msg("boardConnected"), config.INFO_DISMISS_MS)
        self.update_enablement()

    def board_disconnected(self):
        self.session.connected = False
        self.dialogs.show_info(self._msg("boardDisconnected"), config.INFO_DISMISS_MS)
        self.activate(BLOCKS)
        self.update_enablement()

    def board_in_bootloader(self, on_answer):
        self.dialogs.confirm(self._msg("boardInBootloaderMode"), on_answer)

    # ── Local files ────────────────────────────────────────

    def file_extension(self):
        return EXTENSIONS.get(self.session.active_pane)

    def load(self, path):
        pane = self.session.active_pane
        if pane == BOARD:
            return
        try:
            with open(path, encoding="utf-8") as f:
                contents = f.read()
            if pane == BLOCKS:
                self.workspace.from_data(contents)
            else:
                self.editor.set_text(contents)
        except (OSError, ParseError) as e:
            log.warning("loading %s failed: %s", path, e)
            self.dialogs.show_alert(self._msg("loadFailed", path=path, error=e))
            return
        if pane == BLOCKS:
            self.workspace_changed()

    def save(self, path):
        pane = self.session.active_pane
        if pane == BOARD:
            return
        contents = self.workspace.to_data() if pane == BLOCKS else self.editor.get_text()
        try:
            with open(path, "w", encoding="utf-8") as f:
                f.write(contents)
        except OSError as e:
            log.warning("saving %s failed: %s", path, e)
            self.dialogs.show_alert(self._msg("saveFailed", path=path, error=e))
