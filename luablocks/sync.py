"""Keeps the block and text representations in step while they are linked."""

import logging

from .state import BLOCKS

log = logging.getLogger(__name__)


class SyncEngine:
    def __init__(self, session, workspace, editor):
        self.session = session
        self.workspace = workspace
        self.editor = editor

    def blocks_to_text(self):
        self.editor.set_text(self.workspace.to_text())

    def text_to_blocks(self):
        # Parse before clearing so a bad buffer leaves the workspace intact
        blocks = self.workspace.parse(self.editor.get_text())
        self.workspace.clear()
        self.workspace.load_program(blocks)
        log.debug("converted text to %d blocks", len(blocks))

    def copy_identity(self):
        if self.workspace.block_count() > 0:
            self.session.editor_file = self.session.blocks_file.copy()

    def pane_entered(self, pane, previous, keep_editor=False):
        """Run the conversion a pane switch calls for.

        With ``keep_editor`` the text buffer and its identity are left
        alone; used when the text pane opens on a file loaded from the board.
        """
        if keep_editor:
            return
        if pane == BLOCKS:
            if self.session.linked:
                self.text_to_blocks()
        elif (self.session.linked and previous == BLOCKS
              and self.workspace.block_count() > 0):
            self.blocks_to_text()
        self.copy_identity()

    def blocks_changed(self):
        """Edit-driven refresh while the blocks pane is showing."""
        if self.session.active_pane == BLOCKS and self.session.linked:
            self.blocks_to_text()
        self.copy_identity()
