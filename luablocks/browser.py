"""Remote directory browser for the board pane."""

import logging

from .files import FileIdentity
from .tree import COLLAPSED

log = logging.getLogger(__name__)


class RemoteBrowser:
    """Expands, collapses and opens board filesystem entries.

    A click is resolved to exactly one node through its path, so nested
    entries never trigger their parents' handlers.
    """

    def __init__(self, session, board, dialogs, messages, view=None, on_file_loaded=None):
        self.session = session
        self.board = board
        self.dialogs = dialogs
        self.messages = messages
        self.view = view
        self.on_file_loaded = on_file_loaded

    @property
    def tree(self):
        return self.session.tree

    def reset(self):
        location = self.session.board_file.location
        self.tree.reset(location)
        if self.view:
            self.view.reset(location)

    def refresh(self, path=None):
        if path is None:
            path = self.tree.root.path
        self.dialogs.show_progress(self.messages.lookup("retrievingDirectory"))
        self.tree.begin_loading(path)

        def on_listing(entries):
            try:
                nodes = self.tree.set_children(path, entries)
            except ValueError as e:
                on_error(e)
                return
            self.dialogs.hide_progress()
            if nodes is not None and self.view:
                self.view.show_listing(path, nodes)

        def on_error(err):
            self.dialogs.hide_progress()
            log.warning("listing %r failed: %s", path, err)
            node = self.tree.fail(path)
            if node is not None and node.state == COLLAPSED and self.view:
                self.view.remove_listing(path)

        self.board.list_directory(self.board.current_port(), path, on_listing, on_error)

    def click(self, path):
        node = self.tree.get(path)
        if node is None:
            log.debug("click on unknown entry %r", path)
            return
        if not node.is_directory:
            self.open(node)
        elif node.state == COLLAPSED:
            self.expand(node)
        else:
            self.collapse(node)

    def expand(self, node):
        self.session.board_file.location = node.path
        self.refresh(node.path)

    def collapse(self, node):
        self.tree.collapse(node.path)
        if self.view:
            self.view.remove_listing(node.path)

    def open(self, node):
        self.session.board_file = FileIdentity(node.location, node.name)
        self.session.editor_file = FileIdentity(node.location, node.name)
        identity = self.session.editor_file.copy()

        self.dialogs.show_progress(
            f"{self.messages.lookup('downloadingFile')} {identity.path} ...")

        def on_contents(contents):
            self.dialogs.hide_progress()
            if self.on_file_loaded:
                self.on_file_loaded(identity, contents)

        def on_error(err):
            self.dialogs.hide_progress()
            log.warning("receiving %s failed: %s", identity.path, err)

        self.board.receive_file(self.board.current_port(), identity.path, on_contents, on_error)
