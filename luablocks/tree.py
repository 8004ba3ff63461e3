"""In-memory mirror of the board filesystem, populated one directory at a time."""

import logging

log = logging.getLogger(__name__)

DIRECTORY = "directory"
FILE = "file"

# Directory states
COLLAPSED = "collapsed"
LOADING = "loading"
EXPANDED = "expanded"


class Node:
    def __init__(self, name, kind, location):
        self.name = name
        self.kind = kind
        self.location = location  # path of the parent directory
        self.state = COLLAPSED
        self.children = []

    @property
    def path(self):
        if self.location is None:
            return self.name
        return f"{self.location}/{self.name}"

    @property
    def is_directory(self):
        return self.kind == DIRECTORY

    @property
    def expanded(self):
        return self.state == EXPANDED

    def __repr__(self):
        return f"Node({self.path!r}, {self.kind}, {self.state})"


class DirectoryTree:
    """Directory nodes keyed by absolute path.

    Children are only kept for directories that are loading or expanded.
    Collapsing a directory drops its children and every descendant, so the
    next expansion always lists the board again.
    """

    def __init__(self, location=""):
        self.reset(location)

    def reset(self, location=""):
        self.root = Node(location, DIRECTORY, None)
        self.root.state = EXPANDED
        self._nodes = {self.root.path: self.root}

    def get(self, path):
        return self._nodes.get(path)

    def __contains__(self, path):
        return path in self._nodes

    def __len__(self):
        return len(self._nodes)

    def _directory(self, path):
        node = self._nodes.get(path)
        if node is None:
            raise KeyError(path)
        if not node.is_directory:
            raise ValueError(f"{path} is not a directory")
        return node

    def begin_loading(self, path):
        node = self._directory(path)
        if node is not self.root and node.state == COLLAPSED:
            node.state = LOADING
        return node

    def set_children(self, path, entries):
        """Replace the children of ``path`` with a fresh listing.

        Returns the new child nodes, or None when the directory was
        collapsed or removed while the listing was in flight.
        """
        node = self._nodes.get(path)
        if node is None or node.state == COLLAPSED:
            log.debug("dropping stale listing for %r", path)
            return None

        for entry in entries:
            if entry["kind"] not in (DIRECTORY, FILE):
                raise ValueError(f"unknown entry kind {entry['kind']!r} in {path}")

        self._discard_children(node)
        for entry in entries:
            child = Node(entry["name"], entry["kind"], node.path)
            node.children.append(child)
            self._nodes[child.path] = child
        node.state = EXPANDED
        return list(node.children)

    def collapse(self, path):
        node = self._directory(path)
        if node is self.root:
            return node
        self._discard_children(node)
        node.state = COLLAPSED
        return node

    def fail(self, path):
        """A listing failed: loading directories go back to collapsed."""
        node = self._nodes.get(path)
        if node is None or node is self.root:
            return node
        if node.state == LOADING:
            self._discard_children(node)
            node.state = COLLAPSED
        return node

    def _discard_children(self, node):
        for child in node.children:
            self._discard_children(child)
            self._nodes.pop(child.path, None)
        node.children = []
