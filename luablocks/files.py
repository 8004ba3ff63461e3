"""File identity tracked per pane."""

from dataclasses import dataclass


@dataclass
class FileIdentity:
    """The (location, name) pair a pane currently represents."""

    location: str = ""
    name: str = ""

    @property
    def path(self):
        return f"{self.location}/{self.name}"

    def copy(self):
        return FileIdentity(self.location, self.name)

    def __str__(self):
        return self.path
