"""Exception hierarchy for the Halo plugin backend."""

from __future__ import annotations


class HaloPluginError(Exception):
    """Base for all Halo plugin backend errors."""


class InputError(HaloPluginError):
    """A configured input (classes directory, class file) is unusable."""

    def __init__(self, message: str, *, path: str | None = None):
        self.path = path
        prefix = f"[{path}] " if path else ""
        super().__init__(f"{prefix}{message}")


class ClassFileFormatError(InputError):
    """A file with the class-file suffix is not a valid class file."""


class OutputError(HaloPluginError):
    """The components index could not be written."""

    def __init__(self, message: str, *, path: str):
        self.path = path
        super().__init__(f"[{path}] {message}")


class ManifestError(HaloPluginError):
    """The plugin manifest (plugin.yaml) is missing or unusable."""

    def __init__(self, message: str, *, path: str | None = None):
        self.path = path
        prefix = f"[{path}] " if path else ""
        super().__init__(f"{prefix}{message}")
