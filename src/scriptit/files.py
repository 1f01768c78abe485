"""Open-file registry behind `open()` handles.

A handle is a plain dict value `{"__type__": "file", "__id__": N}`; the file
object itself stays here, keyed by N.
"""
from __future__ import annotations

import logging
from typing import IO, Dict, List, Set

from .runtime import register_file
from .types import (
    SitBool, SitDict, SitList, SitNone, SitNumber, SitString, SitValue,
    Scope, ScriptItFileError,
)
from .values import iter_values, to_display, to_int, type_name

logger = logging.getLogger(__name__)

MODES = frozenset({"r", "w", "a", "r+", "w+", "a+", "rb", "wb", "ab"})


class FileRegistry:
    """Open files by handle id; a closed handle keeps only its id in `_closed`."""

    def __init__(self):
        self._handles: Dict[int, IO] = {}
        self._closed: Set[int] = set()
        self._next_id = 1

    def open(self, path: str, mode: str = "r") -> SitDict:
        if mode not in MODES:
            raise ScriptItFileError(f"Invalid file mode '{mode}'")

        try:
            fh = open(path, mode) if "b" in mode else open(path, mode, encoding="utf-8")
        except OSError as exc:
            raise ScriptItFileError(f"Cannot open file '{path}' with mode '{mode}': {exc.strerror}") from exc

        handle_id = self._next_id
        self._next_id += 1
        self._handles[handle_id] = fh
        logger.debug("opened %s (%s) as handle %d", path, mode, handle_id)

        return SitDict({
            "__type__": SitString("file"),
            "__id__": SitNumber(handle_id, "int"),
        })

    def handle_id(self, handle: SitValue) -> int:
        if not isinstance(handle, SitDict) or "__id__" not in handle.entries:
            raise ScriptItFileError(f"Expected a file handle, got {type_name(handle)}")
        return to_int(handle.entries["__id__"])

    def is_closed(self, handle_id: int) -> bool:
        return handle_id in self._closed

    def get(self, handle: SitValue) -> IO:
        handle_id = self.handle_id(handle)

        if self.is_closed(handle_id):
            raise ScriptItFileError(f"File handle {handle_id} is closed")
        fh = self._handles.get(handle_id)
        if fh is None:
            raise ScriptItFileError(f"Unknown file handle {handle_id}")

        return fh

    def is_open(self, handle: SitValue) -> bool:
        return self.handle_id(handle) in self._handles

    def close(self, handle: SitValue) -> None:
        """Close the handle; closing twice is a no-op."""
        handle_id = self.handle_id(handle)

        if self.is_closed(handle_id):
            return
        fh = self._handles.pop(handle_id, None)
        if fh is None:
            raise ScriptItFileError(f"Unknown file handle {handle_id}")

        fh.close()
        self._closed.add(handle_id)
        logger.debug("closed handle %d", handle_id)

    def close_all(self) -> None:
        for handle_id, fh in self._handles.items():
            fh.close()
            logger.debug("closed handle %d on shutdown", handle_id)
        self._handles.clear()
        self._closed.clear()


def _files(scope: Scope) -> FileRegistry:
    return scope.ctx.files


def _text(fh: IO, data) -> str:
    if isinstance(data, bytes):
        return data.decode("utf-8", errors="replace")
    return data


def _payload(fh: IO, text: str):
    return text.encode("utf-8") if "b" in fh.mode else text


def _io(fn):
    """Surface host I/O failures as file errors."""
    def method(scope: Scope, recv: SitValue, args: List[SitValue]) -> SitValue:
        try:
            return fn(scope, recv, args)
        except OSError as exc:
            raise ScriptItFileError(f"File operation failed: {exc}") from exc
        except ValueError as exc:
            # unsupported operation for the mode, e.g. read() on a "w" handle
            raise ScriptItFileError(f"File operation failed: {exc}") from exc
    return method


@register_file("read")
@_io
def _file_read(scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitString:
    fh = _files(scope).get(recv)
    return SitString(_text(fh, fh.read()))


@register_file("readline")
@_io
def _file_readline(scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitString:
    fh = _files(scope).get(recv)
    return SitString(_text(fh, fh.readline()).rstrip("\r\n"))


@register_file("readlines")
@_io
def _file_readlines(scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitList:
    fh = _files(scope).get(recv)
    return SitList([SitString(_text(fh, line).rstrip("\r\n")) for line in fh.readlines()])


@register_file("write", 1)
@_io
def _file_write(scope: Scope, recv: SitDict, args: List[SitValue]) -> SitNone:
    fh = _files(scope).get(recv)
    fh.write(_payload(fh, to_display(args[0])))
    return SitNone()


@register_file("writelines", 1)
@_io
def _file_writelines(scope: Scope, recv: SitDict, args: List[SitValue]) -> SitNone:
    fh = _files(scope).get(recv)
    for item in iter_values(args[0], "writelines()"):
        fh.write(_payload(fh, to_display(item)))
    return SitNone()


@register_file("close")
def _file_close(scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitNone:
    _files(scope).close(recv)
    return SitNone()


@register_file("is_open")
def _file_is_open(scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitBool:
    return SitBool(_files(scope).is_open(recv))


@register_file("flush")
@_io
def _file_flush(scope: Scope, recv: SitDict, _args: List[SitValue]) -> SitNone:
    _files(scope).get(recv).flush()
    return SitNone()
