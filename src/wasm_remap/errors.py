"""Exception types raised by wasm-remap.

Input problems derive from :class:`RemapperError`.  Low-level decoding
failures are :class:`WasmDecodeError` and are wrapped by the remapper into
``InvalidInputBinary`` / ``InvalidReferenceBinary``.  Failures to encode the
output are internal defects and use :class:`NameSectionEncodeError`, which is
not a ``RemapperError``.
"""

from __future__ import annotations


class RemapperError(Exception):
    """Base class for every error caused by the caller's inputs."""


class RemapperConfigError(RemapperError, ValueError):
    """Options or buffers given to the remapper are invalid."""


class InvalidInputBinary(RemapperError):
    def __init__(self, msg: str = "input wasm not a valid wasm binary") -> None:
        super().__init__(msg)


class InvalidReferenceBinary(RemapperError):
    def __init__(self, msg: str = "reference wasm not a valid wasm binary") -> None:
        super().__init__(msg)


class ParseError(RemapperError):
    """A module decoded but has a shape the remapper cannot work with.

    ``role`` is ``"input"`` or ``"reference"`` once the remapper has tagged
    the error, ``None`` when raised by :func:`decode_module` directly.
    """

    role: str | None = None

    def __str__(self) -> str:
        msg = super().__str__()
        return f"unable to parse {self.role}: {msg}" if self.role else msg


class MissingSection(ParseError):
    def __init__(self, kind: str) -> None:
        self.kind = kind
        super().__init__(f"missing {kind} section")


class InvalidOffsetInstruction(ParseError):
    def __init__(self, msg: str = "invalid instruction used for data offset") -> None:
        super().__init__(msg)


class WasmDecodeError(ValueError):
    """The byte buffer is not a well-formed module (or uses unsupported features)."""

    def __init__(self, msg: str, offset: int | None = None) -> None:
        self.offset = offset
        if offset is not None:
            msg = f"{msg} (at byte 0x{offset:x})"
        super().__init__(msg)


class NameSectionEncodeError(RuntimeError):
    """The name assignment could not be serialized back into the module."""
