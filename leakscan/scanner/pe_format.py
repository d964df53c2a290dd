"""PE image validation — the fail-closed gate in front of the binary engine."""

from __future__ import annotations

import struct

from leakscan.constants import DOS_SIGNATURE, MIN_PE_SIZE, PE_POINTER_OFFSET, PE_SIGNATURE


def is_valid_pe(data: bytes) -> bool:
    """Return True when ``data`` starts with an MZ header pointing at a PE signature.

    Checks, in order: at least MIN_PE_SIZE bytes, the ``MZ`` DOS signature, an
    ``e_lfanew`` pointer that leaves room for four bytes, and ``PE\\0\\0`` at that
    pointer. Never raises; any violation returns False.
    """
    if len(data) < MIN_PE_SIZE:
        return False
    (dos_signature,) = struct.unpack_from("<H", data, 0)
    if dos_signature != DOS_SIGNATURE:
        return False
    (pe_offset,) = struct.unpack_from("<I", data, PE_POINTER_OFFSET)
    if pe_offset + 4 > len(data):
        return False
    (pe_signature,) = struct.unpack_from("<I", data, pe_offset)
    return pe_signature == PE_SIGNATURE
