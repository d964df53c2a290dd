"""Shared constants for leakscan.

All size limits, thresholds and default lists used across modules are defined here.
No magic numbers in other modules — import from here.
"""

# ─── PE format ────────────────────────────────────────────────────────────────

# "MZ" read as a little-endian uint16 at offset 0.
DOS_SIGNATURE: int = 0x5A4D

# "PE\0\0" read as a little-endian uint32 at the e_lfanew pointer.
PE_SIGNATURE: int = 0x00004550

# Offset of the e_lfanew pointer inside the DOS header.
PE_POINTER_OFFSET: int = 0x3C

# Smallest buffer that can hold a full DOS header.
MIN_PE_SIZE: int = 64

# ─── String extraction ────────────────────────────────────────────────────────

# Minimum run length (bytes for ASCII, code units for UTF-16) to become a candidate.
MIN_STRING_LENGTH: int = 8

# Candidates longer than this are never "meaningful".
MAX_STRING_LENGTH: int = 500

# Strings shorter than this are never considered garbage.
GARBAGE_MIN_LENGTH: int = 10

# Fraction of non-text characters above which a string is garbage.
GARBAGE_RATIO: float = 0.3

# Repeated-character check only applies to strings at least this long.
REPEAT_MIN_LENGTH: int = 20

# Number of identical consecutive characters that marks a repeating pattern.
REPEAT_RUN: int = 4

# ─── Credential validation ────────────────────────────────────────────────────

# Captured values shorter than this are never credentials.
MIN_CREDENTIAL_LENGTH: int = 3

# Length of the value prefix used as the last offset-resolution strategy.
OFFSET_PREFIX_LENGTH: int = 10

# ─── Base64 layer ─────────────────────────────────────────────────────────────

# Minimum length of a base64 alphabet run before decoding is attempted.
BASE64_MIN_RUN: int = 40

# Decoded payloads must have MORE than this share of text-like bytes.
BASE64_TEXT_RATIO: float = 0.7

# ─── Scan defaults ────────────────────────────────────────────────────────────

# Bytes on each side of an offset included in the context window.
DEFAULT_CONTEXT_LENGTH: int = 150

# Extensions routed to the binary detection engine.
BINARY_EXTENSIONS: tuple[str, ...] = (".dll", ".exe", ".so", ".dylib", ".bin", ".o", ".obj")

DEFAULT_FILE_TYPES: tuple[str, ...] = (
    ".txt", ".log", ".ini", ".conf", ".yaml", ".yml", ".xml", ".json", ".sql",
    ".properties", ".md", ".java", ".docx", ".xlsx", ".xls", ".csv",
)

DEFAULT_KEYWORDS: tuple[str, ...] = (
    "password=", "username=", "jdbc:", "user=", "ssh-", "ldap:", "mysqli_connect",
    "sk-", "账号", "密码", "username:", "password:",
)

DEFAULT_OUTPUT_FILE: str = "res.txt"

# Matched values longer than this are truncated in console output.
DISPLAY_VALUE_MAX: int = 100

# Width of the console result boxes.
CONSOLE_WIDTH: int = 100
