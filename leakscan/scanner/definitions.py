"""Detection rule corpus and filter word lists for the binary scanner.

All patterns are pre-compiled at module load time using google-re2.
NO pattern compilation happens per-file, per-call, or lazily. The corpus is an
immutable tuple shared read-only by every worker thread; no locking is needed.

IMPORT RULES:
  - ``import re2`` ONLY — ``import re`` is PROHIBITED in this file and any
    leakscan/scanner/ file.
  - Lint gate: tests/unit/test_definitions.py greps leakscan/scanner/ for a bare
    ``import re`` and fails the build if one is found.
"""

from __future__ import annotations

import re2

from dataclasses import dataclass
from typing import Any

from leakscan.constants import BASE64_MIN_RUN, MIN_STRING_LENGTH
from leakscan.models.scan import RiskLevel


# ---------------------------------------------------------------------------
# DetectionRule dataclass
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DetectionRule:
    """A single compiled credential rule with metadata.

    Fields:
        name:        Rule name reported in findings (e.g. ``"Password Field"``).
        pattern:     Pre-compiled re2 pattern with one or two capture groups.
                     With two groups the credential value is group 2 (group 1 is
                     the field name); with one group it is group 1.
        description: Human-readable description of what the rule detects.
        risk_level:  Risk classification for matches of this rule.
    """
    name: str
    pattern: Any           # re2._Regexp — pre-compiled at module load
    description: str
    risk_level: RiskLevel


# ===========================================================================
# DETECTION RULES
# COMPILED AT MODULE LOAD — never per-file
# Order matters only within a single string/rule pass.
# ===========================================================================

DETECTION_RULES: tuple[DetectionRule, ...] = (
    # ─── Connection strings ──────────────────────────────────────────────
    DetectionRule(
        name="Connection String",
        pattern=re2.compile(r'(?i)(ConnectionString|connstr?)\s*=\s*["\']([^"\']{10,200})["\']'),
        description="Database connection string containing authentication data",
        risk_level=RiskLevel.HIGH,
    ),
    DetectionRule(
        name="JDBC URL",
        pattern=re2.compile(r'(jdbc:\w+://[^\s"\']+)'),
        description="JDBC database connection URL",
        risk_level=RiskLevel.HIGH,
    ),
    # ─── Field assignments ───────────────────────────────────────────────
    DetectionRule(
        name="Password Field",
        pattern=re2.compile(r'(?i)(password|pwd)\s*=\s*["\']?([^"\'\s;&]{4,50})'),
        description="Password field assignment",
        risk_level=RiskLevel.CRITICAL,
    ),
    DetectionRule(
        name="Username Field",
        pattern=re2.compile(r'(?i)(username|user|uid)\s*=\s*["\']?([^"\'\s;&]{3,50})'),
        description="Username field assignment",
        risk_level=RiskLevel.HIGH,
    ),
    DetectionRule(
        name="API Key",
        pattern=re2.compile(r'(?i)(api[_-]?key|apisecret|sk-)\s*=\s*["\']?([a-zA-Z0-9]{20,60})'),
        description="API key or access token",
        risk_level=RiskLevel.CRITICAL,
    ),
    # ─── Keys and directory services ─────────────────────────────────────
    DetectionRule(
        name="SSH Key",
        pattern=re2.compile(r'(ssh-\w+\s+[A-Za-z0-9+/]{100,})'),
        description="SSH public or private key",
        risk_level=RiskLevel.CRITICAL,
    ),
    DetectionRule(
        name="LDAP URL",
        pattern=re2.compile(r'(ldaps?://[^\s"\']+)'),
        description="LDAP connection string",
        risk_level=RiskLevel.HIGH,
    ),
    DetectionRule(
        name="MySQL Connect",
        pattern=re2.compile(r'(mysqli_connect\([^)]+\))'),
        description="MySQL database connect call",
        risk_level=RiskLevel.HIGH,
    ),
    DetectionRule(
        # 账号 = account, 密码 = password, 用户名 = username
        name="Localized Credential",
        pattern=re2.compile(r'(账号|密码|用户名)\s*[=:]\s*["\']?([^"\'\s]{3,50})'),
        description="Chinese-labelled account or password value",
        risk_level=RiskLevel.HIGH,
    ),
    # ─── Tokens and keys ─────────────────────────────────────────────────
    DetectionRule(
        name="Bearer Token",
        pattern=re2.compile(r'(Bearer\s+[\w\-._~+/]{20,100})'),
        description="Bearer authentication token",
        risk_level=RiskLevel.HIGH,
    ),
    DetectionRule(
        name="Private Key",
        pattern=re2.compile(r'(-----BEGIN (?:RSA|DSA|EC) PRIVATE KEY-----)'),
        description="Encrypted private key file header",
        risk_level=RiskLevel.CRITICAL,
    ),
    # ─── Identifiers ─────────────────────────────────────────────────────
    DetectionRule(
        name="Email Address",
        pattern=re2.compile(r'([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})'),
        description="Email address (possibly used for authentication)",
        risk_level=RiskLevel.MEDIUM,
    ),
    DetectionRule(
        name="IP Address",
        pattern=re2.compile(r'\b((?:[0-9]{1,3}\.){3}[0-9]{1,3}(?::\d+)?)\b'),
        description="IP address and port",
        risk_level=RiskLevel.LOW,
    ),
)


# ===========================================================================
# CREDENTIAL SHAPES
# A captured value must fully match at least one of these to be reported.
# ===========================================================================

CREDENTIAL_SHAPES: tuple[Any, ...] = (
    re2.compile(r'^[A-Za-z0-9!@#$%^&*()_+=-]{4,50}$'),                 # generic token
    re2.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'),   # email
    re2.compile(r'^\d+\.\d+\.\d+\.\d+$'),                               # IPv4
    re2.compile(r'^[a-zA-Z0-9]{20,60}$'),                               # long token
    re2.compile(r'^[a-zA-Z][a-zA-Z0-9]{3,20}$'),                        # identifier
    re2.compile(r'^[a-zA-Z]+://'),                                      # URI scheme
    re2.compile(r'^jdbc:\w+://'),                                       # JDBC
)

# Substrings that mark a captured value as language/protocol noise.
CREDENTIAL_DENYLIST: tuple[str, ...] = (
    "true", "false", "null", "void", "main", "class", "string", "int", "bool",
    "==", "!=", "=<", "=>", "= ", " =", "=p=", "=6", "=N", "=L", "=W", "=f", "=C",
    "GET", "POST", "HTTP", "Content", "Type", "Length", "Version", "Microsoft",
    "System", "Windows", "Assembly", "PublicKey", "Culture", "Token",
)


# ===========================================================================
# CANDIDATE FILTER
# A candidate string is kept only if it contains one of these.
# ===========================================================================

# Compared case-insensitively (both sides lowercased).
MEANINGFUL_KEYWORDS: tuple[str, ...] = (
    "password", "user", "jdbc", "ssh", "ldap", "mysql", "sk-",
    "账号", "密码", "connection", "database", "server", "host",
    "token", "key", "secret", "auth", "login", "credential",
    "connect", "config", "setting", "account", "passwd",
)

# Compared case-sensitively.
STRUCTURAL_MARKERS: tuple[str, ...] = ("://", "Data Source", "Initial Catalog", "User ID")


# ===========================================================================
# BYTE PATTERNS
# Applied to raw file bytes, not decoded text.
# ===========================================================================

ASCII_RUN_PATTERN = re2.compile(rb"[\x20-\x7e]{%d,}" % MIN_STRING_LENGTH)
BASE64_RUN_PATTERN = re2.compile(rb"[A-Za-z0-9+/]{%d,}={0,2}" % BASE64_MIN_RUN)

# Applied to the aligned UTF-16LE decode of the buffer.
TEXT_RUN_PATTERN = re2.compile(r"[\x20-\x7e]{%d,}" % MIN_STRING_LENGTH)
