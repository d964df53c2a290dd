"""leakscan models package.

Defines the shared data contracts used across the scan pipeline and reporting:

  - scan.py — RiskLevel, MatchType, FileKind, MatchResult, ScanTask

These models are the single source of truth for the tagged result format that the
binary engine and the text/document parsers produce and the output layer consumes.
"""
