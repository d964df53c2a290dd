"""Binary credential-detection engine and the concurrent scan orchestrator."""
