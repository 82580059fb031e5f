"""Core configuration, security helpers and the RBAC engine."""
