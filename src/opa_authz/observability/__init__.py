"""
opa_authz.observability

Observability package.

Responsibilities:
- Structured logging configuration shared by the client and the CLI.
"""

# Package marker.
