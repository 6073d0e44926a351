"""
opa_authz.__main__

Entrypoint for `python -m opa_authz`.
"""

from __future__ import annotations

from opa_authz.cli import main

if __name__ == "__main__":
    main()
