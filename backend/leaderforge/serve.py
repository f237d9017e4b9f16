"""Run the LeaderForge API under uvicorn.

Environment: HOST, PORT, RELOAD, LOG_LEVEL and, for TLS termination in
uvicorn itself, SSL_CERTFILE + SSL_KEYFILE.
"""

import os
from typing import Dict

import uvicorn

_TRUTHY = {"1", "true", "yes", "on"}


def _tls_options() -> Dict[str, str]:
    certfile = os.getenv("SSL_CERTFILE")
    keyfile = os.getenv("SSL_KEYFILE")
    if not (certfile and keyfile):
        return {}
    return {"ssl_certfile": certfile, "ssl_keyfile": keyfile}


def main() -> None:
    uvicorn.run(
        "leaderforge.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("RELOAD", "false").lower() in _TRUTHY,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
        **_tls_options(),
    )


if __name__ == "__main__":
    main()
