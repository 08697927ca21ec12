# auditor_node/api/__init__.py
from . import auditors, candidates, config, token, votes

ROUTERS = [
    candidates.router,
    auditors.router,
    votes.router,
    token.router,
    config.router,
]

__all__ = ["ROUTERS"]
