"""
auditor_node/app.py
-------------------
Thin entrypoint for running the Auditor FastAPI app via:

    uvicorn auditor_node.app:app

All real route wiring lives in auditor_node.auditor_api.
"""

from .auditor_api import create_app

app = create_app()


if __name__ == "__main__":
    # Convenience for: python -m auditor_node.app
    import uvicorn

    from .settings import get_settings

    conf = get_settings().server
    uvicorn.run(app, host=conf.host, port=conf.port)
