from .app import create_app, init_db, shutdown

__all__ = ["create_app", "init_db", "shutdown"]
