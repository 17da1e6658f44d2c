"""XC history persistence layer.

Provides SQLite-backed storage for completed explanations, with support
for prefix lookup, listing, export (JSON/Markdown), and deletion.
"""

from xc.persistence.database import close_db, init_db
from xc.persistence.export import export_json, export_markdown
from xc.persistence.history import HistoryStore

__all__ = [
    "HistoryStore",
    "close_db",
    "export_json",
    "export_markdown",
    "init_db",
]
