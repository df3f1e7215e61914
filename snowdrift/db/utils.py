from pathlib import Path

from sqlalchemy.engine import make_url

_RELATIVE_SQLITE_PREFIXES = ("sqlite:///./", "sqlite+pysqlite:///./")


def resolve_sqlite_url(url: str, project_root: Path) -> str:
    """Resolve 'sqlite:///./relative/path' to an absolute sqlite:/// URL.

    The ``sqlite+pysqlite`` driver form is handled the same way. Keeps other
    URL forms (including in-memory databases) unchanged.
    """
    for prefix in _RELATIVE_SQLITE_PREFIXES:
        if url.startswith(prefix):
            rel = url[len(prefix) :]
            scheme = prefix[: -len("./")]
            return f"{scheme}{(project_root / rel).resolve()}"
    return url


def is_memory_sqlite_url(url: str) -> bool:
    """Return ``True`` when ``url`` points at a private in-memory SQLite database."""
    parsed = make_url(url)
    if parsed.get_backend_name() != "sqlite":
        return False
    return parsed.database in (None, "", ":memory:")
