"""Contract source reading for tenderly-deployments library."""

from pathlib import Path
from typing import Optional, Union

from .exceptions import SourceReadError


def read_source_file(path: Union[Path, str], root: Optional[Union[Path, str]] = None) -> str:
    """
    Read a contract source file as UTF-8 text.

    Args:
        path: Source path (absolute, or relative to root)
        root: Project root used for relative paths (defaults to cwd)

    Returns:
        Full source text

    Raises:
        SourceReadError: If the file is missing or unreadable
    """
    source_path = Path(path)
    if root is not None and not source_path.is_absolute():
        source_path = Path(root) / source_path

    try:
        with open(source_path, encoding="utf-8") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(f"Cannot read contract source {source_path}: {e}") from e
