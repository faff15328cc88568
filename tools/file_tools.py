"""
File Tools

Function calling tools for working with the local filesystem:
- read_file: return a file's contents
- edit_file: replace one unique string, or create a file
- list_files: list a directory

Expected failures raise ToolError subclasses; the registry converts them
into error results for the model.
"""

import logging
from pathlib import Path

from .errors import AmbiguousEditError, TargetNotFoundError, ToolIOError

logger = logging.getLogger(__name__)


def read_file(path: str) -> str:
    """
    Read a text file.

    Args:
        path: File path, relative to the working directory or absolute

    Returns:
        The file contents

    Raises:
        TargetNotFoundError: If the file does not exist
        ToolIOError: If the file cannot be read
    """
    file_path = Path(path)
    logger.debug(f"📄 Reading {file_path}")

    if not file_path.exists():
        raise TargetNotFoundError(f'File "{path}" does not exist')

    try:
        return file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ToolIOError(f'Failed to read file "{path}": {e}')


def edit_file(path: str, old_str: str, new_str: str) -> str:
    """
    Replace a unique string in a file, or create the file.

    With an empty `old_str` the file (and any missing parent directories) is
    created with `new_str` as its content, overwriting an existing file.
    Otherwise `old_str` must occur exactly once.

    Example:
        >>> edit_file("notes.txt", "", "hello")
        'Created file "notes.txt"'
        >>> edit_file("notes.txt", "hello", "bye")
        'Updated file "notes.txt"'

    Raises:
        TargetNotFoundError: File or `old_str` not found
        AmbiguousEditError: `old_str` occurs more than once
        ToolIOError: Read/write failure
    """
    file_path = Path(path)

    try:
        if old_str == "":
            file_path.parent.mkdir(parents=True, exist_ok=True)
            file_path.write_text(new_str, encoding="utf-8")
            logger.info(f"📝 Created {file_path}")
            return f'Created file "{path}"'

        if not file_path.exists():
            raise TargetNotFoundError(f'File "{path}" does not exist')

        content = file_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ToolIOError(f'Failed to edit file "{path}": {e}')

    occurrences = content.count(old_str)
    if occurrences > 1:
        raise AmbiguousEditError(occurrences)
    if occurrences == 0:
        raise TargetNotFoundError(f'The string to replace was not found in "{path}"')

    try:
        file_path.write_text(content.replace(old_str, new_str, 1), encoding="utf-8")
    except OSError as e:
        raise ToolIOError(f'Failed to edit file "{path}": {e}')

    logger.info(f"📝 Updated {file_path}")
    return f'Updated file "{path}"'


def list_files(path: str) -> str:
    """
    List the non-hidden entries of a directory.

    Returns:
        Sorted entry names, one per line; directories end with "/"

    Raises:
        TargetNotFoundError: If the directory does not exist
        ToolIOError: If the directory cannot be listed
    """
    dir_path = Path(path)

    if not dir_path.exists():
        raise TargetNotFoundError(f'Directory "{path}" does not exist')

    try:
        items = [
            f"{entry.name}/" if entry.is_dir() else entry.name
            for entry in dir_path.iterdir()
            if not entry.name.startswith(".")
        ]
    except OSError as e:
        raise ToolIOError(f'Failed to list files in "{path}": {e}')

    return "\n".join(sorted(items))
