"""
Utility functions.
"""

from typing import List


def path_parts(path: str) -> List[str]:
    """
    Splits an archive entry path into its parts. Archive members always use '/' as separator,
    independent of the platform the archive was created on.

    :param path: Input path.
    :return: parts of the path, empty segments removed
    """
    return [part for part in path.split('/') if part]


def entry_basename(path: str) -> str:
    """
    Normalizes an archive entry path to its final path component.

    :param path: Archive entry path, e.g. 'project/src/main.py'
    :return: Final component, e.g. 'main.py'. The path itself if it has no separator.
    """
    parts = path_parts(path)
    return parts[-1] if parts else path


def split_lines(text: str) -> List[str]:
    """
    Splits text into lines while keeping the '\\n' terminators. The last line has no terminator
    if the text does not end with a newline.

    :param text: Input text.
    :return: List of lines, empty for empty text.
    """
    lines = text.split('\n')
    if lines[-1] == '':
        lines.pop()
        return [line + '\n' for line in lines]

    return [line + '\n' for line in lines[:-1]] + [lines[-1]]
