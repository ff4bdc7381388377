"""
Extraction of source files from starter archives and from multi-submitter submission archives.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Dict, Iterable, Iterator, List, Optional, Tuple

from submission_diff.archive_format_handler import ArchiveEntry, ArchiveFormatError, \
    DispatchingArchiveHandler, EntryDecodeError
from submission_diff.file_comparison import FileHasher
from submission_diff.utils import entry_basename

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExtractionRules:
    """
    Naming conventions used to select files from archives and to group them by submitter.
    """
    source_suffix: str = '.py'
    metadata_prefix: str = '__MACOSX/'
    archive_suffixes: Tuple[str, ...] = ('.zip', '.tar', '.tar.gz', '.tgz', '.tar.bz2', '.tbz2',
                                         '.tar.xz', '.txz', '.7z')
    submission_marker: str = '_assignsubmission_file/'
    online_text_marker: str = '_onlinetext'
    submitter_delimiter: str = '_'
    encoding: str = 'utf-8'

    def is_metadata(self, path: str) -> bool:
        return path.startswith(self.metadata_prefix)

    def is_source(self, path: str) -> bool:
        return path.endswith(self.source_suffix)

    def is_nested_archive(self, path: str) -> bool:
        return path.endswith(self.archive_suffixes)

    def is_submission_entry(self, path: str) -> bool:
        """
        Checks if an entry of a submissions archive belongs to a file submission. Online text
        submissions are a separate submission mode and are ignored.
        """
        return self.submission_marker in path and self.online_text_marker not in path


DEFAULT_RULES = ExtractionRules()


class FileSet(Mapping):
    """
    Immutable mapping from normalized file name to decoded text content. Entries that were skipped
    because they could not be read or decoded are listed in `errors`.
    """

    def __init__(self, files: Optional[Mapping] = None,
                 errors: Iterable[ArchiveFormatError] = ()):
        """
        :param files: Mapping from normalized path to text content.
        :param errors: Errors of entries that were skipped during extraction.
        """
        self._files: Dict[str, str] = dict(files or {})
        self.errors: List[ArchiveFormatError] = list(errors)

    def __getitem__(self, path: str) -> str:
        return self._files[path]

    def __iter__(self) -> Iterator[str]:
        return iter(self._files)

    def __len__(self) -> int:
        return len(self._files)

    def __repr__(self):
        return f'FileSet({list(self._files)!r}, errors={len(self.errors)})'

    def digest(self, hash_algorithm: str = 'md5') -> str:
        """
        :param hash_algorithm: String describing a hash algorithm supported by `hashlib`
        :return: Fingerprint over all paths and contents of this file set.
        """
        return FileHasher(hash_algorithm).compute_files_hash(self._files)


class SubmissionTable(Mapping):
    """
    Immutable mapping from submitter id to the submitter's `FileSet`, in order of appearance in the
    submissions archive. Failures that were isolated to a single submitter are listed in `errors`.
    """

    def __init__(self, submissions: Optional[Mapping] = None,
                 errors: Optional[Mapping] = None):
        self._submissions: Dict[str, FileSet] = dict(submissions or {})
        self.errors: Dict[str, List[ArchiveFormatError]] = {
            key: list(value) for key, value in (errors or {}).items()}

    def __getitem__(self, submitter: str) -> FileSet:
        return self._submissions[submitter]

    def __iter__(self) -> Iterator[str]:
        return iter(self._submissions)

    def __len__(self) -> int:
        return len(self._submissions)

    def __repr__(self):
        return f'SubmissionTable({list(self._submissions)!r})'


_archive_handler = DispatchingArchiveHandler()


def submitter_id(path: str, delimiter: str = DEFAULT_RULES.submitter_delimiter) -> str:
    """
    Derives the submitter id from an entry path of a submissions archive, e.g. 'alice' for
    'alice_12_assignsubmission_file/main.py'.

    :param path: Entry path inside the submissions archive.
    :param delimiter: Delimiter that terminates the submitter token.
    :return: Token before the first delimiter.
    """
    return path.split(delimiter, 1)[0]


def decode_entry(entry: ArchiveEntry, encoding: str) -> str:
    """
    Reads and decodes a single archive entry.

    :param entry: Archive entry to decode.
    :param encoding: Text encoding of the entry.
    :raises EntryDecodeError: If the entry cannot be read or is not valid text.
    :return: Decoded text.
    """
    raw = entry.read()
    try:
        return raw.decode(encoding)
    except UnicodeDecodeError as error:
        raise EntryDecodeError(entry.name, f'not valid {encoding} text ({error.reason})') from error


def extract_archive(data: bytes, rules: ExtractionRules = DEFAULT_RULES,
                    strict: bool = False) -> FileSet:
    """
    Extracts all source files of an archive. Directory structure inside the archive is discarded,
    files are keyed by their file name. If two entries share a file name, the later entry wins.

    :param data: Archive content.
    :param rules: Conventions used to select the source files.
    :param strict: True to raise on the first entry that cannot be decoded instead of skipping it.
    :raises InputTypeError: If `data` is not bytes-like.
    :raises ArchiveOpenError: If the archive format is unsupported or the archive is corrupt.
    :raises EntryDecodeError: Only if `strict` is set.
    :return: Decoded source files of the archive.
    """
    files = {}
    errors = []
    for entry in _archive_handler.iter_entries(data):
        if not entry.is_file or rules.is_metadata(entry.name) or not rules.is_source(entry.name):
            continue

        try:
            files[entry_basename(entry.name)] = decode_entry(entry, rules.encoding)
        except EntryDecodeError as error:
            if strict:
                raise
            logger.warning('Skipping archive entry %s', error)
            errors.append(error)

    return FileSet(files, errors)


def group_submissions(data: bytes, rules: ExtractionRules = DEFAULT_RULES) -> SubmissionTable:
    """
    Splits a submissions archive into the source files of each submitter. Entries are expected at
    paths like '<submitter>_<id>_assignsubmission_file/<file>', where each file is either a source
    file or a nested archive with source files.

    A nested archive or entry that cannot be read only affects its submitter; the error is logged
    and recorded in `SubmissionTable.errors`. Submitters without any source file are left out.

    :param data: Content of the submissions archive.
    :param rules: Conventions used to select and group the files.
    :raises InputTypeError: If `data` is not bytes-like.
    :raises ArchiveOpenError: If the submissions archive itself cannot be read.
    :return: Source files per submitter.
    """
    submissions: Dict[str, Dict[str, str]] = {}
    errors: Dict[str, List[ArchiveFormatError]] = {}

    for entry in _archive_handler.iter_entries(data):
        path = entry.name
        if not entry.is_file or rules.is_metadata(path) or not rules.is_submission_entry(path):
            continue

        nested = rules.is_nested_archive(path)
        if not nested and not rules.is_source(path):
            continue

        student = submitter_id(path, rules.submitter_delimiter)
        try:
            if nested:
                files = extract_archive(entry.read(), rules)
                errors.setdefault(student, []).extend(files.errors)
            else:
                files = {entry_basename(path): decode_entry(entry, rules.encoding)}
        except ArchiveFormatError as error:
            logger.warning('Skipping %s for submitter %s: %s', path, student, error)
            errors.setdefault(student, []).append(error)
            continue

        if files:
            submissions.setdefault(student, {}).update(files)

    return SubmissionTable(
        {student: FileSet(files, errors.get(student, ())) for student, files in submissions.items()},
        {student: student_errors for student, student_errors in errors.items() if student_errors},
    )
