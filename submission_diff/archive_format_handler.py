"""
Implementations of handlers (listing and reading of entries) for various in-memory archive formats.
"""
from __future__ import annotations

import io
import tarfile
import zipfile
import zlib
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Iterator

# Errors the stdlib raises while reading a single member of an otherwise readable archive.
# RuntimeError covers encrypted zip members, NotImplementedError unsupported compression methods.
_MEMBER_READ_ERRORS = (OSError, EOFError, zlib.error, zipfile.BadZipFile, tarfile.TarError,
                       RuntimeError, NotImplementedError)


class ArchiveFormatError(Exception):
    """
    Base class of all errors raised while opening archives or reading their entries.
    """


class ArchiveOpenError(ArchiveFormatError):
    """
    Error raised if the input bytes are not a supported archive or the archive cannot be opened.
    """


class EntryDecodeError(ArchiveFormatError):
    """
    Error raised if a single archive entry cannot be read or decoded as text.
    """

    def __init__(self, entry_name: str, reason: str):
        """
        :param entry_name: Path of the failing entry inside the archive.
        :param reason: Human-readable description of the failure.
        """
        super().__init__(f'{entry_name}: {reason}')
        self.entry_name = entry_name
        self.reason = reason


class InputTypeError(ArchiveFormatError, TypeError):
    """
    Error raised if the caller supplies something other than archive bytes.
    """


def ensure_bytes(data) -> bytes:
    """
    Checks that the input is a bytes-like object.

    :param data: Caller supplied archive content.
    :raises InputTypeError: If the input is not bytes, bytearray or memoryview.
    :return: The content as immutable bytes.
    """
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        return bytes(data)

    raise InputTypeError(f'Expected archive bytes, got {type(data).__name__}.')


@dataclass(frozen=True)
class ArchiveEntry:
    """
    A single member of an archive. The content is only read when `read()` is called, which must
    happen before the iteration proceeds to the next entry.
    """
    name: str
    is_file: bool
    _reader: Callable[[], bytes]

    def read(self) -> bytes:
        """
        :raises EntryDecodeError: If the member cannot be read.
        :return: Raw content of this entry.
        """
        try:
            return self._reader()
        except _MEMBER_READ_ERRORS as error:
            raise EntryDecodeError(self.name, f'could not read entry ({error})') from error


class ArchiveFormatHandler(ABC):
    """
    Base class for all archive handlers.
    """

    @abstractmethod
    def check_bytes(self, data: bytes) -> bool:
        """
        Checks if the given content can be processed by this handler.

        :param data: Archive content
        :return: True, if the content is a valid archive for this handler.
        """
        raise NotImplementedError()

    @abstractmethod
    def iter_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        """
        Lists the files and folders in the given archive in the archive's native order.

        :param data: Archive content
        :raises ArchiveOpenError: If the input is not supported by this handler or is corrupt.
        :return: Entries of the archive.
        """
        raise NotImplementedError()


class ZipArchiveHandler(ArchiveFormatHandler):
    """
    Handler for zip-based archives.
    """

    def check_bytes(self, data: bytes) -> bool:
        return zipfile.is_zipfile(io.BytesIO(data))

    def iter_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        if not self.check_bytes(data):
            raise ArchiveOpenError('Not a zip file.')

        try:
            archive = zipfile.ZipFile(io.BytesIO(data), 'r')
        except (zipfile.BadZipFile, OSError, EOFError) as error:
            raise ArchiveOpenError(f'Could not open zip file: {error}') from error

        def reader(info: zipfile.ZipInfo) -> Callable[[], bytes]:
            def read() -> bytes:
                with archive.open(info, 'r') as file:
                    return file.read()

            return read

        with archive:
            for info in archive.infolist():
                yield ArchiveEntry(info.filename, not info.is_dir(), reader(info))


class TarArchiveHandler(ArchiveFormatHandler):
    """
    Handler for tar-based archives, including various compressed variants thereof.
    """

    def check_bytes(self, data: bytes) -> bool:
        try:
            with tarfile.open(fileobj=io.BytesIO(data), mode='r:*'):
                return True
        except (tarfile.TarError, OSError, EOFError):
            return False

    def iter_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        try:
            archive = tarfile.open(fileobj=io.BytesIO(data), mode='r:*')
        except (tarfile.TarError, OSError, EOFError) as error:
            raise ArchiveOpenError(f'Not a tar file: {error}') from error

        def reader(member: tarfile.TarInfo) -> Callable[[], bytes]:
            def read() -> bytes:
                with archive.extractfile(member) as file:
                    return file.read()

            return read

        with archive:
            members = iter(archive)
            while True:
                # Tar members are parsed lazily, so a truncated archive only fails while iterating.
                try:
                    member = next(members)
                except StopIteration:
                    break
                except (tarfile.TarError, OSError, EOFError, zlib.error) as error:
                    raise ArchiveOpenError(f'Corrupt tar file: {error}') from error

                yield ArchiveEntry(member.name, member.isfile(), reader(member))


try:
    import py7zr
    from py7zr.exceptions import ArchiveError as SevenZipArchiveError, PasswordRequired


    class SevenZipArchiveHandler(ArchiveFormatHandler):
        """
        Handler for 7zip-based archives. This handler performs a full in-memory extraction of the
        archive which makes it unsuitable for large archives.
        """

        def check_bytes(self, data: bytes) -> bool:
            return py7zr.is_7zfile(io.BytesIO(data))

        def iter_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
            if not self.check_bytes(data):
                raise ArchiveOpenError('Not a 7z file.')

            try:
                with py7zr.SevenZipFile(io.BytesIO(data), 'r') as archive:
                    infos = archive.list()
                    file_contents = archive.readall() or {}
            except (SevenZipArchiveError, PasswordRequired, OSError, EOFError) as error:
                raise ArchiveOpenError(f'Could not open 7z file: {error}') from error

            for info in infos:
                if info.is_directory:
                    yield ArchiveEntry(info.filename, False, bytes)
                else:
                    content = file_contents.get(info.filename)
                    if content is None:
                        raise ArchiveOpenError(f'Missing content for 7z entry {info.filename}.')
                    yield ArchiveEntry(info.filename, True, content.read)

except ImportError:
    py7zr = None


class DispatchingArchiveHandler(ArchiveFormatHandler):
    """
    Handler that dispatches to the first supported handler in a collection of other handlers.
    """

    def __init__(self):
        self._format_handlers = [ZipArchiveHandler()]
        if py7zr is not None:
            self._format_handlers.append(SevenZipArchiveHandler())
        # Tar detection is the weakest check, so it runs last.
        self._format_handlers.append(TarArchiveHandler())

    def _get_handler_for_bytes(self, data: bytes) -> ArchiveFormatHandler:
        """
        Checks the added handlers one-by-one in order for compatibility with the given archive. The
        first matching handler is returned.

        :param data: Input archive content.
        :return: First matching handler.
        :throws ArchiveOpenError: If no suitable handler is found.
        """
        for handler in self._format_handlers:
            if handler.check_bytes(data):
                return handler

        raise ArchiveOpenError('Could not find handler that supports the given archive type.')

    def check_bytes(self, data: bytes) -> bool:
        try:
            handler = self._get_handler_for_bytes(ensure_bytes(data))
            return handler is not None
        except ArchiveOpenError:
            return False

    def iter_entries(self, data: bytes) -> Iterator[ArchiveEntry]:
        data = ensure_bytes(data)
        handler = self._get_handler_for_bytes(data)
        return handler.iter_entries(data)
