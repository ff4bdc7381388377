"""
Helper to display comparison results on the command line.
"""

import sys
from typing import List

from submission_diff.archive_format_handler import ArchiveFormatError
from submission_diff.diff_data import ComparisonResult, DiffStatus, FileDiff


class DiffPrinter:
    """
    Utility to print comparison results in various formats
    """

    def __init__(self, quiet=False, patch=False, output=None):
        """
        :param quiet: True to use a short one line summary per submitter.
        :param patch: True to print the plain unified patch text instead of the annotated hunks.
        :param output: Output stream to write to, defaults to the current standard output.
        """
        self.quiet = quiet
        self.patch = patch
        self.output = output if output is not None else sys.stdout

        self._status_to_name = {
            DiffStatus.ADDED: 'Added',
            DiffStatus.REMOVED: 'Removed',
            DiffStatus.MODIFIED: 'Modified',
        }
        self._divider = '*' * 80

    def line(self, *args):
        """
        Prints a line to the configured output stream.
        :param args: line contents
        """
        print(*args, file=self.output)

    def print_loaded(self, starter_count: int, submission_count: int):
        """
        Prints how many starter files and submissions were loaded.
        """
        if self.quiet:
            return
        self.line(f'{starter_count} starter files loaded')
        self.line(f'{submission_count} submissions loaded')

    def print_errors(self, name: str, errors: List[ArchiveFormatError]):
        """
        Prints the archive entries that were skipped for a submitter or the starter archive.
        """
        for error in errors:
            self.line(f'Skipped for {name}: {error}')

    def print_comparison(self, submitter: str, result: ComparisonResult):
        """
        Prints the comparison result of one submitter in the configured output format.
        :param submitter: Name of the submitter.
        :param result: Comparison of the submitter's files with the starter files.
        """
        counts = result.stats()

        if self.quiet:
            if len(result) > 0:
                self.line(f'{submitter}:'
                          f' a={counts[DiffStatus.ADDED]}'
                          f' r={counts[DiffStatus.REMOVED]}'
                          f' m={counts[DiffStatus.MODIFIED]}')
            return

        self.line(self._divider)
        if len(result) == 0:
            self.line(f'No changes for {submitter}')
            return

        self.line(f'Changes for {submitter} ({len(result)} files)')
        self.line(self._divider)

        for file_diff in result:
            if self.patch:
                self.output.write(file_diff.patch)
            else:
                self.print_file_diff(file_diff)

        self.line(self._divider)

        width = len(str(max(counts.values())))
        pattern = f'{{status_name:9s}} {{status_count:{width:d}d}}'
        for status in DiffStatus:
            self.line(pattern.format(status_name=self._status_to_name[status] + ':',
                                     status_count=counts[status]))

    def print_file_diff(self, file_diff: FileDiff):
        """
        Prints the hunks of a single file diff.
        :param file_diff: File diff to print.
        """
        self.line(f'{file_diff.path} [{file_diff.status.value}]')
        for hunk in file_diff.hunks:
            self.line(hunk.header)
            for rendered in hunk.rendered_lines():
                self.line(rendered)
        self.line()

