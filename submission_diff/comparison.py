"""
Comparison of a starter file set with submission file sets.
"""

from __future__ import annotations

import logging
import threading
from collections import OrderedDict
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, List, Mapping, Optional, Tuple

from submission_diff.diff_data import ComparisonResult
from submission_diff.extraction import DEFAULT_RULES, ExtractionRules, FileSet, SubmissionTable, \
    extract_archive, group_submissions
from submission_diff.file_comparison import FileHasher
from submission_diff.patch import DEFAULT_BASELINE_LABEL, DEFAULT_CANDIDATE_LABEL, \
    DEFAULT_CONTEXT_LINES, diff_files

logger = logging.getLogger(__name__)

# Digests of starter and submission plus their path orders.
CacheKey = Tuple[str, str, Tuple[str, ...], Tuple[str, ...]]


def union_paths(baseline: Mapping[str, str], candidate: Mapping[str, str]) -> List[str]:
    """
    Computes the union of the paths of both file sets. Starter paths come first in their original
    order, followed by the paths that only exist in the submission, also in their original order.

    :param baseline: Starter files.
    :param candidate: Submission files.
    :return: Ordered list of unique paths.
    """
    paths = list(baseline)
    paths += [path for path in candidate if path not in baseline]
    return paths


def compare(baseline: Mapping[str, str], candidate: Mapping[str, str], *,
            context_lines: int = DEFAULT_CONTEXT_LINES,
            baseline_label: str = DEFAULT_BASELINE_LABEL,
            candidate_label: str = DEFAULT_CANDIDATE_LABEL) -> ComparisonResult:
    """
    Compares two file sets path by path. A path missing on one side is compared as empty file,
    paths with equal content are left out of the result.

    :param baseline: Starter files.
    :param candidate: Submission files.
    :param context_lines: Number of unchanged lines shown around each change.
    :param baseline_label: Label of the starter side in the patch headers.
    :param candidate_label: Label of the submission side in the patch headers.
    :return: One file diff per differing path, in the order of `union_paths()`.
    """
    records = []
    for path in union_paths(baseline, candidate):
        baseline_text = baseline.get(path, '')
        candidate_text = candidate.get(path, '')
        if baseline_text == candidate_text:
            continue

        records.append(diff_files(path, baseline_text, candidate_text,
                                  baseline_label=baseline_label,
                                  candidate_label=candidate_label,
                                  context_lines=context_lines))

    return ComparisonResult(records)


class Comparator:
    """
    Compares submissions against a starter file set. Results are cached by the content hashes and
    path orders of both file sets, so identical submissions are only diffed once. Cached results
    are shared between callers and must not be modified.
    """

    def __init__(self, context_lines: int = DEFAULT_CONTEXT_LINES, hash_algorithm: str = 'md5',
                 rules: ExtractionRules = DEFAULT_RULES,
                 baseline_label: str = DEFAULT_BASELINE_LABEL,
                 candidate_label: str = DEFAULT_CANDIDATE_LABEL,
                 cache_size: int = 256):
        """
        :param context_lines: Number of unchanged lines shown around each change.
        :param hash_algorithm: String describing a hash algorithm supported by `hashlib`
        :param rules: Conventions used when extracting archives.
        :param baseline_label: Label of the starter side in the patch headers.
        :param candidate_label: Label of the submission side in the patch headers.
        :param cache_size: Maximum number of cached comparison results, 0 disables the cache.
        """
        if context_lines < 0:
            raise ValueError('context_lines must not be negative.')
        if cache_size < 0:
            raise ValueError('cache_size must not be negative.')

        self.context_lines = context_lines
        self._file_hasher = FileHasher(hash_algorithm)
        self.rules = rules
        self.baseline_label = baseline_label
        self.candidate_label = candidate_label

        self.cache_size = cache_size
        self._cache: OrderedDict[CacheKey, ComparisonResult] = OrderedDict()
        self._cache_lock = threading.Lock()

    def compare(self, baseline: Mapping[str, str],
                candidate: Mapping[str, str]) -> ComparisonResult:
        """
        Compares a submission with the starter files, see `compare()`.

        :param baseline: Starter files.
        :param candidate: Submission files.
        :return: One file diff per differing path.
        """
        key = (self._file_hasher.compute_files_hash(baseline),
               self._file_hasher.compute_files_hash(candidate),
               tuple(baseline), tuple(candidate))
        with self._cache_lock:
            cached = self._cache.get(key)
            if cached is not None:
                self._cache.move_to_end(key)
        if cached is not None:
            return cached

        result = compare(baseline, candidate,
                         context_lines=self.context_lines,
                         baseline_label=self.baseline_label,
                         candidate_label=self.candidate_label)
        if self.cache_size > 0:
            with self._cache_lock:
                self._cache[key] = result
                while len(self._cache) > self.cache_size:
                    self._cache.popitem(last=False)
        return result

    def compare_submissions(self, baseline: Mapping[str, str],
                            submissions: Mapping[str, Mapping[str, str]],
                            max_workers: Optional[int] = None) -> Dict[str, ComparisonResult]:
        """
        Compares every submission with the same starter files. The comparisons are independent and
        run on a thread pool.

        :param baseline: Starter files.
        :param submissions: Files per submitter, e.g. a `SubmissionTable`.
        :param max_workers: Maximum number of worker threads, None for the executor default.
        :return: Comparison result per submitter, in the order of `submissions`.
        """
        logger.debug('Comparing %d submissions against %d starter files',
                     len(submissions), len(baseline))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = {
                student: executor.submit(self.compare, baseline, files)
                for student, files in submissions.items()
            }
            return {student: future.result() for student, future in futures.items()}

    def compare_archives(self, starter_data: bytes, submissions_data: bytes,
                         max_workers: Optional[int] = None
                         ) -> Tuple[FileSet, SubmissionTable, Dict[str, ComparisonResult]]:
        """
        Extracts a starter archive and a submissions archive and compares every submission.

        :param starter_data: Content of the starter archive.
        :param submissions_data: Content of the multi-submitter archive.
        :param max_workers: Maximum number of worker threads.
        :raises ArchiveFormatError: If one of the archives cannot be read.
        :return: Starter files, files per submitter and comparison result per submitter.
        """
        baseline = extract_archive(starter_data, self.rules)
        submissions = group_submissions(submissions_data, self.rules)
        logger.info('Loaded %d starter files and %d submissions', len(baseline), len(submissions))

        return baseline, submissions, self.compare_submissions(baseline, submissions, max_workers)
