"""
Command-line interface to the submission-diff module.
"""

import argparse
import hashlib
import logging
import pathlib as pl

from submission_diff import ArchiveFormatError, Comparator, DiffPrinter, ExtractionRules, \
    extract_archive, group_submissions


def main():
    """
    Main method that handles the command line interface of submission-diff
    """
    parser = argparse.ArgumentParser(
        'submission-diff',
        description='''Shows how student submissions diverge from the starter code.''')
    parser.add_argument('starter',
                        type=pl.Path,
                        metavar='STARTER',
                        help='Archive with the starter code.')
    parser.add_argument('submissions',
                        type=pl.Path,
                        metavar='SUBMISSIONS',
                        help='Archive with one folder per submitter, as exported by the course'
                             ' platform.')
    parser.add_argument('--single',
                        action='store_true',
                        help='Treat SUBMISSIONS as the archive of a single submission.')
    parser.add_argument('--student',
                        metavar='NAME',
                        help='Only show the changes of the given submitter.')
    parser.add_argument('--suffix',
                        default='.py',
                        help='Suffix of the source files to compare.')
    parser.add_argument('--context-lines', '-U',
                        type=int,
                        default=4,
                        help='Number of unchanged lines shown around each change.')
    parser.add_argument('--hash-algorithm',
                        required=False,
                        choices=sorted(a for a in hashlib.algorithms_guaranteed
                                       if not a.startswith('shake_')),
                        default='md5',
                        help='Hash algorithm used to detect identical submissions.')
    parser.add_argument('--jobs', '-j',
                        type=int,
                        default=None,
                        help='Number of worker threads used for the comparisons.')
    parser.add_argument('--patch',
                        action='store_true',
                        help='Print plain unified patches instead of annotated hunks.')
    parser.add_argument('--quiet', '-q',
                        action='store_true',
                        help='Only print one summary line per submitter with changes.')
    parser.add_argument('--verbose', '-v',
                        action='store_true',
                        help='Log details about the processing.')
    args = parser.parse_args()

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING,
                        format='%(levelname)s %(name)s: %(message)s')

    if args.context_lines < 0:
        parser.error('--context-lines must not be negative')
    if args.jobs is not None and args.jobs < 1:
        parser.error('--jobs must be at least 1')

    rules = ExtractionRules(source_suffix=args.suffix)
    comparator = Comparator(context_lines=args.context_lines,
                            hash_algorithm=args.hash_algorithm,
                            rules=rules)
    printer = DiffPrinter(quiet=args.quiet, patch=args.patch)

    try:
        starter_data = args.starter.read_bytes()
        submissions_data = args.submissions.read_bytes()
    except FileNotFoundError as error:
        print(f'File not found: {error.filename}')
        return 1
    except OSError as error:
        print(f'Cannot read file: {error.filename}: {error.strerror}')
        return 1

    try:
        baseline = extract_archive(starter_data, rules)
        if args.single:
            candidate = extract_archive(submissions_data, rules)
            submissions = {args.submissions.stem: candidate}
            skipped = {args.submissions.stem: candidate.errors}
        else:
            submissions = group_submissions(submissions_data, rules)
            skipped = submissions.errors
    except ArchiveFormatError as error:
        print(f'Error processing archive: {error}')
        return 1

    printer.print_loaded(len(baseline), len(submissions))
    printer.print_errors('starter', baseline.errors)
    for student, errors in skipped.items():
        printer.print_errors(student, errors)

    if args.student is not None:
        if args.student not in submissions:
            print(f'Unknown submitter: {args.student}')
            print('Available:', ', '.join(submissions))
            return 1
        submissions = {args.student: submissions[args.student]}

    results = comparator.compare_submissions(baseline, submissions, max_workers=args.jobs)
    for student, result in results.items():
        printer.print_comparison(student, result)

    return 0


if __name__ == '__main__':
    raise SystemExit(main())
