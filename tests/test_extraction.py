"""
Test cases for the extraction of starter archives and submission archives.
"""
import io
import tarfile
import unittest
import zipfile
from unittest import TestCase

from submission_diff.archive_format_handler import ArchiveOpenError, EntryDecodeError, \
    InputTypeError
from submission_diff.extraction import ExtractionRules, FileSet, extract_archive, \
    group_submissions, submitter_id


def make_zip(entries) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for name, content in entries:
            archive.writestr(name, content)
    return buffer.getvalue()


def make_tar_gz(entries) -> bytes:
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode='w:gz') as archive:
        for name, content in entries:
            data = content.encode('utf-8')
            info = tarfile.TarInfo(name)
            info.size = len(data)
            archive.addfile(info, io.BytesIO(data))
    return buffer.getvalue()


class TestExtractArchive(TestCase):
    """
    Tests the extraction of source files from a single archive.
    """

    def test_filters_and_normalizes(self):
        """
        Only source files outside the metadata folder are kept, keyed by file name.
        """
        data = make_zip([
            ('foo/', ''),
            ('foo/bar.py', 'print("bar")\n'),
            ('__MACOSX/._bar.py', 'resource fork'),
            ('foo/readme.md', '# readme\n'),
        ])

        files = extract_archive(data)

        self.assertEqual({'bar.py': 'print("bar")\n'}, dict(files))
        self.assertEqual([], files.errors)

    def test_later_entry_wins(self):
        """
        Entries with the same file name in different folders collapse, the later one wins.
        """
        data = make_zip([
            ('project/a/util.py', 'first\n'),
            ('project/b/util.py', 'second\n'),
            ('project/main.py', 'main\n'),
        ])

        files = extract_archive(data)

        self.assertEqual(['util.py', 'main.py'], list(files))
        self.assertEqual('second\n', files['util.py'])

    def test_empty_archive(self):
        """
        An archive without source files yields an empty file set.
        """
        files = extract_archive(make_zip([('notes.txt', 'nothing here')]))

        self.assertEqual(0, len(files))
        self.assertEqual([], files.errors)

    def test_tar_archive(self):
        """
        Compressed tar archives are extracted like zip archives.
        """
        files = extract_archive(make_tar_gz([('starter/main.py', 'x = 1\n')]))

        self.assertEqual({'main.py': 'x = 1\n'}, dict(files))

    def test_custom_suffix(self):
        """
        The source suffix is configurable.
        """
        data = make_zip([('src/Main.java', 'class Main {}\n'), ('src/main.py', 'pass\n')])

        files = extract_archive(data, ExtractionRules(source_suffix='.java'))

        self.assertEqual(['Main.java'], list(files))

    def test_undecodable_entry_is_skipped(self):
        """
        An entry that is not valid text is skipped and reported, the other entries survive.
        """
        data = make_zip([('good.py', 'ok = True\n'), ('bad.py', b'\xff\xfe\x00bad')])

        with self.assertLogs('submission_diff.extraction', level='WARNING'):
            files = extract_archive(data)

        self.assertEqual({'good.py': 'ok = True\n'}, dict(files))
        self.assertEqual(1, len(files.errors))
        self.assertIsInstance(files.errors[0], EntryDecodeError)
        self.assertEqual('bad.py', files.errors[0].entry_name)

    def test_undecodable_entry_strict(self):
        """
        In strict mode the first undecodable entry aborts the extraction.
        """
        data = make_zip([('good.py', 'ok = True\n'), ('bad.py', b'\xff\xfe\x00bad')])

        with self.assertRaises(EntryDecodeError):
            extract_archive(data, strict=True)

    def test_corrupt_archive(self):
        """
        Corrupt archives and wrong input types are reported as errors.
        """
        with self.assertRaises(ArchiveOpenError):
            extract_archive(b'PK\x03\x04 definitely not a zip')
        with self.assertRaises(InputTypeError):
            extract_archive('starter.zip')

    def test_deterministic(self):
        """
        Extracting the same bytes twice gives the same file set.
        """
        data = make_zip([('a.py', 'a\n'), ('b/a.py', 'b\n'), ('c.py', 'c\n')])

        self.assertEqual(extract_archive(data), extract_archive(data))
        self.assertEqual(extract_archive(data).digest(), extract_archive(data).digest())


class TestGroupSubmissions(TestCase):
    """
    Tests splitting a submissions archive by submitter.
    """

    def test_direct_and_nested_files(self):
        """
        Source files are taken directly or from a nested archive.
        """
        nested = make_zip([('project/x.py', 'x = 1\n'), ('__MACOSX/project/._x.py', 'junk')])
        data = make_zip([
            ('alice_12_assignsubmission_file/main.py', 'print("alice")\n'),
            ('bob_34_assignsubmission_file/sub.zip', nested),
        ])

        table = group_submissions(data)

        self.assertEqual(['alice', 'bob'], list(table))
        self.assertEqual({'main.py': 'print("alice")\n'}, dict(table['alice']))
        self.assertEqual({'x.py': 'x = 1\n'}, dict(table['bob']))
        self.assertEqual({}, table.errors)

    def test_merge_per_submitter(self):
        """
        Files of one submitter are merged, later files overwrite earlier ones with the same name.
        """
        nested = make_zip([('solution/main.py', 'from zip\n'), ('solution/util.py', 'util\n')])
        data = make_zip([
            ('alice_12_assignsubmission_file/main.py', 'direct\n'),
            ('alice_12_assignsubmission_file/solution.zip', nested),
            ('alice_12_assignsubmission_file/extra/helper.py', 'helper\n'),
        ])

        table = group_submissions(data)

        self.assertEqual(['alice'], list(table))
        self.assertEqual({'main.py': 'from zip\n', 'util.py': 'util\n', 'helper.py': 'helper\n'},
                         dict(table['alice']))

    def test_ignored_entries(self):
        """
        Online text submissions, metadata, other files and empty submissions are ignored.
        """
        data = make_zip([
            ('alice_12_assignsubmission_file/', ''),
            ('alice_12_assignsubmission_file/main.py', 'main\n'),
            ('carol_56_onlinetext_assignsubmission_file/answer.py', 'text\n'),
            ('dave_78_assignsubmission_file/readme.txt', 'no code\n'),
            ('erin_90_assignsubmission_file/docs.zip', make_zip([('doc.md', '# doc\n')])),
            ('__MACOSX/frank_11_assignsubmission_file/._main.py', 'junk'),
            ('stray/main.py', 'not a submission\n'),
        ])

        table = group_submissions(data)

        self.assertEqual(['alice'], list(table))
        self.assertEqual({}, table.errors)

    def test_broken_nested_archive_is_isolated(self):
        """
        A corrupt nested archive only affects its own submitter.
        """
        data = make_zip([
            ('alice_12_assignsubmission_file/main.py', 'main\n'),
            ('bob_34_assignsubmission_file/sub.zip', b'garbage'),
            ('carol_56_assignsubmission_file/sub.zip', make_zip([('x.py', 'x\n')])),
        ])

        with self.assertLogs('submission_diff.extraction', level='WARNING'):
            table = group_submissions(data)

        self.assertEqual(['alice', 'carol'], list(table))
        self.assertEqual(['bob'], list(table.errors))
        self.assertIsInstance(table.errors['bob'][0], ArchiveOpenError)

    def test_undecodable_file_is_isolated(self):
        """
        A file that is not valid text is recorded for its submitter, other files are kept.
        """
        data = make_zip([
            ('alice_12_assignsubmission_file/main.py', 'main\n'),
            ('alice_12_assignsubmission_file/bad.py', b'\xff\xfe'),
            ('bob_34_assignsubmission_file/sub.zip', make_zip([('x.py', 'x\n'),
                                                               ('y.py', b'\xff')])),
        ])

        with self.assertLogs('submission_diff.extraction', level='WARNING'):
            table = group_submissions(data)

        self.assertEqual({'main.py': 'main\n'}, dict(table['alice']))
        self.assertEqual({'x.py': 'x\n'}, dict(table['bob']))
        self.assertEqual(1, len(table['alice'].errors))
        self.assertEqual(1, len(table['bob'].errors))
        self.assertEqual(['alice', 'bob'], list(table.errors))

    def test_nested_tar_archive(self):
        """
        Nested archives may use any supported format.
        """
        data = make_zip([
            ('bob_34_assignsubmission_file/sub.tar.gz', make_tar_gz([('sub/x.py', 'x\n')])),
        ])

        self.assertEqual({'x.py': 'x\n'}, dict(group_submissions(data)['bob']))

    def test_corrupt_submissions_archive(self):
        """
        A submissions archive that cannot be opened is a single error.
        """
        with self.assertRaises(ArchiveOpenError):
            group_submissions(b'garbage')
        with self.assertRaises(InputTypeError):
            group_submissions(None)

    def test_submitter_id(self):
        """
        The submitter id is the token before the first delimiter.
        """
        self.assertEqual('alice', submitter_id('alice_12_assignsubmission_file/main.py'))
        self.assertEqual('Alice Smith', submitter_id('Alice Smith_12_assignsubmission_file/a.py'))
        self.assertEqual('alice', submitter_id('alice-12-x/a.py', delimiter='-'))
        self.assertEqual('nodelimiter', submitter_id('nodelimiter'))


class TestFileSet(TestCase):
    """
    Tests the `FileSet` mapping.
    """

    def test_immutable_mapping(self):
        """
        The file set copies its input and compares like a dict.
        """
        source = {'a.py': 'a\n'}
        files = FileSet(source)
        source['b.py'] = 'b\n'

        self.assertEqual({'a.py': 'a\n'}, files)
        self.assertNotIn('b.py', files)
        with self.assertRaises(TypeError):
            files['b.py'] = 'b\n'

    def test_digest(self):
        """
        The digest depends on paths and contents, not on their order.
        """
        self.assertEqual(FileSet({'a.py': 'a', 'b.py': 'b'}).digest(),
                         FileSet({'b.py': 'b', 'a.py': 'a'}).digest())
        self.assertNotEqual(FileSet({'ab': 'c'}).digest(), FileSet({'a': 'bc'}).digest())
        self.assertNotEqual(FileSet({'a.py': 'a'}).digest(),
                            FileSet({'a.py': 'a'}).digest('sha256'))


if __name__ == '__main__':
    unittest.main()
