import unittest
from unittest.mock import Mock, patch
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../src")))

from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from data_classes import RepositoryAccessError, Revision, RevisionKind
from git_content_source import GitContentSource

COMMIT = Revision(id="a" * 40, kind=RevisionKind.COMMIT)
STASH = Revision(id="b" * 40, kind=RevisionKind.STASH)


class TestGitContentSource(unittest.TestCase):
    def setUp(self):
        self.mock_repo = Mock()
        self.patcher = patch("git_content_source.Repo", return_value=self.mock_repo)
        self.mock_repo_class = self.patcher.start()
        self.addCleanup(self.patcher.stop)
        self.source = GitContentSource("/fake/repo", timeout=5)

    def test_invalid_repository_is_fatal(self):
        for error in (InvalidGitRepositoryError("/x"), NoSuchPathError("/x"), PermissionError("/x")):
            self.mock_repo_class.side_effect = error
            with self.assertRaises(RepositoryAccessError):
                GitContentSource("/x")

    def test_list_commits_excludes_stash_ref(self):
        self.mock_repo.git.rev_list.return_value = "abc\n def \n\n"
        self.assertEqual(self.source.list_commits(), ["abc", "def"])
        self.mock_repo.git.rev_list.assert_called_once_with("--exclude=refs/stash", "--all")

    def test_list_commits_failure_is_fatal(self):
        self.mock_repo.git.rev_list.side_effect = GitCommandError("rev-list", 128)
        with self.assertRaises(RepositoryAccessError):
            self.source.list_commits()

    def test_list_stashes(self):
        self.mock_repo.git.stash.return_value = "s1\ns2"
        self.assertEqual(self.source.list_stashes(), ["s1", "s2"])
        self.mock_repo.git.stash.assert_called_once_with("list", "--format=%H")

    def test_no_stashes(self):
        self.mock_repo.git.stash.return_value = ""
        self.assertEqual(self.source.list_stashes(), [])

    def test_list_stashes_failure_is_fatal(self):
        self.mock_repo.git.stash.side_effect = GitCommandError("stash", 1)
        with self.assertRaises(RepositoryAccessError):
            self.source.list_stashes()

    def test_files_touched_commit(self):
        self.mock_repo.git.show.return_value = b"\nsrc/app.py\0.env\0"
        listing = self.source.files_touched(COMMIT)

        self.assertTrue(listing.ok)
        self.assertEqual(listing.paths, ("src/app.py", ".env"))
        self.mock_repo.git.show.assert_called_once_with(
            "--name-only",
            "-z",
            "--pretty=format:",
            COMMIT.id,
            stdout_as_string=False,
            kill_after_timeout=5,
        )

    def test_files_touched_stash(self):
        self.mock_repo.git.diff.return_value = b"config.py\0"
        listing = self.source.files_touched(STASH)

        self.assertEqual(listing.paths, ("config.py",))
        self.mock_repo.git.diff.assert_called_once_with(
            "--name-only",
            "-z",
            f"{STASH.id}^1",
            STASH.id,
            stdout_as_string=False,
            kill_after_timeout=5,
        )

    def test_files_touched_keeps_unusual_names_verbatim(self):
        self.mock_repo.git.show.return_value = (
            "\ncafé.env\0dir/tab\tname.txt\0with \"quotes\".py\0".encode("utf-8")
        )
        listing = self.source.files_touched(COMMIT)

        self.assertEqual(
            listing.paths,
            ("café.env", "dir/tab\tname.txt", 'with "quotes".py'),
        )

    def test_read_stash_path_is_not_a_glob(self):
        self.mock_repo.git.diff.return_value = b"+x\n"
        self.source.read(STASH, "secrets[1].env")
        args = self.mock_repo.git.diff.call_args[0]
        self.assertEqual(args[-1], ":(literal)secrets[1].env")

    def test_files_touched_failure_is_local(self):
        self.mock_repo.git.show.side_effect = GitCommandError("show", 128)
        listing = self.source.files_touched(COMMIT)
        self.assertFalse(listing.ok)
        self.assertEqual(listing.paths, ())

    def test_read_commit_file(self):
        self.mock_repo.git.show.return_value = b"password = hunter2\n"
        result = self.source.read(COMMIT, "settings.py")

        self.assertTrue(result.ok)
        self.assertEqual(result.content, "password = hunter2\n")
        self.mock_repo.git.show.assert_called_once_with(
            f"{COMMIT.id}:settings.py", stdout_as_string=False, kill_after_timeout=5
        )

    def test_read_stash_file_uses_diff(self):
        self.mock_repo.git.diff.return_value = b"+token = abc\n"
        result = self.source.read(STASH, "config.py")

        self.assertEqual(result.content, "+token = abc\n")
        self.mock_repo.git.diff.assert_called_once_with(
            f"{STASH.id}^1",
            STASH.id,
            "--",
            ":(literal)config.py",
            stdout_as_string=False,
            kill_after_timeout=5,
        )

    def test_read_binary_fails(self):
        self.mock_repo.git.show.return_value = b"\x89PNG\x00\x00"
        result = self.source.read(COMMIT, "logo.png")
        self.assertFalse(result.ok)
        self.assertEqual(result.error, "binary content")

    def test_read_deleted_or_timed_out_fails(self):
        self.mock_repo.git.show.side_effect = GitCommandError("show", -9, "Timeout")
        result = self.source.read(COMMIT, "gone.py")
        self.assertFalse(result.ok)
        self.assertIsNone(result.content)

    def test_undecodable_bytes_are_dropped(self):
        self.mock_repo.git.show.return_value = b"key = caf\xe9\n"
        self.assertEqual(self.source.read(COMMIT, "f.txt").content, "key = caf\n")

    def test_no_timeout(self):
        source = GitContentSource("/fake/repo", timeout=None)
        self.mock_repo.git.show.return_value = b"x"
        source.read(COMMIT, "f.txt")
        self.mock_repo.git.show.assert_called_once_with(
            f"{COMMIT.id}:f.txt", stdout_as_string=False
        )


if __name__ == "__main__":
    unittest.main()
