"""Unit tests for EditingSession."""

import shlex
import sys

import pytest

from esa_cli.editing.post_text import DEFAULT_TEMPLATE, render
from esa_cli.editing.session import EditingSession, SessionState
from esa_cli.services.exceptions import ProcessError


@pytest.fixture
def scratch_path(tmp_path):
    return tmp_path / "scratch" / "edit.md"


class TestSessionSetup:
    """Test scratch file preparation."""

    def test_creates_scratch_directory_and_file(self, scratch_path, make_editor):
        """Test the scratch file exists as soon as the session is created."""
        session = EditingSession(scratch_path, make_editor())

        assert scratch_path.exists()
        assert session.state is SessionState.IDLE

    def test_keeps_existing_scratch_file(self, scratch_path, make_editor):
        """Test an existing scratch file is left alone until open()."""
        scratch_path.parent.mkdir(parents=True)
        scratch_path.write_text("leftover")

        EditingSession(scratch_path, make_editor())

        assert scratch_path.read_text() == "leftover"

    def test_scratch_dir_that_is_a_file_fails(self, tmp_path, make_editor):
        """Test an unusable scratch location is a ProcessError."""
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")

        with pytest.raises(ProcessError, match="failed to create scratch file"):
            EditingSession(blocker / "edit.md", make_editor())

    def test_empty_editor_command_fails(self, scratch_path):
        with pytest.raises(ProcessError, match="editor command is empty"):
            EditingSession(scratch_path, "   ")

    def test_unbalanced_quotes_fail(self, scratch_path):
        with pytest.raises(ProcessError, match="invalid editor command"):
            EditingSession(scratch_path, 'vim "unterminated')


class TestOpen:
    """Test writing the scratch file and running the editor."""

    def test_open_writes_initial_text_and_returns_exit_status(self, scratch_path, make_editor):
        """Test the editor sees the pre-filled text and its status is returned."""
        session = EditingSession(scratch_path, make_editor())

        status = session.open(render("Title", "body"))

        assert status == 0
        assert scratch_path.read_text(encoding="utf-8") == render("Title", "body")
        assert session.state is SessionState.CLOSED
        assert session.exit_status == 0

    def test_open_truncates_previous_content(self, scratch_path, make_editor):
        """Test longer leftover content does not bleed into the new buffer."""
        scratch_path.parent.mkdir(parents=True)
        scratch_path.write_text("x" * 1000)
        session = EditingSession(scratch_path, make_editor())

        session.open("short")

        assert scratch_path.read_text() == "short"

    def test_nonzero_exit_status(self, scratch_path, make_editor):
        """Test a failing editor's status is reported, not raised."""
        session = EditingSession(scratch_path, make_editor(exit_code=3))

        assert session.open(DEFAULT_TEMPLATE) == 3
        assert session.exit_status == 3

    def test_missing_editor_is_process_error(self, scratch_path):
        """Test an editor that cannot be launched raises ProcessError."""
        session = EditingSession(scratch_path, "/nonexistent/bin/editor-that-does-not-exist")

        with pytest.raises(ProcessError, match="failed to launch editor"):
            session.open(DEFAULT_TEMPLATE)

        assert session.state is SessionState.IDLE

    def test_editor_arguments_are_kept(self, scratch_path, make_editor, tmp_path):
        """Test extra words in the editor command reach the editor before the file path."""
        marker = tmp_path / "argv.txt"
        script = tmp_path / "argv_editor.py"
        script.write_text(
            "import sys\n"
            f"open({str(marker)!r}, 'w').write('|'.join(sys.argv[1:]))\n"
        )

        session = EditingSession(scratch_path, shlex.join([sys.executable, str(script), "--wait"]))
        session.open("text")

        assert marker.read_text() == f"--wait|{scratch_path}"


class TestDiff:
    """Test change detection against the pre-filled text."""

    @pytest.mark.parametrize(
        "initial_text",
        [DEFAULT_TEMPLATE, render("dev/Title #tag", "body\n\nwith blank line"), ""],
    )
    def test_untouched_buffer_is_no_change(self, scratch_path, make_editor, initial_text):
        """Test diff() is None when the editor leaves the file as written."""
        session = EditingSession(scratch_path, make_editor())
        session.open(initial_text)

        assert session.diff() is None

    def test_rewriting_identical_text_is_no_change(self, scratch_path, make_editor):
        """Test saving without edits (same bytes rewritten) is no change."""
        text = render("Title", "body")
        session = EditingSession(scratch_path, make_editor(new_text=text))
        session.open(text)

        assert session.diff() is None

    def test_single_character_change_is_detected(self, scratch_path, make_editor):
        """Test one appended character counts as a change."""
        text = render("Title", "body")
        session = EditingSession(scratch_path, make_editor(append=" "))
        session.open(text)

        assert session.diff() == text + " "

    def test_baseline_is_text_passed_to_open(self, scratch_path, make_editor):
        """Test a pre-filled post is the baseline, not the blank template."""
        session = EditingSession(scratch_path, make_editor(new_text=DEFAULT_TEMPLATE))
        session.open(render("Title", "body"))

        assert session.diff() == DEFAULT_TEMPLATE

    def test_non_ascii_content(self, scratch_path, make_editor):
        """Test UTF-8 content written by the editor is read back intact."""
        edited = render("カテゴリ/記事 #タグ", "本文")
        session = EditingSession(scratch_path, make_editor(new_text=edited))
        session.open(DEFAULT_TEMPLATE)

        assert session.diff() == edited

    def test_diff_before_open_is_an_error(self, scratch_path, make_editor):
        session = EditingSession(scratch_path, make_editor())

        with pytest.raises(RuntimeError, match="before open"):
            session.diff()

    def test_diff_after_failed_launch_is_an_error(self, scratch_path):
        """Test a launch failure leaves no baseline to compare against."""
        session = EditingSession(scratch_path, "/nonexistent/bin/editor-that-does-not-exist")
        with pytest.raises(ProcessError):
            session.open("text")

        with pytest.raises(RuntimeError, match="before open"):
            session.diff()

    def test_unreadable_scratch_file(self, scratch_path, make_editor):
        """Test a scratch file removed by the editor is a ProcessError."""
        session = EditingSession(scratch_path, make_editor())
        session.open("text")
        scratch_path.unlink()

        with pytest.raises(ProcessError, match="failed to read scratch file"):
            session.diff()
