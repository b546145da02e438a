"""Tests for the command-line interface."""

import pytest

from treadmill_coach.cli import format_pace, main, progress_bar


class TestFormatting:

    def test_format_pace(self):
        assert format_pace(5.0) == "5:00/km"
        assert format_pace(5.5) == "5:30/km"
        assert format_pace(5.999) == "6:00/km"
        assert format_pace(0) == "-"

    def test_progress_bar(self):
        bar = progress_bar(50, width=10)
        assert "#####....." in bar
        assert bar.endswith("50%")


class TestCommands:

    def test_cap_needs_no_database(self, capsys):
        main(["cap", "--level", "beginner", "--requested", "6", "--goal", "marathon"])

        out = capsys.readouterr().out
        assert "3 sessions/week" in out
        assert "reduced from 6 to 3" in out

    def test_profile_create_and_show(self, adapter, capsys):
        main(["profile", "--user", "alice", "--level", "intermediate", "--days", "1", "3", "5"], adapter=adapter)

        out = capsys.readouterr().out
        assert "Profile saved" in out
        assert "intermediate" in out
        assert adapter.get_profile("alice").available_days == [1, 3, 5]

    def test_profile_missing(self, adapter, capsys):
        main(["profile", "--user", "bob"], adapter=adapter)
        assert "No profile yet" in capsys.readouterr().out

    def test_generate_schedule_progress(self, adapter, capsys):
        main(["profile", "--user", "alice", "--level", "beginner", "--days", "1", "3", "5"], adapter=adapter)
        main([
            "generate", "--user", "alice", "--goal", "10k", "--weeks", "2",
            "--start", "2024-08-22", "--strategy", "fallback",
        ], adapter=adapter)
        out = capsys.readouterr().out
        assert "Plan 10k - 2 weeks" in out
        assert "6 workouts" in out

        main(["schedule", "--user", "alice"], adapter=adapter)
        out = capsys.readouterr().out
        assert "Week 1" in out
        assert "26 August" in out

        main(["progress", "--user", "alice"], adapter=adapter)
        assert "Current week" in capsys.readouterr().out

    def test_generate_without_profile_fails(self, adapter, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", "--user", "nobody", "--goal", "10k", "--strategy", "fallback"], adapter=adapter)

        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().out

    def test_analyze_unknown_session(self, adapter):
        with pytest.raises(SystemExit):
            main(["analyze", "--session", "missing"], adapter=adapter)
