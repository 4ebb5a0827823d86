"""Tests for solo practice runs."""

from services.practice import PracticeRun
from services.typing_engine import BACKSPACE, ControllerState


class RecordingLeaderboard:
    def __init__(self):
        self.submitted = []

    def submit(self, player_id, user_id, metrics):
        self.submitted.append((player_id, user_id, metrics))


def type_text(run, text):
    for ch in text:
        run.controller.process_key(ch)


class TestPracticeRun:
    def test_starts_without_countdown(self, clock):
        run = PracticeRun(text="abc", clock=clock)
        assert run.controller.state == ControllerState.ACTIVE

    def test_practice_run_not_submitted(self, clock):
        board = RecordingLeaderboard()
        run = PracticeRun(leaderboard=board, text="abc", clock=clock)
        done = []
        run.finished.connect(done.append)
        type_text(run, "abc")
        assert len(done) == 1
        assert board.submitted == []

    def test_ranked_run_submitted(self, clock):
        board = RecordingLeaderboard()
        run = PracticeRun(leaderboard=board, player_id="p1", user_id="u1", practice=False, text="abc", clock=clock)
        type_text(run, "abc")
        assert len(board.submitted) == 1
        assert board.submitted[0][:2] == ("p1", "u1")
        assert board.submitted[0][2].accuracy == 100

    def test_word_delete(self, clock):
        run = PracticeRun(text="one two three", clock=clock)
        type_text(run, "one tw")
        run.controller.process_key(BACKSPACE, ctrl=True)
        assert run.controller.session.typed_text == "one "

    def test_replay_same_text(self, clock):
        run = PracticeRun(text="abc", clock=clock)
        type_text(run, "abc")
        run.replay()
        assert run.controller.state == ControllerState.ACTIVE
        assert run.controller.session.typed_text == ""
        assert run.controller.session.target_text == "abc"

    def test_replay_new_text(self, clock):
        run = PracticeRun(text="abc", passages=["xyz"], clock=clock)
        run.replay(new_text=True)
        assert run.controller.session.target_text == "xyz"
