from datetime import datetime, timezone

from intake_api.services.transcript import TurnRole, append_turn, build_turn


class TestBuildTurn:
    def test_patient_turn_with_message_id(self):
        ts = datetime(2026, 3, 2, 9, 30, tzinfo=timezone.utc)

        turn = build_turn(TurnRole.PATIENT, "I have a fever", ts, "SM123")

        assert turn == {
            "role": "patient",
            "content": "I have a fever",
            "timestamp": "2026-03-02T09:30:00+00:00",
            "messageSid": "SM123",
        }

    def test_assistant_turn_has_no_message_id(self):
        turn = build_turn(TurnRole.ASSISTANT, "How long?", datetime(2026, 3, 2, tzinfo=timezone.utc))

        assert turn["role"] == "assistant"
        assert "messageSid" not in turn


class TestAppendTurn:
    def test_returns_new_list(self):
        original = [{"role": "patient", "content": "hi"}]
        turn = {"role": "assistant", "content": "hello"}

        updated = append_turn(original, turn)

        assert updated == [original[0], turn]
        assert len(original) == 1

    def test_none_transcript(self):
        turn = {"role": "patient", "content": "hi"}
        assert append_turn(None, turn) == [turn]

    def test_order_preserved(self):
        transcript = []
        for i in range(3):
            transcript = append_turn(transcript, {"role": "patient", "content": str(i)})

        assert [t["content"] for t in transcript] == ["0", "1", "2"]
