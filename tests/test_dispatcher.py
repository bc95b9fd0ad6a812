import asyncio
import json

import pytest
import pytest_asyncio

from voiceround.core.interview_orchestrator import NO_SPEECH_SENTINEL
from voiceround.core.protocol import MalformedMessage, ProtocolDispatcher, parse_message
from voiceround.models.messages import ErrorCode, StartMessage, StopMessage
from voiceround.models.session import SessionPhase


async def _feed(dispatcher: ProtocolDispatcher, *frames):
    for frame in frames:
        if isinstance(frame, bytes):
            dispatcher.feed_binary(frame)
        elif isinstance(frame, dict):
            dispatcher.feed_text(json.dumps(frame))
        else:
            dispatcher.feed_text(frame)
    await dispatcher.drain()


def _answer(*chunks: bytes, fmt: str | None = None) -> list:
    start = {"type": "answer_audio_start"}
    if fmt:
        start["format"] = fmt
    return [start, *chunks, {"type": "answer_audio_end"}]


@pytest_asyncio.fixture
async def dispatcher(orchestrator, channel):
    dispatcher = ProtocolDispatcher(orchestrator, channel)
    dispatcher.start()
    yield dispatcher
    await dispatcher.close()


def test_parse_message_error_codes():
    with pytest.raises(MalformedMessage) as exc:
        parse_message("{not json")
    assert exc.value.code is ErrorCode.INVALID_JSON

    with pytest.raises(MalformedMessage) as exc:
        parse_message('{"type": "dance"}')
    assert exc.value.code is ErrorCode.UNRECOGNIZED_TYPE

    with pytest.raises(MalformedMessage) as exc:
        parse_message("[1, 2]")
    assert exc.value.code is ErrorCode.INVALID_JSON

    message = parse_message('{"type": "stop", "sessionId": "abc"}')
    assert isinstance(message, StopMessage)
    assert message.session_id == "abc"


@pytest.mark.asyncio
async def test_start_sends_session_persona_greeting(dispatcher, websocket, registry):
    await _feed(dispatcher, {"type": "start", "roleName": "Data Engineer", "candidateName": "Sam"})

    first = websocket.sent[0]
    assert first["type"] == "session"
    assert first["sessionId"] == dispatcher.session_id
    assert websocket.sent[1] == {"type": "persona", "text": "You are Alex, interviewing for Data Engineer."}
    assert websocket.frames() == [b"0123", b"4567", b"89"]
    assert websocket.messages("tts_done") == [{"type": "tts_done", "format": "mp3"}]
    assert websocket.messages("transcript_update")[-1]["transcript"] == [
        {"from": "interviewer", "text": "Hello, please introduce yourself."},
    ]

    record = registry.get(dispatcher.session_id)
    assert record.phase is SessionPhase.AWAITING_ANSWER
    assert record.config.candidate_name == "Sam"


@pytest.mark.asyncio
async def test_three_max_turns_ask_two_follow_ups(dispatcher, websocket, registry, fake_ai, channel):
    await _feed(dispatcher, {"type": "start", "maxTurns": 3})
    for _ in range(3):
        await _feed(dispatcher, *_answer(b"voice"))
    await channel.wait_background()

    record = registry.get(dispatcher.session_id)
    assert fake_ai.turns == 2
    assert record.turns_completed == 2
    assert record.done is True
    assert [u.speaker.value for u in record.transcript] == [
        "interviewer", "candidate",
        "interviewer", "candidate",
        "interviewer", "candidate",
        "interviewer",
    ]

    done = websocket.messages("done")
    assert len(done) == 1
    assert done[0]["overallScore"] == 35
    assert done[0]["summaryText"] == record.transcript[-1].text
    assert done[0]["rubric"]["technical"] == 6
    assert done[0]["rubric"]["total"] == 35

    # greeting, two questions, then the summary after done
    assert len(websocket.messages("tts_done")) == 4
    assert websocket.sent[-1] == {"type": "tts_done", "format": "mp3"}
    assert fake_ai.scores == [(record.session_id, 35)]


@pytest.mark.asyncio
async def test_single_max_turn_goes_straight_to_evaluation(dispatcher, websocket, registry, fake_ai):
    await _feed(dispatcher, {"type": "start", "maxTurns": 1}, *_answer(b"intro"))

    record = registry.get(dispatcher.session_id)
    assert fake_ai.turns == 0
    assert record.done is True
    assert len(websocket.messages("done")) == 1


@pytest.mark.asyncio
async def test_zero_frames_record_sentinel_and_still_advance(dispatcher, registry, fake_audio, fake_ai):
    await _feed(dispatcher, {"type": "start"}, *_answer())

    record = registry.get(dispatcher.session_id)
    assert fake_audio.stt_calls == []
    assert record.transcript[1].text == NO_SPEECH_SENTINEL
    assert record.turns_completed == 1
    assert fake_ai.turns == 1


@pytest.mark.asyncio
async def test_transcription_failure_records_sentinel(dispatcher, registry, fake_audio):
    fake_audio.fail_stt = True
    await _feed(dispatcher, {"type": "start"}, *_answer(b"noise"))

    record = registry.get(dispatcher.session_id)
    assert record.transcript[1].text == NO_SPEECH_SENTINEL
    assert record.turns_completed == 1


@pytest.mark.asyncio
async def test_answer_audio_is_joined_with_declared_format(dispatcher, fake_audio):
    await _feed(
        dispatcher,
        {"type": "start", "language": "fr"},
        b"stray",
        *_answer(b"ab", b"cd", fmt="wav"),
    )

    assert fake_audio.stt_calls == [(b"abcd", "wav", "fr")]


@pytest.mark.asyncio
async def test_stop_then_audio_end_produces_single_done(dispatcher, websocket, registry, channel):
    await _feed(dispatcher, {"type": "start"}, {"type": "stop"}, *_answer(b"late"), {"type": "stop"})
    await channel.wait_background()

    record = registry.get(dispatcher.session_id)
    assert len(websocket.messages("done")) == 1
    assert record.done is True
    assert record.turns_completed == 0
    assert websocket.messages("error") == []


@pytest.mark.asyncio
async def test_infinite_max_turns_starts_clamped_session(dispatcher, websocket, registry):
    await _feed(dispatcher, '{"type": "start", "maxTurns": 1e999}')

    assert websocket.messages("error") == []
    assert registry.get(dispatcher.session_id).config.max_turns == 20


@pytest.mark.asyncio
async def test_control_errors_are_reported(dispatcher, websocket):
    await _feed(
        dispatcher,
        {"type": "answer_audio_end"},
        {"type": "stop"},
        "{oops",
        {"type": "dance"},
        {"type": "stop", "sessionId": "missing"},
    )

    assert [m["error"] for m in websocket.messages("error")] == [
        "session_not_found",
        "session_not_found",
        "invalid_json",
        "unrecognized_type",
        "session_not_found",
    ]


@pytest.mark.asyncio
async def test_transcript_updates_only_extend(dispatcher, websocket):
    await _feed(dispatcher, {"type": "start", "maxTurns": 4})
    for _ in range(4):
        await _feed(dispatcher, *_answer(b"x"))

    updates = [m["transcript"] for m in websocket.messages("transcript_update")]
    assert len(updates) >= 2
    for previous, current in zip(updates, updates[1:]):
        assert current[:len(previous)] == previous
        assert len(current) >= len(previous)


@pytest.mark.asyncio
async def test_second_start_replaces_session_and_inherits_config(dispatcher, websocket, registry):
    await _feed(dispatcher, {"type": "start", "roleName": "SRE", "maxTurns": 2})
    first_id = dispatcher.session_id
    await _feed(dispatcher, {"type": "start", "level": "senior"})

    assert dispatcher.session_id != first_id
    assert registry.get(first_id) is None
    record = registry.get(dispatcher.session_id)
    assert record.config.role == "SRE"
    assert record.config.max_turns == 2
    assert record.config.level == "senior"
    assert len(websocket.messages("session")) == 2


@pytest.mark.asyncio
async def test_evaluation_crash_restores_phase(dispatcher, websocket, registry, orchestrator):
    working_engine = orchestrator.evaluation_engine

    class CrashingEngine:
        async def evaluate(self, config, transcript, session_id=None):
            raise RuntimeError("boom")

    await _feed(dispatcher, {"type": "start"})
    orchestrator.evaluation_engine = CrashingEngine()
    await _feed(dispatcher, {"type": "stop"})

    record = registry.get(dispatcher.session_id)
    assert websocket.messages("error") == [{"type": "error", "error": "server_exception"}]
    assert record.phase is SessionPhase.AWAITING_ANSWER
    assert record.done is False

    orchestrator.evaluation_engine = working_engine
    await _feed(dispatcher, {"type": "stop"})
    assert record.done is True
    assert len(websocket.messages("done")) == 1


@pytest.mark.asyncio
async def test_close_evicts_session(orchestrator, channel, registry):
    dispatcher = ProtocolDispatcher(orchestrator, channel)
    dispatcher.start()
    await _feed(dispatcher, {"type": "start"})
    session_id = dispatcher.session_id

    await dispatcher.close()

    assert registry.get(session_id) is None
    assert channel.closed is True


# ============================================================================
# RACES (bypassing the mailbox)
# ============================================================================

@pytest.mark.asyncio
async def test_last_answer_racing_stop_evaluates_once(orchestrator, channel, websocket, fake_ai):
    record = orchestrator.create_session(StartMessage(type="start", max_turns=1))
    await orchestrator.open_session(channel, record)

    results = await asyncio.gather(
        orchestrator.submit_answer(channel, record, b"intro"),
        orchestrator.stop(channel, record),
        orchestrator.stop(channel, record),
    )

    assert results[0] is None
    assert len(websocket.messages("done")) == 1
    assert len(fake_ai.scores) == 1
    assert record.done is True


@pytest.mark.asyncio
async def test_stop_during_generation_drops_in_flight_turn(orchestrator, channel, websocket, fake_ai):
    fake_ai.turn_delay = 0.05
    record = orchestrator.create_session(StartMessage(type="start", max_turns=6))
    await orchestrator.open_session(channel, record)

    await asyncio.gather(
        orchestrator.submit_answer(channel, record, b"answer"),
        orchestrator.stop(channel, record),
    )

    assert len(websocket.messages("done")) == 1
    assert record.turns_completed == 0
    assert all(u.text != "Question 1?" for u in record.transcript)
    assert record.turns_completed <= record.config.max_turns - 1
