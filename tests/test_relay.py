"""The UI-side relay: transcript accumulation and the in-flight guard."""

from askgpt.conversation import StreamEvent
from askgpt.relay import RelayState, StreamRelay


def test_submit_writes_headers_and_sends(conversation):
    relay = StreamRelay(conversation)
    turn = relay.submit("What is 2+2?")

    assert turn is not None
    assert conversation.turns == [turn]
    assert turn.question == "What is 2+2?"
    assert relay.transcript == "You ->\nWhat is 2+2?\n\nGPT ->\n"
    assert relay.is_answering
    assert relay.state is RelayState.AWAITING


def test_chunks_accumulate_and_flag_clears_once(conversation):
    relay = StreamRelay(conversation)
    turn = relay.submit("q")

    for text in ["a", "b", "c"]:
        relay.dispatch(StreamEvent(turn, content=text))
        assert relay.state is RelayState.STREAMING
    relay.dispatch(StreamEvent(turn, finished=True))

    assert relay.transcript.endswith("GPT ->\nabc\n\n")
    assert not relay.is_answering
    assert relay.state is RelayState.IDLE

    # A duplicate finished marker changes nothing
    before = relay.transcript
    relay.dispatch(StreamEvent(turn, finished=True))
    assert relay.transcript == before


def test_submit_while_in_flight_is_a_noop(conversation):
    relay = StreamRelay(conversation)
    relay.submit("first")
    relay.on_chunk("partial")
    transcript = relay.transcript

    assert relay.submit("second") is None
    assert relay.transcript == transcript
    assert len(conversation.turns) == 1
    assert relay.state is RelayState.STREAMING


def test_blank_question_is_ignored(conversation):
    relay = StreamRelay(conversation)
    assert relay.submit("   ") is None
    assert relay.transcript == ""
    assert conversation.turns == []


def test_next_turn_allowed_after_finish(conversation):
    relay = StreamRelay(conversation)
    first = relay.submit("one")
    relay.dispatch(StreamEvent(first, finished=True))
    second = relay.submit("two")
    assert second is not None
    assert len(conversation.turns) == 2


def test_stale_turn_events_are_dropped(conversation):
    relay = StreamRelay(conversation)
    first = relay.submit("one")
    relay.dispatch(StreamEvent(first, finished=True))
    relay.submit("two")
    transcript = relay.transcript

    relay.dispatch(StreamEvent(first, content="late"))
    assert relay.transcript == transcript
    assert relay.is_answering


def test_failed_turn_appends_error_and_goes_idle(conversation):
    relay = StreamRelay(conversation)
    turn = relay.submit("q")
    relay.dispatch(StreamEvent(turn, finished=True, error=RuntimeError("connection reset")))

    assert not relay.is_answering
    assert isinstance(relay.last_error, RuntimeError)
    assert "connection reset" in relay.transcript
    assert relay.transcript.endswith("\n\n")


def test_cancel_sets_the_turn_token(conversation):
    relay = StreamRelay(conversation)
    assert not relay.cancel()
    turn = relay.submit("q")
    assert not relay.cancel_pending
    assert relay.cancel()
    assert turn.cancelled
    assert relay.cancel_pending

    relay.dispatch(StreamEvent(turn, finished=True, cancelled=True))
    assert "Canceled" in relay.transcript
    assert not relay.cancel()
    assert not relay.cancel_pending


def test_post_defaults_to_dispatch(conversation):
    relay = StreamRelay(conversation)
    turn = relay.submit("q")
    conversation.post(StreamEvent(turn, content="hi"))
    assert relay.transcript.endswith("hi")


def test_notice_and_clear(conversation):
    relay = StreamRelay(conversation)
    relay.notice("> saved")
    assert relay.transcript == "> saved\n\n"
    relay.clear()
    assert relay.transcript == ""
