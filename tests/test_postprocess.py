import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from whspr.models import Config
from whspr.postprocess import (
    CorrectionSchemaError,
    FixedTranscription,
    GroqCorrector,
    PostprocessError,
    build_messages,
    build_user_message,
    parse_correction,
    postprocess,
)

CONFIG = Config(
    system_prompt="SYSTEM",
    custom_prompt_prefix="Here's my custom user prompt:",
    transcription_prefix="Here's my raw transcription output that I need you to edit:",
)


@pytest.fixture(autouse=True)
def no_backoff(monkeypatch):
    monkeypatch.setattr("whspr.retry.time.sleep", lambda _: None)


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.requests = []

    def create(self, **kwargs):
        self.requests.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        message = SimpleNamespace(content=reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


def fake_client(*replies):
    completions = FakeCompletions(replies)
    return SimpleNamespace(chat=SimpleNamespace(completions=completions)), completions


def connection_error():
    return openai.APIConnectionError(request=httpx.Request("POST", "https://api.groq.com"))


def test_user_message_without_vocabulary_omits_block():
    message = build_user_message("hello world", None, CONFIG)

    assert message == (
        "Here's my raw transcription output that I need you to edit:\n```\nhello world\n```"
    )
    assert "custom user prompt" not in message


def test_user_message_with_vocabulary_is_fenced_and_first():
    message = build_user_message("post crest QL is great", "PostgreSQL (not 'post crest QL')", CONFIG)

    assert message == (
        "Here's my custom user prompt:\n```\nPostgreSQL (not 'post crest QL')\n```\n\n"
        "Here's my raw transcription output that I need you to edit:\n```\npost crest QL is great\n```"
    )


def test_messages_carry_system_prompt():
    messages = build_messages("hi", None, CONFIG)
    assert messages[0] == {"role": "system", "content": "SYSTEM"}
    assert messages[1]["role"] == "user"


def test_parse_correction_rejects_bad_shapes():
    assert parse_correction('{"fixed_transcription": "ok"}') == FixedTranscription(fixed_transcription="ok")

    for body in (
        None,
        "",
        "not json",
        "{}",
        '{"fixed_transcription": 42}',
        '{"fixed_transcription": null}',
        '{"text": "ok"}',
        '{"fixed_transcription": "ok", "extra": 1}',
    ):
        with pytest.raises(CorrectionSchemaError):
            parse_correction(body)


def test_corrector_requests_strict_json_schema():
    client, completions = fake_client(json.dumps({"fixed_transcription": "Hello, world."}))
    corrector = GroqCorrector(client, "openai/gpt-oss-120b")

    result = corrector.correct(build_messages("hello world", None, CONFIG))

    assert result.fixed_transcription == "Hello, world."
    request = completions.requests[0]
    assert request["model"] == "openai/gpt-oss-120b"
    schema = request["response_format"]["json_schema"]
    assert schema["strict"] is True
    assert list(schema["schema"]["properties"]) == ["fixed_transcription"]
    assert schema["schema"]["additionalProperties"] is False


def test_schema_violation_is_retried_then_accepted():
    client, completions = fake_client('{"wrong": "shape"}', json.dumps({"fixed_transcription": "Fixed."}))

    text = postprocess(GroqCorrector(client, "m"), "fixed", None, CONFIG)

    assert text == "Fixed."
    assert len(completions.requests) == 2


def test_exhausted_retries_raise_postprocess_error():
    client, completions = fake_client(connection_error(), '{"fixed_transcription": 1}', connection_error())

    with pytest.raises(PostprocessError):
        postprocess(GroqCorrector(client, "m"), "text", None, CONFIG)
    assert len(completions.requests) == 3


class VocabularyAwareModel:
    """Stands in for the language model: applies corrections named in the vocabulary."""

    def correct(self, messages):
        user = messages[1]["content"]
        raw = user.split("```\n")[-1].rsplit("\n```", 1)[0]
        if "PostgreSQL (not 'post crest QL')" in user:
            raw = raw.replace("post crest QL", "PostgreSQL")
        return FixedTranscription(fixed_transcription=raw)


def test_vocabulary_fixes_misheard_term():
    text = postprocess(
        VocabularyAwareModel(), "post crest QL is great", "PostgreSQL (not 'post crest QL')", CONFIG
    )
    assert "PostgreSQL" in text
    assert "post crest QL" not in text


def test_clean_input_is_returned_unchanged():
    assert postprocess(VocabularyAwareModel(), "hello world", None, CONFIG) == "hello world"
