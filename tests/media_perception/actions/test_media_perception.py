import asyncio
import json

import pytest

from media_perception.actions import ActionMessage, PendingAction
from media_perception.actions.media_perception import (
    MediaPerceptionAction,
    assemble,
    build_findings_message,
)
from media_perception.conversation import InMemoryConversation
from media_perception.errors import BackendError
from media_perception.perception.model import (
    Attachment,
    Message,
    PerceptionSpec,
    Persona,
    QAPair,
)
from media_perception.perception.router import TypeRouter


class RecordingAgent:
    def __init__(self, log):
        self.persona = Persona(name="Ada", bio="A curious robot.")
        self.log = log

    def act(self, context_message=None, *, exclude_actions=()):
        self.log.append(("act", context_message, list(exclude_actions)))


class FakeBackend:
    def __init__(self, log, answers=None, error=None):
        self.log = log
        self.answers = answers
        self.error = error

    async def __call__(self, url, questions, persona, auth=None):
        self.log.append(("describe", url, list(questions), persona.name, auth))
        if self.error is not None:
            raise self.error
        return list(self.answers)


def _setup(answers=("A cat on a mat.",), error=None, attachments=None):
    log = []
    conversation = InMemoryConversation(
        [
            Message(
                id="m1",
                attachments=attachments
                if attachments is not None
                else [Attachment(id="a1", type="image/png", url="http://x/1.png")],
            )
        ]
    )
    backend = FakeBackend(log, answers=answers, error=error)
    router = TypeRouter([PerceptionSpec(name="image", types=frozenset({"image/png"}), describe=backend)])
    action = MediaPerceptionAction(conversation, router)
    agent = RecordingAgent(log)
    return action, agent, log


def _event(agent, log, attachment_id, questions, auth="jwt"):
    message = ActionMessage(type="mediaPerception", args={"id": attachment_id, "questions": questions})

    async def commit():
        log.append(("commit", json.loads(json.dumps(message.args))))

    return PendingAction(message=message, agent=agent, commit=commit, auth=auth)


def test_assemble_preserves_order():
    assert assemble(["Q1", "Q2"], ["A1", "A2"]) == [QAPair(q="Q1", a="A1"), QAPair(q="Q2", a="A2")]


def test_assemble_rejects_length_mismatch():
    with pytest.raises(ValueError):
        assemble(["Q1", "Q2"], ["A1"])


@pytest.mark.asyncio
async def test_successful_query_commits_then_resumes():
    action, agent, log = _setup()
    event = _event(agent, log, "a1", ["Describe the image."])

    outcome = await action.handle(event)

    assert [entry[0] for entry in log] == ["describe", "commit", "act"]
    assert log[0] == ("describe", "http://x/1.png", ["Describe the image."], "Ada", "jwt")

    committed = log[1][1]
    assert committed["queries"] == [{"q": "Describe the image.", "a": "A cat on a mat."}]
    assert event.message.args["queries"] == committed["queries"]

    _, context_message, excluded = log[2]
    assert excluded == ["mediaPerception"]
    assert context_message.startswith("Your character looked at an attachment and discovered the following:")
    payload = json.loads(context_message.split("\n", 1)[1])
    assert payload == {
        "attachmentId": "a1",
        "queries": [{"q": "Describe the image.", "a": "A cat on a mat."}],
    }

    assert outcome.status == "answered"
    assert outcome.attachment_id == "a1"
    assert outcome.queries == [QAPair(q="Describe the image.", a="A cat on a mat.")]


@pytest.mark.asyncio
async def test_missing_attachment_retries_without_backend_or_commit():
    action, agent, log = _setup()

    outcome = await action.handle(_event(agent, log, "missing", ["Describe the image."]))

    assert log == [("act", None, [])]
    assert outcome.status == "retried"
    assert outcome.reason == "not_found"
    assert outcome.attachment_id == "missing"


@pytest.mark.asyncio
async def test_attachment_without_url_retries():
    action, agent, log = _setup(attachments=[Attachment(id="a1", type="image/png")])

    outcome = await action.handle(_event(agent, log, "a1", ["Describe the image."]))

    assert log == [("act", None, [])]
    assert outcome.reason == "no_url"


@pytest.mark.asyncio
async def test_unsupported_type_retries():
    action, agent, log = _setup(attachments=[Attachment(id="a1", type="video/mp4", url="http://x/1.mp4")])

    outcome = await action.handle(_event(agent, log, "a1", ["What happens?"]))

    assert log == [("act", None, [])]
    assert outcome.reason == "unsupported_type"


@pytest.mark.asyncio
async def test_parameterised_type_is_not_routed():
    action, agent, log = _setup(attachments=[Attachment(id="a1", type="image/png+foo", url="http://x/1.png")])

    outcome = await action.handle(_event(agent, log, "a1", ["Describe the image."]))

    assert outcome.reason == "unsupported_type"
    assert [entry[0] for entry in log] == ["act"]


@pytest.mark.asyncio
async def test_backend_error_propagates_without_commit_or_resume():
    action, agent, log = _setup(error=BackendError("vision down"))
    event = _event(agent, log, "a1", ["Describe the image."])

    with pytest.raises(BackendError, match="vision down"):
        await action.handle(event)

    assert [entry[0] for entry in log] == ["describe"]
    assert "queries" not in event.message.args


@pytest.mark.asyncio
async def test_answer_count_mismatch_is_a_backend_error():
    action, agent, log = _setup(answers=["only one"])
    event = _event(agent, log, "a1", ["Q1", "Q2"])

    with pytest.raises(BackendError, match="1 answer"):
        await action.handle(event)

    assert [entry[0] for entry in log] == ["describe"]
    assert "queries" not in event.message.args


@pytest.mark.asyncio
async def test_retry_counter_grows_and_resets():
    action, agent, log = _setup()

    first = await action.handle(_event(agent, log, "nope", ["Q"]))
    second = await action.handle(_event(agent, log, "still-nope", ["Q"]))
    assert (first.consecutive_retries, second.consecutive_retries) == (1, 2)
    assert action.consecutive_retries == 2

    await action.handle(_event(agent, log, "a1", ["Q"]))
    assert action.consecutive_retries == 0


@pytest.mark.asyncio
async def test_commit_finishes_before_resume():
    action, agent, log = _setup()
    message = ActionMessage(type="mediaPerception", args={"id": "a1", "questions": ["Q"]})
    state = {"committed": False}

    async def slow_commit():
        await asyncio.sleep(0)
        state["committed"] = True

    class CheckingAgent(RecordingAgent):
        def act(self, context_message=None, *, exclude_actions=()):
            assert state["committed"], "resumed before commit finished"
            super().act(context_message, exclude_actions=exclude_actions)

    checking = CheckingAgent(log)
    await action.handle(PendingAction(message=message, agent=checking, commit=slow_commit))

    assert log[-1][0] == "act"


def test_render_lists_available_attachments():
    action, _, _ = _setup(
        attachments=[
            Attachment(id="a1", type="image/png", url="http://x/1.png"),
            Attachment(id="a2", type="image/png+foo"),
            Attachment(id="a3", type="audio/mpeg", url="http://x/3.mp3"),
        ]
    )

    spec = action.render(action.conversation.get_messages())

    assert spec.name == "mediaPerception"
    listing = spec.description.split("```\n", 1)[1].rsplit("\n```", 1)[0]
    assert json.loads(listing) == [
        {"id": "a1", "type": "image/png", "url": "http://x/1.png"},
        {"id": "a2", "type": "image/png+foo"},
    ]
    assert spec.parameters["required"] == ["id", "questions"]
    assert spec.parameters["properties"]["questions"]["type"] == "array"
    assert len(spec.examples) == 3
    assert len({example["id"] for example in spec.examples}) == 1


def test_render_hides_action_without_media():
    action, _, _ = _setup(attachments=[])
    assert action.render(action.conversation.get_messages()) is None


def test_findings_message_shape():
    text = build_findings_message("a1", [QAPair(q="Q", a="A")])
    header, body = text.split("\n", 1)
    assert header == "Your character looked at an attachment and discovered the following:"
    assert json.loads(body) == {"attachmentId": "a1", "queries": [{"q": "Q", "a": "A"}]}


@pytest.mark.asyncio
async def test_custom_name_is_excluded_on_resume():
    log = []
    conversation = InMemoryConversation(
        [Message(id="m1", attachments=[Attachment(id="a1", type="image/png", url="http://x/1.png")])]
    )
    router = TypeRouter(
        [PerceptionSpec(name="image", types=frozenset({"image/png"}), describe=FakeBackend(log, answers=["A"]))]
    )
    action = MediaPerceptionAction(conversation, router, name="inspectMedia")
    agent = RecordingAgent(log)

    await action.handle(_event(agent, log, "a1", ["Q"]))

    assert log[-1][2] == ["inspectMedia"]
    assert action.render(conversation.get_messages()).name == "inspectMedia"


@pytest.mark.asyncio
async def test_non_ascii_text_reaches_agent_unescaped():
    action, agent, log = _setup(answers=["Un gato sobre una alfombra.", "猫"])
    event = _event(agent, log, "a1", ["¿Qué hay en la imagen?", "猫?"])

    await action.handle(event)

    context_message = log[-1][1]
    assert '"¿Qué hay en la imagen?"' in context_message
    assert '"猫?"' in context_message
    assert '"猫"' in context_message
    assert "\\u" not in context_message


def test_findings_message_keeps_non_ascii():
    text = build_findings_message("a1", [QAPair(q="猫?", a="猫")])
    assert '"q": "猫?"' in text
    assert '"a": "猫"' in text


def test_render_keeps_non_ascii_attachment_fields():
    action, _, _ = _setup(attachments=[Attachment(id="foto-ñ", type="image/png", url="http://x/ñ.png")])

    spec = action.render(action.conversation.get_messages())

    assert '"id": "foto-ñ"' in spec.description
    assert "http://x/ñ.png" in spec.description
