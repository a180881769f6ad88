import asyncio

import pytest

from api.features.conversation.entities import MessageRole
from api.shared.exceptions import NotFoundError, ValidationError

MISSING_ID = "7b0e4c1a-4c47-4a53-9f8e-2f9a2c3f3b11"


async def test_concrete_two_turn_scenario(conversations, messages):
    conv = await conversations.create("U1")
    assert conv.title == "Nueva Conversación"

    await messages.append(conv.id, "U1", role="user", content="Hello")
    await messages.append(
        conv.id,
        "U1",
        role="assistant",
        content="Hi there",
        model_used="model-x",
        tokens_input=5,
        tokens_output=8,
    )

    listed = await messages.list(conv.id, "U1").all()
    assert [(m.role, m.content) for m in listed] == [
        (MessageRole.USER, "Hello"),
        (MessageRole.ASSISTANT, "Hi there"),
    ]
    assert listed[0].model_used is None
    assert listed[0].tokens_input is None
    assert listed[1].model_used == "model-x"
    assert (listed[1].tokens_input, listed[1].tokens_output) == (5, 8)

    with pytest.raises(NotFoundError):
        await messages.list(conv.id, "U2").all()


async def test_append_sets_identity_and_timestamp(conversations, messages):
    conv = await conversations.create("U1")

    message = await messages.append(conv.id, "U1", MessageRole.SYSTEM, "Be brief.")

    assert message.conversation_id == conv.id
    assert message.owner_id == "U1"
    assert message.role is MessageRole.SYSTEM
    assert message.timestamp >= conv.created_at


async def test_append_keeps_content_verbatim(conversations, messages):
    conv = await conversations.create("U1")

    message = await messages.append(conv.id, "U1", "assistant", "  indented\n")

    assert message.content == "  indented\n"


@pytest.mark.parametrize("content", ["", "   ", "\n\t "])
async def test_append_rejects_blank_content(conversations, messages, content):
    conv = await conversations.create("U1")

    with pytest.raises(ValidationError) as exc_info:
        await messages.append(conv.id, "U1", "user", content)

    assert exc_info.value.details["field"] == "content"
    assert await messages.list(conv.id, "U1").all() == []


@pytest.mark.parametrize("role", ["admin", "USER", "", "tool"])
async def test_append_rejects_unknown_role(conversations, messages, role):
    conv = await conversations.create("U1")

    with pytest.raises(ValidationError) as exc_info:
        await messages.append(conv.id, "U1", role, "hi")

    assert exc_info.value.details["field"] == "role"


@pytest.mark.parametrize("field", ["tokens_input", "tokens_output"])
async def test_append_rejects_negative_tokens(conversations, messages, field):
    conv = await conversations.create("U1")

    with pytest.raises(ValidationError) as exc_info:
        await messages.append(conv.id, "U1", "assistant", "hi", **{field: -1})

    assert exc_info.value.details == {"field": field, "value": -1}


async def test_append_accepts_zero_tokens(conversations, messages):
    conv = await conversations.create("U1")

    message = await messages.append(
        conv.id, "U1", "assistant", "hi", tokens_input=0, tokens_output=0
    )

    assert message.tokens_input == 0
    assert message.tokens_output == 0


async def test_append_rejects_non_integer_tokens(conversations, messages):
    conv = await conversations.create("U1")

    with pytest.raises(ValidationError):
        await messages.append(conv.id, "U1", "assistant", "hi", tokens_input=1.5)
    with pytest.raises(ValidationError):
        await messages.append(conv.id, "U1", "assistant", "hi", tokens_output=True)


async def test_append_rejects_overlong_model_name(conversations, messages):
    conv = await conversations.create("U1")

    with pytest.raises(ValidationError):
        await messages.append(conv.id, "U1", "assistant", "hi", model_used="m" * 101)


async def test_append_to_foreign_conversation_is_not_found(conversations, messages):
    conv = await conversations.create("U1")

    with pytest.raises(NotFoundError) as foreign:
        await messages.append(conv.id, "U2", "user", "sneaky")
    with pytest.raises(NotFoundError) as missing:
        await messages.append(MISSING_ID, "U2", "user", "sneaky")

    # Same shape whether the conversation exists or not
    assert foreign.value.error_code == missing.value.error_code == "NOT_FOUND"
    assert foreign.value.details == {"resource": "Conversation", "identifier": conv.id}
    assert missing.value.details == {"resource": "Conversation", "identifier": MISSING_ID}
    assert await messages.list(conv.id, "U1").all() == []


async def test_append_with_malformed_id_is_not_found(messages):
    with pytest.raises(NotFoundError):
        await messages.append("not-a-uuid", "U1", "user", "hi")


async def test_append_does_not_touch_conversation(conversations, messages):
    conv = await conversations.create("U1")

    await messages.append(conv.id, "U1", "user", "hi")

    assert (await conversations.get(conv.id, "U1")).updated_at == conv.updated_at


async def test_list_returns_insertion_order_across_batches(conversations, messages):
    conv = await conversations.create("U1")
    contents = [f"turn {i}" for i in range(7)]
    for i, content in enumerate(contents):
        await messages.append(conv.id, "U1", "user" if i % 2 == 0 else "assistant", content)

    stream = messages.list(conv.id, "U1")

    assert [m.content async for m in stream] == contents
    # Restartable: a second pass yields the same sequence
    assert [m.content for m in await stream.all()] == contents


async def test_list_is_lazy(conversations, messages):
    conv = await conversations.create("U1")
    stream = messages.list(conv.id, "U1")

    await messages.append(conv.id, "U1", "user", "after the stream was built")

    assert [m.content for m in await stream.all()] == ["after the stream was built"]


async def test_list_of_unknown_conversation_is_not_found(messages):
    with pytest.raises(NotFoundError):
        await messages.list(MISSING_ID, "U1").all()


async def test_list_is_isolated_between_conversations(conversations, messages):
    a = await conversations.create("U1", "a")
    b = await conversations.create("U1", "b")
    await messages.append(a.id, "U1", "user", "in a")
    await messages.append(b.id, "U1", "user", "in b")

    assert [m.content for m in await messages.list(a.id, "U1").all()] == ["in a"]
    assert [m.content for m in await messages.list(b.id, "U1").all()] == ["in b"]


async def test_concurrent_appends_get_distinct_ids_and_ordered_timestamps(
    conversations, messages
):
    conv = await conversations.create("U1")

    appended = await asyncio.gather(
        *(messages.append(conv.id, "U1", "user", f"parallel {i}") for i in range(10))
    )

    assert len({m.id for m in appended}) == 10
    listed = await messages.list(conv.id, "U1").all()
    assert {m.id for m in listed} == {m.id for m in appended}
    timestamps = [m.timestamp for m in listed]
    assert timestamps == sorted(timestamps)
    assert len(set(timestamps)) == len(timestamps)


async def test_usage_sums_tracked_tokens(conversations, messages):
    conv = await conversations.create("U1")
    await messages.append(conv.id, "U1", "user", "question")
    await messages.append(conv.id, "U1", "assistant", "answer", tokens_input=5, tokens_output=8)
    await messages.append(conv.id, "U1", "assistant", "more", tokens_input=3)

    usage = await messages.usage(conv.id, "U1")

    assert usage.conversation_id == conv.id
    assert (usage.tokens_input, usage.tokens_output) == (8, 8)
    assert usage.total_tokens == 16
    assert usage.message_count == 3


async def test_usage_of_empty_conversation(conversations, messages):
    conv = await conversations.create("U1")

    usage = await messages.usage(conv.id, "U1")

    assert (usage.tokens_input, usage.tokens_output, usage.message_count) == (0, 0, 0)


async def test_usage_is_owner_scoped(conversations, messages):
    conv = await conversations.create("U1")

    with pytest.raises(NotFoundError):
        await messages.usage(conv.id, "U2")


async def test_list_raises_when_conversation_is_deleted_mid_iteration(conversations, messages):
    conv = await conversations.create("U1")
    for i in range(3):
        await messages.append(conv.id, "U1", "user", f"m{i}")
    seen = []

    with pytest.raises(NotFoundError):
        async for message in messages.list(conv.id, "U1"):
            seen.append(message.content)
            if len(seen) == 1:
                await conversations.delete(conv.id, "U1")

    # The first batch was already read before the delete
    assert seen == ["m0", "m1"]
