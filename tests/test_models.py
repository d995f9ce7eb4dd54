import json

import pytest

from scira_proxy.models import (
    Choice,
    Delta,
    Message,
    MessagePart,
    OpenAIChatRequest,
    SciraChatRequest,
    StreamResponse,
    Usage,
    new_choice,
    new_stream_response,
)


def test_message_to_scira_adds_text_part():
    msg = Message(role="user", content="hello")
    scira = msg.to_scira()
    assert scira.role == "user"
    assert scira.content == "hello"
    assert scira.parts == [MessagePart(type="text", text="hello")]
    assert msg.parts == []


def test_message_to_dict_omits_empty_parts():
    assert Message(role="user", content="hi").to_dict() == {"role": "user", "content": "hi"}


def test_message_to_dict_includes_parts():
    d = Message(role="user", content="hi").to_scira().to_dict()
    assert d["parts"] == [{"type": "text", "text": "hi"}]


def test_from_dict_full():
    req = OpenAIChatRequest.from_dict(
        {
            "model": "grok-3-mini",
            "messages": [{"role": "user", "content": "question"}],
            "stream": True,
        }
    )
    assert req.model == "grok-3-mini"
    assert req.stream is True
    assert req.messages == [Message(role="user", content="question")]


def test_from_dict_missing_fields_take_zero_values():
    req = OpenAIChatRequest.from_dict({})
    assert req == OpenAIChatRequest(model="", messages=[], stream=False)


def test_from_dict_null_fields():
    req = OpenAIChatRequest.from_dict({"model": None, "messages": None, "stream": None})
    assert req.messages == []
    assert req.stream is False


@pytest.mark.parametrize(
    "body",
    [
        [],
        "text",
        {"model": 3},
        {"messages": "x"},
        {"messages": [1]},
        {"messages": [{"role": "user", "content": [{"type": "text"}]}]},
        {"stream": "yes"},
        {"messages": [{"role": "user", "content": "a", "parts": "b"}]},
    ],
)
def test_from_dict_rejects_bad_types(body):
    with pytest.raises(ValueError):
        OpenAIChatRequest.from_dict(body)


def test_to_scira_request():
    req = OpenAIChatRequest(
        model="qwen-qwq",
        messages=[Message("system", "be brief"), Message("user", "hi")],
    )
    scira = req.to_scira("qwen-qwq", "chat1", "user1")
    assert isinstance(scira, SciraChatRequest)
    assert scira.id == scira.chat_id == "chat1"
    assert scira.user_id == "user1"
    assert scira.mcp_servers == []
    assert [m.parts[0].text for m in scira.messages] == ["be brief", "hi"]


def test_scira_request_to_dict_keys():
    req = OpenAIChatRequest(model="m", messages=[Message("user", "hi")])
    d = req.to_scira("m", "c", "u").to_dict()
    assert set(d) == {"id", "messages", "selectedModel", "mcpServers", "chatId", "userId"}
    assert d["selectedModel"] == "m"
    assert d["mcpServers"] == []
    assert d["messages"][0]["parts"] == [{"type": "text", "text": "hi"}]
    json.dumps(d)


def test_new_choice():
    choices = new_choice("body", "thinking", "stop")
    assert choices == [
        Choice(
            index=0,
            delta=Delta(role="assistant", content="body", reasoning_content="thinking"),
            finish_reason="stop",
        )
    ]


def test_new_stream_response_fields():
    resp = new_stream_response("chatcmpl-x", 1700000000, "gpt-4.1-mini", None)
    assert resp.object == "chat.completion.chunk"
    assert resp.provider == "scira"
    assert resp.model == "gpt-4.1-mini"
    assert resp.created == 1700000000
    assert resp.usage == Usage()


def test_stream_response_to_dict_null_choices():
    d = new_stream_response("id", 1, "m", None).to_dict()
    assert d["choices"] is None
    assert d["usage"] == {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
    assert d["system_fingerprint"] == ""


def test_stream_response_to_dict_with_choice():
    resp = new_stream_response("id", 1, "m", new_choice("c", "", ""))
    d = resp.to_dict()
    choice = d["choices"][0]
    assert choice["delta"] == {"role": "assistant", "content": "c", "reasoning_content": ""}
    assert choice["logprobs"] is None
    assert choice["natural_finish_reason"] == ""
    assert json.loads(json.dumps(d)) == d


def test_stream_response_usage_serialized():
    resp = StreamResponse(id="i", object="o", provider="p", model="m", created=0)
    resp.usage = Usage(prompt_tokens=2, completion_tokens=5, total_tokens=7)
    assert resp.to_dict()["usage"]["total_tokens"] == 7