"""Handlers for the OpenAI-compatible endpoints, relaying to the upstream chat service."""

from __future__ import annotations

import base64
import json
import math
import random
import secrets
import threading
import time
from collections.abc import Iterable, Iterator
from datetime import datetime
from typing import Any

import flask
import requests

from . import logger
from .config import Config
from .models import (
    OpenAIChatRequest,
    StreamResponse,
    Usage,
    new_choice,
    new_stream_response,
)

BASE_URL = "https://mcp.scira.ai"
REQUEST_TIMEOUT = 300

_LETTERS = "abcdefghijklmnopqrstuvwxyz0123456789"
_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/136.0.0.0 Safari/537.36"
)
_JSON_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def _to_json(payload: Any) -> str:
    text = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
    for char, escape in _JSON_ESCAPES:
        text = text.replace(char, escape)
    return text


def _json_response(payload: Any, status: int) -> flask.Response:
    return flask.Response(_to_json(payload), status=status, mimetype="application/json")


def _decode_line(raw: bytes) -> str:
    return raw.removesuffix(b"\r").decode("utf-8", errors="replace")


def _iter_lines(chunks: Iterable[bytes]) -> Iterator[str]:
    """Split a byte stream into text lines, dropping a trailing carriage return."""
    pending = b""
    for chunk in chunks:
        pending += chunk
        *complete, pending = pending.split(b"\n")
        for raw in complete:
            yield _decode_line(raw)
    if pending:
        yield _decode_line(pending)


def process_content(s: str) -> str:
    """Strip one surrounding quote on each side and unescape ``\\n``."""
    return s.removeprefix('"').removesuffix('"').replace("\\n", "\n")


def rand_string(n: int) -> str:
    """Return ``n`` random lowercase letters and digits."""
    return "".join(random.choice(_LETTERS) for _ in range(n))


def _response_id() -> str:
    return f"chatcmpl-{datetime.now():%Y%m%d%H%M%S}{rand_string(10)}"


def _finish_reason(payload: str, default: str) -> str:
    try:
        data = json.loads(payload)
    except ValueError:
        return default
    if isinstance(data, dict) and isinstance(data.get("finishReason"), str):
        return data["finishReason"]
    return default


def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def _apply_usage(payload: str, usage: Usage) -> None:
    try:
        data = json.loads(payload)
    except ValueError:
        return
    if not isinstance(data, dict) or not isinstance(data.get("usage"), dict):
        return
    counts = data["usage"]
    if _is_number(counts.get("promptTokens")):
        usage.prompt_tokens = int(counts["promptTokens"])
    if _is_number(counts.get("completionTokens")):
        usage.completion_tokens = int(counts["completionTokens"])
    usage.total_tokens = usage.prompt_tokens + usage.completion_tokens


def stream_chunks(lines: Iterable[str], model: str) -> Iterator[str]:
    """Turn upstream lines into server-sent events, ending with ``[DONE]``."""
    chunk = new_stream_response(_response_id(), int(time.time()), model, None)
    for line in lines:
        if not line:
            continue
        prefix, payload = line[:2], line[2:]
        if prefix == "g:":
            chunk.choices = new_choice("", process_content(payload), "")
        elif prefix == "0:":
            chunk.choices = new_choice(process_content(payload), "", "")
        elif prefix == "e:":
            chunk.choices = new_choice("", "", _finish_reason(payload, "stop"))
        else:
            continue
        yield f"data: {_to_json(chunk.to_dict())}\n\n"
    yield "data: [DONE]\n\n"


def collect_response(lines: Iterable[str], model: str) -> StreamResponse:
    """Gather upstream lines into a single completion with usage figures."""
    content: list[str] = []
    reasoning: list[str] = []
    usage = Usage()
    finish_reason = "stop"
    for line in lines:
        if not line:
            continue
        prefix, payload = line[:2], line[2:]
        if prefix == "0:":
            content.append(process_content(payload))
        elif prefix == "g:":
            reasoning.append(process_content(payload))
        elif prefix == "e:":
            finish_reason = _finish_reason(payload, finish_reason)
        elif prefix == "d:":
            _apply_usage(payload, usage)
    response = new_stream_response(
        _response_id(),
        int(time.time()),
        model,
        new_choice("".join(content), "".join(reasoning), finish_reason),
    )
    response.usage = usage
    return response


class ChatHandler:
    """Serves model listing and chat completions on behalf of a pool of users."""

    def __init__(self, config: Config, session: requests.Session | None = None) -> None:
        if not config.user_ids:
            raise ValueError("at least one user id is required")
        self.config = config
        self.session = session if session is not None else self._new_session(config)
        self._index = random.randrange(len(config.user_ids))
        self._lock = threading.Lock()

    @staticmethod
    def _new_session(config: Config) -> requests.Session:
        session = requests.Session()
        session.headers.update(
            {
                "User-Agent": _USER_AGENT,
                "Content-Type": "application/json",
                "Accept": "*/*",
                "Origin": BASE_URL,
            }
        )
        if config.http_proxy:
            session.proxies = {"http": config.http_proxy, "https": config.http_proxy}
        return session

    def register(self, app: flask.Flask) -> None:
        """Add the API routes to ``app``."""
        app.add_url_rule("/v1/models", "models", self.models_view, methods=["GET"])
        app.add_url_rule(
            "/v1/chat/completions",
            "chat_completions",
            self.chat_completions_view,
            methods=["POST"],
        )

    def models_view(self) -> flask.Response:
        """List the configured models.

        The list starts with one blank entry per model, followed by the models.
        """
        models = self.config.models
        blanks = [{"id": "", "created": 0, "object": ""} for _ in models]
        entries = [
            {"id": model, "created": int(time.time()), "object": "model"} for model in models
        ]
        return _json_response({"object": "list", "data": blanks + entries}, 200)

    def chat_completions_view(self) -> flask.Response:
        """Relay a chat completion request upstream and answer in OpenAI form."""
        try:
            chat_request = OpenAIChatRequest.from_dict(json.loads(flask.request.get_data()))
        except ValueError as exc:
            logger.error("bind json error: %s", exc)
            return _json_response({"error": str(exc)}, 400)
        try:
            self.check_params(chat_request)
        except ValueError as exc:
            logger.error("chat param check error: %s", exc)
            return _json_response({"error": str(exc)}, 400)
        try:
            upstream, chat_id, user_id = self.send_chat(chat_request)
        except requests.RequestException as exc:
            logger.error("retry %d times request still error: %s", self.config.retry, exc)
            return _json_response({"error": str(exc)}, 500)

        if chat_request.stream:
            return self._stream_reply(upstream, chat_request.model, chat_id, user_id)

        try:
            result = collect_response(
                _iter_lines(upstream.iter_content(chunk_size=None)), chat_request.model
            )
        finally:
            upstream.close()
        self._after_chat(chat_id, user_id)
        reply = _json_response(result.to_dict(), 200)
        reply.headers["Access-Control-Allow-Origin"] = "*"
        return reply

    def _stream_reply(
        self, upstream: requests.Response, model: str, chat_id: str, user_id: str
    ) -> flask.Response:
        def relay() -> Iterator[str]:
            try:
                yield from stream_chunks(
                    _iter_lines(upstream.iter_content(chunk_size=None)), model
                )
            finally:
                upstream.close()
                self._after_chat(chat_id, user_id)

        reply = flask.Response(relay(), status=200, mimetype="text/event-stream")
        reply.headers["Cache-Control"] = "no-cache"
        reply.headers["Access-Control-Allow-Origin"] = "*"
        return reply

    def _after_chat(self, chat_id: str, user_id: str) -> None:
        if self.config.chat_delete:
            threading.Thread(
                target=self.delete_chat, args=(chat_id, user_id), daemon=True
            ).start()

    def check_params(self, request: OpenAIChatRequest) -> None:
        """Raise ValueError if the request lacks a supported model or messages."""
        if not request.model:
            raise ValueError("model is required")
        if request.model not in self.config.models:
            raise ValueError("model is not supported")
        if not request.messages:
            raise ValueError("messages is required")

    def next_user_id(self) -> str:
        """Return the next user id in round-robin order."""
        with self._lock:
            self._index += 1
            index = self._index
        return self.config.user_ids[index % len(self.config.user_ids)]

    def new_chat_id(self) -> str:
        """Return a random URL-safe chat id of 21 characters with a dash after the 11th."""
        encoded = base64.urlsafe_b64encode(secrets.token_bytes(15)).decode("ascii")
        encoded = encoded.rstrip("=")[:20].ljust(20, "A")
        return f"{encoded[:11]}-{encoded[11:]}"

    def send_chat(self, request: OpenAIChatRequest) -> tuple[requests.Response, str, str]:
        """Post the chat upstream, retrying with fresh ids on transport errors.

        Returns the streaming response with the chat and user ids used; raises
        the last error when every attempt fails.
        """
        last_error: requests.RequestException | None = None
        for _ in range(max(self.config.retry, 1)):
            chat_id = self.new_chat_id()
            user_id = self.next_user_id()
            logger.info("request use userId: %s, generate chatId: %s", user_id, chat_id)
            body = request.to_scira(request.model, chat_id, user_id).to_dict()
            try:
                upstream = self.session.post(
                    f"{BASE_URL}/api/chat",
                    json=body,
                    headers={"Referer": f"{BASE_URL}/chat/{chat_id}"},
                    stream=True,
                    timeout=REQUEST_TIMEOUT,
                )
            except requests.RequestException as exc:
                last_error = exc
                logger.error(
                    "userId: %s, chatId: %s, request error: %s", user_id, chat_id, exc
                )
                continue
            return upstream, chat_id, user_id
        assert last_error is not None
        raise last_error

    def delete_chat(self, chat_id: str, user_id: str) -> bool:
        """Delete a chat upstream; return True when the service answered 200."""
        try:
            resp = self.session.delete(
                f"{BASE_URL}/api/chats/{chat_id}",
                headers={"X-User-Id": user_id, "Referer": f"{BASE_URL}/chat/{chat_id}"},
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            logger.error("userId: %s, chatId: %s, delete chat error: %s", user_id, chat_id, exc)
            return False
        if resp.status_code != 200:
            logger.error(
                "userId: %s, chatId: %s, delete chat status code: %d",
                user_id,
                chat_id,
                resp.status_code,
            )
            return False
        return True