# scira-proxy

An HTTP server that exposes an OpenAI-compatible API and forwards every chat
request to the Scira chat service (`https://mcp.scira.ai`). Clients built for
the OpenAI chat completions API can use it in streaming or regular mode.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Configuration

Settings come from environment variables. When the server is started with the
`scira-proxy` command, a `.env` file in the working directory is read as well.

| Variable      | Default                                                 | Meaning                                              |
|---------------|---------------------------------------------------------|------------------------------------------------------|
| `USERIDS`     | required                                                | Comma-separated Scira user ids, used in turn         |
| `PORT`        | `8080`                                                  | Port to listen on                                    |
| `APIKEY`      | empty (no auth)                                         | Key that clients must send as `Authorization: Bearer <key>` |
| `MODELS`      | `gpt-4.1-mini,claude-3-7-sonnet,grok-3-mini,qwen-qwq`   | Comma-separated list of accepted model names         |
| `RETRY`       | `1`                                                     | Attempts per upstream request; values below 1 count as 1 |
| `CHAT_DELETE` | `false`                                                 | Delete the upstream chat after answering             |
| `http_proxy` / `HTTP_PROXY` | none                                      | Proxy for upstream requests (`http_proxy` wins)      |

`CHAT_DELETE` accepts `1`, `t`, `T`, `true`, `TRUE`, `True` and `0`, `f`,
`F`, `false`, `FALSE`, `False`. `RETRY` must be a whole number.

`scira_proxy.config.load_config()` raises `ConfigError` (a `ValueError`) if
`USERIDS` is empty or if `RETRY` or `CHAT_DELETE` cannot be parsed. The
`scira-proxy` command reports such errors, and a non-numeric `PORT`, as a
fatal log line and exits with status 1.

## Running

```
USERIDS=user-one,user-two APIKEY=placeholder scira-proxy
```

The command takes no options. It listens on `0.0.0.0` at the configured port,
using Flask's built-in server.

## Endpoints

- `GET /v1/models`: lists the configured models as `{"object": "list", "data": [...]}`.
  The `data` list begins with one blank entry (`id` and `object` empty,
  `created` 0) per configured model, followed by one `"object": "model"`
  entry per model.
- `POST /v1/chat/completions`: takes `model`, `messages` and `stream`.
  - `400` with `{"error": ...}` if the body is not valid JSON of that shape,
    the model is missing or not among `MODELS`, or `messages` is empty.
  - `500` with `{"error": ...}` if every upstream attempt fails to connect.
  - With `"stream": true` the answer arrives as server-sent events of
    `chat.completion.chunk` objects, followed by `data: [DONE]`.
  - Otherwise a single JSON object is returned (its `object` field is also
    `chat.completion.chunk`), holding the whole text, the finish reason and
    the token `usage` reported upstream.

  Reasoning text is sent in `reasoning_content`. Each upstream attempt uses a
  fresh random chat id and the next user id in round-robin order.

Example:

```
curl http://localhost:8080/v1/chat/completions \
  -H "Authorization: Bearer placeholder" \
  -H "Content-Type: application/json" \
  -d '{"model": "gpt-4.1-mini", "messages": [{"role": "user", "content": "Hello"}]}'
```

## Authentication and CORS

When `APIKEY` is set, requests without an `Authorization` header get `401`
with `Missing or invalid Authorization header`, and requests whose key (after
an optional `Bearer ` prefix) does not match get `401` with `Invalid API key`.

Requests that pass authentication get permissive CORS headers, and `OPTIONS`
requests among them get an empty `204` reply. Requests rejected with `401`
carry no CORS headers; with `APIKEY` set, preflight requests must therefore
also carry the key.

## Using it from Python

```python
from scira_proxy.config import load_config
from scira_proxy.app import create_app

app = create_app(load_config({"USERIDS": "user-one"}))
app.run(port=8080)
```

When `load_config` is given a mapping it reads only that mapping, not the
process environment or a `.env` file.

Other pieces can be used on their own:

- `scira_proxy.service.ChatHandler(config, session=None)` holds the route
  views; `register(app)` adds them to a Flask app. `stream_chunks(lines, model)`
  and `collect_response(lines, model)` turn upstream response lines into
  server-sent events or a single response.
- `scira_proxy.middleware.install_auth(app, config)` and `install_cors(app)`
  add the request hooks described above.
- `scira_proxy.models` holds the request and response dataclasses.
- `scira_proxy.logger` prints timestamped, coloured log lines to standard
  output; `set_level` chooses the minimum `Level`, and `fatal` exits with
  status 1.

## What it does not do

The package only relays chats; it keeps no history or storage of its own, and
it does not offer a production WSGI server. Serve the app from `create_app`
with a WSGI server of your choice if Flask's built-in server is not enough.