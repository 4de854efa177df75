# ezai

Building blocks for a gateway that gives several AI chat providers one
request and response shape. The package holds the parts of such a gateway
that do not talk to a provider:

- `ezai.model`: the unified `ChatRequest` / `ChatResponse` data model,
  `StreamChunk`, `BatchJob` / `JobStatus` and `ModelInfo`, with
  JSON-ready `to_dict` / `from_dict` conversions and option validation.
- `ezai.semaphore`: a counting `Semaphore` with timeouts, for limiting
  concurrent calls per provider.
- `ezai.crypto`: AES-256-GCM encryption (`Encryptor`), key generation,
  and generation, bcrypt hashing and checking of client secrets.
- `ezai.settings`: loading `server.yaml`, the optional
  `fallback_global.yaml` and per-project fallback chains.
- `ezai.policies`: the logging privacy policy and the usage retention
  policy.
- `ezai.pricing`: a price table with exact, longest-prefix and wildcard
  (`ollama/*`) model matching and cost estimation.
- `ezai.prompt`: layered system prompts with `{{variable}}` substitution.
- `ezai.cache`: a response cache keyed on a hash of the request.
- `ezai.auth`: trusted-network checks, client key authentication and
  trace id generation.
- `ezai.previews`: truncated previews and short prompt hashes for request
  logs.
- `ezai.admin_checks`: validation of usage queries and of archive,
  soft reset and hard delete requests.

Python 3.10 or newer is required. Dependencies: PyYAML, cryptography and
bcrypt.

## What the package does not do

There is no HTTP server, no command-line program, and no client for any AI
provider. Nothing here stores provider keys, client keys, audit entries or
request logs in a database, queues batch jobs, or applies rate limits. The
modules supply the data model, configuration and checks that such pieces
would be built on; wiring them into a server is left to the application.

## Request model

```python
from ezai.model import ChatRequest

request = ChatRequest.from_dict({
    "provider": "gemini",
    "model": "gemini-2.5-flash",
    "messages": [{"role": "user", "content": "Hello"}],
    "options": {"temperature": 0.7, "max_tokens": 256},
})
request.validate_options()   # raises ValueError when an option is out of range
payload = request.to_dict()
```

`from_dict` raises `ValueError` when `provider`, `model` or `messages` is
missing, or when a message role is not `system`, `user` or `assistant`.
`validate_options` requires a temperature between 0.0 and 2.0, `top_p`
between 0.0 and 1.0, and `max_tokens` of at least 1.

`ChatResponse`, `BatchJob` and `ModelInfo` convert to and from the same
JSON shapes; `BatchJob` timestamps are written as RFC 3339.

## Configuration

```python
from ezai.settings import load_config, load_project_fallback

cfg = load_config("config")          # reads config/server.yaml
cfg.server.addr()                    # "host:port"
cfg.fallback                         # None unless fallback_global.yaml exists
chain = load_project_fallback("config", "myproject").default_chain
```

Unset values get defaults: port 8080, read timeout 30 s, write timeout
120 s, stream write timeout 600 s, shutdown timeout 30 s and 120 requests
per minute. A missing or malformed `server.yaml` raises `ConfigError`.
`load_project_fallback` reads `projects/<project>.yaml`, raises
`ConfigError` for a project name containing `..` or a path separator,
and `FileNotFoundError` when the file does not exist.

`ezai.policies.load_logging_config` reads `logging.yaml` and returns
`default_logging_config()` when the file is missing or invalid. A preview
length of 0 becomes 200; a negative one becomes 0 (previews off).
`load_retention_config` reads `usage_retention.yaml` and raises
`ConfigError` when it cannot; `default_retention_config()` is the policy
to use instead (keep 90 days, delete after 365, confirmation required,
`soft_reset` and `archive` allowed).

## Pricing

`PricingManager.from_dir` reads `pricing.yaml` from a configuration
directory:

```yaml
pricing:
  gemini-2.5-flash:
    input_per_1m_tokens: 0.15
    output_per_1m_tokens: 0.60
  "ollama/*":
    input_per_1m_tokens: 0
    output_per_1m_tokens: 0
```

```python
from ezai.pricing import PricingManager

prices = PricingManager.from_dir("config")
cost = prices.calculate("gemini-2.5-flash", 1000, 500)
prices.model_names()          # sorted model names
```

A model without an exact entry is matched by the longest table name that
is a prefix of it, then by the longest `prefix/*` wildcard. A model with
no match costs 0, and a warning is logged.

## Prompts

```python
from ezai.prompt import PromptManager

prompts = PromptManager("prompts")
system_prompt = prompts.build("gemini", "", "summarize", {"length": 100})
```

The prompt joins, line by line, `base.yaml`, `projects/<project>.yaml`,
`models/<provider>.yaml` and the task prompt from
`tasks/<task>.<provider>.yaml` or, failing that, `tasks/<task>.yaml`.
Missing files are skipped. Names containing `..`, path separators or an
absolute path raise `ValueError`. Parsed files are cached.

## Response cache

```python
from ezai.cache import ResponseCache

cache = ResponseCache(client, 600)   # TTL in seconds; default 10 minutes
cached = cache.get(request)          # ChatResponse or None
cache.set(request, response)
```

`client` is any object with `get(key)` and `set(key, value, ex=ttl)`, as
a Redis client has. Keys are `ezai:cache:` followed by a hash of the
provider, model, messages, options and the stream flag. Store failures
and unreadable entries raise `CacheError`.

## Encrypting stored keys

```python
from ezai.crypto import Encryptor, generate_key

encryptor = Encryptor(generate_key())      # 64 hex characters
sealed = encryptor.encrypt(b"placeholder")
assert encryptor.decrypt(sealed) == b"placeholder"
```

A malformed key, a short ciphertext or a failed decryption raises
`CryptoError`. Client secrets come from `generate_client_secret()`, are
stored with `hash_secret()` and checked with `compare_secret_hash()`,
which also accepts older SHA-256 hex hashes.

## Concurrency limits

```python
from ezai.semaphore import Semaphore

limit = Semaphore("claude", 4)
with limit:
    ...                       # at most four callers in here at once
```

`acquire(timeout)` raises `SemaphoreTimeout` when no slot frees up in
time; `available()` reports the free slots.

## Authentication

`Authenticator` lets requests from trusted CIDR ranges through and asks
everybody else for an `X-Client-ID` / `X-Client-Secret` pair, checked by a
validator object whose `validate(client_id, secret)` method returns a
`ValidatedKey` or raises.

```python
from ezai.auth import Authenticator, new_trace_id

auth = Authenticator(["127.0.0.0/8", "::1/128"], None)
auth.is_trusted("127.0.0.1")      # True
result = auth.authenticate("127.0.0.1", {})
result.client_id                  # "trusted-127.0.0.1"
```

For a validated external client the `AuthResult` carries
`X-Key-Expires-At` and `X-Key-Expires-In` headers. Missing headers, a
missing validator or a rejected key raise `AuthError` with status 401;
`require_trusted` raises it with status 403. `new_trace_id()` returns ids
of the form `tr_YYYYMMDD_HHMMSS_<uuid>`.

## Request checks

```python
from ezai.admin_checks import check_retention_operation, validate_period
from ezai.policies import default_retention_config

validate_period(None)             # "daily"
policy = default_retention_config().reset
check_retention_operation(policy, "archive", "2024-01-01",
                          "CONFIRM-ARCHIVE-2024-01-01")
```

Failures raise `RequestRejected`, whose `status` is 400 for a bad request
or confirmation string and 403 for an operation the policy does not allow.
`resolve_usage_client_id` limits untrusted callers to their own usage.

## Running the tests

Install the `test` extra and run `pytest` from the project directory.