# swkit

`swkit` holds the small pieces that a malware analysis pipeline is made from.
It computes file hashes (ssdeep included), parses the output of the `file` and
`exiftool` tools, unpacks deployment archives safely, loads per-environment
configuration, logs structured JSON, talks to a machine learning scoring
service, publishes scan requests to nsqd, and stages samples and collects
artifacts for a sandbox agent.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Command line

### Hash a file

```
swkit-hash /path/to/sample.exe
```

This prints an indented JSON object with the keys `CRC32`, `MD5`, `SHA1`,
`SHA256`, `SHA512` and `SSDeep`. `SSDeep` is an empty string when the file is
shorter than 4096 bytes. Run without exactly one argument, it prints a usage
line.

### Publish a scan request

```
swkit-msgpublisher --service meta --sha256 <sha256> --config ./configs/msgpublisher
```

The single-dash forms (`-service`, `-sha256`, `-config`) are accepted too.
Both `--service` and `--sha256` are required; without them the help is printed
and the exit status is 1.

The command loads the publisher configuration (see *Configuration* below),
connects to the nsqd address in its `nsqd` setting and publishes the SHA-256 to
the topic of the named service:

| service         | configuration key      |
|-----------------|------------------------|
| `orchestrator`  | `orchestrator_topic`   |
| `meta`          | `meta_topic`           |
| `pe`            | `pe_topic`             |
| `postprocessor` | `postprocessor_topic`  |

An unknown service name publishes nothing. The deployment kind is read from
the `SWKIT_DEPLOYMENT_KIND` environment variable.

## Library

### Hashing

```python
from swkit.crypto import hash_bytes, get_sha256

with open("sample.bin", "rb") as fh:
    data = fh.read()

result = hash_bytes(data)          # a frozen HashResult
print(result.sha256, result.ssdeep)
print(result.to_dict())

print(get_sha256(b"hello"))
```

`get_crc32` returns a `0x`-prefixed hex checksum; `get_md5`, `get_sha1`,
`get_sha256` and `get_sha512` return hex digests; `get_ssdeep` returns an
ssdeep fuzzy hash and raises `FileTooSmallError` for input under 4096 bytes.
`hash_bytes` runs them all and gives an empty `ssdeep` when the fuzzy hash
cannot be computed.

`swkit.hasher.Hasher` takes a `hashlib` algorithm name (default `"sha256"`) or
a callable returning a hash object, and its `hash` method returns the hex
digest of the bytes given:

```python
from swkit.hasher import Hasher

print(Hasher("sha256").hash(b"data"))
```

### Parsing tool output

These functions parse text you have already obtained from the tools; the
package does not run `file` or `exiftool` itself.

```python
from swkit.magic import parse_output as parse_file_output
from swkit.exiftool import parse_output as parse_exif_output, camel_case

parse_file_output("sample.exe: PE32 executable (GUI) Intel 80386, for MS Windows\n")
# 'PE32 executable (GUI) Intel 80386, for MS Windows'

parse_exif_output("File Type                       : Win32 EXE\n")
# {'FileType': 'Win32 EXE'}

camel_case("file type extension")
# 'FileTypeExtension'
```

`swkit.exiftool.parse_output` skips the `Directory`, `File Name` and
`File Permissions` tags and lines that do not split into exactly one key and
one value, and returns `None` when the output holds a `File not found` line.

### Extracting archives

```python
from swkit.archiver import unarchive, IllegalPathError

with open("package.zip", "rb") as fh:
    unarchive(fh.read(), "/opt/agent")
```

Entries that would land outside the destination directory raise
`IllegalPathError`; data that is not a zip archive raises
`zipfile.BadZipFile`.

### Configuration

`swkit.config.load(path, env, schema=None)` reads `<path>/<name>.json` or,
failing that, `<path>/<name>.toml`, where `config_name(env)` gives `local`,
`dev` or `prod` for those deployment kinds and `local` for anything else.
Given a dataclass `schema`, keys are matched case-insensitively against the
field names (or a field's `metadata["key"]`) and converted to the field types;
missing fields keep their default or their type's zero value. Without a schema
the raw mapping is returned. A missing, unreadable or undecodable file raises
`ConfigError`.

### Logging

`swkit.logger` builds JSON loggers: `new_logger()` logs at info level to
standard error, `new_custom(level)` and `new_custom_with_file(level,
output_path)` log at a named level with upper-case level names and ISO 8601
timestamps. `logging_level` maps `panic`, `fatal`, `error`, `warn`, `info` and
`debug` to logging levels, with warning for any other name.

A `Logger` has `debug`, `info` and `error` (with `%`-style arguments) and
`with_fields(*pairs, request_id=None, correlation_id=None)`, which returns a
logger attaching those name/value pairs to every entry.

### Machine learning service

```python
from swkit.ml import pe_class_prediction, rank_strings

prediction = pe_class_prediction("http://localhost:8000", features_json)
print(prediction.predicted_class, prediction.probability, prediction.score)

ranked = rank_strings("http://localhost:8000", strings_json)
print(ranked.strings, ranked.sha256)
```

The requests are JSON POSTs to `/api/static/pe` and `/api/static/strings`
with a 15 second timeout. `ClassifierPrediction.from_dict` and
`StringsRanker.from_dict` build the results from a decoded JSON object.

### Sandbox agent

`swkit.agent_server.AgentServer(config, logger, randomizer, agent_path="")`
works on a `ServerConfig`:

- `deploy(dest, package)` extracts the zip package into `dest` and returns the
  contents of its `VERSION` file;
- `gen_sandbox_config(scan_cfg)` fills in a default `timeout` (30) and a random
  `dest_path` under `%USERPROFILE%//Downloads//`, expands environment
  references with `resolve_path`, and renders the configured Jinja2 template;
- `prepare(config_json, binary)` writes the rendered configuration and the
  sample to disk and returns the completed scan configuration;
- `collect_artifacts()` returns an `Artifacts` with the API trace
  (`apilog.jsonl`), `Screenshot`s from `screenshots/`, `MemDump`s from
  `dumps/`, `logs/controller.log` and the agent log file.

`resolve_path` replaces `%NAME%` with the environment variable's value, or
with nothing when it is unset.

## What is not included

There is no network server for the agent: `AgentServer` is used as a library
and does not start or time the sandbox controller, which is left to the
caller between `prepare` and `collect_artifacts`. The package has no antivirus
scanners, no database access and no long-running pipeline services; the
message publisher only sends single messages.