# mediasoup

Python building blocks for controlling a mediasoup media worker over its
control channel. The package has no third-party dependencies.

## What is in the package

- `mediasoup.h264`: parsing, formatting and negotiating H264
  `profile-level-id` values. It provides `Profile`, `Level`,
  `ProfileLevelId`, `BitPattern`, `RtpParameter`, `byte_mask_string`,
  `parse_profile_level_id`, `parse_sdp_profile_level_id`, `is_same_profile`
  and `generate_profile_level_id_for_answer`.
- `mediasoup.netstring`: netstring framing (`<length>:<payload>,`) through
  `encode` and an incremental `Decoder`.
- `mediasoup.events`: a synchronous, thread-safe `EventEmitter` with `on`,
  `once`, `off`, `emit`, `safe_emit`, `remove_all_listeners` and
  `listener_count`.
- `mediasoup.log`: scoped loggers (`new_logger`, `ScopedLogger`,
  `debug_enabled`) built on the standard `logging` module.
- `mediasoup.internal`: `InternalData`, the set of identifiers that address
  an entity inside the worker. `to_dict()` and `from_dict()` convert it to
  and from its camelCase wire form.
- `mediasoup.channel`: `Channel`, which sends netstring-framed JSON requests
  to a worker over a pair of sockets and passes its notifications on to
  listeners.
- `mediasoup.consumer`: `Consumer`, `ConsumerOptions`, `ConsumerScore`,
  `ConsumerLayers`, `ConsumerTraceEventData`, `ConsumerType` and
  `ConsumerTraceEventType`.
- `mediasoup.data_consumer`: `DataConsumer`, `DataConsumerOptions`,
  `DataConsumerStat`, `DataConsumerType` and the WebRTC PPID constants.
- `mediasoup.data_producer`: `DataProducer`, `DataProducerOptions`,
  `DataProducerStat` and `DataProducerType`.
- `mediasoup.errors`: `MediasoupError`, `MediasoupTypeError` (also a
  `TypeError`), `UnsupportedError` and `InvalidStateError`.

## Installation

```
pip install .
```

## H264 profiles

```python
from mediasoup.h264 import (
    RtpParameter,
    generate_profile_level_id_for_answer,
    parse_profile_level_id,
    parse_sdp_profile_level_id,
)

plid = parse_profile_level_id("42e01f")
print(plid.profile, plid.level, str(plid))   # Profile.CONSTRAINED_BASELINE, Level.L3_1, "42e01f"

parse_profile_level_id("gggggg")             # None
parse_sdp_profile_level_id("")               # default: constrained baseline, level 3.1

answer = generate_profile_level_id_for_answer(
    RtpParameter(profile_level_id="42e015"),
    RtpParameter(profile_level_id="42e01f"),
)
print(answer)  # "42e015"
```

`parse_profile_level_id` returns `None` when it does not recognise the
value. When a `ProfileLevelId` has no valid canonical form, `str()` gives an
empty string.

`generate_profile_level_id_for_answer` returns `None` when neither side has
a `profile_level_id`. It raises `ValueError` when either value is invalid or
when the two profiles differ. The answer keeps the local level when both
sides set `level_asymmetry_allowed`. Otherwise it takes the lower of the two
levels.

## Netstrings

```python
from mediasoup.netstring import Decoder, encode

frame = encode(b"hello")          # b"5:hello,"
decoder = Decoder()
for payload in decoder.feed(frame + frame[:3]):
    print(payload)                # b"hello"
print(decoder.feed(frame[3:]))    # [b"hello"]
```

`feed` returns every payload that the given bytes complete. It keeps a
partial message for the next call. Malformed input is skipped and the
decoder looks for the next valid frame. `reset()` drops a partial message,
and `length` gives the number of payload bytes still expected.

## Events

```python
from mediasoup.events import EventEmitter

emitter = EventEmitter()
emitter.once("score", lambda score: print("score", score))
emitter.safe_emit("score", 10)   # True: a listener was called
emitter.safe_emit("score", 11)   # False: the once-listener is gone
```

`emit` lets a listener's exception propagate. `safe_emit` logs the exception
and goes on to the next listener.

## Logging

`new_logger(scope)` returns a `ScopedLogger` with `debug`, `info`, `warn`
and `error` methods. These take `%`-style arguments. Output goes to standard
output through the `mediasoup` logger.

- `DEBUG` holds a comma-separated list of glob patterns that select the
  scopes whose debug messages are shown. A pattern that starts with `-`
  excludes the scopes it matches, and the last matching pattern decides. If
  `DEBUG` is unset or empty, debug output is on for every scope. Example:
  `DEBUG="Channel,Consumer*,-DataProducer"`.
- If `DEBUG_HIDE_DATE` is true, timestamps are left out.
- If `DEBUG_COLORS` is false, colour codes are switched off.

## Channel

```python
import socket
from mediasoup.channel import Channel
from mediasoup.internal import InternalData

producer_sock, consumer_sock = ...  # connected sockets to a running worker
with Channel(producer_sock, consumer_sock, pid=1234) as channel:
    channel.on("some-consumer-id", lambda event, data: print(event, data))
    dump = channel.request("consumer.dump", InternalData(consumer_id="some-consumer-id"))
```

`request(method, internal=None, data=None)` blocks until the worker answers
and returns the decoded response data, or `None` when there is none. It
raises the following:

- `InvalidStateError` when the channel is closed or closes while the request
  waits.
- `MediasoupTypeError` when the worker rejects the request with a
  `TypeError`, and `MediasoupError` when it rejects it for any other reason.
- `MediasoupError` when the encoded request is too big.
- `TimeoutError` when no answer arrives within 15 s plus 0.1 s for each
  pending request.

A background thread reads the worker's output. Notifications are emitted
under their `targetId` with the arguments `(event, data)`. Worker log lines
go to the `Channel` logger.

## Consumers, data consumers and data producers

`Consumer`, `DataConsumer` and `DataProducer` are event emitters. Each also
has an `observer` emitter. Each is built from an `InternalData`, a channel
and a payload channel, and it subscribes to the channels' notifications for
its own id.

- `Consumer` has `pause`, `resume`, `set_preferred_layers`, `set_priority`,
  `unset_priority`, `request_key_frame`, `enable_trace_event`, `dump`,
  `get_stats`, `close` and `transport_closed`. It tracks `paused`,
  `producer_paused`, `priority`, `score`, `preferred_layers` and
  `current_layers` from the worker's answers and notifications
  (`producerclose`, `producerpause`, `producerresume`, `score`,
  `layerschange`, `trace`, `rtp`).
- `DataConsumer` has `send`, `send_text`, `get_buffered_amount`,
  `set_buffered_amount_low_threshold`, `dump`, `get_stats`, `close` and
  `transport_closed`. It emits `message` (payload, ppid),
  `sctpsendbufferfull`, `bufferedamountlow` and `dataproducerclose`.
- `DataProducer` has `send`, `send_text`, `dump`, `get_stats`, `close` and
  `transport_closed`.

`send` defaults the PPID to WebRTC binary (53), or to binary empty (57) for
empty data. `send_text` uses string (51), or string empty (56) for an empty
message. Empty messages go out as a single zero byte. `close()` always
finishes closing and emitting. If the worker's close request failed, it
raises that error afterwards.

## What the package does not do

- It does not start or supervise a worker process. You supply the connected
  sockets for `Channel`.
- It has no worker, router, transport, producer or RTP observer objects, and
  it does not create consumers or data producers. You build them directly
  from their identifiers and parameters.
- It has no payload channel. `Consumer`, `DataConsumer` and `DataProducer`
  take any object that offers `on` and `remove_all_listeners`, plus the
  following methods:
  - `request(method, internal, data, payload)` for `DataConsumer.send`.
  - `notify(method, internal, data, payload)` for `DataProducer.send`.
- It does not validate or negotiate RTP parameters or capabilities beyond
  H264 profile-level-id handling. These values are passed through as given.

## Running the tests

```
pip install ".[test]"
pytest
```