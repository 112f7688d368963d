# etherrecorder

A command client for a recorder's command interface, with the pieces it is
built from: a packet framing format, a levelled logger and some small
networking and path helpers. It uses only the standard library.

## Installing

```
pip install .
```

Use `pip install .[test]` to install pytest as well.

## The command client

```
etherrecorder
```

This connects to the server and sends each line read from standard input as
a framed message. Replies that arrive are printed as `Received: ...`, along
with connection notes such as `Connecting to host:port` and
`Connected to server.`

The host and port come from `gui_config.ini` in the current directory, from
the `[network]` section under the keys `IP` and `port`. The section and key
names are not case sensitive. If the file, section or key is missing, the
defaults are `localhost` and `4999`.

Options:

- `--profile PATH` reads a different INI file
- `--host HOST` and `--port PORT` override the profile
- `--timeout SECONDS` sets the connect timeout (default 5)

Lines that start with `/` are handled by the client and are not sent as
typed:

- `/level NAME` sends the command that sets the server's log level, for
  example `log_level=WARNING`
- `/about` prints the version text
- `/quit` disconnects and exits

An empty line is not sent. The command exits with status 1 if it cannot
connect or if a send fails.

## Packets

`etherrecorder.protocol` frames messages as follows. All fields are big-endian:

```
0xBAADF00D | total length (4) | message index (4) | ASCII text | 0xDEADBEEF
```

The total length counts every byte, markers included.

```python
from etherrecorder.protocol import MessageEncoder, decode_packet, encode_message

packet = encode_message("log_level=DEBUG", 1)
index, text = decode_packet(packet)      # (1, "log_level=DEBUG")

encoder = MessageEncoder()               # indices 1, 2, 3, ...
first = encoder.encode("hello")
```

When encoding, characters outside ASCII are sent as `?`. `decode_packet`
raises `PacketError` for bad input. Its `incomplete` attribute is true when
more data may still complete the packet.

## Sessions

`etherrecorder.client.Session` is what the command uses:

```python
from etherrecorder.client import Session, log_level_command
from etherrecorder.levels import LogLevel

session = Session(receive_timeout=1.0)
session.connect("localhost", "4999")
session.send_command(log_level_command(LogLevel.WARN))   # "log_level=WARNING"
reply = session.receive()        # text of one packet, or None
print(session.log)
session.disconnect()
```

Connect and send failures raise `etherrecorder.sockets.PlatformSocketException`.
Its `error` attribute holds a `PlatformSocketError` code. `send_command("")`
raises `ValueError`.

## Logging

`etherrecorder.logger.Logger` writes entries to the console, to files or to
both. Settings are taken from a mapping of sections, such as a `ConfigParser`:

```python
from etherrecorder.levels import LogLevel
from etherrecorder.logger import Logger, set_thread_label

logger = Logger()
print(logger.configure({"logger": {"log_destination": "console"}}))
logger.set_level(LogLevel.DEBUG)
set_thread_label("MAIN")
logger.log(LogLevel.INFO, "listening on port %d", 4999)
logger.flush_queue()
logger.close()
```

`configure` reads these keys from the `logger` section:

- `log_destination`
- `timestamp_granularity`
- `ansi_colours`
- `log_leading_zeros`
- `log_file_size`
- `purge_logs_on_restart`
- `log_file_path` and `log_file_name` (the default name is `log_file.log`)

After `configure`, entries are queued until `flush_queue()` or `close()`.
The application log file is opened whenever an entry is published, even when
the output is the console alone.

`set_thread_log_file_from_config(label)` does three things:

- it gives a thread its own file from the key `<label>.log_file_name`
- it reads `log_level` (the default is INFO)
- it reads `trace_on` from the `debug` section

A file that grows past `log_file_size` is renamed to `log_YYYY-mm-dd.txt.old`
and a new file is started.

Level names are parsed without regard to case. `warning`, `err` and
`fatal error` are accepted as well. Output destinations are `file`,
`console` or `both`, plus a few synonyms. Granularities run from
`nanosecond` down to `second`.

When entries are printed, only DEBUG, INFO, WARN, ERROR and FATAL have their
own labels. The other levels print as `UNKNN`.

## Helpers

- `etherrecorder.platform_utils`: path clean-up, directory creation,
  case-insensitive comparison, secure random numbers, time and sleep helpers.
- `etherrecorder.sockets`: socket error codes and messages, and switching
  sockets between blocking and non-blocking mode.
- `etherrecorder.shutdown.ShutdownHandler`: turns Ctrl-C into a shutdown flag
  that threads can poll or wait on. It can also be used as a context manager.

## What this package does not do

It has no recorder server. Nothing here listens for connections, captures or
records traffic, or carries out the commands the client sends. It has no
graphical window: the client is a line-based console program. The logger
does not read configuration files itself. Hand it an already loaded mapping.