# rec53

Building blocks around a recursive DNS resolver:

- **Configuration** – read a YAML configuration file into dataclasses and
  check it before use (`rec53.config`).
- **Log levels** – turn a level name such as `"debug"` or `"WARN"` into a
  `logging` level (`rec53.loglevel`).
- **Lifecycle** – wait for a termination signal or a server error, then
  stop several components under one timeout (`rec53.shutdown`).
- **Mock authoritative servers** – small UDP DNS servers on `127.0.0.1`
  that answer from in-memory zones, for exercising a resolver end to end
  without touching the real DNS (`rec53.authority`, `rec53.multizone`,
  `rec53.records`).

Install with `pip install .`; the test dependencies come with the `test`
extra (`pip install .[test]`).

## Configuration

A configuration file looks like this:

```yaml
dns:
  listen: "127.0.0.1:5353"
  metric: ":9999"
  log_level: "info"
  upstream_timeout: 1500ms

warmup:
  enabled: true
  timeout: 5s
  duration: 5s
  concurrency: 32
  tlds:
    - com
    - org
    - net
```

`load_config(path)` returns a `Config` holding a `DNSConfig` (`listen`,
`metric`, `log_level`, `upstream_timeout`) and a `WarmupConfig`
(`enabled`, `timeout`, `duration`, `concurrency`, `tlds`). Missing keys get
empty or zero values. Durations are stored as seconds; in the file they are
written as `300ms`, `1.5s`, `2m`, `1h30m` and so on, or as a bare integer
number of nanoseconds. `parse_duration(text)` does the conversion on its
own.

Every problem is raised as `ConfigError` (a `ValueError`): no path given,
a file that cannot be read, YAML that does not parse, or a value of the
wrong kind.

```python
from rec53.config import ConfigError, load_config, validate_config
from rec53.loglevel import parse_log_level

try:
    cfg = validate_config(load_config("config.yaml"))
except ConfigError as exc:
    print(f"configuration error: {exc}")
else:
    level = parse_log_level(cfg.dns.log_level)
```

`validate_config(cfg)` returns `cfg` unchanged, or raises `ConfigError`
when:

- `cfg` is `None`;
- `dns.listen` or `dns.metric` is empty or blank;
- `dns.listen` is not a resolvable `host:port`;
- `dns.metric` is given as `:port` and the port is not an integer from
  1 to 65535, or is given in full and is not a resolvable `host:port`;
- `warmup.timeout` or `dns.upstream_timeout` is set but shorter than
  100 ms.

`parse_log_level(name)` maps `debug`, `info`, `warn` and `error`, in any
letter case, to `logging.DEBUG`, `INFO`, `WARNING` and `ERROR`; anything
else, including the empty string, gives `logging.INFO`.

## Shutting down

`wait_for_signal(signals, errors)` takes two `queue.Queue` objects and
blocks until one of them has an item. A signal taken from `signals` is
logged and returned; an item from `errors` is logged if it is not `None`,
and the function returns `None`.

`graceful_shutdown(timeout, *shutdowns)` calls each callable in turn,
passing the seconds left before the shared deadline (never negative).
`None` entries are skipped. Exceptions are logged to the `rec53` logger
rather than raised, so every component gets its chance to stop; the
function returns the list of exceptions in call order.

```python
import queue
import signal

from rec53.shutdown import graceful_shutdown, wait_for_signal

signals, errors = queue.Queue(), queue.Queue()
signal.signal(signal.SIGTERM, lambda sig, frame: signals.put(sig))
wait_for_signal(signals, errors)
failures = graceful_shutdown(5.0, server_stop, metrics_stop)
```

## Mock DNS hierarchies for tests

`build_standard_hierarchy(tld, auth_zone, auth_records)` sets up the usual
root → TLD → authoritative chain; each delegation carries an NS record and
glue pointing at `127.0.0.1`:

```python
import dns.rdatatype

from rec53.multizone import build_standard_hierarchy
from rec53.records import a

hierarchy = build_standard_hierarchy(
    "com.",
    "example.com.",
    {dns.rdatatype.A: [a("www.example.com.", "93.184.216.34", 300)]},
)
server, root_glue = hierarchy.build()
try:
    print(server.addr(), server.port())
    ...  # point a resolver at 127.0.0.1:<port>, seeded with root_glue
finally:
    server.stop()
```

`build()` starts a `MultiZoneMockServer` and also returns a root-glue
message: an UPDATE message whose authority section is `. NS ns.mock-root.`
and whose additional section is `ns.mock-root. A 127.0.0.1`. The servers
listen on a random port, so a resolver using the glue must be told which
port to use.

For other layouts, put `MockZone` and `MockReferral` objects together
yourself and add them with `MockDNSHierarchy().add_zone(...)`, which
chains. The server routes each query to the most specific zone containing
its name (REFUSED if none does, FORMERR for a query without a question).
Within that zone:

- a referral whose `child_origin` covers the name is returned in the
  authority section, with its glue in the additional section;
- otherwise the answer is authoritative: matching records of the asked
  type, or else a matching CNAME together with the A records of its target
  when the target is in the same zone;
- with nothing found, the reply is NODATA (NOERROR with the zone's SOA),
  or NXDOMAIN with the SOA when the zone has `nsec=True`;
- a zone with `tc=True` answers every query with an empty, truncated reply.

Each server counts its requests (`request_count()`) and keeps the
`(name, type)` of every question it saw (`questions()`).

`MockAuthorityServer(zone)` serves a single `Zone` that can be swapped with
`set_zone()`. It answers from the zone like the above, refers queries from
outside the zone (or all queries, with `referral=True`) to the zone's NS
records and their A glue, and answers NXDOMAIN when it has no zone.

`LocalResolver(handler)` runs any request handler on a local UDP port.
`query(qname, qtype, timeout=5.0)` sends it a recursion-desired query and
returns the reply; `wait_for_error(timeout)` returns the error that stopped
the server, or `None` after the timeout. The base class, `DNSUDPServer`,
is also a context manager that stops the server on exit.

`rec53.records` builds the single-record `RRset`s that zones hold: `a`,
`aaaa`, `cname`, `mx`, `txt`, `ns`, `soa` (with fixed serial and timers)
and `make_soa(origin)`, the SOA used in negative answers. Names are made
fully qualified automatically; a bad IP address raises `ValueError`.

## What this package does not do

There is no resolver here: nothing performs iterative resolution, caches
answers, warms up name-server records or serves a metrics endpoint, and the
package installs no command. The configuration is loaded and validated, but
`warmup` settings and timeouts are only carried, not acted upon; in
particular `load_config` does not fill in default TLD lists or
concurrency.