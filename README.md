# nezhadash

The building blocks of a server monitoring dashboard, as a plain Python library.

- **Shared records.** `nezhadash.common` holds the base `Common` record (id and timestamps). It also holds the API envelopes `CommonResponse` and `Response`, whose `to_dict()` leaves out empty fields, and the small records for users, NAT entries, server groups, transfers and terminal or file-manager sessions.
- **Hosts and servers.** `nezhadash.host` covers host facts and live readings: `Host`, `HostState`, `SensorTemperature`, `GeoIP` and `IP`. `Host.filter()` drops the platform and agent versions. `IP.join()` gives `"v4/v6"`. `nezhadash.server` covers the dashboard's view of a monitored machine: `Server`, `StreamServer`, `StreamServerData`, `ServerForm` and `ForceUpdateResponse`.
- **Alert rules.** `nezhadash.rule.Rule` checks a server's metrics against min/max thresholds (`snapshot`). It also works out the window of a transfer-quota cycle (`transfer_duration_start`, `transfer_duration_end`), counted in hours, days, weeks, months or years. `nezhadash.alertrule.AlertRule` combines rules. `AlertRule.check(points)` decides from a history of sample points whether the alert passes. `validate_rule` raises `RuleValidationError` for unusable rules.
- **Services and cron tasks.** `nezhadash.service` holds service monitors (`Service`, `ServiceHistory`, `ServiceResponseItem`, `TaskType`). `nezhadash.cron` holds scheduled or alert-triggered tasks (`Cron`). Each record's `before_save()` / `after_find()` encodes or decodes its list fields as JSON text for storage.
- **DDNS.** `nezhadash.ddns.profile_from_form` validates a `DDNSForm`: the retry count must be between 1 and 10. It converts the form's domains to ASCII with IDNA (`to_ascii_domains`) and applies them to a `DDNSProfile`.
- **WAF.** `nezhadash.waf` keeps a table of blocked addresses in SQLite (`create_table`, `block_ip`, `check_ip`, `clear_ip`, `batch_clear_ip`). It blocks with an exponential back-off: an address stays blocked until `count ** 4 + last_block_timestamp`, and for at least 3 seconds.
- **Configuration.** `nezhadash.config.Config.read()` reads a YAML file plus `NZ_*` environment variables and fills in defaults (port 8008, language `en_US`, and so on). It generates the JWT and agent secrets when they are missing and saves the file. `Config.save()` writes it back with mode 0600.
- **Origin checks.** `nezhadash.origin.check_same_origin(origin, host)` is the same-origin test used for WebSocket upgrades. It compares the Origin header's host with the request host, ignoring ASCII case.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Checking an alert rule against a history of samples:

```python
from nezhadash.alertrule import AlertRule
from nezhadash.rule import Rule

alert = AlertRule(rules=[Rule(type="cpu", max=80, duration=3)])
print(alert.check([[False], [False], [False]]))  # (3, False): every rule failed
```

Blocking an address with the WAF helpers:

```python
import sqlite3

from nezhadash import waf

db = sqlite3.connect(":memory:")
waf.create_table(db)
waf.block_ip(db, "203.0.113.7", waf.BlockReason.LOGIN_FAIL)
waf.check_ip(db, "203.0.113.7")  # raises WAFBlockedError while blocked
```

Converting DDNS domains and checking an origin:

```python
from nezhadash.ddns import to_ascii_domains
from nezhadash.origin import check_same_origin

print(to_ascii_domains(["bücher.example"]))  # ['xn--bcher-kva.example']
print(check_same_origin("https://Example.com", "example.com"))  # True
```

## What this package does not do

This is a library of records and rules. It has none of the following:

- **No server.** It has no web server, HTTP API, WebSocket stream or command to start one.
- **No agent connection.** It does not talk to agents.
- **No notification sending.** It cannot send notifications.
- **No scheduler.** Nothing runs `Service.cron_spec()` or cron tasks on a schedule.
- **Storage is limited.** Only `nezhadash.waf` manages a table of its own. The other records only encode and decode their fields for storage. Cycle-transfer rules in `Rule.snapshot` read a `transfers` table from the database connection they are given. Creating and filling that table is left to the caller.