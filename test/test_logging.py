import hmac
import hashlib
import json
from oracle_bot.core.logger import get_logger, SIGNING_KEY, UPDATES_SKIPPED


def test_audit_log_and_prometheus(tmp_path, monkeypatch):
    monkeypatch.setattr("oracle_bot.core.logger.AUDIT_FILE", tmp_path / "audit.log")
    log = get_logger("test")
    log.info("UNIT_TEST_EVENT", reason_code="LOW_PRICE_CHANGE")
    with open(tmp_path / "audit.log") as f:
        line = f.readline().strip()
    payload, sig = line.split("|")
    expected = hmac.new(SIGNING_KEY, payload.encode(), hashlib.sha256).hexdigest()
    assert sig == expected
    assert json.loads(payload)["reason_code"] == "LOW_PRICE_CHANGE"

    c = UPDATES_SKIPPED.labels("unit")
    initial = c._value.get()
    c.inc()
    assert c._value.get() == initial + 1


def test_audit_dir_created_on_demand(tmp_path, monkeypatch):
    target = tmp_path / "nested" / "audit.log"
    monkeypatch.setattr("oracle_bot.core.logger.AUDIT_FILE", target)
    get_logger("test").warning("UNIT_TEST_EVENT")
    assert target.exists()
