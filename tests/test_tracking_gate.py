"""Tests for the tracking gate and site id decoding."""
import pytest

from disable_tracking.errors import DecodeError, StorageError
from disable_tracking.services.decision_cache import LocalDecisionCache
from disable_tracking.services.site_id_decoder import IntegerSiteIdDecoder, load_decoder
from disable_tracking.services.tracking_gate import GateDecision, TrackingGate, TrackingRequestContext


class BrokenCache:
    def get(self, site_id):
        raise StorageError("table unreachable")


def request_for(token):
    return TrackingRequestContext(path="/track", site_token=token, client_ip="10.0.0.1")


@pytest.fixture
def gate():
    cache = LocalDecisionCache(lambda site_id: site_id == 5)
    return TrackingGate(cache, IntegerSiteIdDecoder())


class TestTrackingGate:
    def test_no_site_id_continues(self, gate):
        assert gate.check(request_for(None)) is GateDecision.CONTINUE

    def test_disabled_site_terminates(self, gate):
        assert gate.check(request_for("5")) is GateDecision.TERMINATE

    def test_enabled_or_unknown_site_continues(self, gate):
        assert gate.check(request_for("4")) is GateDecision.CONTINUE
        assert gate.check(request_for("123456")) is GateDecision.CONTINUE

    def test_malformed_site_id_passes_through_by_default(self, gate):
        assert gate.check(request_for("5abc")) is GateDecision.CONTINUE
        assert gate.check(request_for("")) is GateDecision.CONTINUE

    def test_malformed_site_id_can_be_blocked(self):
        gate = TrackingGate(LocalDecisionCache(lambda s: False), IntegerSiteIdDecoder(), on_invalid_site_id="block")
        assert gate.check(request_for("not-a-site")) is GateDecision.TERMINATE
        assert gate.check(request_for("2")) is GateDecision.CONTINUE

    def test_storage_error_fails_open_by_default(self):
        gate = TrackingGate(BrokenCache(), IntegerSiteIdDecoder())
        assert gate.check(request_for("5")) is GateDecision.CONTINUE

    def test_storage_error_can_fail_closed(self):
        gate = TrackingGate(BrokenCache(), IntegerSiteIdDecoder(), on_storage_error="block")
        assert gate.check(request_for("5")) is GateDecision.TERMINATE

    def test_unknown_policy_is_rejected(self):
        with pytest.raises(ValueError):
            TrackingGate(BrokenCache(), IntegerSiteIdDecoder(), on_storage_error="ignore")

    def test_store_backed_gate_follows_writes(self, store, cache):
        gate = TrackingGate(cache, IntegerSiteIdDecoder())
        assert gate.check(request_for("2")) is GateDecision.CONTINUE
        store.disable(2)
        assert gate.check(request_for("2")) is GateDecision.TERMINATE


class TestIntegerSiteIdDecoder:
    def test_decodes_plain_ids(self):
        decoder = IntegerSiteIdDecoder()
        assert decoder.decode("7") == 7
        assert decoder.decode(" 12 ") == 12

    @pytest.mark.parametrize("token", ["12abc", "-3", "0", "", "1.5", "²"])
    def test_rejects_malformed_ids(self, token):
        with pytest.raises(DecodeError):
            IntegerSiteIdDecoder().decode(token)


class TestLoadDecoder:
    def test_loads_by_dotted_path(self):
        decoder = load_decoder("disable_tracking.services.site_id_decoder.IntegerSiteIdDecoder")
        assert isinstance(decoder, IntegerSiteIdDecoder)

    def test_rejects_bare_name(self):
        with pytest.raises(ValueError):
            load_decoder("IntegerSiteIdDecoder")
