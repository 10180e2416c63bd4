import pytest

from pauseflow import (
    DuplicateRequestId,
    InfoRequest,
    RequestCorrelator,
    RequestResponse,
    UnknownRequestId,
)


def test_register_and_resolve_round_trip():
    correlator = RequestCorrelator()
    request = InfoRequest(data="approve?")
    request_id = correlator.issue_id()

    pending = correlator.register(request_id, "reviewer", request, superstep=2)
    assert pending.issued_at_superstep == 2
    assert correlator.pending_count() == 1
    assert correlator.get(request_id) is pending

    response = correlator.resolve(request_id, True)
    assert isinstance(response, RequestResponse)
    assert response.original_request is request
    assert response.data is True
    assert response.request_id == request_id
    assert correlator.pending() == []


def test_resolved_request_cannot_be_resolved_again():
    correlator = RequestCorrelator()
    correlator.register("r1", "reviewer", InfoRequest())
    correlator.resolve("r1", "ok")

    with pytest.raises(UnknownRequestId) as exc_info:
        correlator.resolve("r1", "again")
    assert exc_info.value.request_id == "r1"


def test_ids_are_never_reused():
    correlator = RequestCorrelator()
    correlator.register("r1", "reviewer", InfoRequest())
    correlator.resolve("r1", "ok")

    with pytest.raises(DuplicateRequestId):
        correlator.register("r1", "reviewer", InfoRequest())

    issued = {correlator.issue_id() for _ in range(50)}
    assert "r1" not in issued
    assert len(issued) == 50


def test_pending_keeps_registration_order():
    correlator = RequestCorrelator()
    for request_id in ["b", "a", "c"]:
        correlator.register(request_id, "x", InfoRequest())
    assert [p.request_id for p in correlator.pending()] == ["b", "a", "c"]


def test_restore_replaces_table():
    source = RequestCorrelator()
    source.register("old", "x", InfoRequest())
    source.resolve("old", None)
    source.register("open", "x", InfoRequest(data=1))

    restored = RequestCorrelator()
    restored.restore(source.pending(), source.issued_ids)

    assert restored.issued_ids == frozenset({"old", "open"})
    assert [p.request_id for p in restored.pending()] == ["open"]
    with pytest.raises(DuplicateRequestId):
        restored.register("old", "x", InfoRequest())
