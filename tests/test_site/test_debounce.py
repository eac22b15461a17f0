"""Tests for folio.site.debounce."""

from folio.site.debounce import Debouncer


def test_trailing_edge_uses_last_args(clock):
    calls = []
    debouncer = Debouncer(calls.append, 0.25, clock)

    debouncer.call("a")
    clock.advance(0.2)
    debouncer.call("ab")
    clock.advance(0.2)

    assert debouncer.poll() is False
    clock.advance(0.1)
    assert debouncer.poll() is True
    assert calls == ["ab"]
    assert not debouncer.pending


def test_poll_with_nothing_pending(clock):
    assert Debouncer(lambda: None, clock=clock).poll() is False


def test_flush_and_cancel(clock):
    calls = []
    debouncer = Debouncer(calls.append, 10, clock)

    debouncer.call(1)
    assert debouncer.flush() is True
    assert debouncer.flush() is False

    debouncer.call(2)
    debouncer.cancel()
    clock.advance(60)
    assert debouncer.poll() is False
    assert calls == [1]


def test_kwargs(clock):
    calls = []
    debouncer = Debouncer(lambda **kw: calls.append(kw), 0, clock)
    debouncer.call(q="x")
    debouncer.poll()
    assert calls == [{"q": "x"}]
