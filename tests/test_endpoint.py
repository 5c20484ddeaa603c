from __future__ import annotations

import threading

import pytest

from unreliable.endpoint import Endpoint, EndpointCell


def test_port_range():
    Endpoint("127.0.0.1", 0)
    Endpoint("127.0.0.1", 65535)
    with pytest.raises(ValueError):
        Endpoint("127.0.0.1", 65536)
    with pytest.raises(ValueError):
        Endpoint("127.0.0.1", -1)


def test_matches_ipv4_and_ipv6_sockaddrs():
    assert Endpoint("127.0.0.1", 4000).matches(("127.0.0.1", 4000))
    assert not Endpoint("127.0.0.1", 4000).matches(("127.0.0.1", 4001))
    assert not Endpoint("127.0.0.1", 4000).matches(("127.0.0.2", 4000))
    assert Endpoint("::1", 4000).matches(("::1", 4000, 0, 0))


def test_from_sockaddr():
    assert Endpoint.from_sockaddr(("::1", 9, 0, 0)) == Endpoint("::1", 9)
    assert Endpoint("10.0.0.1", 53).as_tuple() == ("10.0.0.1", 53)
    assert str(Endpoint("10.0.0.1", 53)) == "10.0.0.1:53"


def test_cell_set_get_clear():
    cell = EndpointCell()
    assert cell.get() is None
    cell.set(Endpoint("127.0.0.1", 1))
    assert cell.get() == Endpoint("127.0.0.1", 1)
    cell.clear()
    assert cell.get() is None


def test_cell_concurrent_updates_never_mix_fields():
    a = Endpoint("10.0.0.1", 1111)
    b = Endpoint("10.0.0.2", 2222)
    cell = EndpointCell(a)
    stop = threading.Event()
    seen = set()

    def writer(value):
        while not stop.is_set():
            cell.set(value)

    threads = [threading.Thread(target=writer, args=(v,)) for v in (a, b)]
    for t in threads:
        t.start()
    try:
        for _ in range(10_000):
            seen.add(cell.get())
    finally:
        stop.set()
        for t in threads:
            t.join()

    assert seen <= {a, b}


def test_numeric_addresses_are_normalized():
    assert Endpoint("0:0:0:0:0:0:0:1", 5).address == "::1"
    assert Endpoint("FE80::ABCD", 5) == Endpoint("fe80::abcd", 5)
    assert Endpoint("0:0:0:0:0:0:0:1", 5).matches(("::1", 5, 0, 0))
    assert Endpoint("::1", 5).matches(("0:0:0:0:0:0:0:1", 5))
    assert not Endpoint("::1", 5).matches(("::2", 5, 0, 0))


def test_names_are_kept_as_given():
    assert Endpoint("example.invalid", 80).address == "example.invalid"
    assert not Endpoint("localhost", 80).matches(("127.0.0.1", 80))
