from agent_engine.usage import RequestUsage, Usage


def test_empty_is_identity() -> None:
    usage = Usage.for_request(12, 8)
    assert Usage.empty().add(usage) == usage
    assert usage.add(Usage.empty()) == usage


def test_add_is_commutative_and_associative() -> None:
    a = Usage(requests=1, input_tokens=3, output_tokens=4, total_tokens=7)
    b = Usage(requests=2, input_tokens=10, output_tokens=1, total_tokens=11)
    c = Usage(requests=1, input_tokens=0, output_tokens=9, total_tokens=9)
    assert a.add(b) == b.add(a)
    assert a.add(b).add(c) == a.add(b.add(c))
    assert a + b == a.add(b)


def test_add_none_returns_self() -> None:
    usage = Usage.for_request(1, 1)
    assert usage.add(None) is usage


def test_per_request_entries_accumulate() -> None:
    total = Usage.for_request(5, 2).add(Usage.for_request(1, 1))
    assert total.requests == 2
    assert total.total_tokens == 9
    assert total.request_usage_entries == (RequestUsage(5, 2, 7), RequestUsage(1, 1, 2))


def test_dict_round_trip_keeps_entries() -> None:
    usage = Usage.for_request(4, 6)
    restored = Usage.from_dict(usage.to_dict())
    assert restored == usage
    assert restored.request_usage_entries == usage.request_usage_entries
