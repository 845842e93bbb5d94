import threading

from topicdriver.core.registry import TopicRegistry


def h1(k, v): pass
def h2(k, v): pass


def test_put_replaces_handler():
    reg = TopicRegistry({"a": h1})
    reg.put("a", h2)
    assert reg.handler_for("a") is h2
    assert len(reg) == 1


def test_replace_all_drops_missing_topics():
    reg = TopicRegistry({"a": h1, "b": h1})
    reg.replace_all({"c": h2})
    assert reg.snapshot() == ["c"]
    assert reg.handler_for("a") is None
    assert "a" not in reg


def test_snapshot_is_a_copy():
    reg = TopicRegistry({"a": h1})
    snap = reg.snapshot()
    reg.put("b", h2)
    assert snap == ["a"]


def test_concurrent_writes_and_snapshots():
    reg = TopicRegistry()
    errors = []

    def writer(base):
        for i in range(500):
            reg.put(f"{base}-{i}", h1)

    def reader():
        try:
            for _ in range(500):
                for t in reg.snapshot():
                    reg.handler_for(t)
        except Exception as ex:
            errors.append(ex)

    threads = [threading.Thread(target=writer, args=(n,)) for n in range(3)]
    threads.append(threading.Thread(target=reader))
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert errors == []
    assert len(reg) == 1500
