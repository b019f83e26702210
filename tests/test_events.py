from questline.events import LevelUpEmitter


def test_subscribers_called_in_order():
    emitter = LevelUpEmitter()
    calls = []
    emitter.subscribe(lambda uid, lvl: calls.append(("a", uid, lvl)))
    emitter.subscribe(lambda uid, lvl: calls.append(("b", uid, lvl)))
    emitter.emit(7, 3)
    assert calls == [("a", 7, 3), ("b", 7, 3)]


def test_unsubscribe_removes_only_that_callback():
    emitter = LevelUpEmitter()
    calls = []
    unsub_a = emitter.subscribe(lambda uid, lvl: calls.append("a"))
    emitter.subscribe(lambda uid, lvl: calls.append("b"))
    unsub_a()
    emitter.emit(1, 2)
    assert calls == ["b"]
    assert len(emitter) == 1
    # Second call is harmless
    unsub_a()
    assert len(emitter) == 1


def test_emit_without_subscribers_is_noop():
    LevelUpEmitter().emit(1, 2)


def test_failing_subscriber_is_logged_and_skipped(capsys):
    emitter = LevelUpEmitter()
    calls = []

    def broken(uid, lvl):
        raise RuntimeError("boom")

    emitter.subscribe(broken)
    emitter.subscribe(lambda uid, lvl: calls.append((uid, lvl)))
    assert emitter.emit(5, 4) == 1
    assert calls == [(5, 4)]
    err = capsys.readouterr().err
    assert "event=level_up_subscriber_failed" in err
    assert "RuntimeError:_boom" in err


def test_emit_reports_zero_failures():
    emitter = LevelUpEmitter()
    emitter.subscribe(lambda uid, lvl: None)
    assert emitter.emit(1, 2) == 0
