from showfinder.show_ingest.crawler.chunker import chunk_document


def test_short_document_is_one_window():
    windows = chunk_document("x" * 5, max_chars=10)
    assert len(windows) == 1
    assert windows[0].text == "x" * 5
    assert windows[0].note == "Document start"


def test_exactly_two_windows_long_is_still_one_window():
    assert len(chunk_document("x" * 20, max_chars=10)) == 1


def test_just_over_two_windows_adds_middle():
    content = "".join(chr(ord("a") + i % 26) for i in range(21))
    windows = chunk_document(content, max_chars=10)

    assert [w.note for w in windows] == ["Document start", "Document middle"]
    assert windows[1].offset == 5
    assert windows[1].text == content[5:15]


def test_over_three_windows_adds_end():
    content = "".join(chr(ord("a") + i % 26) for i in range(31))
    windows = chunk_document(content, max_chars=10)

    assert [w.note for w in windows] == ["Document start", "Document middle", "Document end"]
    assert windows[2].text == content[-10:]
    assert all(len(w.text) <= 10 for w in windows)


def test_window_count_is_capped():
    windows = chunk_document("y" * 1000, max_chars=10, max_chunks=2)
    assert len(windows) == 2


def test_non_positive_limits_give_nothing():
    assert chunk_document("abc", max_chars=0) == []
    assert chunk_document("abc", max_chars=10, max_chunks=0) == []
