from cansat_extractor import InboundExtractor


STREAM = b"AB/*X*/CD/*Y*/"


def test_single_chunk():
    assert InboundExtractor().feed(STREAM) == [b"X", b"Y"]


def test_byte_by_byte():
    ex = InboundExtractor()
    frames = []
    for i in range(len(STREAM)):
        frames += ex.feed(STREAM[i:i + 1])
    assert frames == [b"X", b"Y"]
    assert ex.buffered == 0


def test_every_split_point():
    for cut in range(len(STREAM) + 1):
        ex = InboundExtractor()
        assert ex.feed(STREAM[:cut]) + ex.feed(STREAM[cut:]) == [b"X", b"Y"], cut


def test_consumer_receives_frames_in_order():
    seen = []
    ex = InboundExtractor(seen.append)
    ex.feed(b"/*1026,1*//*6026,2*/")
    ex.feed(b"/*1026,3")
    ex.feed(b"*/")
    assert seen == [b"1026,1", b"6026,2", b"1026,3"]


def test_no_frame_in_chunk():
    ex = InboundExtractor()
    assert ex.feed(b"noise without markers") == []
    assert ex.feed(b"") == []


def test_partial_start_marker_kept():
    ex = InboundExtractor()
    assert ex.feed(b"junk/") == []
    assert ex.buffered == 1
    assert ex.feed(b"*data*/") == [b"data"]


def test_partial_end_marker_kept():
    ex = InboundExtractor()
    assert ex.feed(b"/*data*") == []
    assert ex.feed(b"/") == [b"data"]


def test_end_marker_before_start_is_skipped():
    ex = InboundExtractor()
    assert ex.feed(b"stale*/ /*fresh") == []
    assert ex.feed(b"*/") == [b"fresh"]


def test_empty_frame():
    assert InboundExtractor().feed(b"/**/") == [b""]


def test_cap_clears_buffer_and_recovers():
    ex = InboundExtractor(cap=64)
    assert ex.feed(b"/*" + b"x" * 100) == []
    assert ex.buffered == 0
    assert ex.feed(b"/*1026,OK*/") == [b"1026,OK"]


def test_noise_does_not_grow_buffer():
    ex = InboundExtractor(cap=64)
    for _ in range(10):
        ex.feed(b"z" * 50)
    assert ex.buffered <= 1
