from src.tc_common.id_generator import generate_id
from src.tc_common.pagination import cursor_decode, cursor_encode, split_page


def test_cursor_encode_decode() -> None:
    assert cursor_decode(cursor_encode(42)) == 42


def test_cursor_decode_garbage() -> None:
    assert cursor_decode("not-base64!!") is None
    assert cursor_decode(None) is None


def test_split_page_detects_more() -> None:
    page, has_more = split_page([1, 2, 3], 2)
    assert page == [1, 2]
    assert has_more is True


def test_split_page_last_page() -> None:
    page, has_more = split_page([1, 2], 2)
    assert page == [1, 2]
    assert has_more is False


def test_ids_sort_by_creation() -> None:
    ids = [generate_id("PO") for _ in range(50)]
    assert ids == sorted(ids)
    assert len(set(ids)) == 50
    assert all(i.startswith("PO-") for i in ids)
