from __future__ import annotations

from engine.coerce import coerce, coerce_int, coerce_number, coerce_text_list


def test_coerce_scalars():
    assert coerce(None) == ""
    assert coerce(None, "N/A") == "N/A"
    assert coerce(True) == "Yes"
    assert coerce(False) == "No"
    assert coerce(3.0) == "3"
    assert coerce(2.5) == "2.5"
    assert coerce("Singapore") == "Singapore"


def test_coerce_wrapper_objects_use_display_keys():
    assert coerce({"display": "$1.2M", "amount": 1_200_000}) == "$1.2M"
    assert coerce({"name": "Portugal"}) == "Portugal"
    assert coerce({"amount": 1_350_000}) == "$1.35M"


def test_coerce_never_leaks_stringified_objects():
    nested = {"meta": {"a": 1}, "items": [1, 2]}
    out = coerce(nested, "N/A")
    assert out == "N/A"
    assert "{" not in coerce([{"a": 1}], "")
    assert coerce(object(), "fallback") == "fallback"


def test_coerce_picks_first_short_scalar():
    assert coerce({"blob": "x" * 200, "short": "ok"}) == "ok"
    assert coerce(["", 42]) == "42"


def test_coerce_number():
    assert coerce_number("$1,234.56") == 1234.56
    assert coerce_number("+80%") == 80.0
    assert coerce_number(float("nan"), 0.0) == 0.0
    assert coerce_number(float("inf"), None) is None
    assert coerce_number(True, 5.0) == 5.0
    assert coerce_number({"value": "12%"}) == 12.0
    assert coerce_number("no digits", None) is None


def test_coerce_int_rounds_half_up():
    assert coerce_int("2.5") == 3
    assert coerce_int(None, 21) == 21
    assert coerce_int("abc", 8) == 8


def test_coerce_text_list_drops_empty_entries():
    assert coerce_text_list(["a", "", {"name": "b"}, None]) == ["a", "b"]
    assert coerce_text_list(["a", "b", "c", "d"], 3) == ["a", "b", "c"]
    assert coerce_text_list("not a list") == []


def test_digit_runs_too_long_for_a_float_fall_back():
    assert coerce_number("1" * 400, None) is None
    assert coerce_number("9" * 400) == 0.0
    assert coerce_number({"value": "9" * 400}, 7.0) == 7.0
    assert coerce_int("1" * 400, 21) == 21
    assert coerce_number("inf", None) is None
    assert coerce_number("NaN", None) is None
