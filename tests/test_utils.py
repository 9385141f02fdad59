from __future__ import annotations

import pandas as pd

from simola_import import utils


def test_is_blank_keeps_zero_and_false_values():
    assert utils.is_blank(None)
    assert utils.is_blank("   ")
    assert utils.is_blank(float("nan"))
    assert utils.is_blank(pd.NA)
    assert not utils.is_blank(0)
    assert not utils.is_blank("0")
    assert not utils.is_blank([1, 2])


def test_describe_exception_includes_class_name():
    assert utils.describe_exception(ValueError("boom")) == "ValueError: boom"
