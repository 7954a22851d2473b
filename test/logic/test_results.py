import threading

import numpy as np
import pytest

from ivsweep.util import Column, ResultList


def test_titles_and_units():
    results = ResultList("Voltage", Column("Current", "A"))
    assert results.get_titles() == ["Voltage", "Current [A]"]
    results.set_units("V", "mA")
    assert results.get_titles() == ["Voltage [V]", "Current [mA]"]
    with pytest.raises(ValueError):
        results.set_units("V")


def test_needs_columns():
    with pytest.raises(ValueError):
        ResultList()


def test_add_and_read():
    results = ResultList("a", "b")
    results.add_data(1, 2)
    results.add_data(3.5, 4)
    assert len(results) == 2
    assert results.get_row(1) == (3.5, 4.0)
    np.testing.assert_allclose(results.get_column("b"), [2, 4])
    np.testing.assert_allclose(results.get_column(0), [1, 3.5])
    assert list(results) == [(1.0, 2.0), (3.5, 4.0)]


def test_row_width_checked():
    results = ResultList("a", "b")
    with pytest.raises(ValueError):
        results.add_data(1, 2, 3)
    assert len(results) == 0


def test_empty_array_shape():
    assert ResultList("a", "b", "c").to_array().shape == (0, 3)


def test_attributes_and_clear():
    results = ResultList("a")
    results.set_attribute("station", "Mock")
    assert results.get_attribute("station") == "Mock"
    assert results.get_attribute("missing") is None
    results.add_data(1)
    results.clear()
    assert len(results) == 0
    assert results.get_attributes() == {"station": "Mock"}


def test_concurrent_appends():
    results = ResultList("i", "thread")

    def writer(tag):
        for i in range(500):
            results.add_data(i, tag)

    threads = [threading.Thread(target=writer, args=(t,)) for t in range(4)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    assert len(results) == 2000
    assert sorted(np.unique(results.get_column("thread"))) == [0, 1, 2, 3]
