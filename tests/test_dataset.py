import pytest

from faraday.dataset import (
    Dataset,
    NoValuesError,
    OutlierResult,
    TooFewValuesError,
    get_median,
)


def test_median_no_values():
    with pytest.raises(NoValuesError):
        get_median([])


@pytest.mark.parametrize(
    "values, expected",
    [
        ([1], 1),
        ([1, 2], 1.5),
        ([1, 2, 3], 2),
    ],
)
def test_median(values, expected):
    assert get_median(values) == expected


@pytest.mark.parametrize("values", [[], [1.0, 2.0]])
def test_quartiles_too_few(values):
    dataset = Dataset({str(i): v for i, v in enumerate(values)})
    with pytest.raises(TooFewValuesError):
        dataset.quartiles()


@pytest.mark.parametrize(
    "values, lower, upper",
    [
        ([3, 1, 2], 1, 3),
        ([1, 2, 3, 4], 1.5, 3.5),
        ([1, 2, 4, 3, 5], 1.5, 4.5),
        ([1, 2, 3, 4, 5, 6, 7, 8], 2.5, 6.5),
    ],
)
def test_quartiles(values, lower, upper):
    dataset = Dataset({str(i): v for i, v in enumerate(values)})
    assert dataset.quartiles() == (lower, upper)


NO_OUTLIER = OutlierResult()


@pytest.mark.parametrize(
    "values, expected",
    [
        ({"a": 1}, {"a": NO_OUTLIER}),
        (
            {"a": 1, "b": 7, "c": 7, "d": 8, "e": 8, "f": 10},
            {
                "a": OutlierResult(upper_outlier=False, lower_outlier=True),
                "b": NO_OUTLIER,
                "c": NO_OUTLIER,
                "d": NO_OUTLIER,
                "e": NO_OUTLIER,
                "f": NO_OUTLIER,
            },
        ),
        (
            {"a": 1, "b": 1, "c": 2, "d": 2, "e": 3, "f": 10},
            {
                "a": NO_OUTLIER,
                "b": NO_OUTLIER,
                "c": NO_OUTLIER,
                "d": NO_OUTLIER,
                "e": NO_OUTLIER,
                "f": OutlierResult(upper_outlier=True, lower_outlier=False),
            },
        ),
    ],
)
def test_outliers(values, expected):
    assert Dataset(values).get_outliers(3) == expected


def test_outliers_weak_and_strong_multiplier():
    values = [1, 2, 5, 5, 5, 6, 6, 6, 8, 11]
    dataset = Dataset({str(i): v for i, v in enumerate(values)})

    strong = dataset.get_outliers(3)
    assert {l for l, r in strong.items() if r.lower_outlier} == {"0"}
    assert {l for l, r in strong.items() if r.upper_outlier} == {"9"}

    weak = dataset.get_outliers(1.5)
    assert {l for l, r in weak.items() if r.lower_outlier} == {"0", "1"}
    assert {l for l, r in weak.items() if r.upper_outlier} == {"8", "9"}


@pytest.mark.parametrize(
    "values, threshold, below, expected",
    [
        ({}, 1, False, {}),
        ({"a": 1, "b": 2, "c": 3}, 2, True, {"a": True, "b": True, "c": False}),
        ({"a": 1, "b": 2, "c": 3}, 2, False, {"a": False, "b": False, "c": True}),
    ],
)
def test_threshold(values, threshold, below, expected):
    assert Dataset(values).get_threshold(threshold, below) == expected


def test_value_and_raw_values():
    dataset = Dataset({"x": 3.0, "y": 1.0, "z": 2.0})
    assert dataset.value("x") == 3.0
    assert dataset.value("missing") == 0.0
    assert dataset.raw_values() == [1.0, 2.0, 3.0]