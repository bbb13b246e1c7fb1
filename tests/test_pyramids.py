from __future__ import annotations

import pandas as pd
import pytest

from censusviz.pyramids import (
    AGE_ORDER, AGE_SEX_LINES, clean_county_names, label_age_sex, line_number, pyramid_table,
)


def test_line_numbers_across_datasets():
    assert line_number("B01001_003") == 3
    assert line_number("B01001_027E") == 27
    assert line_number("P012049") == 49
    assert line_number("P12_026N") == 26
    with pytest.raises(ValueError):
        line_number("B02001_003")


def test_mapping_covers_both_sexes():
    assert AGE_SEX_LINES[3] == ("Male", "0-4")
    assert AGE_SEX_LINES[25] == ("Male", "85+")
    assert AGE_SEX_LINES[27] == ("Female", "0-4")
    assert AGE_SEX_LINES[49] == ("Female", "85+")
    assert len(AGE_ORDER) == 18


def test_label_drops_totals(tidy_age_table):
    labeled = label_age_sex(tidy_age_table)
    assert len(labeled) == 2 * 46
    assert set(labeled["sex"]) == {"Male", "Female"}
    assert not labeled["variable"].isin(["B01001_001", "B01001_002", "B01001_026"]).any()


def test_label_independent_of_row_order(tidy_age_table):
    shuffled = tidy_age_table.sample(frac=1, random_state=11)
    labeled = label_age_sex(shuffled).set_index(["NAME", "variable"]).sort_index()
    expected = label_age_sex(tidy_age_table).set_index(["NAME", "variable"]).sort_index()
    assert (labeled["age"].astype(str) == expected["age"].astype(str)).all()
    assert (labeled["sex"] == expected["sex"]).all()


def test_unexpected_line_raises(tidy_age_table):
    extra = pd.concat([tidy_age_table, pd.DataFrame([{
        "NAME": "Alpha", "variable": "B01001_050", "estimate": 1.0, "summary_est": 1000.0,
    }])], ignore_index=True)
    with pytest.raises(ValueError, match="50"):
        label_age_sex(extra)


def test_pyramid_percentages(tidy_age_table):
    table = pyramid_table(tidy_age_table)
    assert list(table.columns) == ["name", "sex", "age", "percent"]
    alpha = table[table["name"] == "Alpha"].set_index(["sex", "age"])["percent"]
    # 15-19 folds two lines, 20-24 three lines
    assert alpha[("Female", "0-4")] == pytest.approx(1.0)
    assert alpha[("Female", "15-19")] == pytest.approx(2.0)
    assert alpha[("Female", "20-24")] == pytest.approx(3.0)
    assert alpha[("Male", "20-24")] == pytest.approx(-3.0)
    # the same shares for a state twice the size
    beta = table[table["name"] == "Beta"]["percent"].to_numpy()
    assert beta == pytest.approx(table[table["name"] == "Alpha"]["percent"].to_numpy())


def test_pyramid_unsigned_and_zero_total(tidy_age_table):
    df = tidy_age_table.copy()
    df.loc[df["NAME"] == "Beta", "summary_est"] = 0
    table = pyramid_table(df, signed=False)
    assert (table.loc[table["name"] == "Alpha", "percent"] > 0).all()
    assert table.loc[table["name"] == "Beta", "percent"].isna().all()


def test_decennial_columns():
    df = pd.DataFrame({
        "NAME": ["Nome"] * 3,
        "variable": ["P012001", "P012003", "P012027"],
        "value": [9000, 450, 430],
        "summary_value": [9000, 9000, 9000],
    })
    table = pyramid_table(df, value_col="value", summary_col="summary_value")
    assert len(table) == 2
    assert table.set_index("sex").loc["Female", "percent"] == pytest.approx(100 * 430 / 9000)


def test_clean_county_names():
    names = pd.Series(["Autauga County, Alabama", "St. Clair County, Alabama"])
    assert clean_county_names(names, "Alabama").tolist() == ["Autauga", "St. Clair"]

    ak = pd.Series([
        "Wade Hampton Census Area, Alaska", "Anchorage Municipality, Alaska",
        "Juneau City and Borough, Alaska", "North Slope Borough, Alaska",
    ])
    assert clean_county_names(ak, "Alaska").tolist() == ["Kusilvak", "Anchorage", "Juneau", "North Slope"]
