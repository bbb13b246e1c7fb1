from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

import censusviz.census as census
from censusviz.census import (
    CensusAPIError, acs_dataset, base_code, county_fips, get_acs, get_decennial, get_pums,
    load_variables, state_fips,
)

COUNTY_HEADER = ["NAME", "B01002_001E", "B01002_001M", "state", "county"]


class TestCodes:
    @pytest.mark.parametrize("code, expected", [
        ("B01001_003E", "B01001_003"),
        ("B01001_003M", "B01001_003"),
        ("B01001_003", "B01001_003"),
        ("DP05_0071PE", "DP05_0071P"),
        ("DP02_0068P", "DP02_0068P"),
        ("S1701_C01_001E", "S1701_C01_001"),
        ("P012003", "P012003"),
    ])
    def test_base_code(self, code, expected):
        assert base_code(code) == expected

    def test_acs_dataset_routes_by_prefix(self):
        assert acs_dataset(["B01002_001"], "acs5") == "acs/acs5"
        assert acs_dataset(["DP05_0071P"], "acs5") == "acs/acs5/profile"
        assert acs_dataset(["S1701_C01_001"], "acs1") == "acs/acs1/subject"
        with pytest.raises(ValueError):
            acs_dataset(["B01002_001", "DP05_0071P"], "acs5")

    @pytest.mark.parametrize("state, expected", [
        ("TX", "48"), ("tx", "48"), ("Minnesota", "27"), (6, "06"), ("01", "01"),
    ])
    def test_state_fips(self, state, expected):
        assert state_fips(state) == expected

    def test_state_fips_unknown(self):
        with pytest.raises(ValueError):
            state_fips("Atlantis")


class TestGetAcs:
    def test_tidy_rows(self, fake_get):
        fake_get.add("acs/acs5?get=NAME,B01002_001E,B01002_001M", [
            COUNTY_HEADER,
            ["Anoka County, Minnesota", "38.1", "0.2", "27", "003"],
            ["Hennepin County, Minnesota", "36.6", "0.1", "27", "053"],
        ])
        df = get_acs(geography="county", variables="B01002_001", state="MN")
        assert list(df.columns) == ["GEOID", "NAME", "variable", "estimate", "moe"]
        assert list(df["GEOID"]) == ["27003", "27053"]
        assert df["estimate"].tolist() == [38.1, 36.6]
        assert set(df["variable"]) == {"B01002_001"}

        url, params = fake_get.calls[0]
        assert url == "https://api.census.gov/data/2019/acs/acs5"
        assert params["for"] == "county:*"
        assert params["in"] == "state:27"
        assert "key" not in params

    def test_named_variables_and_sentinels(self, fake_get):
        fake_get.add("acs/acs5?get=NAME", [
            COUNTY_HEADER,
            ["Anoka County, Minnesota", "-666666666", "-222222222", "27", "003"],
        ])
        df = get_acs(geography="county", variables={"median_age": "B01002_001E"}, state="MN")
        assert df["variable"].iloc[0] == "median_age"
        assert np.isnan(df["estimate"].iloc[0])
        assert np.isnan(df["moe"].iloc[0])

    def test_summary_variable(self, fake_get):
        fake_get.add("acs/acs5?get=NAME", [
            ["NAME", "B03002_003E", "B03002_003M", "B03002_001E", "B03002_001M", "state", "county", "tract"],
            ["Tract 1", "400", "50", "1000", "20", "27", "053", "000100"],
        ])
        df = get_acs(geography="tract", variables={"White": "B03002_003"}, state="27", county="053",
                     summary_var="B03002_001")
        row = df.iloc[0]
        assert row["GEOID"] == "27053000100"
        assert row["summary_est"] == 1000
        assert row["summary_moe"] == 20
        assert fake_get.calls[0][1]["in"] == "state:27 county:053"

    def test_county_names_resolved(self, fake_get):
        fake_get.add("get=NAME&for=county:*", [
            ["NAME", "state", "county"],
            ["Hennepin County, Minnesota", "27", "053"],
            ["Ramsey County, Minnesota", "27", "123"],
        ])
        assert county_fips("MN", ["Ramsey", "hennepin county", "53"]) == ["123", "053", "053"]
        with pytest.raises(ValueError):
            county_fips("MN", "Nowhere")

    def test_codes_split_across_calls(self, fake_get, monkeypatch):
        monkeypatch.setattr(census, "MAX_CODES_PER_CALL", 1)
        fake_get.add("B01001_002E", [
            ["NAME", "B01001_002E", "B01001_002M", "state"],
            ["Alaska", "380000", "100", "02"],
        ])
        fake_get.add("B01001_026E", [
            ["NAME", "B01001_026E", "B01001_026M", "state"],
            ["Alaska", "350000", "90", "02"],
        ])
        df = get_acs(geography="state", variables=["B01001_002", "B01001_026"], state="AK")
        assert len(fake_get.calls) == 2
        assert sorted(df["estimate"]) == [350000, 380000]

    def test_table_expanded_from_variables_json(self, fake_get):
        fake_get.add("variables.json", {"variables": {
            "B01001_001E": {"label": "Total", "concept": "SEX BY AGE", "group": "B01001"},
            "B01001_001M": {"label": "MOE Total", "concept": "SEX BY AGE", "group": "B01001"},
            "B01001_001EA": {"label": "Annotation", "concept": "SEX BY AGE", "group": "B01001"},
            "B01001_002E": {"label": "Male", "concept": "SEX BY AGE", "group": "B01001"},
            "B01002_001E": {"label": "Median age", "concept": "MEDIAN AGE", "group": "B01002"},
            "NAME": {"label": "Geographic Area Name", "group": "N/A"},
        }})
        fake_get.add("get=NAME,B01001_001E", [
            ["NAME", "B01001_001E", "B01001_001M", "B01001_002E", "B01001_002M", "state"],
            ["Alabama", "4863300", "-555555555", "2362000", "1000", "01"],
        ])
        df = get_acs(geography="state", table="B01001", state="AL", year=2016, survey="acs1")
        assert list(df["variable"]) == ["B01001_001", "B01001_002"]
        assert fake_get.calls[0][0].endswith("2016/acs/acs1/variables.json")
        assert np.isnan(df.loc[df["variable"] == "B01001_001", "moe"].iloc[0])

    def test_requires_variables_or_table(self, fake_get):
        with pytest.raises(ValueError):
            get_acs(geography="state")

    def test_api_key_from_environment(self, fake_get, monkeypatch):
        monkeypatch.setenv("CENSUS_API_KEY", "abc123")
        fake_get.add("acs/acs5?get=NAME", [COUNTY_HEADER, ["Anoka County, Minnesota", "38.1", "0.2", "27", "003"]])
        get_acs(geography="county", variables="B01002_001", state="MN")
        assert fake_get.calls[0][1]["key"] == "abc123"


class TestErrors:
    def test_http_error(self, fake_get):
        fake_get.add("acs/acs5", None, status_code=400, text="error: unknown variable 'B99999_001E'")
        with pytest.raises(CensusAPIError, match="400"):
            get_acs(geography="state", variables="B99999_001")

    def test_html_body(self, fake_get):
        fake_get.add("acs/acs5", None, status_code=200, text="<html>Invalid Key</html>")
        with pytest.raises(CensusAPIError, match="non-JSON"):
            get_acs(geography="state", variables="B01002_001")

    def test_empty_result(self, fake_get):
        fake_get.add("acs/acs5", [["NAME", "B01002_001E", "B01002_001M", "state"]])
        df = get_acs(geography="state", variables="B01002_001")
        assert df.empty
        assert "estimate" in df.columns


class TestOtherDatasets:
    def test_decennial(self, fake_get):
        fake_get.add("2010/dec/sf1?get=NAME,P012003,P001001", [
            ["NAME", "P012003", "P001001", "state", "county"],
            ["Nome Census Area, Alaska", "500", "9492", "02", "180"],
        ])
        df = get_decennial(geography="county", variables="P012003", state="AK", summary_var="P001001")
        assert list(df.columns) == ["GEOID", "NAME", "variable", "value", "summary_value"]
        assert df.iloc[0]["GEOID"] == "02180"
        assert df.iloc[0]["value"] == 500
        assert df.iloc[0]["summary_value"] == 9492

    def test_decennial_dhc_after_2010(self, fake_get):
        fake_get.add("2020/dec/dhc", [["NAME", "P1_001N", "state"], ["Alaska", "733391", "02"]])
        df = get_decennial(geography="state", variables="P1_001N", state="AK", year=2020)
        assert df["value"].iloc[0] == 733391

    def test_pums_labels(self, fake_get):
        fake_get.add("pums", [
            ["AGEP", "SEX", "MARHM", "PWGTP", "state"],
            ["29", "2", "1", "15", "27"],
            ["31", "1", "1", "12", "27"],
        ])
        df = get_pums(["AGEP", "SEX", "MARHM"], state="MN")
        assert list(df["ST"]) == ["27", "27"]
        assert set(df["ST_label"]) == {"Minnesota"}
        assert list(df["SEX_label"]) == ["Female", "Male"]
        assert df["PWGTP"].tolist() == [15, 12]
        assert fake_get.calls[0][1]["get"] == "AGEP,SEX,MARHM,PWGTP"

    def test_pums_all_states_skips_puerto_rico(self, fake_get):
        fake_get.add("pums", [["AGEP", "SEX", "PWGTP", "state"], ["40", "1", "9", "01"]])
        get_pums(["AGEP", "SEX"], state="all")
        states = [params["for"] for _, params in fake_get.calls]
        assert len(states) == 51
        assert "state:72" not in states
        assert "state:11" in states

    def test_load_variables(self, fake_get):
        fake_get.add("variables.json", {"variables": {
            "B19013_001E": {"label": "Estimate!!Median household income", "concept": "MEDIAN HOUSEHOLD INCOME",
                            "group": "B19013"},
        }})
        v = load_variables(2019, "acs5")
        assert list(v.columns) == ["name", "label", "concept", "group"]
        assert v.iloc[0]["group"] == "B19013"
        assert fake_get.calls[0][0] == "https://api.census.gov/data/2019/acs/acs5/variables.json"
