"""Fetch World Bank GDP per capita and write the dashboard's GDP asset.

Output (one object per country, years as string keys):

    [{"Country Name": "France", "Country Code": "FRA",
      "GDP": {"2016": 37062.5, ..., "2023": 44460.8}}, ...]
"""

import argparse
import json
import math
from pathlib import Path

import pandas as pd
from pandas_datareader import wb

import dashboard_hook as SH
from gdp_data import process_gdp_data, to_long_frame

GDP_INDICATOR = "NY.GDP.PCAP.CD"
START_YEAR, END_YEAR = int(SH.GDP_YEARS[0]), int(SH.GDP_YEARS[-1])


def get_countries_table():
    """Get WB countries, filter out aggregates, keep ISO-3 and canonical names."""
    c = wb.get_countries()
    c = c[c["region"] != "Aggregates"][["name", "iso3c"]]
    c = c.rename(columns={"name": "country", "iso3c": "iso3"})
    return c


def fetch_gdp(countries_df):
    """Long df (iso3, country, year, value) for GDP per capita, aggregates dropped."""
    print(f"Fetching WB {GDP_INDICATOR} {START_YEAR}-{END_YEAR}")
    try:
        df = wb.download(
            indicator=GDP_INDICATOR,
            country="all",
            start=START_YEAR,
            end=END_YEAR,
        ).reset_index()
    except Exception as e:
        print(f"  ⚠️ WB failed for {GDP_INDICATOR}: {e}")
        return pd.DataFrame([])

    if not {"country", "year", GDP_INDICATOR}.issubset(df.columns):
        print(f"  ⚠️ WB returned unexpected columns: {df.columns.tolist()}")
        return pd.DataFrame([])

    df = df.merge(countries_df, on="country", how="left")
    df = df.dropna(subset=["iso3"])
    df = df.rename(columns={GDP_INDICATOR: "value"})
    df["year"] = df["year"].astype(str)
    return df[["iso3", "country", "year", "value"]]


def to_asset_rows(long_df):
    """Long frame -> nested asset rows; missing years are left out of "GDP"."""
    rows = []
    for (iso3, country), g in long_df.groupby(["iso3", "country"], sort=True):
        gdp = {}
        for year, value in zip(g["year"], g["value"]):
            if value is not None and not (isinstance(value, float) and math.isnan(value)):
                gdp[str(year)] = float(value)
        rows.append({"Country Name": country, "Country Code": iso3, "GDP": gdp})
    return rows


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build the GDP asset from the World Bank API")
    parser.add_argument("--out", default=str(SH.ASSETS_DIR / SH.GDP_ASSET))
    parser.add_argument("--long-csv", default=None, help="also write the long (iso3, country, year, indicator, value) table")
    args = parser.parse_args(argv)

    countries_df = get_countries_table()
    long_df = fetch_gdp(countries_df)
    if long_df.empty:
        raise RuntimeError("No GDP data retrieved. Check network or try again later.")

    rows = to_asset_rows(long_df)
    out = Path(args.out)
    out.parent.mkdir(parents=True, exist_ok=True)
    with out.open("w", encoding="utf-8") as f:
        json.dump(rows, f, ensure_ascii=False, indent=2)

    by_year = process_gdp_data(rows)
    print("\n✅ Wrote:")
    print(f" - {out}   ({len(rows)} countries)")
    if args.long_csv:
        to_long_frame(by_year, indicator="gdp_per_capita_usd").to_csv(args.long_csv, index=False)
        print(f" - {args.long_csv}   (iso3, country, year, indicator, value)")
    print("\nCountries with data per year:", {y: len(recs) for y, recs in by_year.items()})


if __name__ == "__main__":
    main()
